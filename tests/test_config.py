from pathlib import Path

import pytest

from dre_analytics.classification import OTHER, PERSONNEL
from dre_analytics.config import AppConfig, load_app_config

REPO_CONFIG = Path(__file__).resolve().parents[1] / "config" / "dre_analytics_config.toml"


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_when_no_config_file(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    config = load_app_config()

    assert config == AppConfig()
    assert config.revenue_mode == "total"
    assert config.proportional_threshold == pytest.approx(0.8)
    assert config.ranking_limit == 3
    assert config.classifier.expense_bucket("Despesas com Pessoal") == PERSONNEL


def test_explicit_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "nope.toml"))


def test_full_config_with_relative_paths(tmp_path) -> None:
    _write(
        tmp_path / "rules.toml",
        '[[expense_rules]]\nbucket = "personnel"\nall_of = ["folha"]\n',
    )
    path = _write(
        tmp_path / "app.toml",
        "[dre]\n"
        'revenue_mode = "sales"\n'
        'classification_rules = "rules.toml"\n'
        "[comparison]\n"
        "proportional_threshold = 0.75\n"
        "[ranking]\n"
        "limit = 5\n"
        "[categories]\n"
        "top_n = 4\n"
        "pie_slices = 6\n"
        "[display]\n"
        'mode = "both"\n'
        "decimals = 1\n"
        'output_dir = "out"\n'
        "[input]\n"
        'path = "data/lancamentos.xlsx"\n',
    )

    config = load_app_config(str(path))

    assert config.revenue_mode == "sales"
    assert config.classification_rules == (tmp_path / "rules.toml").resolve()
    assert config.classifier.expense_bucket("Folha de pagamento") == PERSONNEL
    assert config.classifier.expense_bucket("Despesas com Pessoal") == OTHER
    assert config.proportional_threshold == pytest.approx(0.75)
    assert (config.ranking_limit, config.categories_top_n, config.pie_slices) == (5, 4, 6)
    assert (config.display_mode, config.decimals) == ("both", 1)
    assert config.output_dir == (tmp_path / "out").resolve()
    assert config.input_path == (tmp_path / "data" / "lancamentos.xlsx").resolve()


@pytest.mark.parametrize(
    "text, key",
    [
        ('[dre]\nrevenue_mode = "net"\n', "revenue mode"),
        ("[comparison]\nproportional_threshold = 1.5\n", "proportional_threshold"),
        ('[comparison]\nproportional_threshold = "high"\n', "proportional_threshold"),
        ('[ranking]\nlimit = "three"\n', "ranking.limit"),
        ("[categories]\ntop_n = -1\n", "categories.top_n"),
        ('[display]\nmode = "html"\n', "display.mode"),
        ('dre = "total"\n', r"\[dre\]"),
    ],
)
def test_invalid_values_raise(tmp_path, text, key) -> None:
    path = _write(tmp_path / "app.toml", text)

    with pytest.raises(ValueError, match=key):
        load_app_config(str(path))


def test_unparsable_toml_raises(tmp_path) -> None:
    path = _write(tmp_path / "app.toml", "[dre\n")

    with pytest.raises(ValueError, match="Failed to parse"):
        load_app_config(str(path))


def test_shipped_configuration_loads() -> None:
    config = load_app_config(str(REPO_CONFIG))

    assert config.classification_rules is not None
    assert config.classifier.is_non_operating_outflow("Saídas Não Operacionais")
    assert config.input_path is not None and config.input_path.is_file()
