from pathlib import Path

import pytest

import dre_analytics.cli as cli_mod
from dre_analytics import __version__
from dre_analytics.cli import main

SAMPLE = Path(__file__).resolve().parents[1] / "data" / "input" / "sample_transactions.csv"


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    # No dre_analytics_config.toml in the working directory: built-in defaults.
    monkeypatch.chdir(tmp_path)


def test_version(capsys) -> None:
    main(["--version"])

    assert __version__ in capsys.readouterr().out


def test_kpis_scope_prints_tables(capsys) -> None:
    main(["--input", str(SAMPLE)])

    out = capsys.readouterr().out
    assert "Loaded 16 transactions" in out
    assert "Applied filters: none" in out
    assert "=== KPIs ===" in out
    assert "=== Cumulative cash flow ===" in out


def test_filters_and_dre_scope(capsys) -> None:
    main(
        [
            "--input",
            str(SAMPLE),
            "--company",
            "Loja Centro",
            "--scope",
            "dre",
            "--dre-view",
            "annual",
            "--expand",
            "subgroup",
            "--revenue-mode",
            "sales",
        ]
    )

    out = capsys.readouterr().out
    assert "company=Loja Centro" in out
    assert "Transactions after filters: 11" in out
    assert "DRE revenue mode: sales" in out
    assert "=== Annual DRE ===" in out
    assert "=== Monthly DRE ===" not in out


def test_compare_scope_defaults_to_last_two_periods(capsys) -> None:
    main(["--input", str(SAMPLE), "--scope", "compare", "--compare-by", "year"])

    out = capsys.readouterr().out
    assert "Comparing 2024 against 2023." in out
    assert "scaled by" in out
    assert "=== Sales revenue by year ===" in out


def test_all_scopes_written_as_csv(tmp_path, capsys) -> None:
    out_dir = tmp_path / "exports"

    main(
        [
            "--input",
            str(SAMPLE),
            "--scope",
            "all",
            "--display-mode",
            "csv",
            "--output",
            str(out_dir),
        ]
    )

    stems = {p.name.rsplit("_", 1)[0] for p in out_dir.glob("*.csv")}
    assert {
        "kpis",
        "cash_flow",
        "top_expenses",
        "top_revenues",
        "expenses_by_group",
        "monthly_dre",
        "annual_dre",
        "comparison",
        "sales_by_year",
        "rankings",
        "report_synthetic",
    } <= stems
    assert "===" not in capsys.readouterr().out


def test_missing_input_is_a_usage_error(capsys) -> None:
    with pytest.raises(SystemExit):
        main([])

    assert "No input spreadsheet" in capsys.readouterr().err


def test_invalid_date_filter(capsys) -> None:
    with pytest.raises(SystemExit, match="Invalid date format"):
        main(["--input", str(SAMPLE), "--from-date", "01/02/2024"])


def test_unknown_period_is_reported(capsys) -> None:
    with pytest.raises(SystemExit, match="Unknown period"):
        main(
            [
                "--input",
                str(SAMPLE),
                "--scope",
                "compare",
                "--period-a",
                "1999-01",
                "--period-b",
                "2024-01",
            ]
        )


def test_missing_excel_engine_is_a_usage_error(tmp_path, monkeypatch, capsys) -> None:
    path = tmp_path / "antigo.xls"
    path.write_bytes(b"")

    def no_engine(_path):
        raise ImportError("Missing optional dependency 'xlrd'.")

    monkeypatch.setattr(cli_mod, "read_transactions", no_engine)

    with pytest.raises(SystemExit):
        main(["--input", str(path)])

    assert "xlrd" in capsys.readouterr().err
