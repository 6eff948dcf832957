# DRE Analytics - Income statement & KPI engine for bookkeeping spreadsheets
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for DRE Analytics.

This module is responsible for:
- loading the main application configuration from a TOML file,
- loading the keyword classification rules referenced by it,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .classification import Classifier, default_classifier, load_classifier
from .comparison import PROPORTIONAL_THRESHOLD
from .dre import REVENUE_MODE_TOTAL, check_revenue_mode

DEFAULT_CONFIG_FILE = "dre_analytics_config.toml"
DISPLAY_MODES: tuple[str, ...] = ("table", "csv", "both")


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for DRE Analytics.

    This aggregates:
    - the DRE revenue mode and the keyword classification rules,
    - the proportional-adjustment threshold of year comparisons,
    - ranking and category list sizes,
    - display options for tables and CSV export,
    - the default input spreadsheet, if any.
    """

    revenue_mode: str = REVENUE_MODE_TOTAL
    classification_rules: Optional[Path] = None
    classifier: Classifier = field(default_factory=default_classifier)
    proportional_threshold: float = PROPORTIONAL_THRESHOLD
    ranking_limit: int = 3
    categories_top_n: int = 10
    pie_slices: int = 8
    display_mode: str = "table"
    decimals: int = 2
    output_dir: Path = Path("data/output")
    input_path: Optional[Path] = None


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"Config section [{name}] must be a table.")
    return section


def _int_option(section: Mapping[str, Any], key: str, default: int, name: str) -> int:
    value = section.get(key, default)
    if isinstance(value, bool):
        raise ValueError(f"Invalid value for '{name}.{key}': expected an integer.")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{name}.{key}': expected an integer."
        ) from exc
    if number < 0:
        raise ValueError(f"Invalid value for '{name}.{key}': must be >= 0.")
    return number


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the DRE Analytics configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [dre]
        revenue_mode ("total" or "sales") and an optional
        classification_rules file (keyword rules, see
        ``classification.load_classifier``).

    [comparison]
        proportional_threshold: day-span ratio below which a year
        comparison is proportionally adjusted (default 0.8).

    [ranking]
        limit: number of months per ranking (default 3).

    [categories]
        top_n (default 10) and pie_slices (default 8).

    [display]
        mode ("table", "csv" or "both"), decimals and output_dir.

    [input]
        path: default spreadsheet to analyse.

    Notes
    -----
    - When no path is given and ``dre_analytics_config.toml`` does not
      exist in the current directory, built-in defaults are returned.
    - All file paths in the TOML are resolved relative to the directory of
      the TOML file itself.

    Raises:
        FileNotFoundError: if an explicit config file (or the rules file it
            references) does not exist.
        ValueError: if the file cannot be parsed or holds invalid values.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
        if not config_file.is_file():
            return AppConfig()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) DRE section
    dre_section = _section(raw, "dre")
    revenue_mode = check_revenue_mode(
        str(dre_section.get("revenue_mode", REVENUE_MODE_TOTAL))
    )

    rules_raw = dre_section.get("classification_rules") or None
    rules_path: Optional[Path] = None
    classifier = default_classifier()
    if rules_raw:
        rules_path = (base_dir / str(rules_raw)).resolve()
        classifier = load_classifier(rules_path)

    # 2) Comparison options
    comparison_section = _section(raw, "comparison")
    try:
        threshold = float(
            comparison_section.get("proportional_threshold", PROPORTIONAL_THRESHOLD)
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'comparison.proportional_threshold': expected a number."
        ) from exc
    if not 0.0 < threshold <= 1.0:
        raise ValueError(
            "Invalid value for 'comparison.proportional_threshold': "
            "expected a number in (0, 1]."
        )

    # 3) Ranking and categories
    ranking_section = _section(raw, "ranking")
    ranking_limit = _int_option(ranking_section, "limit", 3, "ranking")

    categories_section = _section(raw, "categories")
    top_n = _int_option(categories_section, "top_n", 10, "categories")
    pie_slices = _int_option(categories_section, "pie_slices", 8, "categories")

    # 4) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid value for 'display.mode': {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )
    decimals = _int_option(display_section, "decimals", 2, "display")
    output_raw = display_section.get("output_dir", "data/output")
    output_dir = (base_dir / str(output_raw)).resolve()

    # 5) Input
    input_section = _section(raw, "input")
    input_raw = input_section.get("path") or None
    input_path = (base_dir / str(input_raw)).resolve() if input_raw else None

    return AppConfig(
        revenue_mode=revenue_mode,
        classification_rules=rules_path,
        classifier=classifier,
        proportional_threshold=threshold,
        ranking_limit=ranking_limit,
        categories_top_n=top_n,
        pie_slices=pie_slices,
        display_mode=display_mode,
        decimals=decimals,
        output_dir=output_dir,
        input_path=input_path,
    )
