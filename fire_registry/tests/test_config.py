from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from fire_registry.config import AppConfig, load_config

DEFAULT_CONFIG = Path(__file__).resolve().parents[1] / "configs" / "default.yaml"


def test_default_config_file_matches_model_defaults() -> None:
    cfg = load_config(DEFAULT_CONFIG)

    assert cfg == AppConfig()
    assert cfg.columns.fdid == "FDID"
    assert cfg.report.column_order == ["Career", "Mostly Career", "Mostly Volunteer", "Volunteer"]


def test_load_config_applies_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "columns": {"fdid": "Fire Department ID"},
                "report": {"capitalize_unknown": False, "row_dimension": "hq_state"},
                "dictionary": {"enabled": False},
                "outputs": {"tables_format": "csv"},
            }
        ),
        encoding="utf-8",
    )

    cfg = load_config(config_path)

    assert cfg.columns.fdid == "Fire Department ID"
    assert cfg.columns.hq_state == "HQ state"
    assert cfg.report.row_dimension == "hq_state"
    assert cfg.report.capitalize_unknown is False
    assert cfg.dictionary.enabled is False
    assert cfg.outputs.tables_format == "csv"


def test_load_config_accepts_empty_file(tmp_path: Path) -> None:
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("", encoding="utf-8")

    assert load_config(config_path) == AppConfig()


def test_load_config_rejects_unknown_sections_and_bad_values(tmp_path: Path) -> None:
    unknown = tmp_path / "unknown.yaml"
    unknown.write_text("clustering:\n  k: 4\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(unknown)

    bad_timeout = tmp_path / "bad.yaml"
    bad_timeout.write_text("dictionary:\n  timeout_seconds: 0\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(bad_timeout)

    not_mapping = tmp_path / "list.yaml"
    not_mapping.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_config(not_mapping)
