from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from fire_registry.config import AppConfig
from fire_registry.features.crosstab import tabulate
from fire_registry.io.dictionary import StaticDictionary
from fire_registry.pipeline.run_all import run_all
from fire_registry.pipeline.tabulate import (
    build_frequency_table,
    load_crosstab_artifacts,
    write_crosstab_artifacts,
)

HEADER = (
    "FDID,Fire dept name,HQ city,HQ state,County,Dept Type,Organization Type,Website,"
    "Number Of Stations,Active Firefighters - Career,Active Firefighters - Volunteer,"
    "Active Firefighters - Paid per Call,Non-Firefighting - Civilian,"
    "Non-Firefighting - Volunteer,Primary agency for emergency mgmt"
)


def _registry_rows() -> list[str]:
    rows = []
    layout = [
        ("Local", "Volunteer", 6),
        ("Local", "Career", 2),
        ("Local", "Mostly Volunteer", 1),
        ("Contract", "Volunteer", 1),
        ("State", "Career", 1),
    ]
    index = 0
    for organization_type, dept_type, repeat in layout:
        for _ in range(repeat):
            index += 1
            rows.append(
                f"{index:05d},Department {index},Town,WA,King,{dept_type},{organization_type},,"
                f"1,{index},0,0,0,0,Yes"
            )
    return rows


def _write_registry(tmp_path: Path) -> Path:
    path = tmp_path / "registry.csv"
    path.write_text("\n".join([HEADER, *_registry_rows()]) + "\n", encoding="utf-8")
    return path


def _offline_config(**report: object) -> AppConfig:
    return AppConfig.model_validate(
        {
            "dictionary": {"enabled": False},
            "outputs": {"tables_format": "csv"},
            "report": report,
        }
    )


def test_run_all_writes_cache_display_table_and_report(tmp_path: Path) -> None:
    out_dir = tmp_path / "out"

    report_path = run_all(_write_registry(tmp_path), out_dir, _offline_config())

    assert report_path == out_dir / "report.html"
    display = pd.read_csv(out_dir / "tables" / "frequency_table.csv", dtype=str)
    assert list(display.columns) == [
        "Organization Type",
        "Career",
        "Mostly Volunteer",
        "Volunteer",
        "Total",
    ]
    assert display["Organization Type"].tolist() == ["Local", "Contract", "State", "Total"]
    assert display.iloc[0].tolist() == [
        "Local",
        "2 (0.1818)",
        "1 (0.0909)",
        "6 (0.5455)",
        "9",
    ]
    assert display.iloc[1, 1] == "0 (<0.0000)"

    summary = json.loads((out_dir / "summary" / "crosstab_summary.json").read_text("utf-8"))
    assert summary["grand_total"] == 11
    assert summary["row_totals"] == {"Local": 9, "Contract": 1, "State": 1}

    cached = load_crosstab_artifacts(out_dir, _offline_config())
    assert cached is not None
    assert cached.grand_total == 11
    assert cached.row_labels == ["Local", "Contract", "State"]
    assert float(cached.total_frequencies.sum()) == pytest.approx(1.0)


def test_run_all_adds_incident_summary(tmp_path: Path) -> None:
    incidents_2018 = tmp_path / "incidents_2018.csv"
    incidents_2018.write_text("fdid,n_incidents\n00001,10\n00010,4\n", encoding="utf-8")
    incidents_2019 = tmp_path / "incidents_2019.csv"
    incidents_2019.write_text("fdid,n_incidents\n00001,20\n00011,8\n", encoding="utf-8")
    out_dir = tmp_path / "out"

    report_path = run_all(
        _write_registry(tmp_path),
        out_dir,
        _offline_config(),
        incident_paths=[incidents_2018, incidents_2019],
    )

    by_type = pd.read_csv(out_dir / "tables" / "incidents_by_dept_type.csv")
    volunteer = by_type.set_index("category").loc["Volunteer"]
    assert volunteer["n_departments"] == 7
    assert volunteer["n_reporting"] == 2
    assert volunteer["mean_incidents"] == pytest.approx((15.0 + 4.0) / 2)
    assert (out_dir / "tables" / "department_incidents.csv").exists()
    assert "Average annual incidents by Dept Type" in report_path.read_text(encoding="utf-8")


def test_build_frequency_table_uses_injected_dictionary(tmp_path: Path) -> None:
    out_dir = tmp_path / "out"
    run_all(_write_registry(tmp_path), out_dir, _offline_config())
    cached = load_crosstab_artifacts(out_dir, _offline_config())
    assert cached is not None

    table = build_frequency_table(
        cached,
        _offline_config(capitalize_unknown=True),
        dictionary=StaticDictionary(["organization", "type", "local", "state", "total"]),
    )

    assert table.spanner_label == "DEPT Type"
    assert [row.label for row in table.rows] == ["Local", "CONTRACT", "State"]


def test_build_frequency_table_skips_lookups_when_dictionary_disabled() -> None:
    result = tabulate(
        pd.DataFrame({"organization_type": ["Local"], "dept_type": ["Career"]})
    )

    table = build_frequency_table(result, _offline_config(capitalize_unknown=True))

    assert table.stub_label == "Organization Type"


def test_csv_cache_keeps_labels_that_read_like_missing_values(tmp_path: Path) -> None:
    result = tabulate(
        pd.DataFrame(
            {
                "organization_type": ["Local", "Local", "None", "NA", None],
                "dept_type": ["Career", "N/A", "Career", "Career", "Career"],
            }
        )
    )
    config = _offline_config()

    write_crosstab_artifacts(result, tmp_path, config)
    cached = load_crosstab_artifacts(tmp_path, config)

    assert cached is not None
    assert cached.row_labels == ["Local", "None", "NA"]
    assert cached.columns == ["Career", "N/A"]
    assert cached.row("NA").counts == {"Career": 1, "N/A": 0}
    assert cached.grand_total == 4
    assert cached.n_excluded == 1
