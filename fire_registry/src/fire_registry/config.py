from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DEPARTMENT_TYPE_ORDER = ["Career", "Mostly Career", "Mostly Volunteer", "Volunteer"]
DEFAULT_DICTIONARY_URL = "https://api.dictionaryapi.dev/api/v2/entries/en/{word}"


class ColumnsConfig(BaseModel):
    """Canonical field name -> header label used by the registry export."""

    fdid: str = "FDID"
    fire_dept_name: str = "Fire dept name"
    hq_city: str = "HQ city"
    hq_state: str = "HQ state"
    county: str = "County"
    dept_type: str = "Dept Type"
    organization_type: str = "Organization Type"
    number_of_stations: str = "Number Of Stations"
    active_firefighters_career: str = "Active Firefighters - Career"
    active_firefighters_volunteer: str = "Active Firefighters - Volunteer"
    active_firefighters_paid_per_call: str = "Active Firefighters - Paid per Call"
    non_firefighting_civilian: str = "Non-Firefighting - Civilian"
    non_firefighting_volunteer: str = "Non-Firefighting - Volunteer"
    primary_agency_for_em: str = "Primary agency for emergency mgmt"


class InputConfig(BaseModel):
    delimiter: str = Field(default=",", min_length=1, max_length=1)


class IncidentsConfig(BaseModel):
    id_column: str = "fdid"
    # Registry FDIDs are fixed-width; numeric ids are zero-padded back to it.
    id_width: int = Field(default=5, ge=1)
    count_column: str = "n_incidents"
    year_column: str = "year"


class DictionaryConfig(BaseModel):
    enabled: bool = True
    url_template: str = DEFAULT_DICTIONARY_URL
    timeout_seconds: float = Field(default=5.0, gt=0.0)


class ReportConfig(BaseModel):
    title: str = "U.S. Fire Departments by Organization and Department Type"
    row_dimension: str = "organization_type"
    column_dimension: str = "dept_type"
    column_order: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DEPARTMENT_TYPE_ORDER)
    )
    capitalize_unknown: bool = True
    summary_label: str = "Total"
    show_grand_total: bool = False


class OutputsConfig(BaseModel):
    tables_format: Literal["parquet", "csv"] = "parquet"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    incidents: IncidentsConfig = Field(default_factory=IncidentsConfig)
    dictionary: DictionaryConfig = Field(default_factory=DictionaryConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config file must contain a mapping/object: {path}")
    return AppConfig.model_validate(data)
