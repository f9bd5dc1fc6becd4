from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass, fields
from typing import Any

import pandas as pd

CATEGORICAL_FIELDS = ("dept_type", "organization_type")
COUNT_FIELDS = (
    "number_of_stations",
    "active_firefighters_career",
    "active_firefighters_volunteer",
    "active_firefighters_paid_per_call",
    "non_firefighting_civilian",
    "non_firefighting_volunteer",
)
TRISTATE_FIELDS = ("primary_agency_for_em",)


@dataclass(frozen=True)
class DepartmentRecord:
    fdid: str
    fire_dept_name: str
    hq_city: str | None
    hq_state: str | None
    county: str | None
    dept_type: str | None
    organization_type: str | None
    number_of_stations: int | None = None
    active_firefighters_career: int | None = None
    active_firefighters_volunteer: int | None = None
    active_firefighters_paid_per_call: int | None = None
    non_firefighting_civilian: int | None = None
    non_firefighting_volunteer: int | None = None
    # None means the registry did not say yes or no.
    primary_agency_for_em: bool | None = None


RECORD_FIELDS = tuple(field.name for field in fields(DepartmentRecord))


def _plain(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if hasattr(value, "item"):
        return value.item()
    return value


def records_from_frame(df: pd.DataFrame) -> list[DepartmentRecord]:
    columns = [column for column in RECORD_FIELDS if column in df.columns]
    return [
        DepartmentRecord(**{column: _plain(row[column]) for column in columns})
        for row in df[columns].to_dict(orient="records")
    ]


def records_to_frame(records: Sequence[DepartmentRecord]) -> pd.DataFrame:
    frame = pd.DataFrame([asdict(record) for record in records], columns=list(RECORD_FIELDS))
    for column in CATEGORICAL_FIELDS:
        values = frame[column]
        frame[column] = pd.Categorical(values, categories=pd.unique(values.dropna()))
    for column in COUNT_FIELDS:
        frame[column] = pd.to_numeric(frame[column], errors="coerce").astype("Int64")
    for column in TRISTATE_FIELDS:
        frame[column] = frame[column].astype("boolean")
    return frame
