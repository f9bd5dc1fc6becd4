from __future__ import annotations

import logging

import pandas as pd

from fire_registry.errors import SchemaError

LOGGER = logging.getLogger(__name__)

DEPARTMENT_ATTRIBUTE_COLUMNS = [
    "fdid",
    "fire_dept_name",
    "hq_state",
    "dept_type",
    "organization_type",
    "number_of_stations",
    "active_firefighters_career",
    "active_firefighters_volunteer",
    "active_firefighters_paid_per_call",
]


def average_incidents(incidents: pd.DataFrame) -> pd.DataFrame:
    """Average each department's incident count over the years it reported."""
    missing = [column for column in ("fdid", "year", "n_incidents") if column not in incidents]
    if missing:
        raise SchemaError(missing, source="incident counts")

    # A department listed twice in one year is one department-year.
    per_year = (
        incidents.dropna(subset=["fdid", "n_incidents"])
        .groupby(["fdid", "year"], dropna=False, sort=False)["n_incidents"]
        .sum()
        .reset_index()
    )
    averaged = (
        per_year.groupby("fdid", sort=False)
        .agg(
            n_years=("year", "nunique"),
            mean_incidents=("n_incidents", "mean"),
        )
        .reset_index()
    )
    averaged["n_years"] = averaged["n_years"].astype("int64")
    return averaged


def join_department_incidents(departments: pd.DataFrame, averages: pd.DataFrame) -> pd.DataFrame:
    columns = [column for column in DEPARTMENT_ATTRIBUTE_COLUMNS if column in departments.columns]
    if "fdid" not in columns:
        raise SchemaError(["fdid"], source="department records")

    joined = departments[columns].merge(averages, on="fdid", how="left", validate="m:1")
    joined["n_years"] = joined["n_years"].fillna(0).astype("int64")
    n_unmatched = int(joined["mean_incidents"].isna().sum())
    if len(averages) and n_unmatched == len(joined):
        LOGGER.warning(
            "No department matched any of %d incident fdids; check the id format", len(averages)
        )
    elif n_unmatched:
        LOGGER.info("%d departments have no incident counts", n_unmatched)
    return joined


def summarize_incidents_by(joined: pd.DataFrame, dimension: str) -> pd.DataFrame:
    if dimension not in joined.columns:
        raise SchemaError([dimension], source="joined incident table")

    working = joined.assign(category=joined[dimension].astype(object))
    working = working.dropna(subset=["category"])
    summary = (
        working.groupby("category", sort=False)
        .agg(
            n_departments=("fdid", "count"),
            n_reporting=("mean_incidents", "count"),
            mean_incidents=("mean_incidents", "mean"),
            median_incidents=("mean_incidents", "median"),
        )
        .reset_index()
    )
    summary["n_departments"] = summary["n_departments"].astype("int64")
    summary["n_reporting"] = summary["n_reporting"].astype("int64")
    return summary.sort_values("n_departments", ascending=False, kind="mergesort").reset_index(
        drop=True
    )
