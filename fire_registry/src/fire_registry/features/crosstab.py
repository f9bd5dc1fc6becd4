from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from fire_registry.errors import EmptyInputError, SchemaError
from fire_registry.preprocess.columns import normalize
from fire_registry.records import DepartmentRecord, records_to_frame

LOGGER = logging.getLogger(__name__)

CACHE_COLUMNS = [
    "row_dim",
    "col_dim",
    "row_value",
    "col_value",
    "row_rank",
    "col_rank",
    "n",
    "relative_frequency",
    "total",
    "relative_frequency_total",
    "grand_total",
]
CACHE_TEXT_COLUMNS = ["row_dim", "col_dim", "row_value", "col_value"]


@dataclass(frozen=True)
class CrossTabRow:
    label: str
    counts: Mapping[str, int]
    total: int
    relative_frequency: Mapping[str, float]
    relative_frequency_total: float
    grand_total: int


@dataclass(frozen=True)
class CrossTabResult:
    """Counts of ``row_dim`` x ``col_dim`` with grand-total relative frequencies.

    ``counts`` and ``frequencies`` share the same index (row values, sorted by
    descending total) and columns (every column value observed in the input).
    Frequencies are always ``count / grand_total``, never row-normalized.
    """

    row_dim: str
    col_dim: str
    counts: pd.DataFrame
    totals: pd.Series
    frequencies: pd.DataFrame
    total_frequencies: pd.Series
    grand_total: int
    # Records left out because a dimension value was missing.
    n_excluded: int = 0

    @property
    def columns(self) -> list[str]:
        return [str(column) for column in self.counts.columns]

    @property
    def row_labels(self) -> list[str]:
        return [str(label) for label in self.counts.index]

    def row(self, label: str) -> CrossTabRow:
        if label not in self.counts.index:
            raise KeyError(f"{self.row_dim} value not tabulated: {label}")
        return CrossTabRow(
            label=str(label),
            counts={str(col): int(value) for col, value in self.counts.loc[label].items()},
            total=int(self.totals.loc[label]),
            relative_frequency={
                str(col): float(value) for col, value in self.frequencies.loc[label].items()
            },
            relative_frequency_total=float(self.total_frequencies.loc[label]),
            grand_total=self.grand_total,
        )

    def rows(self) -> list[CrossTabRow]:
        return [self.row(label) for label in self.counts.index]

    def column_totals(self) -> pd.Series:
        return self.counts.sum(axis=0).astype("int64")

    def column_frequencies(self) -> pd.Series:
        return self.column_totals() / float(self.grand_total)


def _ordered_columns(observed: list[Any], column_order: Sequence[str] | None) -> list[Any]:
    if not column_order:
        return observed
    by_key = {normalize(value): value for value in observed}
    preferred = []
    for value in column_order:
        match = by_key.get(normalize(value))
        if match is not None and match not in preferred:
            preferred.append(match)
    return preferred + [value for value in observed if value not in preferred]


def _pair_counts(frame: pd.DataFrame, row_dim: str, col_dim: str) -> pd.Series:
    """Dense two-key histogram keyed by (row value, column value)."""
    return frame.groupby([row_dim, col_dim], sort=False, observed=True).size()


def _derive_frequencies(
    counts: pd.DataFrame, grand_total: int
) -> tuple[pd.Series, pd.DataFrame, pd.Series]:
    totals = counts.fillna(0).sum(axis=1).astype("int64")
    frequencies = counts / float(grand_total)
    total_frequencies = totals / float(grand_total)
    return totals, frequencies, total_frequencies


def tabulate(
    records: pd.DataFrame | Sequence[DepartmentRecord],
    row_dim: str = "organization_type",
    col_dim: str = "dept_type",
    column_order: Sequence[str] | None = None,
) -> CrossTabResult:
    """Cross-tabulate records by ``row_dim`` and ``col_dim``.

    Rows come back ordered by descending total; ties keep the order in which
    the row value first appeared. Records missing either dimension are left
    out of every count, including the grand total.
    """
    frame = records if isinstance(records, pd.DataFrame) else records_to_frame(list(records))
    missing = [column for column in (row_dim, col_dim) if column not in frame.columns]
    if missing:
        raise SchemaError(missing, source="cross-tabulation input")

    # Object dtype keeps first-seen order independent of any category ordering.
    keys = frame[[row_dim, col_dim]].astype(object)
    complete = keys.dropna()
    dropped = len(keys) - len(complete)
    if dropped:
        LOGGER.warning(
            "Excluding %d records with missing %s or %s from cross-tabulation",
            dropped,
            row_dim,
            col_dim,
        )
    if complete.empty:
        raise EmptyInputError(
            f"Cannot cross-tabulate {row_dim} x {col_dim}: no records to count"
        )

    pair_counts = _pair_counts(complete, row_dim, col_dim)
    grand_total = int(np.asarray(pair_counts, dtype="int64").sum())

    row_values = list(pd.unique(complete[row_dim]))
    col_values = _ordered_columns(list(pd.unique(complete[col_dim])), column_order)
    counts = (
        pair_counts.unstack(col_dim, fill_value=0)
        .reindex(index=row_values, columns=col_values, fill_value=0)
        .astype("int64")
    )
    counts.index.name = row_dim
    counts.columns.name = col_dim

    totals, frequencies, total_frequencies = _derive_frequencies(counts, grand_total)
    order = totals.sort_values(ascending=False, kind="mergesort").index

    LOGGER.info(
        "Cross-tabulated %d records into %d %s rows x %d %s columns",
        grand_total,
        len(row_values),
        row_dim,
        len(col_values),
        col_dim,
    )
    return CrossTabResult(
        row_dim=row_dim,
        col_dim=col_dim,
        counts=counts.loc[order],
        totals=totals.loc[order],
        frequencies=frequencies.loc[order],
        total_frequencies=total_frequencies.loc[order],
        grand_total=grand_total,
        n_excluded=dropped,
    )


def crosstab_to_frame(result: CrossTabResult) -> pd.DataFrame:
    """Flatten a result into a long table suitable for caching to disk."""
    rows: list[dict[str, Any]] = []
    for row_rank, label in enumerate(result.counts.index):
        for col_rank, column in enumerate(result.counts.columns):
            rows.append(
                {
                    "row_dim": result.row_dim,
                    "col_dim": result.col_dim,
                    "row_value": str(label),
                    "col_value": str(column),
                    "row_rank": row_rank,
                    "col_rank": col_rank,
                    "n": int(result.counts.loc[label, column]),
                    "relative_frequency": float(result.frequencies.loc[label, column]),
                    "total": int(result.totals.loc[label]),
                    "relative_frequency_total": float(result.total_frequencies.loc[label]),
                    "grand_total": result.grand_total,
                    "n_excluded": result.n_excluded,
                }
            )
    return pd.DataFrame(rows, columns=[*CACHE_COLUMNS, "n_excluded"])


def crosstab_from_frame(frame: pd.DataFrame) -> CrossTabResult:
    """Rebuild a result from :func:`crosstab_to_frame` output without recounting."""
    missing = [column for column in CACHE_COLUMNS if column not in frame.columns]
    if missing:
        raise SchemaError(missing, source="cross-tabulation cache")
    if frame.empty:
        raise EmptyInputError("Cross-tabulation cache has no rows")

    working = frame.copy()
    working["row_value"] = working["row_value"].astype(str)
    working["col_value"] = working["col_value"].astype(str)
    row_dim = str(working["row_dim"].iloc[0])
    col_dim = str(working["col_dim"].iloc[0])

    row_values = list(
        working.sort_values("row_rank", kind="mergesort")["row_value"].drop_duplicates()
    )
    col_values = list(
        working.sort_values("col_rank", kind="mergesort")["col_value"].drop_duplicates()
    )

    counts = (
        working.pivot(index="row_value", columns="col_value", values="n")
        .reindex(index=row_values, columns=col_values, fill_value=0)
        .fillna(0)
        .astype("int64")
    )
    counts.index.name = row_dim
    counts.columns.name = col_dim
    grand_total = int(working["grand_total"].iloc[0])
    n_excluded = int(working["n_excluded"].iloc[0]) if "n_excluded" in working else 0
    totals, frequencies, total_frequencies = _derive_frequencies(counts, grand_total)
    return CrossTabResult(
        row_dim=row_dim,
        col_dim=col_dim,
        counts=counts,
        totals=totals,
        frequencies=frequencies,
        total_frequencies=total_frequencies,
        grand_total=grand_total,
        n_excluded=n_excluded,
    )


def crosstab_summary(result: CrossTabResult) -> dict[str, Any]:
    column_totals = result.column_totals()
    return {
        "row_dim": result.row_dim,
        "col_dim": result.col_dim,
        "grand_total": result.grand_total,
        "n_excluded": result.n_excluded,
        "n_rows": len(result.row_labels),
        "n_columns": len(result.columns),
        "row_totals": {str(key): int(value) for key, value in result.totals.items()},
        "column_totals": {str(key): int(value) for key, value in column_totals.items()},
        "column_relative_frequency": {
            str(key): float(value) for key, value in result.column_frequencies().items()
        },
    }
