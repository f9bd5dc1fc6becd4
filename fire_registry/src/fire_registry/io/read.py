from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from fire_registry.config import AppConfig, IncidentsConfig
from fire_registry.errors import SchemaError
from fire_registry.preprocess.columns import normalize, normalize_columns
from fire_registry.records import (
    CATEGORICAL_FIELDS,
    COUNT_FIELDS,
    RECORD_FIELDS,
    TRISTATE_FIELDS,
)

LOGGER = logging.getLogger(__name__)

TRISTATE_MAP = {
    "Yes": True,
    "No": False,
}
YEAR_IN_NAME_RE = re.compile(r"(?<!\d)((?:19|20)\d{2})(?!\d)")


def coerce_tristate(values: pd.Series) -> pd.Series:
    """Map registry Yes/No text to True/False; everything else is unknown."""
    text = values.fillna("").astype(str).str.strip()
    return text.map(TRISTATE_MAP).astype("boolean")


def coerce_categorical(values: pd.Series) -> pd.Series:
    """Build a data-driven category set from the observed values, first seen first."""
    text = values.fillna("").astype(str).str.strip()
    text = text.where(text != "")
    categories = pd.unique(text.dropna())
    return pd.Series(
        pd.Categorical(text, categories=categories),
        index=values.index,
        name=values.name,
    )


def _match_source_columns(df: pd.DataFrame, config: AppConfig) -> dict[str, str]:
    by_normalized = {normalize(column): column for column in df.columns}
    rename_map: dict[str, str] = {}
    missing: list[str] = []
    for field_name in RECORD_FIELDS:
        source_label = getattr(config.columns, field_name)
        source_column = by_normalized.get(normalize(source_label))
        if source_column is None:
            missing.append(source_label)
            continue
        rename_map[source_column] = field_name
    if missing:
        raise SchemaError(missing, source="registry CSV")
    return rename_map


def load_registry(csv_path: Path, config: AppConfig) -> pd.DataFrame:
    """Load the department registry export into typed canonical columns."""
    # Everything is read as text so identifiers like FDID keep their leading zeros.
    # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
    raw = pd.read_csv(
        csv_path,
        sep=config.input.delimiter,
        quotechar='"',
        dtype=str,
        keep_default_na=False,
        encoding="utf-8-sig",
    )
    rename_map = _match_source_columns(raw, config)
    ignored = [column for column in raw.columns if column not in rename_map]
    if ignored:
        LOGGER.debug("Ignoring %d extra registry columns: %s", len(ignored), ", ".join(ignored))

    df = raw.rename(columns=rename_map)[list(RECORD_FIELDS)].copy()
    for column in ("fdid", "fire_dept_name", "hq_city", "hq_state", "county"):
        df[column] = df[column].str.strip()
    for column in CATEGORICAL_FIELDS:
        df[column] = coerce_categorical(df[column])
    for column in COUNT_FIELDS:
        df[column] = pd.to_numeric(df[column].str.replace(",", "", regex=False), errors="coerce")
        df[column] = df[column].round().astype("Int64")
    for column in TRISTATE_FIELDS:
        df[column] = coerce_tristate(df[column])

    LOGGER.info("Loaded %d department records from %s", len(df), csv_path)
    return df


def _year_from_path(path: Path) -> int | None:
    match = YEAR_IN_NAME_RE.search(path.stem)
    return int(match.group(1)) if match else None


def _department_ids(values: pd.Series, width: int) -> pd.Series:
    if pd.api.types.is_numeric_dtype(values):
        # Numeric storage drops leading zeros.
        return values.astype("Int64").map(
            lambda value: None if pd.isna(value) else str(value).zfill(width)
        )
    return values.astype(str).str.strip()


def load_incident_counts(paths: Sequence[Path], config: IncidentsConfig) -> pd.DataFrame:
    """Load per-year incident count tables into one ``fdid, year, n_incidents`` frame."""
    id_column = normalize(config.id_column)
    count_column = normalize(config.count_column)
    year_column = normalize(config.year_column)

    frames: list[pd.DataFrame] = []
    for path in paths:
        if path.suffix == ".parquet":
            table = pd.read_parquet(path)
        else:
            table = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
        table = normalize_columns(table)

        missing = [column for column in (id_column, count_column) if column not in table.columns]
        if missing:
            raise SchemaError(missing, source=f"incident table {path.name}")

        if year_column in table.columns:
            years = pd.to_numeric(table[year_column], errors="coerce").astype("Int64")
        else:
            year = _year_from_path(path)
            if year is None:
                raise ValueError(
                    f"Cannot determine year for {path.name}: "
                    f"no '{config.year_column}' column and no year in file name"
                )
            years = pd.Series(year, index=table.index, dtype="Int64")

        frames.append(
            pd.DataFrame(
                {
                    "fdid": _department_ids(table[id_column], config.id_width),
                    "year": years,
                    "n_incidents": pd.to_numeric(table[count_column], errors="coerce"),
                }
            )
        )
        LOGGER.info("Loaded %d incident rows from %s", len(table), path)

    if not frames:
        return pd.DataFrame(
            {
                "fdid": pd.Series(dtype=str),
                "year": pd.Series(dtype="Int64"),
                "n_incidents": pd.Series(dtype=float),
            }
        )
    return pd.concat(frames, ignore_index=True)


def load_table(path: Path, text_columns: Sequence[str] = ()) -> pd.DataFrame:
    """Read a parquet or csv table.

    ``text_columns`` are read from csv verbatim, so labels such as ``NA`` or
    ``None`` stay labels instead of becoming missing values.
    """
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        if not text_columns:
            return pd.read_csv(path)
        return pd.read_csv(
            path,
            dtype={column: str for column in text_columns},
            keep_default_na=False,
        )
    raise ValueError(f"Unsupported table file type: {path.suffix}")
