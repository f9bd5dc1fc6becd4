from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from fire_registry.config import AppConfig
from fire_registry.features.crosstab import (
    CACHE_TEXT_COLUMNS,
    CrossTabResult,
    crosstab_from_frame,
    crosstab_summary,
    crosstab_to_frame,
    tabulate,
)
from fire_registry.io.dictionary import WordDictionary, build_dictionary
from fire_registry.io.read import load_registry, load_table
from fire_registry.io.write import write_summary, write_table
from fire_registry.paths import build_output_paths
from fire_registry.report.frequency_table import FrequencyTable, render

LOGGER = logging.getLogger(__name__)

CROSSTAB_TABLE_NAME = "crosstab"


def tabulate_registry(csv_path: Path, config: AppConfig) -> tuple[pd.DataFrame, CrossTabResult]:
    departments = load_registry(csv_path=csv_path, config=config)
    result = tabulate(
        departments,
        row_dim=config.report.row_dimension,
        col_dim=config.report.column_dimension,
        column_order=config.report.column_order,
    )
    return departments, result


def write_crosstab_artifacts(result: CrossTabResult, out_dir: Path, config: AppConfig) -> Path:
    paths = build_output_paths(out_dir)
    cache_path = write_table(
        crosstab_to_frame(result),
        paths.tables / CROSSTAB_TABLE_NAME,
        fmt=config.outputs.tables_format,
    )
    write_summary(crosstab_summary(result), paths.summary / "crosstab_summary.json")
    return cache_path


def load_crosstab_artifacts(out_dir: Path, config: AppConfig) -> CrossTabResult | None:
    paths = build_output_paths(out_dir)
    cache_path = paths.tables / f"{CROSSTAB_TABLE_NAME}.{config.outputs.tables_format}"
    if not cache_path.exists():
        return None
    LOGGER.info("Reusing cached cross-tabulation from %s", cache_path)
    return crosstab_from_frame(load_table(cache_path, text_columns=CACHE_TEXT_COLUMNS))


def build_frequency_table(
    result: CrossTabResult,
    config: AppConfig,
    dictionary: WordDictionary | None = None,
) -> FrequencyTable:
    # With lookups disabled every word would read as unknown; fall back to title case.
    capitalize_unknown = config.report.capitalize_unknown and (
        dictionary is not None or config.dictionary.enabled
    )
    if capitalize_unknown and dictionary is None:
        dictionary = build_dictionary(config.dictionary)
    return render(
        result,
        summary_label=config.report.summary_label,
        capitalize_unknown=capitalize_unknown,
        dictionary=dictionary,
        show_grand_total=config.report.show_grand_total,
    )
