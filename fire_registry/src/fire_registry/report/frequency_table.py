from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import pandas as pd

from fire_registry.features.crosstab import CrossTabResult
from fire_registry.io.dictionary import WordDictionary
from fire_registry.preprocess.columns import display_titles as build_display_titles
from fire_registry.preprocess.columns import normalize
from fire_registry.report.text import format_count_frequency, format_integer


@dataclass(frozen=True)
class FrequencyTableRow:
    label: str
    cells: list[str]
    total: str
    grand_total: str | None = None
    is_summary: bool = False


@dataclass(frozen=True)
class FrequencyTable:
    stub_label: str
    spanner_label: str
    column_labels: list[str]
    total_label: str
    grand_total_label: str | None
    rows: list[FrequencyTableRow]
    summary: FrequencyTableRow

    def all_rows(self) -> list[FrequencyTableRow]:
        return [*self.rows, self.summary]

    def header(self) -> list[str]:
        header = [self.stub_label, *self.column_labels, self.total_label]
        if self.grand_total_label is not None:
            header.append(self.grand_total_label)
        return header

    def to_frame(self) -> pd.DataFrame:
        records = []
        for row in self.all_rows():
            values = [row.label, *row.cells, row.total]
            if self.grand_total_label is not None:
                values.append(row.grand_total or "")
            records.append(values)
        return pd.DataFrame(records, columns=self.header())


def _title_for(value: str, titles: Mapping[str, str]) -> str:
    key = normalize(value)
    return titles.get(key, titles.get(value, str(value)))


def render(
    result: CrossTabResult,
    display_titles: Mapping[str, str] | None = None,
    *,
    summary_label: str = "Total",
    capitalize_unknown: bool = False,
    dictionary: WordDictionary | None = None,
    show_grand_total: bool = False,
) -> FrequencyTable:
    """Build the display table for a cross-tabulation.

    Each column cell reads ``count (frequency)`` against the grand total and a
    final summary row carries the column sums. Labels come from
    ``display_titles`` (keyed by normalized identifier) and fall back to
    :func:`titleize`.
    """
    supplied = {normalize(key): value for key, value in (display_titles or {}).items()}
    names = [
        result.row_dim,
        result.col_dim,
        "total",
        "grand_total",
        *result.row_labels,
        *result.columns,
    ]
    # Only labels the caller left untitled go through the dictionary.
    titles = build_display_titles(
        [name for name in names if normalize(name) not in supplied],
        capitalize_unknown=capitalize_unknown,
        dictionary=dictionary,
    )
    titles.update(supplied)

    grand_total_text = format_integer(result.grand_total)
    rows = []
    for row in result.rows():
        rows.append(
            FrequencyTableRow(
                label=_title_for(row.label, titles),
                cells=[
                    format_count_frequency(row.counts[column], row.relative_frequency[column])
                    for column in result.columns
                ],
                total=format_integer(row.total),
                grand_total=grand_total_text if show_grand_total else None,
            )
        )

    column_totals = result.column_totals()
    column_frequencies = result.column_frequencies()
    summary = FrequencyTableRow(
        label=summary_label,
        cells=[
            format_count_frequency(int(column_totals.iloc[index]), column_frequencies.iloc[index])
            for index in range(len(result.columns))
        ],
        total=grand_total_text,
        grand_total=grand_total_text if show_grand_total else None,
        is_summary=True,
    )

    return FrequencyTable(
        stub_label=_title_for(result.row_dim, titles),
        spanner_label=_title_for(result.col_dim, titles),
        column_labels=[_title_for(column, titles) for column in result.columns],
        total_label=_title_for("total", titles),
        grand_total_label=_title_for("grand_total", titles) if show_grand_total else None,
        rows=rows,
        summary=summary,
    )
