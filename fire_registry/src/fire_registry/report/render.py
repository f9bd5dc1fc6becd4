from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from jinja2 import Environment, FileSystemLoader, select_autoescape

from fire_registry.features.crosstab import CrossTabResult
from fire_registry.report.frequency_table import FrequencyTable
from fire_registry.report.text import (
    conditional_frequency,
    format_frequency,
    format_integer,
    format_percent,
)

LOGGER = logging.getLogger(__name__)


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml", "j2")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _serialize_value(value: Any) -> Any:
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    return value


def _frame_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    return [
        {str(key): _serialize_value(value) for key, value in row.items()}
        for row in df.to_dict(orient="records")
    ]


def render_frequency_table_html(table: FrequencyTable) -> str:
    template = _template_env().get_template("frequency_table.html.j2")
    return template.render(table=table)


def build_highlights(result: CrossTabResult, table: FrequencyTable) -> list[str]:
    """Narrative sentences citing the computed figures."""
    titles = dict(zip(result.row_labels, [row.label for row in table.rows]))
    column_titles = dict(zip(result.columns, table.column_labels))
    highlights = [
        f"The table counts {format_integer(result.grand_total)} departments across "
        f"{len(result.row_labels)} {table.stub_label.lower()} categories."
    ]
    if result.n_excluded:
        highlights.append(
            f"{format_integer(result.n_excluded)} more registry departments have no recorded "
            f"{table.stub_label.lower()} or {table.spanner_label.lower()} and are left out "
            "of every count and frequency."
        )

    top = result.rows()[0]
    highlights.append(
        f"{titles[top.label]} departments are the largest group with "
        f"{format_integer(top.total)} departments "
        f"({format_percent(top.relative_frequency_total)} of the registry)."
    )
    if result.columns:
        top_column = max(result.columns, key=lambda column: top.counts[column])
        share = conditional_frequency(
            top.relative_frequency[top_column], top.relative_frequency_total
        )
        if share is not None:
            highlights.append(
                f"Among {titles[top.label]} departments, {format_percent(share)} are "
                f"{column_titles[top_column]}."
            )

    column_totals = result.column_totals()
    column_frequencies = result.column_frequencies()
    for column in result.columns:
        highlights.append(
            f"{column_titles[column]}: {format_integer(column_totals[column])} departments "
            f"(relative frequency {format_frequency(column_frequencies[column])})."
        )
    return highlights


def render_report(
    result: CrossTabResult,
    table: FrequencyTable,
    out_dir: Path,
    *,
    title: str,
    incident_summary: pd.DataFrame | None = None,
    incident_dimension_label: str | None = None,
) -> Path:
    generated_at = datetime.now(timezone.utc).isoformat()
    template = _template_env().get_template("report.html.j2")

    incident_rows: list[dict[str, Any]] = []
    if incident_summary is not None and not incident_summary.empty:
        incident_rows = _frame_records(incident_summary)

    rendered = template.render(
        title=title,
        generated_at=generated_at,
        highlights=build_highlights(result, table),
        table=table,
        incident_rows=incident_rows,
        incident_dimension_label=incident_dimension_label,
        format_integer=format_integer,
    )

    report_path = out_dir / "report.html"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(rendered, encoding="utf-8")
    LOGGER.info("Report written to %s", report_path)
    return report_path
