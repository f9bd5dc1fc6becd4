from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from fire_registry.config import AppConfig
from fire_registry.features.incidents import (
    average_incidents,
    join_department_incidents,
    summarize_incidents_by,
)
from fire_registry.io.dictionary import WordDictionary
from fire_registry.io.read import load_incident_counts
from fire_registry.io.write import write_table
from fire_registry.paths import build_output_paths
from fire_registry.pipeline.tabulate import (
    build_frequency_table,
    tabulate_registry,
    write_crosstab_artifacts,
)
from fire_registry.report.render import render_report

LOGGER = logging.getLogger(__name__)


def run_all(
    csv_path: Path,
    out_dir: Path,
    config: AppConfig,
    *,
    incident_paths: Sequence[Path] = (),
    dictionary: WordDictionary | None = None,
) -> Path:
    paths = build_output_paths(out_dir)
    departments, result = tabulate_registry(csv_path=csv_path, config=config)
    write_crosstab_artifacts(result, out_dir=paths.root, config=config)

    table = build_frequency_table(result, config=config, dictionary=dictionary)
    table.to_frame().to_csv(paths.tables / "frequency_table.csv", index=False)

    incident_summary = None
    if incident_paths:
        incidents = load_incident_counts(incident_paths, config.incidents)
        joined = join_department_incidents(departments, average_incidents(incidents))
        write_table(
            joined,
            paths.tables / "department_incidents",
            fmt=config.outputs.tables_format,
        )
        incident_summary = summarize_incidents_by(joined, config.report.column_dimension)
        write_table(
            incident_summary,
            paths.tables / f"incidents_by_{config.report.column_dimension}",
            fmt=config.outputs.tables_format,
        )

    return render_report(
        result,
        table,
        paths.root,
        title=config.report.title,
        incident_summary=incident_summary,
        incident_dimension_label=table.spanner_label,
    )
