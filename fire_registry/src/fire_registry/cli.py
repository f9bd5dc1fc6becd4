from __future__ import annotations

from pathlib import Path

import typer

from fire_registry.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from fire_registry.logging import configure_logging
from fire_registry.paths import build_output_paths
from fire_registry.pipeline.run_all import run_all
from fire_registry.pipeline.tabulate import (
    build_frequency_table,
    load_crosstab_artifacts,
    tabulate_registry,
    write_crosstab_artifacts,
)
from fire_registry.report.render import render_report

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


@app.command()
def tabulate(
    csv: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    verbose: bool = typer.Option(False, help="Enable debug logging."),
) -> None:
    """Cross-tabulate the registry and cache the counts and frequencies."""
    configure_logging(verbose=verbose)
    cfg = _load_app_config(config)
    paths = build_output_paths(out)
    _, result = tabulate_registry(csv_path=csv, config=cfg)
    cache_path = write_crosstab_artifacts(result, out_dir=paths.root, config=cfg)
    typer.echo(
        f"Tabulated {result.grand_total} departments "
        f"({len(result.row_labels)} x {len(result.columns)}). Cache: {cache_path}"
    )


@app.command()
def report(
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    verbose: bool = typer.Option(False, help="Enable debug logging."),
) -> None:
    """Render the HTML report from a cached cross-tabulation in out/."""
    configure_logging(verbose=verbose)
    cfg = _load_app_config(config)
    result = load_crosstab_artifacts(out_dir=out, config=cfg)
    if result is None:
        raise typer.BadParameter(
            f"No cached cross-tabulation under {out}. Run 'tabulate' or 'run-all' first."
        )
    table = build_frequency_table(result, config=cfg)
    report_path = render_report(result, table, out, title=cfg.report.title)
    typer.echo(f"Report written to: {report_path}")


@app.command("run-all")
def run_all_command(
    csv: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    incidents: list[Path] | None = typer.Option(
        None,
        exists=True,
        readable=True,
        resolve_path=True,
        help="Per-year incident count table; repeat for each year.",
    ),
    verbose: bool = typer.Option(False, help="Enable debug logging."),
) -> None:
    """Tabulate, render the frequency table, and write the report in one command."""
    configure_logging(verbose=verbose)
    cfg = _load_app_config(config)
    report_path = run_all(csv_path=csv, out_dir=out, config=cfg, incident_paths=incidents or [])
    typer.echo(f"Run complete. Report: {report_path}")


if __name__ == "__main__":
    app()
