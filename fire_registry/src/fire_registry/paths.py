from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class OutputPaths:
    root: Path
    tables: Path
    summary: Path

    @property
    def report(self) -> Path:
        return self.root / "report.html"


def build_output_paths(out_dir: Path) -> OutputPaths:
    paths = OutputPaths(
        root=out_dir,
        tables=out_dir / "tables",
        summary=out_dir / "summary",
    )
    for path in (paths.root, paths.tables, paths.summary):
        path.mkdir(parents=True, exist_ok=True)
    return paths
