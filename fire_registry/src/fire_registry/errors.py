from __future__ import annotations

from collections.abc import Iterable


class SchemaError(ValueError):
    """Raised when an input table lacks one or more required columns."""

    def __init__(self, missing_columns: Iterable[str], source: str = "input") -> None:
        self.missing_columns = list(missing_columns)
        missing_str = ", ".join(self.missing_columns)
        super().__init__(f"Missing required columns in {source}: {missing_str}")


class EmptyInputError(ValueError):
    """Raised when a cross-tabulation has no records to count."""
