from __future__ import annotations


class AnalysisError(Exception):
    """Base class for errors raised by the emissions analytics pipeline."""


class SchemaError(AnalysisError, ValueError):
    """An input table is missing one of the columns required by the loader."""

    def __init__(self, table: str, missing: list[str]) -> None:
        self.table = table
        self.missing = sorted(missing)
        super().__init__(
            f"Table {table!r} is missing required columns: {self.missing}",
        )


class DivisionByZeroError(AnalysisError, ZeroDivisionError):
    """
    A group-level share or growth computation hit a zero denominator.

    Only raised when the caller asks for strict behaviour; by default the
    condition is reported on the affected row instead.
    """

    def __init__(self, stage: str, group: str, detail: str = "") -> None:
        self.stage = stage
        self.group = group
        message = f"[{stage}] zero denominator for group {group!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


# Condition labels written to result rows and to the load summary.
MISSING_JOIN_KEY = "missing_join_key"
MALFORMED_ROW = "malformed_row"
DUPLICATE_ROW = "duplicate_row"
DIVISION_BY_ZERO = "division_by_zero"


__all__ = [
    "AnalysisError",
    "SchemaError",
    "DivisionByZeroError",
    "MISSING_JOIN_KEY",
    "MALFORMED_ROW",
    "DUPLICATE_ROW",
    "DIVISION_BY_ZERO",
]
