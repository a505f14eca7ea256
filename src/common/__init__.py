"""
Common helpers
--------------

Shared building blocks used across the pipeline: error types,
logging setup and the retrying HTTP session used by ingestion.
"""

from .errors import (  # noqa: F401
    AnalysisError,
    DivisionByZeroError,
    SchemaError,
)

__all__ = [
    "AnalysisError",
    "DivisionByZeroError",
    "SchemaError",
]
