"""
NYC Shootings - Pipeline Errors

All core errors are terminal for a run: there is no per-row recovery and no
partial output.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for errors raised by the shootings pipeline."""


class SchemaError(PipelineError, ValueError):
    """Input is missing columns required by the drop/rename tables."""

    def __init__(self, missing: list[str] | set[str], stage: str = "raw"):
        self.missing = sorted(missing)
        self.stage = stage
        super().__init__(f"Missing required {stage} columns: {self.missing}")


class ParseError(PipelineError, ValueError):
    """A date or time value could not be parsed with the expected format."""

    def __init__(self, column: str, value: object, expected_format: str):
        self.column = column
        self.value = value
        self.expected_format = expected_format
        super().__init__(
            f"Could not parse {column!r} value {value!r} with format {expected_format!r}"
        )


class IngestionError(PipelineError):
    """The raw dataset could not be downloaded or read."""
