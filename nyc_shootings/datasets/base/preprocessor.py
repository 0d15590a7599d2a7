"""
NYC Shootings - Base Preprocessor

Abstract base class for dataset preprocessors. Provides a consistent interface
for data cleaning and transformation with:
- Input schema validation
- Column projection and renaming
- Output column validation
- Structured result reporting

Usage:
    class ShootingPreprocessor(BasePreprocessor):
        def transform(self, df: pd.DataFrame) -> pd.DataFrame:
            ...
        def get_column_mappings(self) -> dict[str, str]:
            return {"BORO": "borough"}
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from nyc_shootings.shared.config import Settings, get_config
from nyc_shootings.shared.errors import SchemaError

logger = logging.getLogger(__name__)


@dataclass
class PreprocessingResult:
    """Result of a preprocessing operation."""

    dataset: str
    execution_date: str
    rows_input: int
    rows_output: int
    columns_input: int
    columns_output: int
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    error_type: str | None = None
    transformations_applied: list[str] = field(default_factory=list)

    @property
    def rows_dropped(self) -> int:
        return self.rows_input - self.rows_output

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "dataset": self.dataset,
            "execution_date": self.execution_date,
            "rows_input": self.rows_input,
            "rows_output": self.rows_output,
            "rows_dropped": self.rows_dropped,
            "columns_input": self.columns_input,
            "columns_output": self.columns_output,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
            "error_type": self.error_type,
            "transformations_applied": self.transformations_applied,
        }


class BasePreprocessor(ABC):
    """
    Abstract base class for dataset preprocessing.

    Subclasses must implement:
    - transform(): Apply dataset-specific transformations
    - get_dataset_name(): Return the dataset name
    - get_required_columns(): Return list of required output columns

    process() never mutates the frame it is given.
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the preprocessor.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self._transformations: list[str] = []

    @abstractmethod
    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Apply dataset-specific transformations.

        Args:
            df: DataFrame with projected and renamed columns

        Returns:
            Transformed DataFrame
        """
        pass

    @abstractmethod
    def get_dataset_name(self) -> str:
        """
        Get the dataset name.

        Returns:
            Dataset name (e.g., "shootings")
        """
        pass

    @abstractmethod
    def get_required_columns(self) -> list[str]:
        """
        Get list of required columns in the output.

        Returns:
            List of column names that must be present after preprocessing
        """
        pass

    def get_column_mappings(self) -> dict[str, str]:
        """
        Get column name mappings (old -> new).

        Override this method to rename columns during preprocessing.

        Returns:
            Dictionary mapping old column names to new names
        """
        return {}

    def get_dropped_columns(self) -> list[str]:
        """
        Get raw columns removed before renaming.

        Override this method to project columns away during preprocessing.
        """
        return []

    def process(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Run every preprocessing step and return the new DataFrame.

        Raises:
            SchemaError: If the input lacks a dropped or renamed column
        """
        self._transformations = []

        df = df.copy()
        self._validate_input_columns(df)
        df = self._drop_columns(df)
        df = self._apply_column_mappings(df)
        df = self.transform(df)
        self._validate_required_columns(df)

        return df

    def run(
        self,
        df: pd.DataFrame,
        execution_date: str,
    ) -> PreprocessingResult:
        """
        Run the preprocessing pipeline.

        Args:
            df: Raw DataFrame to preprocess
            execution_date: Execution date in YYYY-MM-DD format

        Returns:
            PreprocessingResult with details about the preprocessing
        """
        start_time = time.time()
        dataset_name = self.get_dataset_name()
        rows_input = len(df)
        columns_input = len(df.columns)

        logger.info(
            f"Starting preprocessing for {dataset_name}",
            extra={
                "dataset": dataset_name,
                "execution_date": execution_date,
                "rows_input": rows_input,
            },
        )

        try:
            processed = self.process(df)

            result = PreprocessingResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=len(processed),
                columns_input=columns_input,
                columns_output=len(processed.columns),
                duration_seconds=time.time() - start_time,
                success=True,
                transformations_applied=list(self._transformations),
            )

            logger.info(
                f"Preprocessing complete for {dataset_name}: "
                f"{rows_input} -> {result.rows_output} rows",
                extra=result.to_dict(),
            )

            # Store processed data
            self._data = processed

            return result

        except Exception as e:
            logger.error(
                f"Preprocessing failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )
            self._error = e

            return PreprocessingResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=0,
                columns_input=columns_input,
                columns_output=0,
                duration_seconds=time.time() - start_time,
                success=False,
                error_message=str(e),
                error_type=type(e).__name__,
                transformations_applied=list(self._transformations),
            )

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently processed data."""
        return getattr(self, "_data", None)

    def get_error(self) -> BaseException | None:
        """Get the exception of the most recent failed run."""
        return getattr(self, "_error", None)

    def _validate_input_columns(self, df: pd.DataFrame) -> None:
        """Every dropped and renamed column must be present."""
        expected = set(self.get_dropped_columns()) | set(self.get_column_mappings())
        missing = expected - set(df.columns)

        if missing:
            raise SchemaError(missing, stage="raw")

    def _drop_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Project away analytically irrelevant columns."""
        dropped = self.get_dropped_columns()
        if dropped:
            df = df.drop(columns=dropped)
            self._transformations.append(f"dropped_columns: {dropped}")
        return df

    def _apply_column_mappings(self, df: pd.DataFrame) -> pd.DataFrame:
        """Apply column name mappings."""
        mappings = self.get_column_mappings()
        if mappings:
            df = df.rename(columns=mappings)
            self._transformations.append(f"renamed_columns: {list(mappings.keys())}")
        return df

    def _validate_required_columns(self, df: pd.DataFrame) -> None:
        """Validate that all required columns are present."""
        required = set(self.get_required_columns())
        present = set(df.columns)
        missing = required - present

        if missing:
            raise SchemaError(missing, stage="output")

    def log_transformation(self, name: str) -> None:
        """Log a transformation that was applied."""
        self._transformations.append(name)
