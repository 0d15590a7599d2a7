"""
NYC Shootings - Base Ingester

Abstract base class for dataset ingesters. Provides a consistent interface
for fetching a full snapshot of a dataset with:
- Schema validation of the raw column set
- Error handling
- Structured result reporting

Usage:
    class ShootingIngester(BaseIngester):
        def fetch_data(self) -> pd.DataFrame:
            ...
        def get_expected_columns(self) -> list[str]:
            return ["INCIDENT_KEY", "OCCUR_DATE", ...]
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
class IngestionResult:
    """Result of a data ingestion operation."""

    dataset: str
    execution_date: str
    rows_fetched: int
    columns_fetched: int
    source: str | None = None
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "dataset": self.dataset,
            "execution_date": self.execution_date,
            "rows_fetched": self.rows_fetched,
            "columns_fetched": self.columns_fetched,
            "source": self.source,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
            "error_type": self.error_type,
            "metadata": self.metadata,
        }


class BaseIngester(ABC):
    """
    Abstract base class for dataset ingestion.

    Subclasses must implement:
    - fetch_data(): Fetch data from the source
    - get_primary_key(): Return the primary key field
    - get_expected_columns(): Return the raw columns the source must provide
    - get_dataset_name(): Return the dataset name
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the ingester.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()

    @abstractmethod
    def fetch_data(self) -> pd.DataFrame:
        """
        Fetch the full dataset from the source.

        Returns:
            DataFrame containing the fetched data
        """
        pass

    @abstractmethod
    def get_primary_key(self) -> str:
        """
        Get the primary key field name.

        Returns:
            Column name that identifies each incident
        """
        pass

    @abstractmethod
    def get_expected_columns(self) -> list[str]:
        """
        Get the raw column names the source must provide.

        Returns:
            List of column names
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

    def get_source(self) -> str | None:
        """
        Get a description of where the data comes from (optional).

        Returns:
            URL or file path, or None if not applicable
        """
        return None

    def run(self, execution_date: str) -> IngestionResult:
        """
        Run the ingestion process.

        Args:
            execution_date: Execution date in YYYY-MM-DD format

        Returns:
            IngestionResult with details about the ingestion
        """
        start_time = time.time()
        dataset_name = self.get_dataset_name()
        source = self.get_source()

        logger.info(
            f"Starting ingestion for {dataset_name}",
            extra={"dataset": dataset_name, "execution_date": execution_date, "source": source},
        )

        try:
            df = self.fetch_data()
            self.validate_schema(df)

            result = IngestionResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_fetched=len(df),
                columns_fetched=len(df.columns),
                source=source,
                duration_seconds=time.time() - start_time,
                success=True,
                metadata={
                    "primary_key": self.get_primary_key(),
                    "distinct_keys": int(df[self.get_primary_key()].nunique()),
                    "columns": list(df.columns),
                },
            )

            logger.info(
                f"Ingestion complete for {dataset_name}: {len(df)} rows",
                extra=result.to_dict(),
            )

            # Store the dataframe for downstream access
            self._data = df

            return result

        except Exception as e:
            logger.error(
                f"Ingestion failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )
            self._error = e

            return IngestionResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_fetched=0,
                columns_fetched=0,
                source=source,
                duration_seconds=time.time() - start_time,
                success=False,
                error_message=str(e),
                error_type=type(e).__name__,
            )

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently fetched data."""
        return getattr(self, "_data", None)

    def get_error(self) -> BaseException | None:
        """Get the exception of the most recent failed run."""
        return getattr(self, "_error", None)

    def validate_schema(self, df: pd.DataFrame) -> None:
        """
        Check that every expected raw column is present.

        Args:
            df: DataFrame to validate

        Raises:
            SchemaError: If any expected column is absent
        """
        missing = set(self.get_expected_columns()) - set(df.columns)
        if missing:
            raise SchemaError(missing, stage="raw")

        if len(df) == 0:
            logger.warning(f"{self.get_dataset_name()} source returned no rows")
