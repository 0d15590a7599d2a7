"""
NYC Shootings - Base Aggregator

Abstract base class for dataset aggregators. Provides a consistent interface
for building the small summary tables consumed by plots and models with:
- Grouped counts
- Table definitions and validation
- Table statistics for logging

Usage:
    class ShootingAggregator(BaseAggregator):
        def build_tables(self, df: pd.DataFrame) -> dict[str, pd.DataFrame]:
            ...
        def get_table_definitions(self) -> list[TableDefinition]:
            ...
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from nyc_shootings.shared.config import Settings, get_config

logger = logging.getLogger(__name__)


@dataclass
class TableDefinition:
    """Definition of an aggregate table."""

    name: str
    description: str
    key_columns: list[str]
    measure_columns: list[str]
    sort: str | None = None  # human readable ordering contract


@dataclass
class AggregationResult:
    """Result of an aggregation run."""

    dataset: str
    execution_date: str
    rows_input: int
    tables_built: int
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    error_type: str | None = None
    table_stats: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "dataset": self.dataset,
            "execution_date": self.execution_date,
            "rows_input": self.rows_input,
            "tables_built": self.tables_built,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
            "error_type": self.error_type,
            "table_stats": self.table_stats,
        }


class BaseAggregator(ABC):
    """
    Abstract base class for aggregation.

    Subclasses must implement:
    - build_tables(): Compute every aggregate table from processed data
    - get_dataset_name(): Return the dataset name
    - get_table_definitions(): Return list of table definitions
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the aggregator.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self._table_stats: dict[str, dict[str, Any]] = {}

    @abstractmethod
    def build_tables(self, df: pd.DataFrame) -> dict[str, pd.DataFrame]:
        """
        Build aggregate tables from processed data.

        Args:
            df: Processed DataFrame

        Returns:
            Mapping of table name to table
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
    def get_table_definitions(self) -> list[TableDefinition]:
        """
        Get list of table definitions.

        Returns:
            List of TableDefinition objects describing each table
        """
        pass

    def run(
        self,
        df: pd.DataFrame,
        execution_date: str,
    ) -> AggregationResult:
        """
        Run the aggregation pipeline.

        Args:
            df: Processed DataFrame
            execution_date: Execution date in YYYY-MM-DD format

        Returns:
            AggregationResult with details about the tables built
        """
        start_time = time.time()
        dataset_name = self.get_dataset_name()
        rows_input = len(df)

        logger.info(
            f"Starting aggregation for {dataset_name}",
            extra={
                "dataset": dataset_name,
                "execution_date": execution_date,
                "rows_input": rows_input,
            },
        )

        try:
            self._table_stats = {}

            tables = self.build_tables(df)

            self._validate_tables(tables)
            self._compute_table_stats(tables)

            result = AggregationResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                tables_built=len(tables),
                duration_seconds=time.time() - start_time,
                success=True,
                table_stats=self._table_stats,
            )

            logger.info(
                f"Aggregation complete for {dataset_name}: {len(tables)} tables",
                extra=result.to_dict(),
            )

            # Store tables
            self._data = tables

            return result

        except Exception as e:
            logger.error(
                f"Aggregation failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )
            self._error = e

            return AggregationResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                tables_built=0,
                duration_seconds=time.time() - start_time,
                success=False,
                error_message=str(e),
                error_type=type(e).__name__,
            )

    def get_data(self) -> dict[str, pd.DataFrame] | None:
        """Get the most recently built tables."""
        return getattr(self, "_data", None)

    def get_error(self) -> BaseException | None:
        """Get the exception of the most recent failed run."""
        return getattr(self, "_error", None)

    def _compute_table_stats(self, tables: dict[str, pd.DataFrame]) -> None:
        """Compute row counts and measure totals for each table."""
        definitions = {d.name: d for d in self.get_table_definitions()}

        for name, table in tables.items():
            stats: dict[str, Any] = {"rows": len(table)}
            defn = definitions.get(name)
            if defn is not None:
                for col in defn.measure_columns:
                    if pd.api.types.is_numeric_dtype(table[col]) and len(table) > 0:
                        stats[f"{col}_total"] = float(table[col].sum())
                        stats[f"{col}_max"] = float(table[col].max())
            self._table_stats[name] = stats

    def _validate_tables(self, tables: dict[str, pd.DataFrame]) -> None:
        """Validate tables against definitions."""
        for defn in self.get_table_definitions():
            if defn.name not in tables:
                raise ValueError(f"Aggregate table '{defn.name}' was not built")

            table = tables[defn.name]
            expected = defn.key_columns + defn.measure_columns
            if list(table.columns) != expected:
                raise ValueError(
                    f"Table '{defn.name}' has columns {list(table.columns)}, expected {expected}"
                )

            for col in defn.measure_columns:
                if pd.api.types.is_numeric_dtype(table[col]) and (table[col] < 0).any():
                    logger.warning(f"Table '{defn.name}' has negative values in '{col}'")

    # ==========================================================================
    # Common Aggregation Utilities
    # ==========================================================================

    def count_by(
        self,
        df: pd.DataFrame,
        keys: str | list[str],
        output_col: str,
    ) -> pd.DataFrame:
        """
        Count rows per group.

        Args:
            df: Input DataFrame
            keys: Column or columns to group by
            output_col: Name of the count column

        Returns:
            DataFrame with the group keys and the count, keys ascending
        """
        keys = [keys] if isinstance(keys, str) else list(keys)
        counts = df.groupby(keys, sort=True, observed=True).size().reset_index(name=output_col)
        counts[output_col] = counts[output_col].astype("int64")
        return counts

    def sort_by_count_desc(self, df: pd.DataFrame, count_col: str) -> pd.DataFrame:
        """
        Sort descending by a count column.

        Stable, so rows with equal counts keep their incoming (key ascending)
        order.
        """
        return df.sort_values(count_col, ascending=False, kind="stable").reset_index(drop=True)
