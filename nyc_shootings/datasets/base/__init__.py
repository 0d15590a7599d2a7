"""
NYC Shootings - Base Classes for Datasets

Abstract base classes that dataset implementations inherit from.
These provide a consistent interface for:
- Data ingestion (BaseIngester)
- Data preprocessing (BasePreprocessor)
- Aggregation (BaseAggregator)

Usage:
    from nyc_shootings.datasets.base import BaseIngester, BasePreprocessor, BaseAggregator

    class ShootingIngester(BaseIngester):
        def fetch_data(self) -> pd.DataFrame:
            ...
"""

from nyc_shootings.datasets.base.aggregator import (
    AggregationResult,
    BaseAggregator,
    TableDefinition,
)
from nyc_shootings.datasets.base.ingester import BaseIngester, IngestionResult
from nyc_shootings.datasets.base.preprocessor import BasePreprocessor, PreprocessingResult

__all__ = [
    "BaseIngester",
    "IngestionResult",
    "BasePreprocessor",
    "PreprocessingResult",
    "BaseAggregator",
    "AggregationResult",
    "TableDefinition",
]
