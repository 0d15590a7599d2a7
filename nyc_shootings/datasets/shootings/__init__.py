"""
NYC Shootings - Shooting Incident Dataset

Components:
    - ShootingIngester: Loads the NYPD shooting CSV export
    - ShootingPreprocessor: Normalizes raw records into incidents
    - ShootingAggregator: Builds the descriptive aggregate tables

Data Source:
    NYPD Shooting Incident Data (Historic)
    https://data.cityofnewyork.us/Public-Safety/NYPD-Shooting-Incident-Data-Historic-/833y-fsy8

Usage:
    from nyc_shootings.datasets.shootings import (
        ShootingAggregator,
        ShootingIngester,
        ShootingPreprocessor,
    )

    ingester = ShootingIngester()
    ingester.run(execution_date="2024-01-15")
    raw_df = ingester.get_data()

    preprocessor = ShootingPreprocessor()
    preprocessor.run(raw_df, execution_date="2024-01-15")
    incidents = preprocessor.get_data()

    aggregator = ShootingAggregator()
    aggregator.run(incidents, execution_date="2024-01-15")
    tables = aggregator.get_data()
"""

from nyc_shootings.datasets.shootings.features import (
    ShootingAggregator,
    build_shooting_aggregates,
)
from nyc_shootings.datasets.shootings.ingest import ShootingIngester, load_shooting_data
from nyc_shootings.datasets.shootings.preprocess import (
    ShootingPreprocessor,
    normalize_incidents,
    preprocess_shooting_data,
)
from nyc_shootings.datasets.shootings.schema import Incident, iter_incidents

__all__ = [
    "ShootingIngester",
    "ShootingPreprocessor",
    "ShootingAggregator",
    "Incident",
    "iter_incidents",
    "load_shooting_data",
    "normalize_incidents",
    "preprocess_shooting_data",
    "build_shooting_aggregates",
]
