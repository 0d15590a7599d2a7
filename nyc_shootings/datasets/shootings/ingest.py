"""
NYC Shootings - Shooting Data Ingester

Loads the NYPD Shooting Incident Data (Historic) from NYC Open Data, or from a
local copy of the same CSV export.

Data Source:
    NYPD Shooting Incident Data (Historic)
    https://data.cityofnewyork.us/Public-Safety/NYPD-Shooting-Incident-Data-Historic-/833y-fsy8

Configuration:
    Source URL, timeout and optional local path come from the `source` section
    of the environment config; dataset metadata from configs/datasets/shootings.yaml.

Usage:
    from nyc_shootings.datasets.shootings.ingest import ShootingIngester

    ingester = ShootingIngester()
    result = ingester.run(execution_date="2024-01-15")
    raw_df = ingester.get_data()
"""

from __future__ import annotations

import logging
from io import StringIO
from pathlib import Path

import pandas as pd
import requests

from nyc_shootings.datasets.base import BaseIngester
from nyc_shootings.datasets.shootings.schema import EXPECTED_RAW_COLUMNS, RAW_INCIDENT_KEY
from nyc_shootings.shared.config import Settings, get_dataset_config
from nyc_shootings.shared.errors import IngestionError

logger = logging.getLogger(__name__)

# =============================================================================
# Dataset Configuration (loaded from shootings.yaml)
# =============================================================================
DATASET_CONFIG = get_dataset_config("shootings")

INGESTION_CONFIG = DATASET_CONFIG.get("ingestion", {})
PRIMARY_KEY = INGESTION_CONFIG.get("primary_key", RAW_INCIDENT_KEY)


def read_raw_csv(buffer: str | Path | StringIO) -> pd.DataFrame:
    """
    Read the shootings CSV with every column as text.

    Empty cells become NaN; everything else is left for the preprocessor.
    """
    return pd.read_csv(buffer, dtype=str, keep_default_na=True)


class ShootingIngester(BaseIngester):
    """
    Ingester for NYPD shooting incident data.

    Downloads the full CSV export (a few tens of thousands of rows) in one
    request, or reads a local file when `csv_path` is given or configured.
    """

    def __init__(self, config: Settings | None = None, csv_path: str | Path | None = None):
        """Initialize shooting ingester."""
        super().__init__(config)
        configured = self.config.source.csv_path
        self.csv_path = Path(csv_path) if csv_path else (Path(configured) if configured else None)
        self.url = self.config.source.url

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shootings"

    def get_primary_key(self) -> str:
        """Return the primary key field (from config)."""
        return PRIMARY_KEY

    def get_expected_columns(self) -> list[str]:
        """Return the raw columns the preprocessor drops or renames."""
        return EXPECTED_RAW_COLUMNS

    def get_source(self) -> str:
        """Return the file path or URL data is read from."""
        return str(self.csv_path) if self.csv_path else self.url

    def fetch_data(self) -> pd.DataFrame:
        """
        Fetch the shooting dataset.

        Returns:
            DataFrame with one untyped row per raw record
        """
        if self.csv_path is not None:
            return self.load_csv(self.csv_path)
        return self.download_csv()

    def load_csv(self, path: str | Path) -> pd.DataFrame:
        """Read a local copy of the CSV export."""
        path = Path(path)
        if not path.exists():
            raise IngestionError(f"CSV file not found: {path}")

        df = read_raw_csv(path)
        logger.info(
            f"Loaded {len(df)} shooting records from {path}",
            extra={"rows": len(df), "path": str(path)},
        )
        return df

    def download_csv(self) -> pd.DataFrame:
        """Download the CSV export from NYC Open Data."""
        logger.info(f"Downloading shooting data from {self.url}")

        try:
            response = requests.get(
                self.url,
                headers={"Accept": "text/csv"},
                timeout=self.config.source.timeout_seconds,
            )
        except requests.RequestException as e:
            raise IngestionError(f"Request to {self.url} failed: {e}") from e

        if response.status_code != 200:
            raise IngestionError(f"HTTP {response.status_code}: {response.text[:200]}")

        df = read_raw_csv(StringIO(response.text))

        logger.info(
            f"Fetched {len(df)} shooting records",
            extra={"rows": len(df), "columns": list(df.columns)},
        )
        return df


# =============================================================================
# Convenience Functions
# =============================================================================


def load_shooting_data(
    source: str | Path | None = None,
    config: Settings | None = None,
) -> pd.DataFrame:
    """
    Load and schema-check the raw shooting dataset.

    Args:
        source: Local CSV path; falls back to config, then to the remote export

    Raises:
        SchemaError: If an expected column is absent
        IngestionError: If the data cannot be read
    """
    ingester = ShootingIngester(config, csv_path=source)
    df = ingester.fetch_data()
    ingester.validate_schema(df)
    return df
