"""
NYC Shootings - Pytest Configuration and Fixtures

Shared fixtures for all tests:
- Configuration fixtures
- Raw shooting record factories
"""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

# Set test environment
os.environ["NS_ENVIRONMENT"] = "dev"

RAW_DEFAULTS = {
    "INCIDENT_KEY": "1000",
    "OCCUR_DATE": "01/15/2020",
    "OCCUR_TIME": "14:30:00",
    "BORO": "BRONX",
    "PRECINCT": "40",
    "JURISDICTION_CODE": "0",
    "LOCATION_DESC": "MULTI DWELL - PUBLIC HOUS",
    "STATISTICAL_MURDER_FLAG": "false",
    "PERP_AGE_GROUP": "25-44",
    "PERP_SEX": "M",
    "PERP_RACE": "BLACK",
    "VIC_AGE_GROUP": "18-24",
    "VIC_SEX": "M",
    "VIC_RACE": "BLACK HISPANIC",
    "X_COORD_CD": "1006343",
    "Y_COORD_CD": "234270",
    "Latitude": "40.8097",
    "Longitude": "-73.9192",
    "Lon_Lat": "POINT (-73.9192 40.8097)",
}

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def configs_dir(project_root: Path) -> Path:
    """Get the configs directory."""
    return project_root / "configs"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_config() -> Any:
    """Get test configuration."""
    from nyc_shootings.shared.config import get_config, reload_config

    # Ensure fresh config for tests
    reload_config("dev")
    return get_config("dev")


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def make_raw() -> Callable[..., pd.DataFrame]:
    """
    Build a raw shooting frame with the full NYC Open Data column set.

    Each positional dict overrides RAW_DEFAULTS for one row.
    """

    def _make(*rows: dict[str, Any]) -> pd.DataFrame:
        return pd.DataFrame([{**RAW_DEFAULTS, **row} for row in rows], columns=list(RAW_DEFAULTS))

    return _make


@pytest.fixture
def scenario_raw(make_raw: Callable[..., pd.DataFrame]) -> pd.DataFrame:
    """Two lines for one Bronx murder plus an earlier Queens shooting."""
    return make_raw(
        {
            "INCIDENT_KEY": "A",
            "OCCUR_DATE": "07/05/2020",
            "OCCUR_TIME": "23:10",
            "BORO": "BRONX",
            "STATISTICAL_MURDER_FLAG": "Y",
        },
        {
            "INCIDENT_KEY": "A",
            "OCCUR_DATE": "07/05/2020",
            "OCCUR_TIME": "23:10",
            "BORO": "BRONX",
            "STATISTICAL_MURDER_FLAG": "Y",
        },
        {
            "INCIDENT_KEY": "B",
            "OCCUR_DATE": "01/01/2019",
            "OCCUR_TIME": "03:00",
            "BORO": "QUEENS",
            "STATISTICAL_MURDER_FLAG": "N",
        },
    )


@pytest.fixture
def multi_year_raw(make_raw: Callable[..., pd.DataFrame]) -> pd.DataFrame:
    """Shootings over four years with a year that has no murders."""
    rows = []
    key = 0
    plan = {2019: (6, 2), 2020: (9, 3), 2021: (8, 0), 2022: (5, 1)}
    for year, (shootings, murders) in plan.items():
        for i in range(shootings):
            key += 1
            rows.append(
                {
                    "INCIDENT_KEY": str(key),
                    "OCCUR_DATE": f"{(i % 12) + 1:02d}/{(i % 27) + 1:02d}/{year}",
                    "OCCUR_TIME": f"{(i * 5) % 24:02d}:15:00",
                    "BORO": ["BRONX", "BROOKLYN", "QUEENS", "MANHATTAN", "STATEN ISLAND"][i % 5],
                    "STATISTICAL_MURDER_FLAG": "true" if i < murders else "false",
                }
            )
    return make_raw(*rows)


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def cleanup_env() -> Generator[None, None, None]:
    """Clean up environment variables after each test."""
    original_env = os.environ.copy()
    yield
    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)
