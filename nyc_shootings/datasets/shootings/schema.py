"""
NYC Shootings - Incident Schema

Column tables for the NYPD Shooting Incident dataset and the typed Incident
record produced by preprocessing.

Raw columns follow the NYC Open Data export (dataset 833y-fsy8). Normalized
column names are exposed as constants so downstream code never spells them
twice.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import pandas as pd

UNKNOWN = "unknown"

# =============================================================================
# Raw columns
# =============================================================================

RAW_INCIDENT_KEY = "INCIDENT_KEY"
RAW_DATE = "OCCUR_DATE"
RAW_TIME = "OCCUR_TIME"

# Precise geocoordinates, jurisdiction, precinct and free-text location
DROPPED_COLUMNS = [
    "PRECINCT",
    "JURISDICTION_CODE",
    "LOCATION_DESC",
    "X_COORD_CD",
    "Y_COORD_CD",
    "Latitude",
    "Longitude",
    "Lon_Lat",
]

COLUMN_MAPPINGS = {
    RAW_INCIDENT_KEY: "incident_key",
    RAW_DATE: "date",
    RAW_TIME: "time",
    "BORO": "borough",
    "STATISTICAL_MURDER_FLAG": "murder",
    "PERP_AGE_GROUP": "perpetrator_age",
    "PERP_SEX": "perpetrator_sex",
    "PERP_RACE": "perpetrator_race",
    "VIC_AGE_GROUP": "victim_age",
    "VIC_SEX": "victim_sex",
    "VIC_RACE": "victim_race",
}

EXPECTED_RAW_COLUMNS = list(COLUMN_MAPPINGS) + DROPPED_COLUMNS

DATE_FORMAT = "%m/%d/%Y"
TIME_FORMAT = "%H:%M:%S"

# =============================================================================
# Normalized columns
# =============================================================================

ID = "id"
INCIDENT_KEY = "incident_key"
DATE = "date"
TIME = "time"
WEEKDAY = "weekday"
TIME_OF_DAY = "time_of_day"
BOROUGH = "borough"
POPULATION = "population"
MURDER = "murder"

DEMOGRAPHIC_COLUMNS = [
    "perpetrator_age",
    "perpetrator_sex",
    "perpetrator_race",
    "victim_age",
    "victim_sex",
    "victim_race",
]

OUTPUT_COLUMNS = [
    ID,
    DATE,
    WEEKDAY,
    TIME_OF_DAY,
    BOROUGH,
    POPULATION,
    MURDER,
    *DEMOGRAPHIC_COLUMNS,
]

# =============================================================================
# Categories and lookups
# =============================================================================

WEEKDAY_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class TimeOfDay(StrEnum):
    """Coarse partition of the 24-hour clock."""

    MIDNIGHT = "midnight"
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


TIME_OF_DAY_ORDER = [t.value for t in TimeOfDay]

# Left-closed hour bins: [0,6) [6,12) [12,18) [18,24)
TIME_OF_DAY_BINS = [0, 6, 12, 18, 24]


class Season(StrEnum):
    WINTER = "Winter"
    SPRING = "Spring"
    SUMMER = "Summer"
    FALL = "Fall"


SEASON_ORDER = [s.value for s in Season]

SEASON_BY_MONTH = {
    12: Season.WINTER,
    1: Season.WINTER,
    2: Season.WINTER,
    3: Season.SPRING,
    4: Season.SPRING,
    5: Season.SPRING,
    6: Season.SUMMER,
    7: Season.SUMMER,
    8: Season.SUMMER,
}

# Census estimates, 2022
BOROUGH_POPULATION_2022 = {
    "BRONX": 1424948,
    "BROOKLYN": 2641052,
    "MANHATTAN": 1576876,
    "QUEENS": 2331143,
    "STATEN ISLAND": 493494,
}

# =============================================================================
# Sentinel policy
# =============================================================================

SENTINEL_VALUES = frozenset({"", "U", "UNKNOWN", "(null)"})


class SentinelPolicy(StrEnum):
    """How sentinel unification treats a normalized column."""

    UNIFY = "unify"  # missing and sentinel markers become "unknown"
    EXEMPT = "exempt"  # left untouched
    NEVER = "never"  # typed by construction, cannot hold a sentinel


SENTINEL_POLICY: dict[str, SentinelPolicy] = {
    ID: SentinelPolicy.NEVER,
    DATE: SentinelPolicy.EXEMPT,
    TIME: SentinelPolicy.EXEMPT,
    WEEKDAY: SentinelPolicy.UNIFY,
    TIME_OF_DAY: SentinelPolicy.UNIFY,
    BOROUGH: SentinelPolicy.UNIFY,
    POPULATION: SentinelPolicy.UNIFY,
    MURDER: SentinelPolicy.NEVER,
    **{col: SentinelPolicy.UNIFY for col in DEMOGRAPHIC_COLUMNS},
}

# Columns passed through from the source without a rename
DEFAULT_SENTINEL_POLICY = SentinelPolicy.UNIFY


def sentinel_policy_for(column: str) -> SentinelPolicy:
    return SENTINEL_POLICY.get(column, DEFAULT_SENTINEL_POLICY)


# =============================================================================
# Typed record
# =============================================================================


@dataclass(frozen=True)
class Incident:
    """One normalized shooting report."""

    id: int
    date: dt.date
    weekday: str
    time_of_day: str
    borough: str
    population: int | str
    murder: bool
    perpetrator_age: str
    perpetrator_sex: str
    perpetrator_race: str
    victim_age: str
    victim_sex: str
    victim_race: str

    @property
    def has_known_borough(self) -> bool:
        return self.borough != UNKNOWN

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Incident:
        """Build an Incident from a normalized row; extra keys are ignored."""
        date = row[DATE]
        if isinstance(date, pd.Timestamp):
            date = date.date()

        population = row[POPULATION]
        if population != UNKNOWN:
            population = int(population)

        return cls(
            id=int(row[ID]),
            date=date,
            weekday=row[WEEKDAY],
            time_of_day=row[TIME_OF_DAY],
            borough=row[BOROUGH],
            population=population,
            murder=bool(row[MURDER]),
            **{col: row[col] for col in DEMOGRAPHIC_COLUMNS},
        )


def iter_incidents(df: pd.DataFrame) -> Iterator[Incident]:
    """Yield typed Incident records from a normalized frame."""
    for row in df.to_dict("records"):
        yield Incident.from_row(row)
