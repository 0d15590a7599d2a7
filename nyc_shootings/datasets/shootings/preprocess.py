"""
NYC Shootings - Shooting Data Preprocessor

Cleans and normalizes NYPD shooting incident records.

Transformations:
    - Projection of geocoordinate, precinct and location columns
    - Column renaming to standardized names
    - Date/time parsing (fatal on failure)
    - Date-major sort and dense re-identification of incidents
    - Weekday and time-of-day derivation
    - Borough population join
    - Sentinel unification ("U", "UNKNOWN", missing -> "unknown")

Every raw row yields exactly one output row; duplicated incident keys share
an id instead of being dropped.

Usage:
    from nyc_shootings.datasets.shootings.preprocess import ShootingPreprocessor

    preprocessor = ShootingPreprocessor()
    result = preprocessor.run(raw_df, execution_date="2024-01-15")
    incidents = preprocessor.get_data()
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from typing import Any

import numpy as np
import pandas as pd

from nyc_shootings.datasets.base import BasePreprocessor
from nyc_shootings.datasets.shootings.schema import (
    BOROUGH,
    BOROUGH_POPULATION_2022,
    COLUMN_MAPPINGS,
    DATE,
    DATE_FORMAT,
    DROPPED_COLUMNS,
    ID,
    INCIDENT_KEY,
    MURDER,
    OUTPUT_COLUMNS,
    POPULATION,
    SENTINEL_VALUES,
    TIME,
    TIME_FORMAT,
    TIME_OF_DAY,
    TIME_OF_DAY_BINS,
    TIME_OF_DAY_ORDER,
    UNKNOWN,
    WEEKDAY,
    SentinelPolicy,
    sentinel_policy_for,
)
from nyc_shootings.shared.config import Settings
from nyc_shootings.shared.errors import ParseError

logger = logging.getLogger(__name__)

TRUE_FLAGS = frozenset({"Y", "YES", "TRUE", "1"})


def time_of_day_for_hour(hour: int) -> str:
    """
    Map an hour of the day to its time-of-day bucket.

    [0,6) midnight, [6,12) morning, [12,18) afternoon, [18,24) evening.
    """
    if not 0 <= hour < 24:
        raise ValueError(f"Hour out of range: {hour}")
    return TIME_OF_DAY_ORDER[bisect_right(TIME_OF_DAY_BINS, hour) - 1]


def lookup_population(borough: Any) -> int | str:
    """Return the 2022 population of a borough, or "unknown"."""
    if not isinstance(borough, str):
        return UNKNOWN
    return BOROUGH_POPULATION_2022.get(borough, UNKNOWN)


def parse_murder_flag(value: Any) -> bool:
    """Coerce the statistical murder flag to a boolean."""
    if isinstance(value, bool | np.bool_):
        return bool(value)
    return str(value).strip().upper() in TRUE_FLAGS


def parse_dates(values: pd.Series) -> pd.Series:
    """
    Parse month/day/year strings into midnight timestamps.

    Raises:
        ParseError: On the first value that does not match DATE_FORMAT
    """
    text = values.astype("string").str.strip()
    parsed = pd.to_datetime(text, format=DATE_FORMAT, errors="coerce")
    _raise_on_unparsed(values, parsed, DATE, DATE_FORMAT)
    return parsed.dt.normalize()


def parse_times(values: pd.Series) -> pd.Series:
    """
    Parse HH:MM:SS (or HH:MM) strings into timestamps on a dummy date.

    Only the time component of the result is meaningful.

    Raises:
        ParseError: On the first value that does not match TIME_FORMAT
    """
    text = values.astype("string").str.strip()
    short = text.str.fullmatch(r"\d{1,2}:\d{2}", na=False)
    text = text.where(~short, text + ":00")
    parsed = pd.to_datetime(text, format=TIME_FORMAT, errors="coerce")
    _raise_on_unparsed(values, parsed, TIME, TIME_FORMAT)
    return parsed


def _raise_on_unparsed(
    values: pd.Series, parsed: pd.Series, column: str, expected_format: str
) -> None:
    failed = parsed.isna()
    if failed.any():
        bad_value = values[failed].iloc[0]
        logger.error(
            f"{int(failed.sum())} unparseable {column} values",
            extra={"column": column, "example": str(bad_value)},
        )
        raise ParseError(column, bad_value, expected_format)


class ShootingPreprocessor(BasePreprocessor):
    """
    Preprocessor for NYPD shooting incident data.

    Produces the normalized incident table: one row per raw record with a
    dense incident id, calendar fields, borough population and unified
    unknown markers.
    """

    REQUIRED_COLUMNS = OUTPUT_COLUMNS

    def __init__(self, config: Settings | None = None):
        """Initialize shooting preprocessor."""
        super().__init__(config)

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shootings"

    def get_required_columns(self) -> list[str]:
        """Return required output columns."""
        return self.REQUIRED_COLUMNS

    def get_column_mappings(self) -> dict[str, str]:
        """Return column name mappings."""
        return COLUMN_MAPPINGS

    def get_dropped_columns(self) -> list[str]:
        """Return the raw columns removed before renaming."""
        return DROPPED_COLUMNS

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Apply shooting-specific transformations.

        Args:
            df: Raw DataFrame with projected and renamed columns

        Returns:
            Normalized incident DataFrame
        """
        df = self._parse_temporal_fields(df)
        df = self._assign_incident_ids(df)
        df = self._derive_calendar_fields(df)
        df = self._join_population(df)
        df = self._process_murder_flag(df)
        df = self._unify_sentinels(df)
        df = self._select_output_columns(df)

        return df

    def _parse_temporal_fields(self, df: pd.DataFrame) -> pd.DataFrame:
        """Parse date and time; any failure aborts the run."""
        df[DATE] = parse_dates(df[DATE])
        df[TIME] = parse_times(df[TIME])
        self.log_transformation("parse_date_time")
        return df

    def _assign_incident_ids(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Sort date-major/time-minor and assign dense first-occurrence ids.

        Two stable sorts (time, then date) keep the input order among rows
        with identical date and time.
        """
        df = df.sort_values(TIME, kind="stable")
        df = df.sort_values(DATE, kind="stable").reset_index(drop=True)

        codes, uniques = pd.factorize(df[INCIDENT_KEY], use_na_sentinel=False)
        df[ID] = (codes + 1).astype("int64")
        df = df.drop(columns=[INCIDENT_KEY])

        logger.debug(f"Assigned {len(uniques)} incident ids to {len(df)} rows")
        self.log_transformation("assign_incident_ids")
        return df

    def _derive_calendar_fields(self, df: pd.DataFrame) -> pd.DataFrame:
        """Derive weekday and time-of-day bucket."""
        df[WEEKDAY] = df[DATE].dt.day_name()
        df[TIME_OF_DAY] = df[TIME].dt.hour.map(time_of_day_for_hour)
        self.log_transformation("derive_weekday_time_of_day")
        return df

    def _join_population(self, df: pd.DataFrame) -> pd.DataFrame:
        """Standardize borough names and attach the borough population."""
        borough = df[BOROUGH]
        df[BOROUGH] = borough.where(borough.isna(), borough.astype(str).str.strip().str.upper())
        df[POPULATION] = df[BOROUGH].map(lookup_population)

        unmatched = int((df[POPULATION] == UNKNOWN).sum())
        if unmatched > 0:
            logger.warning(f"Found {unmatched} records without a known borough population")

        self.log_transformation("join_borough_population")
        return df

    def _process_murder_flag(self, df: pd.DataFrame) -> pd.DataFrame:
        """Convert the statistical murder flag to boolean."""
        df[MURDER] = df[MURDER].map(parse_murder_flag).astype(bool)
        self.log_transformation("convert_murder_to_boolean")
        return df

    def _unify_sentinels(self, df: pd.DataFrame) -> pd.DataFrame:
        """Replace missing and sentinel markers with "unknown" per column policy."""
        sentinels = list(SENTINEL_VALUES)

        for col in df.columns:
            if sentinel_policy_for(col) is not SentinelPolicy.UNIFY:
                continue

            values = df[col]
            mask = values.isna() | values.isin(sentinels)
            if mask.any():
                df[col] = values.astype(object).where(~mask, UNKNOWN)
                logger.debug(f"Unified {int(mask.sum())} unknown markers in '{col}'")

        self.log_transformation("unify_sentinels")
        return df

    def _select_output_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Put id first and drop the absorbed time column."""
        passthrough = [c for c in df.columns if c not in OUTPUT_COLUMNS and c != TIME]
        df = df[OUTPUT_COLUMNS + passthrough].copy()

        self.log_transformation("select_output_columns")
        return df


# =============================================================================
# Convenience Functions
# =============================================================================


def normalize_incidents(raw: pd.DataFrame, config: Settings | None = None) -> pd.DataFrame:
    """
    Normalize raw shooting records into the incident table.

    Pure: the input frame is left untouched.

    Raises:
        SchemaError: If a dropped or renamed column is missing
        ParseError: If any date or time cannot be parsed
    """
    return ShootingPreprocessor(config).process(raw)


def preprocess_shooting_data(
    df: pd.DataFrame,
    execution_date: str,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for preprocessing shooting data.

    Returns result dictionary suitable for logging.
    """
    preprocessor = ShootingPreprocessor(config)
    result = preprocessor.run(df, execution_date)
    return result.to_dict()
