"""
NYC Shootings - Shooting Aggregator

Builds the descriptive aggregate tables over the normalized incident table.

Tables:
    - Shootings per date (descending by count)
    - Shootings per weekday x time of day
    - Shootings per season
    - Shootings per 1000 residents by borough
    - Murders per date (descending by count)
    - Shootings and murders per year (regression input)

Every query is a pure read of the incident table.

Usage:
    from nyc_shootings.datasets.shootings.features import ShootingAggregator

    aggregator = ShootingAggregator()
    result = aggregator.run(incidents_df, execution_date="2024-01-15")
    tables = aggregator.get_data()

    # or a single query
    ShootingAggregator(incidents=incidents_df).counts_by_date()
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from nyc_shootings.datasets.base import BaseAggregator, TableDefinition
from nyc_shootings.datasets.shootings.schema import (
    BOROUGH,
    DATE,
    MURDER,
    POPULATION,
    SEASON_BY_MONTH,
    SEASON_ORDER,
    TIME_OF_DAY,
    TIME_OF_DAY_ORDER,
    UNKNOWN,
    WEEKDAY,
    WEEKDAY_ORDER,
    Season,
)
from nyc_shootings.shared.config import Settings

logger = logging.getLogger(__name__)

SEASON = "season"
YEAR = "year"
SHOOTINGS = "shootings"
MURDERS = "murders"
TOTAL_POPULATION = "total_population"
INCIDENTS_COUNT = "incidents_count"
RATE = "percentage_of_shootings"

COUNTS_BY_DATE = "counts_by_date"
COUNTS_BY_WEEKDAY_TIME_OF_DAY = "counts_by_weekday_and_time_of_day"
COUNTS_BY_SEASON = "counts_by_season"
BOROUGH_RATES = "borough_rates"
MURDERS_BY_DATE = "murders_by_date"
SHOOTINGS_AND_MURDERS_BY_YEAR = "shootings_and_murders_by_year"


def season_for_month(month: int) -> str:
    """Winter (12,1,2), Spring (3-5), Summer (6-8), Fall otherwise."""
    return SEASON_BY_MONTH.get(month, Season.FALL).value


class ShootingAggregator(BaseAggregator):
    """
    Aggregator for normalized shooting incidents.

    Query methods read the incident table given to the constructor (or the
    one passed to run()/build_tables()) and always return new frames.
    """

    def __init__(self, config: Settings | None = None, incidents: pd.DataFrame | None = None):
        """Initialize shooting aggregator."""
        super().__init__(config)
        self._incidents = incidents

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shootings"

    def get_table_definitions(self) -> list[TableDefinition]:
        """Return table definitions."""
        return [
            TableDefinition(
                name=COUNTS_BY_DATE,
                description="Shootings per calendar date",
                key_columns=[DATE],
                measure_columns=[SHOOTINGS],
                sort="shootings desc, date asc",
            ),
            TableDefinition(
                name=COUNTS_BY_WEEKDAY_TIME_OF_DAY,
                description="Shootings per weekday and time-of-day bucket",
                key_columns=[WEEKDAY, TIME_OF_DAY],
                measure_columns=[SHOOTINGS],
                sort="weekday Monday..Sunday, time_of_day midnight..evening",
            ),
            TableDefinition(
                name=COUNTS_BY_SEASON,
                description="Shootings per meteorological season",
                key_columns=[SEASON],
                measure_columns=[SHOOTINGS],
                sort="Winter, Spring, Summer, Fall",
            ),
            TableDefinition(
                name=BOROUGH_RATES,
                description="Shootings per 1000 residents by borough",
                key_columns=[BOROUGH],
                measure_columns=[TOTAL_POPULATION, INCIDENTS_COUNT, RATE],
                sort="borough asc",
            ),
            TableDefinition(
                name=MURDERS_BY_DATE,
                description="Statistical murders per calendar date",
                key_columns=[DATE],
                measure_columns=[MURDERS],
                sort="murders desc, date asc",
            ),
            TableDefinition(
                name=SHOOTINGS_AND_MURDERS_BY_YEAR,
                description="Shootings and murders per year",
                key_columns=[YEAR],
                measure_columns=[SHOOTINGS, MURDERS],
                sort="year asc",
            ),
        ]

    def build_tables(self, df: pd.DataFrame) -> dict[str, pd.DataFrame]:
        """
        Build every aggregate table from the incident table.

        Args:
            df: Normalized incident DataFrame

        Returns:
            Mapping of table name to table
        """
        logger.info(f"Building shooting aggregates from {len(df)} incidents")
        self._incidents = df

        return {
            COUNTS_BY_DATE: self.counts_by_date(),
            COUNTS_BY_WEEKDAY_TIME_OF_DAY: self.counts_by_weekday_and_time_of_day(),
            COUNTS_BY_SEASON: self.counts_by_season(),
            BOROUGH_RATES: self.borough_rates(),
            MURDERS_BY_DATE: self.murders_by_date(),
            SHOOTINGS_AND_MURDERS_BY_YEAR: self.shootings_and_murders_by_year(),
        }

    @property
    def incidents(self) -> pd.DataFrame:
        if self._incidents is None:
            raise ValueError("No incident table to aggregate; pass one to the constructor")
        return self._incidents

    # ==========================================================================
    # Queries
    # ==========================================================================

    def counts_by_date(self) -> pd.DataFrame:
        """Shootings per date, most violent days first."""
        counts = self.count_by(self.incidents, DATE, SHOOTINGS)
        return self.sort_by_count_desc(counts, SHOOTINGS)

    def counts_by_weekday_and_time_of_day(self) -> pd.DataFrame:
        """Shootings per (weekday, time_of_day) pair, in calendar/clock order."""
        counts = self.count_by(self.incidents, [WEEKDAY, TIME_OF_DAY], SHOOTINGS)
        counts = counts.assign(
            _weekday=counts[WEEKDAY].map(_rank(WEEKDAY_ORDER)),
            _time_of_day=counts[TIME_OF_DAY].map(_rank(TIME_OF_DAY_ORDER)),
        )
        counts = counts.sort_values(["_weekday", "_time_of_day"], kind="stable")
        return counts.drop(columns=["_weekday", "_time_of_day"]).reset_index(drop=True)

    def counts_by_season(self) -> pd.DataFrame:
        """Shootings per season, Winter first."""
        seasons = self.incidents[DATE].dt.month.map(season_for_month)
        counts = self.count_by(self.incidents.assign(**{SEASON: seasons}), SEASON, SHOOTINGS)
        counts = counts.sort_values(SEASON, key=lambda s: s.map(_rank(SEASON_ORDER)))
        return counts.reset_index(drop=True)

    def borough_rates(self) -> pd.DataFrame:
        """
        Shootings per 1000 residents for each borough.

        Incidents without a known population are excluded: the rate has no
        denominator for them.
        """
        df = self.incidents
        known = df[POPULATION] != UNKNOWN

        excluded = int((~known).sum())
        if excluded > 0:
            logger.warning(f"Excluding {excluded} incidents with unknown population from rates")

        df = df[known]
        rates = (
            df.groupby(BOROUGH, sort=True)
            .agg(
                **{
                    TOTAL_POPULATION: (POPULATION, "max"),
                    INCIDENTS_COUNT: (POPULATION, "size"),
                }
            )
            .reset_index()
        )
        rates[TOTAL_POPULATION] = rates[TOTAL_POPULATION].astype("int64")
        rates[INCIDENTS_COUNT] = rates[INCIDENTS_COUNT].astype("int64")
        rates[RATE] = (
            rates[INCIDENTS_COUNT] * self.config.analysis.rate_per / rates[TOTAL_POPULATION]
        ).astype("float64")

        return rates[[BOROUGH, TOTAL_POPULATION, INCIDENTS_COUNT, RATE]]

    def murders_by_date(self) -> pd.DataFrame:
        """Murders per date, deadliest days first."""
        murders = self.incidents[self.incidents[MURDER]]
        counts = self.count_by(murders, DATE, MURDERS)
        return self.sort_by_count_desc(counts, MURDERS)

    def shootings_and_murders_by_year(self) -> pd.DataFrame:
        """
        Shootings and murders per year.

        Every year with a shooting is present; years without murders get 0.
        """
        df = self.incidents.assign(**{YEAR: self.incidents[DATE].dt.year})

        shootings = self.count_by(df, YEAR, SHOOTINGS)
        murders = self.count_by(df[df[MURDER]], YEAR, MURDERS)

        by_year = shootings.merge(murders, on=YEAR, how="outer", sort=True)
        by_year[SHOOTINGS] = by_year[SHOOTINGS].fillna(0).astype("int64")
        by_year[MURDERS] = by_year[MURDERS].fillna(0).astype("int64")
        by_year[YEAR] = by_year[YEAR].astype("int64")

        return by_year[[YEAR, SHOOTINGS, MURDERS]].reset_index(drop=True)


def _rank(order: list[str]) -> dict[str, int]:
    return {value: i for i, value in enumerate(order)}


# =============================================================================
# Convenience Functions
# =============================================================================


def build_shooting_aggregates(
    df: pd.DataFrame,
    execution_date: str,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for building shooting aggregates.

    Returns result dictionary suitable for logging.
    """
    aggregator = ShootingAggregator(config)
    result = aggregator.run(df, execution_date)
    return result.to_dict()
