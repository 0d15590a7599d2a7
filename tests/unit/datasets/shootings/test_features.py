"""
Unit tests for ShootingAggregator.

Tests the descriptive aggregate tables over normalized incidents.
"""

import pandas as pd
import pytest

from nyc_shootings.datasets.shootings.features import (
    BOROUGH_RATES,
    COUNTS_BY_DATE,
    COUNTS_BY_SEASON,
    COUNTS_BY_WEEKDAY_TIME_OF_DAY,
    MURDERS_BY_DATE,
    SHOOTINGS_AND_MURDERS_BY_YEAR,
    ShootingAggregator,
    build_shooting_aggregates,
    season_for_month,
)
from nyc_shootings.datasets.shootings.preprocess import normalize_incidents


@pytest.fixture
def incidents(multi_year_raw, test_config):
    """Normalized incidents over 2019-2022."""
    return normalize_incidents(multi_year_raw, test_config)


@pytest.fixture
def aggregate(make_raw, test_config):
    """Normalize raw row overrides and return an aggregator over them."""

    def _aggregate(*rows):
        df = normalize_incidents(make_raw(*rows), test_config)
        return ShootingAggregator(test_config, incidents=df)

    return _aggregate


class TestShootingAggregator:
    """Test cases for ShootingAggregator class."""

    def test_get_dataset_name(self, test_config):
        assert ShootingAggregator(test_config).get_dataset_name() == "shootings"

    def test_table_definitions(self, test_config):
        """Test every table has a definition."""
        names = [d.name for d in ShootingAggregator(test_config).get_table_definitions()]
        assert names == [
            COUNTS_BY_DATE,
            COUNTS_BY_WEEKDAY_TIME_OF_DAY,
            COUNTS_BY_SEASON,
            BOROUGH_RATES,
            MURDERS_BY_DATE,
            SHOOTINGS_AND_MURDERS_BY_YEAR,
        ]

    def test_run_success(self, incidents, test_config):
        """Test successful aggregation run."""
        aggregator = ShootingAggregator(test_config)
        result = aggregator.run(incidents, execution_date="2024-01-15")

        assert result.success
        assert result.rows_input == 28
        assert result.tables_built == 6
        assert result.table_stats[COUNTS_BY_DATE]["shootings_total"] == 28.0
        assert set(aggregator.get_data()) == {d.name for d in aggregator.get_table_definitions()}

    def test_run_failure_reports_error(self, test_config):
        """Test a frame without incident columns fails the run."""
        aggregator = ShootingAggregator(test_config)
        result = aggregator.run(pd.DataFrame({"x": [1]}), execution_date="2024-01-15")

        assert not result.success
        assert result.tables_built == 0
        assert isinstance(aggregator.get_error(), KeyError)

    def test_queries_without_incidents(self, test_config):
        """Test querying before any incident table was given."""
        with pytest.raises(ValueError):
            ShootingAggregator(test_config).counts_by_date()

    def test_queries_do_not_mutate_incidents(self, incidents, test_config):
        before = incidents.copy()
        ShootingAggregator(test_config).build_tables(incidents)
        pd.testing.assert_frame_equal(incidents, before)

    def test_counts_sum_to_rows(self, incidents, test_config):
        """Test each partition accounts for every incident row."""
        tables = ShootingAggregator(test_config).build_tables(incidents)

        assert tables[COUNTS_BY_DATE]["shootings"].sum() == len(incidents)
        assert tables[COUNTS_BY_WEEKDAY_TIME_OF_DAY]["shootings"].sum() == len(incidents)
        assert tables[COUNTS_BY_SEASON]["shootings"].sum() == len(incidents)
        assert tables[SHOOTINGS_AND_MURDERS_BY_YEAR]["shootings"].sum() == len(incidents)
        assert tables[MURDERS_BY_DATE]["murders"].sum() == incidents["murder"].sum()


class TestCountsByDate:
    def test_scenario(self, scenario_raw, test_config):
        df = normalize_incidents(scenario_raw, test_config)
        table = ShootingAggregator(test_config, incidents=df).counts_by_date()

        assert list(table.columns) == ["date", "shootings"]
        assert table["date"].tolist() == [pd.Timestamp("2020-07-05"), pd.Timestamp("2019-01-01")]
        assert table["shootings"].tolist() == [2, 1]

    def test_ties_ordered_by_date(self, aggregate):
        """Test equal counts keep ascending date order."""
        table = aggregate(
            {"INCIDENT_KEY": "1", "OCCUR_DATE": "03/01/2021"},
            {"INCIDENT_KEY": "2", "OCCUR_DATE": "03/01/2021"},
            {"INCIDENT_KEY": "3", "OCCUR_DATE": "01/01/2021"},
            {"INCIDENT_KEY": "4", "OCCUR_DATE": "02/01/2021"},
            {"INCIDENT_KEY": "5", "OCCUR_DATE": "02/01/2021"},
        ).counts_by_date()

        assert table["date"].dt.strftime("%Y-%m-%d").tolist() == [
            "2021-02-01",
            "2021-03-01",
            "2021-01-01",
        ]
        assert table["shootings"].tolist() == [2, 2, 1]
        assert table["shootings"].dtype == "int64"


class TestCountsByWeekdayAndTimeOfDay:
    def test_only_observed_pairs_in_calendar_order(self, aggregate):
        table = aggregate(
            {"INCIDENT_KEY": "1", "OCCUR_DATE": "07/05/2020", "OCCUR_TIME": "23:10:00"},
            {"INCIDENT_KEY": "1", "OCCUR_DATE": "07/05/2020", "OCCUR_TIME": "23:10:00"},
            {"INCIDENT_KEY": "2", "OCCUR_DATE": "07/06/2020", "OCCUR_TIME": "08:00:00"},
            {"INCIDENT_KEY": "3", "OCCUR_DATE": "07/06/2020", "OCCUR_TIME": "01:00:00"},
        ).counts_by_weekday_and_time_of_day()

        assert list(table.columns) == ["weekday", "time_of_day", "shootings"]
        assert list(table.itertuples(index=False, name=None)) == [
            ("Monday", "midnight", 1),
            ("Monday", "morning", 1),
            ("Sunday", "evening", 2),
        ]


class TestCountsBySeason:
    @pytest.mark.parametrize(
        "month,season",
        [
            (12, "Winter"),
            (1, "Winter"),
            (2, "Winter"),
            (3, "Spring"),
            (5, "Spring"),
            (6, "Summer"),
            (8, "Summer"),
            (9, "Fall"),
            (11, "Fall"),
        ],
    )
    def test_season_for_month(self, month, season):
        assert season_for_month(month) == season

    def test_season_counts(self, incidents, test_config):
        table = ShootingAggregator(test_config, incidents=incidents).counts_by_season()

        assert table["season"].tolist() == ["Winter", "Spring", "Summer", "Fall"]
        assert table["shootings"].tolist() == [8, 12, 7, 1]

    def test_absent_seasons_omitted(self, aggregate):
        table = aggregate(
            {"INCIDENT_KEY": "1", "OCCUR_DATE": "12/31/2020"},
            {"INCIDENT_KEY": "2", "OCCUR_DATE": "07/04/2020"},
        ).counts_by_season()

        assert table["season"].tolist() == ["Winter", "Summer"]


class TestBoroughRates:
    def test_rates_per_thousand(self, aggregate):
        table = aggregate(
            {"INCIDENT_KEY": "1", "BORO": "QUEENS"},
            {"INCIDENT_KEY": "2", "BORO": "BRONX"},
            {"INCIDENT_KEY": "3", "BORO": "BRONX"},
        ).borough_rates()

        assert list(table.columns) == [
            "borough",
            "total_population",
            "incidents_count",
            "percentage_of_shootings",
        ]
        assert table["borough"].tolist() == ["BRONX", "QUEENS"]
        assert table["total_population"].tolist() == [1424948, 2331143]
        assert table["incidents_count"].tolist() == [2, 1]
        assert table["percentage_of_shootings"].tolist() == pytest.approx(
            [2 * 1000 / 1424948, 1000 / 2331143]
        )

    def test_unknown_population_excluded(self, aggregate, caplog):
        aggregator = aggregate(
            {"INCIDENT_KEY": "1", "BORO": "BRONX"},
            {"INCIDENT_KEY": "2", "BORO": None},
            {"INCIDENT_KEY": "3", "BORO": "NEWARK"},
        )
        table = aggregator.borough_rates()

        assert table["borough"].tolist() == ["BRONX"]
        assert table["incidents_count"].tolist() == [1]
        assert "Excluding 2 incidents" in caplog.text

    def test_rate_scale_from_config(self, make_raw, test_config):
        config = test_config.model_copy(
            update={"analysis": test_config.analysis.model_copy(update={"rate_per": 100000})}
        )
        df = normalize_incidents(make_raw({"BORO": "STATEN ISLAND"}), config)
        table = ShootingAggregator(config, incidents=df).borough_rates()

        assert table["percentage_of_shootings"].iloc[0] == pytest.approx(100000 / 493494)

    def test_borough_totals(self, incidents, test_config):
        table = ShootingAggregator(test_config, incidents=incidents).borough_rates()

        counts = dict(zip(table["borough"], table["incidents_count"], strict=True))
        assert counts == {
            "BRONX": 7,
            "BROOKLYN": 6,
            "MANHATTAN": 5,
            "QUEENS": 6,
            "STATEN ISLAND": 4,
        }


class TestMurdersByDate:
    def test_scenario(self, scenario_raw, test_config):
        df = normalize_incidents(scenario_raw, test_config)
        table = ShootingAggregator(test_config, incidents=df).murders_by_date()

        assert list(table.columns) == ["date", "murders"]
        assert table["date"].tolist() == [pd.Timestamp("2020-07-05")]
        assert table["murders"].tolist() == [2]

    def test_no_murders(self, aggregate):
        table = aggregate({"STATISTICAL_MURDER_FLAG": "false"}).murders_by_date()

        assert table.empty
        assert list(table.columns) == ["date", "murders"]


class TestShootingsAndMurdersByYear:
    def test_year_with_no_murders_reports_zero(self, incidents, test_config):
        table = ShootingAggregator(test_config, incidents=incidents).shootings_and_murders_by_year()

        assert list(table.itertuples(index=False, name=None)) == [
            (2019, 6, 2),
            (2020, 9, 3),
            (2021, 8, 0),
            (2022, 5, 1),
        ]
        assert (table.dtypes == "int64").all()

    def test_murders_never_exceed_shootings(self, incidents, test_config):
        table = ShootingAggregator(test_config, incidents=incidents).shootings_and_murders_by_year()
        assert (table["murders"] <= table["shootings"]).all()


class TestEmptyInput:
    def test_empty_incidents_build_empty_tables(self, make_raw, test_config):
        df = normalize_incidents(make_raw(), test_config)

        tables = ShootingAggregator(test_config).build_tables(df)

        assert len(tables) == 6
        assert all(table.empty for table in tables.values())


class TestConvenienceFunctions:
    def test_build_shooting_aggregates(self, incidents, test_config):
        result = build_shooting_aggregates(incidents, "2024-01-15", test_config)

        assert isinstance(result, dict)
        assert result["success"]
        assert result["tables_built"] == 6
