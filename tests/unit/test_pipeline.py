"""
Unit tests for the end-to-end shootings pipeline.
"""

import pandas as pd
import pytest

from nyc_shootings.datasets.shootings.features import (
    COUNTS_BY_DATE,
    SHOOTINGS_AND_MURDERS_BY_YEAR,
)
from nyc_shootings.pipeline import run_pipeline, write_tables
from nyc_shootings.shared.errors import IngestionError, ParseError, SchemaError

TABLE_NAMES = {
    "counts_by_date",
    "counts_by_weekday_and_time_of_day",
    "counts_by_season",
    "borough_rates",
    "murders_by_date",
    "shootings_and_murders_by_year",
}


class TestRunPipeline:
    def test_full_run_writes_tables_and_figures(self, multi_year_raw, test_config, tmp_path):
        result = run_pipeline(
            multi_year_raw, output_dir=tmp_path, config=test_config, execution_date="2024-01-15"
        )

        assert len(result.incidents) == 28
        assert set(result.tables) == TABLE_NAMES
        assert result.summary is not None
        assert result.summary.n_observations == 4

        assert set(result.table_files) == TABLE_NAMES
        for path in result.table_files.values():
            assert path.parent == tmp_path / "tables"
            assert path.exists()
        assert "regression" in result.figures
        assert all(p.parent == tmp_path / "figures" for p in result.figures.values())

        assert result.stage_results["preprocess"]["success"]
        assert result.stage_results["aggregate"]["tables_built"] == 6
        assert "ingest" not in result.stage_results

    def test_written_year_table(self, multi_year_raw, test_config, tmp_path):
        result = run_pipeline(
            multi_year_raw, output_dir=tmp_path, config=test_config, render_plots=False
        )

        written = pd.read_csv(result.table_files[SHOOTINGS_AND_MURDERS_BY_YEAR])
        assert written.to_dict("list") == {
            "year": [2019, 2020, 2021, 2022],
            "shootings": [6, 9, 8, 5],
            "murders": [2, 3, 0, 1],
        }
        assert result.figures == {}

    def test_scenario_without_regression(self, scenario_raw, test_config, tmp_path, caplog):
        """Two years are too few to fit; the run still succeeds."""
        result = run_pipeline(
            scenario_raw, output_dir=tmp_path, config=test_config, render_plots=False
        )

        assert result.summary is None
        assert "Skipping regression: need at least 3 years, got 2" in caplog.text
        counts = result.tables[COUNTS_BY_DATE]
        assert dict(zip(counts["date"].dt.strftime("%Y-%m-%d"), counts["shootings"], strict=True)) == {
            "2020-07-05": 2,
            "2019-01-01": 1,
        }

    def test_regression_errors_propagate(self, multi_year_raw, test_config, tmp_path, mocker):
        """Only the too-few-years case is skipped; other fit errors fail the run."""
        mocker.patch(
            "nyc_shootings.pipeline.fit_murders_on_shootings",
            side_effect=ValueError("exog contains inf or nans"),
        )

        with pytest.raises(ValueError, match="inf or nans"):
            run_pipeline(multi_year_raw, output_dir=tmp_path, config=test_config)

        assert list(tmp_path.iterdir()) == []

    def test_no_output_dir_writes_nothing(self, scenario_raw, test_config, tmp_path, monkeypatch):
        config = test_config.model_copy(
            update={"storage": test_config.storage.model_copy(update={"output_dir": None})}
        )
        monkeypatch.chdir(tmp_path)

        result = run_pipeline(scenario_raw, config=config)

        assert result.table_files == {}
        assert result.figures == {}
        assert list(tmp_path.iterdir()) == []

    def test_parse_error_propagates_before_writing(self, scenario_raw, test_config, tmp_path):
        scenario_raw.loc[2, "OCCUR_TIME"] = "late"

        with pytest.raises(ParseError) as exc_info:
            run_pipeline(scenario_raw, output_dir=tmp_path, config=test_config)

        assert exc_info.value.value == "late"
        assert list(tmp_path.iterdir()) == []

    def test_schema_error_propagates(self, scenario_raw, test_config, tmp_path):
        with pytest.raises(SchemaError):
            run_pipeline(
                scenario_raw.drop(columns=["OCCUR_DATE"]), output_dir=tmp_path, config=test_config
            )

    def test_ingests_when_no_raw_given(self, scenario_raw, test_config, tmp_path):
        path = tmp_path / "shootings.csv"
        scenario_raw.to_csv(path, index=False)
        config = test_config.model_copy(
            update={"source": test_config.source.model_copy(update={"csv_path": str(path)})}
        )

        result = run_pipeline(output_dir=tmp_path / "out", config=config, render_plots=False)

        assert result.stage_results["ingest"]["rows_fetched"] == 3
        assert result.incidents["id"].tolist() == [1, 2, 2]

    def test_ingestion_error_propagates(self, test_config, tmp_path):
        config = test_config.model_copy(
            update={
                "source": test_config.source.model_copy(
                    update={"csv_path": str(tmp_path / "missing.csv")}
                )
            }
        )

        with pytest.raises(IngestionError):
            run_pipeline(output_dir=tmp_path / "out", config=config)


def test_write_tables(tmp_path):
    tables = {"a": pd.DataFrame({"x": [1, 2]}), "b": pd.DataFrame({"y": ["z"]})}

    written = write_tables(tables, tmp_path / "nested")

    assert written == {"a": tmp_path / "nested" / "a.csv", "b": tmp_path / "nested" / "b.csv"}
    assert pd.read_csv(written["a"])["x"].tolist() == [1, 2]
