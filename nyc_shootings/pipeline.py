"""
NYC Shootings - Pipeline

Runs load -> normalize -> aggregate -> regression -> figures once, in memory.
Any stage failure re-raises the stage's original exception; nothing is written
before every computation has succeeded.

Usage:
    from nyc_shootings.pipeline import run_pipeline

    result = run_pipeline()
    result.summary.slope
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd

from nyc_shootings.analysis.plots import render_all
from nyc_shootings.analysis.regression import (
    MIN_OBSERVATIONS,
    RegressionSummary,
    fit_murders_on_shootings,
)
from nyc_shootings.datasets.shootings import (
    ShootingAggregator,
    ShootingIngester,
    ShootingPreprocessor,
)
from nyc_shootings.datasets.shootings.features import SHOOTINGS_AND_MURDERS_BY_YEAR
from nyc_shootings.shared.config import Settings, get_config
from nyc_shootings.shared.errors import PipelineError

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one pipeline run produced."""

    execution_date: str
    incidents: pd.DataFrame
    tables: dict[str, pd.DataFrame]
    summary: RegressionSummary | None
    figures: dict[str, Path] = field(default_factory=dict)
    table_files: dict[str, Path] = field(default_factory=dict)
    stage_results: dict[str, dict[str, Any]] = field(default_factory=dict)


def _raise_stage_error(stage: Any, result: Any) -> None:
    error = stage.get_error()
    if error is not None:
        raise error
    raise PipelineError(result.error_message)


def write_tables(tables: dict[str, pd.DataFrame], output_dir: str | Path) -> dict[str, Path]:
    """Write each aggregate table to <output_dir>/<name>.csv."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = {}
    for name, table in tables.items():
        path = output_dir / f"{name}.csv"
        table.to_csv(path, index=False)
        written[name] = path

    logger.info(f"Wrote {len(written)} tables to {output_dir}")
    return written


def run_pipeline(
    raw: pd.DataFrame | None = None,
    output_dir: str | Path | None = None,
    config: Settings | None = None,
    render_plots: bool | None = None,
    execution_date: str | None = None,
) -> PipelineResult:
    """
    Run the full shootings analysis.

    Args:
        raw: Raw records; loaded from the configured source when omitted
        output_dir: Where tables and figures go; config storage.output_dir by default.
            Nothing is written when both this and the config are unset.
        config: Configuration object (uses default if not provided)
        render_plots: Override config analysis.render_plots
        execution_date: Run label in YYYY-MM-DD format, today by default

    Returns:
        PipelineResult with incidents, tables, regression and written files

    Raises:
        SchemaError, ParseError, IngestionError: From the failing stage
    """
    config = config or get_config()
    execution_date = execution_date or date.today().isoformat()
    stage_results: dict[str, dict[str, Any]] = {}

    if raw is None:
        ingester = ShootingIngester(config)
        ingestion = ingester.run(execution_date)
        stage_results["ingest"] = ingestion.to_dict()
        if not ingestion.success:
            _raise_stage_error(ingester, ingestion)
        raw = ingester.get_data()

    preprocessor = ShootingPreprocessor(config)
    preprocessing = preprocessor.run(raw, execution_date)
    stage_results["preprocess"] = preprocessing.to_dict()
    if not preprocessing.success:
        _raise_stage_error(preprocessor, preprocessing)
    incidents = preprocessor.get_data()

    aggregator = ShootingAggregator(config)
    aggregation = aggregator.run(incidents, execution_date)
    stage_results["aggregate"] = aggregation.to_dict()
    if not aggregation.success:
        _raise_stage_error(aggregator, aggregation)
    tables = aggregator.get_data()

    summary = None
    by_year = tables[SHOOTINGS_AND_MURDERS_BY_YEAR]
    if len(by_year) < MIN_OBSERVATIONS:
        logger.warning(
            f"Skipping regression: need at least {MIN_OBSERVATIONS} years, got {len(by_year)}"
        )
    else:
        summary = fit_murders_on_shootings(by_year)

    result = PipelineResult(
        execution_date=execution_date,
        incidents=incidents,
        tables=tables,
        summary=summary,
        stage_results=stage_results,
    )

    output_dir = output_dir or config.storage.output_dir
    if not output_dir:
        return result

    output_dir = Path(output_dir)
    result.table_files = write_tables(tables, output_dir / config.storage.tables_subdir)

    if render_plots is None:
        render_plots = config.analysis.render_plots
    if render_plots:
        figures_dir = output_dir / config.storage.figures_subdir
        result.figures = render_all(tables, figures_dir, summary=summary, config=config)

    return result
