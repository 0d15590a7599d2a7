"""
NYC Shootings - Plots

Renders the aggregate tables to image files. Category axes use fixed orders:
weekdays Monday..Sunday, time of day midnight..evening, seasons Winter..Fall.
"""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

# Figures are only written to files; never open a display
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

from nyc_shootings.analysis.regression import PREDICTED_MURDERS, RegressionSummary
from nyc_shootings.datasets.shootings.features import (
    BOROUGH_RATES,
    COUNTS_BY_DATE,
    COUNTS_BY_SEASON,
    COUNTS_BY_WEEKDAY_TIME_OF_DAY,
    MURDERS,
    MURDERS_BY_DATE,
    RATE,
    SEASON,
    SHOOTINGS,
    SHOOTINGS_AND_MURDERS_BY_YEAR,
    YEAR,
)
from nyc_shootings.datasets.shootings.schema import (
    BOROUGH,
    DATE,
    SEASON_ORDER,
    TIME_OF_DAY,
    TIME_OF_DAY_ORDER,
    WEEKDAY,
    WEEKDAY_ORDER,
)
from nyc_shootings.shared.config import Settings, get_config

logger = logging.getLogger(__name__)

REGRESSION_FIGURE = "regression"


def weekday_time_of_day_matrix(table: pd.DataFrame) -> pd.DataFrame:
    """Pivot weekday x time-of-day counts into a fully ordered 7x4 matrix."""
    matrix = table.pivot(index=WEEKDAY, columns=TIME_OF_DAY, values=SHOOTINGS)
    matrix = matrix.reindex(index=WEEKDAY_ORDER, columns=TIME_OF_DAY_ORDER).fillna(0)
    return matrix.astype("int64")


def _save(fig: plt.Figure, path: Path, dpi: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=dpi)
    plt.close(fig)
    logger.debug(f"Saved figure {path}")
    return path


def plot_top_dates(
    table: pd.DataFrame, value_col: str, title: str, path: Path, top_n: int, dpi: int
) -> Path:
    """Bar chart of the top_n dates of a date-count table."""
    top = table.head(top_n).copy()
    top[DATE] = top[DATE].dt.strftime("%Y-%m-%d")

    fig, ax = plt.subplots(figsize=(10, 6))
    sns.barplot(data=top, x=DATE, y=value_col, color="steelblue", ax=ax)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.set_xlabel("Date")
    ax.set_ylabel(value_col.capitalize())
    ax.tick_params(axis="x", rotation=45)
    return _save(fig, path, dpi)


def plot_weekday_time_of_day(table: pd.DataFrame, path: Path, dpi: int) -> Path:
    """Heatmap of shootings by weekday and time of day."""
    matrix = weekday_time_of_day_matrix(table)

    fig, ax = plt.subplots(figsize=(8, 6))
    sns.heatmap(matrix, annot=True, fmt="d", cmap="Reds", ax=ax)
    ax.set_title("Shootings by Weekday and Time of Day", fontsize=14, fontweight="bold")
    ax.set_xlabel("Time of Day")
    ax.set_ylabel("Weekday")
    return _save(fig, path, dpi)


def plot_counts_by_season(table: pd.DataFrame, path: Path, dpi: int) -> Path:
    """Bar chart of shootings per season."""
    fig, ax = plt.subplots(figsize=(8, 6))
    sns.barplot(
        data=table,
        x=SEASON,
        y=SHOOTINGS,
        order=[s for s in SEASON_ORDER if s in set(table[SEASON])],
        color="darkorange",
        ax=ax,
    )
    ax.set_title("Shootings by Season", fontsize=14, fontweight="bold")
    ax.set_xlabel("Season")
    ax.set_ylabel("Shootings")
    return _save(fig, path, dpi)


def plot_borough_rates(table: pd.DataFrame, path: Path, dpi: int) -> Path:
    """Bar chart of shootings per 1000 residents by borough."""
    fig, ax = plt.subplots(figsize=(8, 6))
    sns.barplot(data=table, x=BOROUGH, y=RATE, color="firebrick", ax=ax)
    ax.set_title("Shootings per 1000 Residents by Borough", fontsize=14, fontweight="bold")
    ax.set_xlabel("Borough")
    ax.set_ylabel("Shootings per 1000 residents")
    return _save(fig, path, dpi)


def plot_regression(summary: RegressionSummary, path: Path, dpi: int) -> Path:
    """Scatter of yearly murders vs shootings with the fitted line."""
    fitted = summary.fitted.sort_values(SHOOTINGS)

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.scatter(fitted[SHOOTINGS], fitted[MURDERS], color="black", label="Observed years")
    ax.plot(
        fitted[SHOOTINGS],
        fitted[PREDICTED_MURDERS],
        color="red",
        linestyle="--",
        label=f"murders = {summary.intercept:.1f} + {summary.slope:.3f} x shootings "
        f"(R²={summary.r_squared:.2f})",
    )
    for _, row in fitted.iterrows():
        ax.annotate(str(int(row[YEAR])), (row[SHOOTINGS], row[MURDERS]), fontsize=8)
    ax.set_title("Murders vs Shootings per Year", fontsize=14, fontweight="bold")
    ax.set_xlabel("Shootings")
    ax.set_ylabel("Murders")
    ax.legend()
    return _save(fig, path, dpi)


def render_all(
    tables: dict[str, pd.DataFrame],
    output_dir: str | Path,
    summary: RegressionSummary | None = None,
    config: Settings | None = None,
) -> dict[str, Path]:
    """
    Render every aggregate table (and the regression, if given).

    Empty tables are skipped.

    Returns:
        Mapping of figure name to written file path
    """
    config = config or get_config()
    output_dir = Path(output_dir)
    dpi = config.analysis.plot_dpi
    top_n = config.analysis.top_n_dates
    ext = config.analysis.figure_format

    def target(name: str) -> Path:
        return output_dir / f"{name}.{ext}"

    renderers = {
        COUNTS_BY_DATE: lambda t: plot_top_dates(
            t, SHOOTINGS, "Dates with the Most Shootings", target(COUNTS_BY_DATE), top_n, dpi
        ),
        COUNTS_BY_WEEKDAY_TIME_OF_DAY: lambda t: plot_weekday_time_of_day(
            t, target(COUNTS_BY_WEEKDAY_TIME_OF_DAY), dpi
        ),
        COUNTS_BY_SEASON: lambda t: plot_counts_by_season(t, target(COUNTS_BY_SEASON), dpi),
        BOROUGH_RATES: lambda t: plot_borough_rates(t, target(BOROUGH_RATES), dpi),
        MURDERS_BY_DATE: lambda t: plot_top_dates(
            t, MURDERS, "Dates with the Most Murders", target(MURDERS_BY_DATE), top_n, dpi
        ),
    }

    written: dict[str, Path] = {}
    for name, render in renderers.items():
        table = tables.get(name)
        if table is None or table.empty:
            logger.warning(f"Skipping figure '{name}': no data")
            continue
        written[name] = render(table)

    if summary is not None:
        written[REGRESSION_FIGURE] = plot_regression(summary, target(REGRESSION_FIGURE), dpi)
    elif SHOOTINGS_AND_MURDERS_BY_YEAR in tables:
        logger.info("No regression summary given; skipping regression figure")

    logger.info(f"Rendered {len(written)} figures to {output_dir}")
    return written
