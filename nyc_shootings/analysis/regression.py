"""
NYC Shootings - Murder/Shooting Regression

Fits murders ~ a + b * shootings over the yearly table with statsmodels OLS.

Usage:
    from nyc_shootings.analysis.regression import fit_murders_on_shootings

    summary = fit_murders_on_shootings(tables["shootings_and_murders_by_year"])
    print(summary.slope, summary.r_squared)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import pandas as pd
import statsmodels.api as sm

from nyc_shootings.datasets.shootings.features import MURDERS, SHOOTINGS, YEAR

logger = logging.getLogger(__name__)

PREDICTED_MURDERS = "predicted_murders"

# An intercept and a slope leave no residual degrees of freedom below this
MIN_OBSERVATIONS = 3


@dataclass
class RegressionSummary:
    """Fit statistics of the yearly murders-on-shootings regression."""

    intercept: float
    slope: float
    r_squared: float
    adj_r_squared: float
    intercept_pvalue: float
    slope_pvalue: float
    f_pvalue: float
    n_observations: int
    fitted: pd.DataFrame = field(repr=False, default_factory=pd.DataFrame)

    def predict(self, shootings: float | pd.Series) -> float | pd.Series:
        return self.intercept + self.slope * shootings

    def to_dict(self) -> dict[str, Any]:
        """Convert summary to dictionary for logging."""
        return {
            "intercept": self.intercept,
            "slope": self.slope,
            "r_squared": self.r_squared,
            "adj_r_squared": self.adj_r_squared,
            "intercept_pvalue": self.intercept_pvalue,
            "slope_pvalue": self.slope_pvalue,
            "f_pvalue": self.f_pvalue,
            "n_observations": self.n_observations,
        }


def fit_murders_on_shootings(by_year: pd.DataFrame) -> RegressionSummary:
    """
    Fit yearly murders on yearly shootings.

    Args:
        by_year: Table with year, shootings and murders columns

    Returns:
        RegressionSummary with coefficients, p-values and the fitted table

    Raises:
        ValueError: If fewer than MIN_OBSERVATIONS years are available
    """
    missing = {YEAR, SHOOTINGS, MURDERS} - set(by_year.columns)
    if missing:
        raise ValueError(f"Regression input is missing columns: {sorted(missing)}")

    if len(by_year) < MIN_OBSERVATIONS:
        raise ValueError(
            f"Need at least {MIN_OBSERVATIONS} years to fit the regression, got {len(by_year)}"
        )

    x = sm.add_constant(by_year[SHOOTINGS].astype("float64"), has_constant="add")
    y = by_year[MURDERS].astype("float64")

    model = sm.OLS(y, x).fit()

    fitted = by_year[[YEAR, SHOOTINGS, MURDERS]].copy()
    fitted[PREDICTED_MURDERS] = model.fittedvalues.to_numpy()

    summary = RegressionSummary(
        intercept=float(model.params["const"]),
        slope=float(model.params[SHOOTINGS]),
        r_squared=float(model.rsquared),
        adj_r_squared=float(model.rsquared_adj),
        intercept_pvalue=float(model.pvalues["const"]),
        slope_pvalue=float(model.pvalues[SHOOTINGS]),
        f_pvalue=float(model.f_pvalue),
        n_observations=int(model.nobs),
        fitted=fitted,
    )

    logger.info(
        f"Fitted murders = {summary.intercept:.3f} + {summary.slope:.4f} * shootings "
        f"(R^2={summary.r_squared:.3f}, n={summary.n_observations})",
        extra=summary.to_dict(),
    )

    return summary
