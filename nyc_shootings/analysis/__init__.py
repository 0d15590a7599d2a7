"""
NYC Shootings - Analysis

Adapters around third-party libraries that consume the aggregate tables:
    - regression: OLS of yearly murders on yearly shootings (statsmodels)
    - plots: figures for every aggregate table (matplotlib/seaborn)
"""

from nyc_shootings.analysis.plots import render_all
from nyc_shootings.analysis.regression import RegressionSummary, fit_murders_on_shootings

__all__ = [
    "RegressionSummary",
    "fit_murders_on_shootings",
    "render_all",
]
