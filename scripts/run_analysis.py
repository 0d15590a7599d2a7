"""
NYC Shooting Analysis Script
Loads, cleans and summarizes NYPD shooting incidents, then fits the
murders-on-shootings regression. All settings come from configs/.
"""

import logging

from nyc_shootings.datasets.shootings.features import COUNTS_BY_DATE, SHOOTINGS
from nyc_shootings.pipeline import run_pipeline
from nyc_shootings.shared.config import get_config
from nyc_shootings.shared.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def main():
    config = get_config()
    configure_logging(config, log_name="analysis")

    result = run_pipeline(config=config)

    print("\n" + "=" * 80)
    print("NYC SHOOTING INCIDENTS SUMMARY")
    print("=" * 80)
    print(f"\nIncidents (rows): {len(result.incidents)}")
    print(f"Distinct incidents: {result.incidents['id'].nunique()}")

    busiest = result.tables[COUNTS_BY_DATE].head(3)
    print("\nDates with the most shootings:")
    for _, row in busiest.iterrows():
        print(f"  {row['date']:%Y-%m-%d}: {row[SHOOTINGS]}")

    if result.summary is not None:
        s = result.summary
        print("\nRegression murders ~ shootings (per year):")
        print(f"  intercept: {s.intercept:.3f} (p={s.intercept_pvalue:.3g})")
        print(f"  slope:     {s.slope:.4f} (p={s.slope_pvalue:.3g})")
        print(f"  R^2:       {s.r_squared:.3f}  n={s.n_observations}")

    if result.table_files:
        print(f"\nTables: {len(result.table_files)} written")
    if result.figures:
        print(f"Figures: {len(result.figures)} written")
    print("=" * 80 + "\n")


if __name__ == "__main__":
    main()
