"""
NYC Shootings - Datasets

Each dataset package provides an ingester, a preprocessor and an aggregator
built on the classes in nyc_shootings.datasets.base.
"""
