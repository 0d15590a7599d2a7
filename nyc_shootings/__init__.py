"""
NYC Shootings - cleaning and descriptive analysis of NYPD shooting incidents.
"""

__version__ = "0.1.0"
