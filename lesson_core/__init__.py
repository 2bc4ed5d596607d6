"""Lesson toolkit: data wrangling, summary statistics, simple regressions, diversity indices and plots"""

__version__ = "0.1.0"
