"""Exploratory analysis of NYC 2013 flight delays and the weather at departure."""

__version__ = '0.1.0'
