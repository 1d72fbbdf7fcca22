"""Strandly: API layer between the salon website and its headless CMS."""

__version__ = "0.1.0"
