"""Resident roster import: CSV upload -> normalized residents -> PostgreSQL upsert."""

__version__ = "0.3.0"
