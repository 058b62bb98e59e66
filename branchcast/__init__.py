"""Attendance, DGroup and volunteer forecasting for church branch dashboards."""

__version__ = "1.0.0"
