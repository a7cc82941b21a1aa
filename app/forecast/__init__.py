"""Forecast module - P&L forecasts, what-if scenarios, versions and CSV import."""
from app.forecast import engine, schemas, routes

__all__ = ["engine", "schemas", "routes"]
