# Application Stats Package
from .summary import StatsCalculator, StudySummary

__all__ = ["StatsCalculator", "StudySummary"]
