# Application Insights Package
from .classifier import (
    InsightClassifier,
    InsightEntry,
    InsightReport,
    InsightSection,
    format_interval,
)

__all__ = [
    "InsightClassifier",
    "InsightEntry",
    "InsightReport",
    "InsightSection",
    "format_interval",
]
