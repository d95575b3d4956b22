# Application Forecast Package
from .generator import Forecast, ForecastGenerator, fold_overdue, study_time_estimate

__all__ = ["Forecast", "ForecastGenerator", "fold_overdue", "study_time_estimate"]
