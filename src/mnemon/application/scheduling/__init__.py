# Application Scheduling Package
from .scheduler import Scheduler, is_due, is_mastered, rating_label

__all__ = ["Scheduler", "is_due", "is_mastered", "rating_label"]
