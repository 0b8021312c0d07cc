"""Service modules"""
from .progress import ProgressEvent, ProgressLog
from .tvl import TVLService

__all__ = ["ProgressEvent", "ProgressLog", "TVLService"]
