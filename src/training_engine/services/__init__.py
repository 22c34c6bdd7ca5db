"""Service layer for the training decision engine."""

from .base import TrainingLoadRepository
from .load_monitor import BatchResult, LoadMonitorService, RiskDigest

__all__ = [
    "TrainingLoadRepository",
    "BatchResult",
    "LoadMonitorService",
    "RiskDigest",
]
