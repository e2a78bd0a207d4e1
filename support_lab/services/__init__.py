"""
Gateways and health services
"""
from .database import Database
from .external_status import ExternalStatusClient, StatusHistory
from .health import HealthAggregator
from .storage import ObjectStorage

__all__ = [
    "Database",
    "ExternalStatusClient",
    "StatusHistory",
    "HealthAggregator",
    "ObjectStorage",
]
