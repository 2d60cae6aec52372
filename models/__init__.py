# models/__init__.py
from .project import (
    ACTIVE_STATUSES,
    PaymentStatus,
    PricingResult,
    Priority,
    ProjectInputs,
    ProjectStatus,
    ProjectType,
)
from .client import ClientType
from .settings import DEFAULT_SETTINGS, Settings

__all__ = [
    "ACTIVE_STATUSES",
    "ClientType",
    "DEFAULT_SETTINGS",
    "PaymentStatus",
    "PricingResult",
    "Priority",
    "ProjectInputs",
    "ProjectStatus",
    "ProjectType",
    "Settings",
]
