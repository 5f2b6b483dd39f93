# src/approval_orchestrator/core/events/__init__.py
"""
Eventos e filtro de eventos.

Componentes:
    - types   → Event, ApprovalStatus, ModelPackageStateChange
    - pattern → EventPattern, matches
"""

from .pattern import EventPattern, matches
from .types import (
    MODEL_APPROVAL_STATUS,
    MODEL_PACKAGE_ARN,
    MODEL_PACKAGE_GROUP_NAME,
    ApprovalStatus,
    Event,
    ModelPackageStateChange,
)

__all__ = [
    "ApprovalStatus",
    "Event",
    "EventPattern",
    "MODEL_APPROVAL_STATUS",
    "MODEL_PACKAGE_ARN",
    "MODEL_PACKAGE_GROUP_NAME",
    "ModelPackageStateChange",
    "matches",
]
