"""Opponent targeting strategies."""

from .factory import create_strategy
from .remote import RemoteTargetingStrategy, TargetingResponse
from .targeting import (
    HuntTargetStrategy,
    RandomTargetingStrategy,
    TargetDecision,
    TargetingMode,
    TargetingRequest,
    TargetingStrategy,
    validate_target,
)

__all__ = [
    "HuntTargetStrategy",
    "RandomTargetingStrategy",
    "RemoteTargetingStrategy",
    "TargetDecision",
    "TargetingMode",
    "TargetingRequest",
    "TargetingResponse",
    "TargetingStrategy",
    "create_strategy",
    "validate_target",
]
