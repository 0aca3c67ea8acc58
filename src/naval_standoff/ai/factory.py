"""Build the configured targeting strategy."""

from __future__ import annotations

import random

from naval_standoff.config import GameSettings

from .remote import RemoteTargetingStrategy
from .targeting import HuntTargetStrategy, RandomTargetingStrategy, TargetingStrategy


def create_strategy(settings: GameSettings, rng: random.Random | None = None) -> TargetingStrategy:
    """Return the strategy named by ``settings.strategy``."""
    rng = rng or random.Random(settings.rng_seed)
    if settings.strategy == "random":
        return RandomTargetingStrategy(rng)
    if settings.strategy == "remote":
        if not settings.strategy_endpoint:
            raise ValueError("strategy 'remote' requires strategy_endpoint")
        return RemoteTargetingStrategy(
            settings.strategy_endpoint,
            timeout=settings.strategy_timeout_s,
            fallback=RandomTargetingStrategy(rng),
        )
    return HuntTargetStrategy(rng)
