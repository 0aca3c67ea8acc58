"""Game settings loaded from the environment."""

from __future__ import annotations

import os
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from naval_standoff.engine.ship import BOARD_SIZE, FLEET_CELL_COUNT
from naval_standoff.telemetry.config import ENV_PREFIX

StrategyName = Literal["hunt_target", "random", "remote"]


class GameSettings(BaseModel):
    """Runtime options for a game session and its opponent."""

    board_size: int = Field(default=BOARD_SIZE, le=26)
    strategy: StrategyName = "hunt_target"
    strategy_endpoint: str | None = None
    strategy_timeout_s: float = Field(default=10.0, gt=0)
    rng_seed: int | None = None

    @field_validator("board_size")
    @classmethod
    def _board_fits_fleet(cls, value: int) -> int:
        if value * value < FLEET_CELL_COUNT:
            raise ValueError(f"board_size {value} cannot hold a {FLEET_CELL_COUNT}-cell fleet")
        return value

    @model_validator(mode="after")
    def _remote_needs_endpoint(self) -> "GameSettings":
        if self.strategy == "remote" and not self.strategy_endpoint:
            raise ValueError("strategy 'remote' requires strategy_endpoint")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> "GameSettings":
        """Construct settings from `NAVAL_STANDOFF_*` env vars; overrides win."""

        data: Dict[str, Any] = {}
        env_fields = {
            "board_size": f"{ENV_PREFIX}BOARD_SIZE",
            "strategy": f"{ENV_PREFIX}STRATEGY",
            "strategy_endpoint": f"{ENV_PREFIX}STRATEGY_ENDPOINT",
            "strategy_timeout_s": f"{ENV_PREFIX}STRATEGY_TIMEOUT",
            "rng_seed": f"{ENV_PREFIX}SEED",
        }
        for key, env_name in env_fields.items():
            value = os.getenv(env_name)
            if value is not None and value.strip():
                data[key] = value.strip()

        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)
