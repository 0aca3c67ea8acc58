"""Shot selection for the computer opponent.

Strategies see only the fog-of-war view of the defending grid: which cells
were hits (sunk ship cells included) and which were misses. They keep no state
between calls; the hunting/targeting mode is recomputed from that history on
every invocation.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, TypeAlias

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from naval_standoff.engine.errors import AlreadyFiredTarget, NoValidTarget, OutOfBoundsTarget
from naval_standoff.engine.grid import Grid
from naval_standoff.engine.ship import Coordinate
from naval_standoff.telemetry import get_tracer, record_game_metric

logger = logging.getLogger(__name__)
tracer = get_tracer("naval_standoff.ai.targeting")

Pair: TypeAlias = tuple[int, int]
FiredMask: TypeAlias = npt.NDArray[np.bool_]

# Up, down, left, right. Diagonals are never probed.
NEIGHBOUR_STEPS: tuple[Pair, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
LINE_AXES: tuple[Pair, ...] = ((0, 1), (1, 0))


class TargetingMode(Enum):
    """How a target was chosen."""

    HUNTING = "hunting"
    TARGETING = "targeting"
    FALLBACK = "fallback"

    @classmethod
    def from_rationale(cls, text: str) -> TargetingMode:
        return cls.TARGETING if text.strip().lower().startswith("targeting") else cls.HUNTING


class TargetingRequest(BaseModel):
    """Fog-of-war history handed to a strategy."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    board_size: int = Field(gt=0, alias="boardSize")
    hit_coordinates: list[Pair] = Field(default_factory=list, alias="hitCoordinates")
    miss_coordinates: list[Pair] = Field(default_factory=list, alias="missCoordinates")

    @computed_field(alias="maxCoordinate")  # type: ignore[prop-decorator]
    @property
    def max_coordinate(self) -> int:
        return self.board_size - 1

    @model_validator(mode="after")
    def _history_in_bounds(self) -> "TargetingRequest":
        for row, col in (*self.hit_coordinates, *self.miss_coordinates):
            if not (0 <= row < self.board_size and 0 <= col < self.board_size):
                raise ValueError(f"history coordinate ({row},{col}) is outside the board")
        return self

    @classmethod
    def from_grid(cls, grid: Grid) -> TargetingRequest:
        """Build the attacker's view of ``grid``."""
        return cls(
            board_size=grid.size,
            hit_coordinates=[coord.as_pair() for coord in grid.hit_coordinates()],
            miss_coordinates=[coord.as_pair() for coord in grid.miss_coordinates()],
        )

    def to_wire(self) -> dict:
        """JSON body sent to a remote reasoning service."""
        return self.model_dump(mode="json", by_alias=True)

    def fired(self) -> set[Pair]:
        return {tuple(pair) for pair in (*self.hit_coordinates, *self.miss_coordinates)}

    def fired_mask(self) -> FiredMask:
        mask = np.zeros((self.board_size, self.board_size), dtype=bool)
        for row, col in self.fired():
            mask[row, col] = True
        return mask


@dataclass(frozen=True)
class TargetDecision:
    """A chosen coordinate with a human-readable explanation."""

    row: int
    column: int
    rationale: str
    mode: TargetingMode

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.row, self.column)


def validate_target(request: TargetingRequest, row: int, column: int) -> None:
    """Raise if ``(row, column)`` is off the board or already in the history."""
    if not (0 <= row < request.board_size and 0 <= column < request.board_size):
        raise OutOfBoundsTarget(row, column, request.board_size)
    if (row, column) in request.fired():
        raise AlreadyFiredTarget(row, column)


def _fmt(pair: Iterable[int]) -> str:
    row, col = pair
    return f"({row},{col})"


class TargetingStrategy(ABC):
    """Picks the next coordinate to fire at."""

    name: str = "abstract"

    @abstractmethod
    def choose_target(self, request: TargetingRequest) -> TargetDecision:
        """Return an in-bounds, unfired coordinate or raise :class:`NoValidTarget`."""


class RandomTargetingStrategy(TargetingStrategy):
    """Uniform choice among unfired cells. Also serves as the local fallback."""

    name = "random"

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def choose_target(self, request: TargetingRequest) -> TargetDecision:
        candidates = np.argwhere(~request.fired_mask())
        if len(candidates) == 0:
            raise NoValidTarget("Every cell has already been targeted.")
        row, col = (int(value) for value in candidates[self._rng.randrange(len(candidates))])
        return TargetDecision(
            row,
            col,
            f"Hunting Mode: Randomly selected untargeted cell {_fmt((row, col))}.",
            TargetingMode.HUNTING,
        )


class HuntTargetStrategy(TargetingStrategy):
    """Hunt on a checkerboard until something is hit, then work around the hits."""

    name = "hunt_target"

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def choose_target(self, request: TargetingRequest) -> TargetDecision:
        with tracer.start_as_current_span("targeting.choose_target") as span:
            span.set_attribute("strategy", self.name)
            fired = request.fired_mask()
            if fired.all():
                logger.error("no_valid_target", extra={"board_size": request.board_size})
                raise NoValidTarget("Every cell has already been targeted.")

            hits = list(dict.fromkeys(tuple(pair) for pair in request.hit_coordinates))
            decision = (
                self._extend_line(hits, fired)
                or self._probe_neighbours(hits, fired)
                or self._hunt(hits, fired)
            )

            span.set_attribute("targeting.mode", decision.mode.value)
            span.set_attribute("target.row", decision.row)
            span.set_attribute("target.col", decision.column)
            record_game_metric(
                "naval_standoff_strategy_decisions_total",
                1,
                {"strategy": self.name, "mode": decision.mode.value},
            )
            logger.debug(
                "target_chosen",
                extra={"row": decision.row, "col": decision.column, "mode": decision.mode.value},
            )
            return decision

    @staticmethod
    def _is_open(fired: FiredMask, row: int, col: int) -> bool:
        size = fired.shape[0]
        return 0 <= row < size and 0 <= col < size and not fired[row, col]

    @staticmethod
    def _lines(hits: list[Pair]) -> list[tuple[list[Pair], Pair]]:
        """Maximal runs of two or more contiguous colinear hits, longest first."""
        hit_set = set(hits)
        runs: list[tuple[list[Pair], Pair]] = []
        for step in LINE_AXES:
            for start in sorted(hit_set):
                if (start[0] - step[0], start[1] - step[1]) in hit_set:
                    continue
                run = [start]
                while (run[-1][0] + step[0], run[-1][1] + step[1]) in hit_set:
                    run.append((run[-1][0] + step[0], run[-1][1] + step[1]))
                if len(run) >= 2:
                    runs.append((run, step))
        runs.sort(key=lambda item: len(item[0]), reverse=True)
        return runs

    def _extend_line(self, hits: list[Pair], fired: FiredMask) -> TargetDecision | None:
        for run, (d_row, d_col) in self._lines(hits):
            ends = (
                (run[-1], (run[-1][0] + d_row, run[-1][1] + d_col)),
                (run[0], (run[0][0] - d_row, run[0][1] - d_col)),
            )
            for anchor, target in ends:
                if self._is_open(fired, *target):
                    return TargetDecision(
                        target[0],
                        target[1],
                        f"Targeting Mode: Extending line of {len(run)} hits from {_fmt(anchor)} "
                        f"by shooting {_fmt(target)} as it's untargeted.",
                        TargetingMode.TARGETING,
                    )
        return None

    def _probe_neighbours(self, hits: list[Pair], fired: FiredMask) -> TargetDecision | None:
        for hit in hits:
            for d_row, d_col in NEIGHBOUR_STEPS:
                target = (hit[0] + d_row, hit[1] + d_col)
                if self._is_open(fired, *target):
                    return TargetDecision(
                        target[0],
                        target[1],
                        f"Targeting Mode: Probing around hit at {_fmt(hit)}. "
                        f"Trying adjacent cell {_fmt(target)} as it's untargeted.",
                        TargetingMode.TARGETING,
                    )
        return None

    def _hunt(self, hits: list[Pair], fired: FiredMask) -> TargetDecision:
        unfired = ~fired
        rows, cols = np.indices(fired.shape)
        candidates = np.argwhere(unfired & ((rows + cols) % 2 == 0))
        pattern = "Checkerboard sweep"
        if len(candidates) == 0:
            candidates = np.argwhere(unfired)
            pattern = "Random pick"
        row, col = (int(value) for value in candidates[self._rng.randrange(len(candidates))])
        if hits:
            reason = "All cells adjacent to known hits are targeted"
        else:
            reason = "No active hits"
        return TargetDecision(
            row,
            col,
            f"Hunting Mode: {reason}. {pattern} selected untargeted cell {_fmt((row, col))}.",
            TargetingMode.HUNTING,
        )
