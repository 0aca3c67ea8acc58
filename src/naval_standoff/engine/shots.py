"""Shot resolution against one side's grid and fleet."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum

from naval_standoff.telemetry import get_meter, get_tracer

from .errors import AlreadyFiredTarget, OutOfBoundsTarget
from .fleet import Fleet
from .grid import CellState, Grid
from .ship import Coordinate, ShipType

logger = logging.getLogger(__name__)
tracer = get_tracer("naval_standoff.engine.shots")
meter = get_meter("naval_standoff.engine.shots")

SHOT_COUNTER = meter.create_counter(
    "naval_standoff_shots",
    unit="1",
    description="Shots resolved against a grid",
)


class ShotKind(Enum):
    """Result category of a resolved shot."""

    MISS = "miss"
    HIT = "hit"
    SUNK = "sunk"


@dataclass(frozen=True)
class ShotOutcome:
    """What happened to a single shot."""

    kind: ShotKind
    coordinate: Coordinate
    ship_name: ShipType | None = None
    ship_id: str | None = None


@dataclass(frozen=True)
class ShotResolution:
    """New grid and fleet after a shot, plus its outcome."""

    grid: Grid
    fleet: Fleet
    outcome: ShotOutcome


def ensure_fireable(grid: Grid, row: int, col: int) -> None:
    """Reject a shot that is out of bounds or targets an already resolved cell."""
    if not grid.in_bounds(row, col):
        logger.error("shot_out_of_bounds", extra={"row": row, "col": col, "grid_size": grid.size})
        raise OutOfBoundsTarget(row, col, grid.size)
    if grid.cell(row, col).fired:
        logger.error("shot_duplicate", extra={"row": row, "col": col})
        raise AlreadyFiredTarget(row, col)


def process_shot(grid: Grid, fleet: Fleet, row: int, col: int) -> ShotResolution:
    """Apply a shot and return the updated grid, fleet and outcome.

    ``grid`` and ``fleet`` are left untouched. The caller is responsible for
    checking the target with :func:`ensure_fireable` first.
    """
    with tracer.start_as_current_span("shots.process_shot") as span:
        span.set_attribute("shot.row", row)
        span.set_attribute("shot.col", col)
        coord = Coordinate(row, col)
        cell = grid.cell(row, col)

        ship_index = None
        if cell.ship_id is not None:
            ship_index = next(
                (index for index, ship in enumerate(fleet) if ship.ship_id == cell.ship_id), None
            )
            if ship_index is None:
                logger.error("shot_unknown_ship", extra={"row": row, "col": col, "ship_id": cell.ship_id})

        if ship_index is None:
            outcome = ShotOutcome(ShotKind.MISS, coord)
            # An orphaned owner id cannot survive as MISS.
            new_grid = grid.with_cells([replace(cell, state=CellState.MISS, ship_id=None)])
            new_fleet = fleet
        else:
            ship = fleet[ship_index].with_hit(coord)
            new_fleet = fleet[:ship_index] + (ship,) + fleet[ship_index + 1 :]
            if ship.sunk:
                outcome = ShotOutcome(ShotKind.SUNK, coord, ship.ship_type, ship.ship_id)
                new_grid = grid.with_cells(
                    replace(grid[position], state=CellState.SUNK) for position in ship.positions
                )
            else:
                outcome = ShotOutcome(ShotKind.HIT, coord, ship.ship_type, ship.ship_id)
                new_grid = grid.with_cells([replace(cell, state=CellState.HIT)])

        span.set_attribute("shot.outcome", outcome.kind.value)
        SHOT_COUNTER.add(1, attributes={"outcome": outcome.kind.value})
        logger.info(
            "shot_resolved",
            extra={
                "row": row,
                "col": col,
                "outcome": outcome.kind.value,
                "ship_id": outcome.ship_id,
            },
        )
        return ShotResolution(grid=new_grid, fleet=new_fleet, outcome=outcome)
