"""Fleet placement (interactive and automatic) and the win detector."""

from __future__ import annotations

import itertools
import logging
import random
from dataclasses import dataclass, replace
from typing import NoReturn

from naval_standoff.telemetry import get_meter, get_tracer

from .errors import InvalidPlacement
from .grid import CellState, Grid, initialize_grid
from .placement import (
    can_place,
    compute_occupied_coordinates,
    placement_error,
    preview_placement,
)
from .ship import BOARD_SIZE, FLEET_CATALOG, FLEET_CELL_COUNT, Orientation, Ship, ShipType

logger = logging.getLogger(__name__)
tracer = get_tracer("naval_standoff.engine.fleet")
meter = get_meter("naval_standoff.engine.fleet")

PLACEMENT_COUNTER = meter.create_counter(
    "naval_standoff_ship_placements",
    unit="1",
    description="Number of attempted ship placements",
)

Fleet = tuple[Ship, ...]


class ShipIdGenerator:
    """Session-scoped source of unique ship identifiers."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self._counter = itertools.count()

    def __call__(self, ship_type: ShipType) -> str:
        return f"{self.prefix}-{ship_type.value}-{next(self._counter)}"


@dataclass(frozen=True)
class PlacementRequest:
    """A request to place one ship; ``ship_name=None`` means the next unplaced one."""

    origin_row: int
    origin_col: int
    ship_name: ShipType | str | None = None
    orientation: Orientation = Orientation.HORIZONTAL


def place_ship_on_grid(grid: Grid, ship: Ship) -> Grid:
    """Mark every cell of ``ship`` as occupied; no other cell changes."""
    return grid.with_cells(
        replace(grid[coord], state=CellState.SHIP, ship_id=ship.ship_id) for coord in ship.positions
    )


def is_fleet_destroyed(fleet: Fleet) -> bool:
    """Check whether the side has any surviving ships."""
    return all(ship.sunk for ship in fleet)


def fleet_is_complete(fleet: Fleet) -> bool:
    """Exactly one ship of each catalog type."""
    return sorted(ship.ship_type.value for ship in fleet) == sorted(
        ship_type.value for ship_type in FLEET_CATALOG
    )


def _commit(grid: Grid, fleet: Fleet, ship: Ship) -> tuple[Grid, Fleet]:
    return place_ship_on_grid(grid.clear_preview(), ship), fleet + (ship,)


def _ensure_capacity(size: int) -> None:
    if size * size < FLEET_CELL_COUNT:
        raise InvalidPlacement(
            f"A {size}x{size} grid cannot hold a fleet of {FLEET_CELL_COUNT} cells."
        )


def place_all_computer_ships(
    rng: random.Random,
    size: int = BOARD_SIZE,
    id_generator: ShipIdGenerator | None = None,
    owner: str = "computer",
) -> tuple[Grid, Fleet]:
    """Randomly place one ship of each catalog type on a fresh grid."""
    _ensure_capacity(size)
    id_generator = id_generator or ShipIdGenerator(owner)
    with tracer.start_as_current_span("fleet.random_placement") as span:
        span.set_attribute("fleet.owner", owner)
        span.set_attribute("grid.size", size)
        grid = initialize_grid(size)
        fleet: Fleet = ()
        for ship_type in FLEET_CATALOG:
            attempts = 0
            while True:
                attempts += 1
                orientation = Orientation.HORIZONTAL if rng.random() < 0.5 else Orientation.VERTICAL
                row = rng.randrange(size)
                col = rng.randrange(size)
                if can_place(grid, row, col, ship_type.length, orientation):
                    break
            ship = Ship(
                ship_id=id_generator(ship_type),
                ship_type=ship_type,
                orientation=orientation,
                positions=tuple(compute_occupied_coordinates(row, col, ship_type.length, orientation)),
            )
            grid, fleet = _commit(grid, fleet, ship)
            PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": owner})
            logger.debug(
                "random_ship_placed",
                extra={"ship_type": ship_type.value, "attempts": attempts, "owner": owner},
            )
        return grid, fleet


class FleetBuilder:
    """Interactive, one-ship-at-a-time placement for a single side."""

    def __init__(
        self,
        owner: str = "user",
        size: int = BOARD_SIZE,
        id_generator: ShipIdGenerator | None = None,
    ) -> None:
        _ensure_capacity(size)
        self.owner = owner
        self.size = size
        self._id_generator = id_generator or ShipIdGenerator(owner)
        self.grid: Grid = initialize_grid(size)
        self.fleet: Fleet = ()

    @property
    def remaining(self) -> list[ShipType]:
        placed = {ship.ship_type for ship in self.fleet}
        return [ship_type for ship_type in FLEET_CATALOG if ship_type not in placed]

    @property
    def next_ship_type(self) -> ShipType | None:
        remaining = self.remaining
        return remaining[0] if remaining else None

    @property
    def is_complete(self) -> bool:
        return not self.remaining

    def reset(self) -> None:
        self.grid = initialize_grid(self.size)
        self.fleet = ()

    def place(self, request: PlacementRequest) -> Ship:
        """Place one ship; raises :class:`InvalidPlacement` and leaves state untouched on failure."""
        with tracer.start_as_current_span("fleet.place_ship") as span:
            span.set_attribute("fleet.owner", self.owner)
            span.set_attribute("ship.start.row", request.origin_row)
            span.set_attribute("ship.start.col", request.origin_col)
            span.set_attribute("ship.orientation", request.orientation.value)
            ship_type = self._resolve_ship_type(request)
            span.set_attribute("ship.type", ship_type.value)

            reason = placement_error(
                self.grid, request.origin_row, request.origin_col, ship_type.length, request.orientation
            )
            if reason is not None:
                self._reject(ship_type, request, reason)

            ship = Ship(
                ship_id=self._id_generator(ship_type),
                ship_type=ship_type,
                orientation=request.orientation,
                positions=tuple(
                    compute_occupied_coordinates(
                        request.origin_row, request.origin_col, ship_type.length, request.orientation
                    )
                ),
            )
            self.grid, self.fleet = _commit(self.grid, self.fleet, ship)
            PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": self.owner})
            logger.info(
                "ship_placed",
                extra={
                    "owner": self.owner,
                    "ship_id": ship.ship_id,
                    "ship_type": ship_type.value,
                    "orientation": request.orientation.value,
                    "row": request.origin_row,
                    "col": request.origin_col,
                },
            )
            return ship

    def preview(
        self,
        row: int,
        col: int,
        orientation: Orientation,
        ship_type: ShipType | None = None,
    ) -> Grid:
        """Return the current grid with the would-be placement marked as preview."""
        if ship_type is None:
            ship_type = self.next_ship_type
        return preview_placement(self.grid, row, col, ship_type, orientation)

    def place_randomly(self, rng: random.Random) -> None:
        """Place every remaining ship at random origins and orientations."""
        for ship_type in self.remaining:
            while True:
                orientation = Orientation.HORIZONTAL if rng.random() < 0.5 else Orientation.VERTICAL
                row = rng.randrange(self.size)
                col = rng.randrange(self.size)
                if can_place(self.grid, row, col, ship_type.length, orientation):
                    break
            self.place(PlacementRequest(row, col, ship_type, orientation))

    def _resolve_ship_type(self, request: PlacementRequest) -> ShipType:
        if request.ship_name is None:
            ship_type = self.next_ship_type
            if ship_type is None:
                self._reject(None, request, "fleet already complete")
            return ship_type
        try:
            ship_type = ShipType.from_name(request.ship_name)
        except ValueError as exc:
            raise InvalidPlacement(str(exc)) from exc
        if ship_type not in self.remaining:
            self._reject(ship_type, request, "ship already deployed")
        return ship_type

    def _reject(self, ship_type: ShipType | None, request: PlacementRequest, reason: str) -> NoReturn:
        name = ship_type.value if ship_type else "unknown"
        PLACEMENT_COUNTER.add(1, attributes={"result": "failed", "owner": self.owner})
        logger.warning(
            "ship_placement_failed",
            extra={
                "owner": self.owner,
                "ship_type": name,
                "orientation": request.orientation.value,
                "row": request.origin_row,
                "col": request.origin_col,
                "reason": reason,
            },
        )
        raise InvalidPlacement(
            f"Cannot place {name} at ({request.origin_row},{request.origin_col}): {reason}."
        )
