"""Ship domain model and fleet catalog."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

BOARD_SIZE = 10


@dataclass(frozen=True, order=True)
class Coordinate:
    """Immutable board coordinate."""

    row: int
    col: int

    def as_pair(self) -> tuple[int, int]:
        return (self.row, self.col)


class Orientation(Enum):
    """Allowed ship orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class ShipType(Enum):
    """The fixed fleet catalog, keyed by display name."""

    CARRIER = "Carrier"
    BATTLESHIP = "Battleship"
    CRUISER = "Cruiser"
    SUBMARINE = "Submarine"
    DESTROYER = "Destroyer"

    @property
    def length(self) -> int:
        """Return the number of contiguous cells the ship occupies."""
        return _SHIP_LENGTHS[self]

    @classmethod
    def from_name(cls, name: str | ShipType) -> ShipType:
        """Resolve a display name (case-insensitive) or enum member."""
        if isinstance(name, ShipType):
            return name
        for ship_type in cls:
            if ship_type.value.lower() == name.strip().lower():
                return ship_type
        raise ValueError(f"Unknown ship type: {name!r}")


_SHIP_LENGTHS: dict[ShipType, int] = {
    ShipType.CARRIER: 5,
    ShipType.BATTLESHIP: 4,
    ShipType.CRUISER: 3,
    ShipType.SUBMARINE: 3,
    ShipType.DESTROYER: 2,
}

FLEET_CATALOG: tuple[ShipType, ...] = tuple(ShipType)
FLEET_CELL_COUNT = sum(ship_type.length for ship_type in FLEET_CATALOG)


@dataclass(frozen=True)
class Ship:
    """A placed ship. Updates produce new instances via :meth:`with_hit`."""

    ship_id: str
    ship_type: ShipType
    orientation: Orientation
    positions: tuple[Coordinate, ...]
    hits: tuple[Coordinate, ...] = field(default=())

    def __post_init__(self) -> None:
        if len(self.positions) != self.ship_type.length:
            raise ValueError(
                f"{self.ship_type.value} needs {self.ship_type.length} cells, "
                f"got {len(self.positions)}."
            )
        origin = self.positions[0]
        for offset, coord in enumerate(self.positions):
            if self.orientation is Orientation.HORIZONTAL:
                expected = Coordinate(origin.row, origin.col + offset)
            else:
                expected = Coordinate(origin.row + offset, origin.col)
            if coord != expected:
                raise ValueError("Ship positions must be contiguous along its orientation.")
        if len(set(self.hits)) != len(self.hits):
            raise ValueError("Duplicate hit recorded on ship.")
        if not set(self.hits).issubset(self.positions):
            raise ValueError("Hits must lie on the ship's own positions.")

    @property
    def name(self) -> str:
        return self.ship_type.value

    @property
    def size(self) -> int:
        return self.ship_type.length

    @property
    def sunk(self) -> bool:
        """True once every occupied cell has been hit."""
        return len(self.hits) == self.size

    def occupies(self, coord: Coordinate) -> bool:
        return coord in self.positions

    def with_hit(self, coord: Coordinate) -> Ship:
        """Return a copy with ``coord`` recorded as hit.

        Recording the same hit twice returns the ship unchanged.
        """
        if not self.occupies(coord):
            raise ValueError(f"{coord} is not part of ship {self.ship_id}.")
        if coord in self.hits:
            return self
        return replace(self, hits=self.hits + (coord,))
