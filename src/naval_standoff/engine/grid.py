"""Grid model: the square matrix of cells owned by one side."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator

from .ship import BOARD_SIZE, Coordinate


class CellState(Enum):
    """State tag of a single grid cell."""

    EMPTY = "empty"
    SHIP = "ship"
    HIT = "hit"
    MISS = "miss"
    SUNK = "sunk"
    PREVIEW = "preview"


OWNED_STATES = frozenset({CellState.SHIP, CellState.HIT, CellState.SUNK})
FIRED_STATES = frozenset({CellState.HIT, CellState.MISS, CellState.SUNK})


@dataclass(frozen=True)
class Cell:
    """One grid square. ``ship_id`` is set iff the state implies an owner."""

    row: int
    col: int
    state: CellState = CellState.EMPTY
    ship_id: str | None = None

    def __post_init__(self) -> None:
        owned = self.state in OWNED_STATES
        if owned and self.ship_id is None:
            raise ValueError(f"Cell ({self.row},{self.col}) in state {self.state.value} needs a ship id.")
        if not owned and self.ship_id is not None:
            raise ValueError(
                f"Cell ({self.row},{self.col}) in state {self.state.value} cannot belong to a ship."
            )

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.row, self.col)

    @property
    def fired(self) -> bool:
        return self.state in FIRED_STATES


@dataclass(frozen=True)
class Grid:
    """Immutable size x size grid; updates return new grids."""

    size: int
    cells: tuple[tuple[Cell, ...], ...]

    def in_bounds(self, row: int, col: int) -> bool:
        """Check whether a coordinate lies inside the grid boundaries."""
        return 0 <= row < self.size and 0 <= col < self.size

    def cell(self, row: int, col: int) -> Cell:
        if not self.in_bounds(row, col):
            raise IndexError(f"({row},{col}) is outside the {self.size}x{self.size} grid.")
        return self.cells[row][col]

    def __getitem__(self, coord: Coordinate) -> Cell:
        return self.cell(coord.row, coord.col)

    def __iter__(self) -> Iterator[Cell]:
        for row in self.cells:
            yield from row

    def with_cells(self, updates: Iterable[Cell]) -> Grid:
        """Return a grid with the given cells replaced.

        Rows without an update are shared with ``self``.
        """
        by_row: dict[int, dict[int, Cell]] = {}
        for cell in updates:
            if not self.in_bounds(cell.row, cell.col):
                raise IndexError(f"({cell.row},{cell.col}) is outside the grid.")
            by_row.setdefault(cell.row, {})[cell.col] = cell
        if not by_row:
            return self
        rows = list(self.cells)
        for row_index, changed in by_row.items():
            rows[row_index] = tuple(
                changed.get(cell.col, cell) for cell in self.cells[row_index]
            )
        return replace(self, cells=tuple(rows))

    def cells_in_state(self, *states: CellState) -> list[Cell]:
        wanted = set(states)
        return [cell for cell in self if cell.state in wanted]

    def fired_coordinates(self) -> list[Coordinate]:
        """Every coordinate that has been shot at, in row-major order."""
        return [cell.coordinate for cell in self if cell.fired]

    def hit_coordinates(self) -> list[Coordinate]:
        """Hits as seen by the attacker, including cells of sunk ships."""
        return [cell.coordinate for cell in self.cells_in_state(CellState.HIT, CellState.SUNK)]

    def miss_coordinates(self) -> list[Coordinate]:
        return [cell.coordinate for cell in self.cells_in_state(CellState.MISS)]

    def unfired_coordinates(self) -> list[Coordinate]:
        return [cell.coordinate for cell in self if not cell.fired]

    def clear_preview(self) -> Grid:
        """Drop any transient preview marks."""
        return self.with_cells(
            replace(cell, state=CellState.EMPTY) for cell in self.cells_in_state(CellState.PREVIEW)
        )


def initialize_grid(size: int = BOARD_SIZE) -> Grid:
    """Build an empty ``size`` x ``size`` grid."""
    if size <= 0:
        raise ValueError("Grid size must be positive.")
    return Grid(
        size=size,
        cells=tuple(
            tuple(Cell(row=row, col=col) for col in range(size)) for row in range(size)
        ),
    )
