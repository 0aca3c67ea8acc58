"""Placement validation and preview for ships on a grid."""

from __future__ import annotations

from dataclasses import replace

from .grid import CellState, Grid
from .ship import Coordinate, Orientation, ShipType


def compute_occupied_coordinates(
    origin_row: int, origin_col: int, size: int, orientation: Orientation
) -> list[Coordinate]:
    """Return ``size`` cells extending right (horizontal) or down (vertical)."""
    coords: list[Coordinate] = []
    for offset in range(size):
        if orientation is Orientation.HORIZONTAL:
            coords.append(Coordinate(origin_row, origin_col + offset))
        else:
            coords.append(Coordinate(origin_row + offset, origin_col))
    return coords


def placement_error(
    grid: Grid, origin_row: int, origin_col: int, size: int, orientation: Orientation
) -> str | None:
    """Return why a placement is rejected, or ``None`` if it fits."""
    for coord in compute_occupied_coordinates(origin_row, origin_col, size, orientation):
        if not grid.in_bounds(coord.row, coord.col):
            return "out of bounds"
        owner = grid[coord].ship_id
        if owner is not None:
            return f"overlaps {owner}"
    return None


def can_place(
    grid: Grid, origin_row: int, origin_col: int, size: int, orientation: Orientation
) -> bool:
    """Determine whether a ship fits without leaving the grid or overlapping.

    Only ownership is checked; an unowned preview cell is placeable and ships
    may touch edge to edge.
    """
    return placement_error(grid, origin_row, origin_col, size, orientation) is None


def preview_placement(
    grid: Grid,
    origin_row: int,
    origin_col: int,
    ship_type: ShipType | None,
    orientation: Orientation,
) -> Grid:
    """Mark where ``ship_type`` would land, clearing any earlier preview.

    Nothing is marked when the placement is invalid, the origin is negative,
    or no ship is selected.
    """
    cleared = grid.clear_preview()
    if ship_type is None or origin_row < 0 or origin_col < 0:
        return cleared
    if not can_place(cleared, origin_row, origin_col, ship_type.length, orientation):
        return cleared
    coords = compute_occupied_coordinates(origin_row, origin_col, ship_type.length, orientation)
    return cleared.with_cells(
        replace(cleared[coord], state=CellState.PREVIEW)
        for coord in coords
        if cleared[coord].state is CellState.EMPTY
    )
