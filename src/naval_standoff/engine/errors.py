"""Exceptions raised by the rules engine and targeting strategies."""

from __future__ import annotations


class NavalStandoffError(Exception):
    """Base class for every rules-engine error."""


class InvalidPlacement(NavalStandoffError, ValueError):
    """A ship placement falls outside the grid or overlaps another ship."""


class OutOfBoundsTarget(NavalStandoffError, ValueError):
    """A shot or strategy result lies outside the grid."""

    def __init__(self, row: int, col: int, size: int) -> None:
        super().__init__(f"Target ({row},{col}) is outside the {size}x{size} grid.")
        self.row = row
        self.col = col
        self.size = size


class AlreadyFiredTarget(NavalStandoffError, ValueError):
    """A shot or strategy result points at a cell that was already resolved."""

    def __init__(self, row: int, col: int) -> None:
        super().__init__(f"Cell ({row},{col}) has already been targeted.")
        self.row = row
        self.col = col


class NoValidTarget(NavalStandoffError, RuntimeError):
    """Every cell has been fired upon; the game should already be over."""


class StrategyServiceFailure(NavalStandoffError, RuntimeError):
    """The remote targeting service failed or broke its contract."""
