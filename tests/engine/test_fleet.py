"""Tests for fleet placement and the win detector."""

import random

import pytest
from naval_standoff.engine.errors import InvalidPlacement
from naval_standoff.engine.fleet import (
    FleetBuilder,
    PlacementRequest,
    ShipIdGenerator,
    fleet_is_complete,
    is_fleet_destroyed,
    place_all_computer_ships,
    place_ship_on_grid,
)
from naval_standoff.engine.grid import CellState, initialize_grid
from naval_standoff.engine.ship import FLEET_CATALOG, Coordinate, Orientation, Ship, ShipType


def test_place_ship_on_grid_marks_only_ship_cells() -> None:
    grid = initialize_grid(10)
    ship = Ship(
        "user-Cruiser-0",
        ShipType.CRUISER,
        Orientation.VERTICAL,
        (Coordinate(4, 7), Coordinate(5, 7), Coordinate(6, 7)),
    )
    placed = place_ship_on_grid(grid, ship)
    for cell in placed:
        if cell.coordinate in ship.positions:
            assert cell.state is CellState.SHIP
            assert cell.ship_id == ship.ship_id
        else:
            assert cell == grid[cell.coordinate]


def test_id_generator_is_unique_per_session() -> None:
    generate = ShipIdGenerator("user")
    ids = [generate(ship_type) for ship_type in FLEET_CATALOG]
    assert ids[0] == "user-Carrier-0"
    assert ids[-1] == "user-Destroyer-4"
    assert len(set(ids)) == len(ids)
    assert ShipIdGenerator("user")(ShipType.CARRIER) == "user-Carrier-0"


def test_builder_places_ships_in_catalog_order() -> None:
    builder = FleetBuilder()
    assert builder.next_ship_type is ShipType.CARRIER
    ship = builder.place(PlacementRequest(0, 0, orientation=Orientation.HORIZONTAL))
    assert ship.ship_type is ShipType.CARRIER
    assert ship.hits == ()
    assert not ship.sunk
    assert builder.fleet == (ship,)
    assert builder.next_ship_type is ShipType.BATTLESHIP
    for coord in ship.positions:
        assert builder.grid[coord].state is CellState.SHIP
        assert builder.grid[coord].ship_id == ship.ship_id


def test_builder_accepts_named_ship_out_of_order() -> None:
    builder = FleetBuilder()
    builder.place(PlacementRequest(5, 5, "Destroyer", Orientation.VERTICAL))
    assert builder.remaining == list(FLEET_CATALOG[:-1])
    assert builder.next_ship_type is ShipType.CARRIER


def test_builder_rejects_invalid_placement_without_mutation() -> None:
    builder = FleetBuilder()
    builder.place(PlacementRequest(0, 0, ShipType.CRUISER, Orientation.HORIZONTAL))
    grid_before, fleet_before = builder.grid, builder.fleet

    with pytest.raises(InvalidPlacement):
        builder.place(PlacementRequest(0, 1, ShipType.DESTROYER, Orientation.VERTICAL))
    with pytest.raises(InvalidPlacement):
        builder.place(PlacementRequest(9, 9, ShipType.DESTROYER, Orientation.HORIZONTAL))
    with pytest.raises(InvalidPlacement):
        builder.place(PlacementRequest(5, 5, ShipType.CRUISER, Orientation.HORIZONTAL))
    with pytest.raises(InvalidPlacement):
        builder.place(PlacementRequest(5, 5, "Frigate", Orientation.HORIZONTAL))

    assert builder.grid is grid_before
    assert builder.fleet is fleet_before


def test_invalid_placement_is_a_value_error() -> None:
    builder = FleetBuilder()
    with pytest.raises(ValueError):
        builder.place(PlacementRequest(0, 8, ShipType.CARRIER, Orientation.HORIZONTAL))


def test_builder_allows_edge_adjacent_ships() -> None:
    builder = FleetBuilder()
    builder.place(PlacementRequest(0, 0, ShipType.CARRIER, Orientation.HORIZONTAL))
    builder.place(PlacementRequest(1, 0, ShipType.BATTLESHIP, Orientation.HORIZONTAL))
    assert len(builder.fleet) == 2


def test_builder_rejects_extra_ship_once_complete() -> None:
    builder = FleetBuilder()
    builder.place_randomly(random.Random(3))
    assert builder.is_complete
    assert builder.next_ship_type is None
    with pytest.raises(InvalidPlacement):
        builder.place(PlacementRequest(0, 0))


def test_builder_preview_uses_next_ship() -> None:
    builder = FleetBuilder()
    preview = builder.preview(0, 0, Orientation.HORIZONTAL)
    assert len(preview.cells_in_state(CellState.PREVIEW)) == ShipType.CARRIER.length
    assert builder.grid.cells_in_state(CellState.PREVIEW) == []


def test_builder_reset_clears_fleet() -> None:
    builder = FleetBuilder()
    builder.place(PlacementRequest(0, 0))
    builder.reset()
    assert builder.fleet == ()
    assert builder.grid.cells_in_state(CellState.SHIP) == []


@pytest.mark.parametrize("seed", range(25))
def test_random_placement_produces_full_fleet_without_overlap(seed: int) -> None:
    grid, fleet = place_all_computer_ships(random.Random(seed))
    assert len(fleet) == 5
    assert fleet_is_complete(fleet)
    coords = [coord for ship in fleet for coord in ship.positions]
    assert len(coords) == len(set(coords)) == 17
    assert all(grid.in_bounds(coord.row, coord.col) for coord in coords)
    assert len(grid.cells_in_state(CellState.SHIP)) == 17
    assert len({ship.ship_id for ship in fleet}) == 5


def test_random_placement_rejects_grid_too_small_for_fleet() -> None:
    with pytest.raises(InvalidPlacement):
        place_all_computer_ships(random.Random(0), size=4)
    with pytest.raises(InvalidPlacement):
        FleetBuilder(size=4)


def test_is_fleet_destroyed() -> None:
    _, fleet = place_all_computer_ships(random.Random(1))
    assert not is_fleet_destroyed(fleet)

    sunk = []
    for ship in fleet:
        for coord in ship.positions:
            ship = ship.with_hit(coord)
        sunk.append(ship)
    assert is_fleet_destroyed(tuple(sunk))

    last = sunk[-1]
    almost = tuple(sunk[:-1]) + (
        Ship(last.ship_id, last.ship_type, last.orientation, last.positions, last.hits[:-1]),
    )
    assert not is_fleet_destroyed(almost)
