"""Command-line driver for playing Naval Standoff against the computer."""

from __future__ import annotations

import argparse
import string
from typing import Sequence

from naval_standoff.ai import create_strategy
from naval_standoff.config import GameSettings
from naval_standoff.engine.errors import InvalidPlacement
from naval_standoff.engine.fleet import PlacementRequest
from naval_standoff.engine.game import GamePhase, GameSession, Player
from naval_standoff.engine.grid import CellState, Grid
from naval_standoff.engine.ship import Coordinate, Orientation, ShipType
from naval_standoff.engine.shots import ShotKind, ShotOutcome
from naval_standoff.telemetry import configure_console_logging, init_telemetry, shutdown_tracing

ROW_LABELS = string.ascii_uppercase

_SYMBOLS = {
    CellState.EMPTY: ".",
    CellState.PREVIEW: ".",
    CellState.SHIP: "S",
    CellState.HIT: "X",
    CellState.MISS: "o",
    CellState.SUNK: "#",
}


def coordinate_from_input(text: str, size: int) -> Coordinate:
    """Parse ``A5`` (row letter, 1-based column) or ``"3 7"`` (0-based row and column)."""
    cleaned = text.strip().upper()
    if not cleaned:
        raise ValueError("Empty coordinate.")
    if cleaned[0].isalpha():
        row = ROW_LABELS.find(cleaned[0])
        if not 0 <= row < size:
            raise ValueError(f"Row must be between A and {ROW_LABELS[size - 1]}.")
        try:
            col = int(cleaned[1:]) - 1
        except ValueError as exc:
            raise ValueError(f"Column must be a number between 1 and {size}.") from exc
    else:
        parts = cleaned.split()
        if len(parts) != 2:
            raise ValueError("Use formats like A5 or '3 7'.")
        try:
            row, col = map(int, parts)
        except ValueError as exc:
            raise ValueError("Use formats like A5 or '3 7'.") from exc
    if row not in range(size) or col not in range(size):
        raise ValueError(f"Coordinates must be within the {size}x{size} board.")
    return Coordinate(row, col)


def label(coord: Coordinate) -> str:
    return f"{ROW_LABELS[coord.row]}{coord.col + 1}"


def format_grid(grid: Grid, show_ships: bool) -> str:
    header = "    " + " ".join(f"{col + 1:>2}" for col in range(grid.size))
    rows = [header]
    for row in range(grid.size):
        symbols = []
        for col in range(grid.size):
            state = grid.cell(row, col).state
            if state is CellState.SHIP and not show_ships:
                state = CellState.EMPTY
            symbols.append(f"{_SYMBOLS[state]:>2}")
        rows.append(f"{ROW_LABELS[row]} |" + " ".join(symbols))
    return "\n".join(rows)


def describe_shot(player: Player, outcome: ShotOutcome) -> str:
    target = label(outcome.coordinate)
    if outcome.kind is ShotKind.SUNK and outcome.ship_name is not None:
        result = f"sank the {outcome.ship_name.value}!"
    elif outcome.kind is ShotKind.HIT and outcome.ship_name is not None:
        result = f"hit on the {outcome.ship_name.value}"
    else:
        result = "miss"
    return f"{player.value} fired at {target}: {result}"


def _prompt_orientation(ship_type: ShipType) -> Orientation:
    while True:
        raw = (
            input(f"Place your {ship_type.value} (length {ship_type.length}). Orientation [H/V]: ")
            .strip()
            .upper()
        )
        if raw in {"H", "HOR", "HORIZONTAL"}:
            return Orientation.HORIZONTAL
        if raw in {"V", "VER", "VERTICAL"}:
            return Orientation.VERTICAL
        print("Please enter H for horizontal or V for vertical.")


def _manual_ship_placement(session: GameSession) -> None:
    while not session.placement.is_complete:
        ship_type = session.placement.next_ship_type
        print("\nCurrent layout:")
        print(format_grid(session.placement.grid, show_ships=True))
        orientation = _prompt_orientation(ship_type)
        start_raw = input("Enter starting coordinate (e.g., A1): ")
        try:
            start = coordinate_from_input(start_raw, session.board_size)
            session.place_ship(PlacementRequest(start.row, start.col, ship_type, orientation))
        except InvalidPlacement as exc:
            print(f"Invalid placement: {exc}")
        except ValueError as exc:
            print(f"Invalid coordinate: {exc}")


def _prompt_yes_no(question: str) -> bool:
    while True:
        raw = input(f"{question} [Y/n]: ").strip().lower()
        if raw in {"", "y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please answer with 'y' or 'n'.")


def _prompt_for_target(session: GameSession) -> Coordinate:
    valid = set(session.valid_moves(Player.USER))
    while True:
        raw = input("Enter target coordinate (e.g., A5) or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            coord = coordinate_from_input(raw, session.board_size)
        except ValueError as exc:
            print(f"Invalid input: {exc}")
            continue
        if coord not in valid:
            print("That cell has already been targeted. Choose another.")
            continue
        return coord


def play_game(settings: GameSettings, auto_place: bool = False) -> None:
    print("Welcome to Naval Standoff!\n")
    session = GameSession(
        board_size=settings.board_size,
        rng_seed=settings.rng_seed,
        strategy=create_strategy(settings),
    )

    if auto_place or not _prompt_yes_no("Would you like to place your ships manually?"):
        session.auto_place_user()
        print("\nYour ships have been positioned automatically.")
    else:
        _manual_ship_placement(session)
    session.start()

    while session.phase is GamePhase.PLAYING:
        if session.current_player is Player.USER:
            print("\nYour Waters:")
            print(format_grid(session.sides[Player.USER].grid, show_ships=True))
            print("\nEnemy Waters:")
            print(format_grid(session.sides[Player.COMPUTER].grid, show_ships=False))
            coord = _prompt_for_target(session)
            outcome = session.fire(coord.row, coord.col)
            print(describe_shot(Player.USER, outcome))
        else:
            decision, outcome = session.computer_turn()
            print(describe_shot(Player.COMPUTER, outcome))
            print(f"  ({decision.rationale})")

    if session.winner is Player.USER:
        print("\nCongratulations! You've sunk all enemy ships!")
    else:
        print("\nGame Over! The opponent has sunk all your ships.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play Naval Standoff via the CLI.")
    parser.add_argument("--seed", type=int, default=None, help="Optional RNG seed for reproducibility.")
    parser.add_argument("--board-size", type=int, default=None, help="Grid side length (default 10).")
    parser.add_argument(
        "--strategy",
        choices=["hunt_target", "random", "remote"],
        default=None,
        help="Opponent targeting strategy.",
    )
    parser.add_argument("--endpoint", default=None, help="Remote strategy service URL.")
    parser.add_argument("--auto-place", action="store_true", help="Place your fleet at random.")
    parser.add_argument("--log-level", default="WARNING", help="Console log level.")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_console_logging(args.log_level.upper())
    init_telemetry()
    settings = GameSettings.from_env(
        board_size=args.board_size,
        strategy=args.strategy,
        strategy_endpoint=args.endpoint,
        rng_seed=args.seed,
    )
    try:
        play_game(settings, auto_place=args.auto_place)
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    main()
