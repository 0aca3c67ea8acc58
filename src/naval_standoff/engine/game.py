"""Turn coordinator for a user-versus-computer match."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from enum import Enum

from naval_standoff.ai.targeting import (
    HuntTargetStrategy,
    RandomTargetingStrategy,
    TargetDecision,
    TargetingMode,
    TargetingRequest,
    TargetingStrategy,
    validate_target,
)
from naval_standoff.telemetry import get_meter, get_tracer

from .errors import AlreadyFiredTarget, OutOfBoundsTarget, StrategyServiceFailure
from .fleet import (
    Fleet,
    FleetBuilder,
    PlacementRequest,
    ShipIdGenerator,
    is_fleet_destroyed,
    place_all_computer_ships,
)
from .grid import Grid, initialize_grid
from .ship import BOARD_SIZE, Coordinate, Orientation, Ship, ShipType
from .shots import ShotOutcome, ensure_fireable, process_shot

logger = logging.getLogger(__name__)
tracer = get_tracer("naval_standoff.engine.game")
meter = get_meter("naval_standoff.engine.game")

MOVE_COUNTER = meter.create_counter(
    "naval_standoff_moves",
    unit="1",
    description="Number of moves made in a GameSession",
)


class GamePhase(Enum):
    """High-level lifecycle of a match."""

    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class Player(Enum):
    """The two sides."""

    USER = "user"
    COMPUTER = "computer"

    def opponent(self) -> Player:
        """Return the opposing player."""
        return Player.COMPUTER if self is Player.USER else Player.USER


@dataclass(frozen=True)
class Side:
    """One side's grid and fleet."""

    grid: Grid
    fleet: Fleet


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of the current game."""

    phase: GamePhase
    current_player: Player
    winner: Player | None
    sides: dict[Player, Side]
    last_outcome: ShotOutcome | None
    last_rationale: str | None


class GameSession:
    """Coordinates setup and alternating turns between the user and the computer."""

    def __init__(
        self,
        board_size: int = BOARD_SIZE,
        rng_seed: int | None = None,
        strategy: TargetingStrategy | None = None,
        fallback: TargetingStrategy | None = None,
    ) -> None:
        self.board_size = board_size
        self._rng = random.Random(rng_seed)
        self.strategy: TargetingStrategy = strategy or HuntTargetStrategy(self._rng)
        self.fallback: TargetingStrategy = fallback or RandomTargetingStrategy(self._rng)
        self.reset()

    def reset(self) -> None:
        """Discard both fleets and return to setup."""
        self._id_generators = {
            Player.USER: ShipIdGenerator(Player.USER.value),
            Player.COMPUTER: ShipIdGenerator(Player.COMPUTER.value),
        }
        self.placement = FleetBuilder(
            owner=Player.USER.value,
            size=self.board_size,
            id_generator=self._id_generators[Player.USER],
        )
        self.sides: dict[Player, Side] = {
            Player.USER: Side(initialize_grid(self.board_size), ()),
            Player.COMPUTER: Side(initialize_grid(self.board_size), ()),
        }
        self.phase = GamePhase.SETUP
        self.current_player = Player.USER
        self.winner: Player | None = None
        self.last_outcome: ShotOutcome | None = None
        self.last_rationale: str | None = None

    # Setup

    def place_ship(self, request: PlacementRequest) -> Ship:
        """Place one of the user's ships; raises ``InvalidPlacement`` on rejection."""
        self._require_phase(GamePhase.SETUP)
        ship = self.placement.place(request)
        self.sides[Player.USER] = Side(self.placement.grid, self.placement.fleet)
        return ship

    def preview(
        self, row: int, col: int, orientation: Orientation, ship_type: ShipType | None = None
    ) -> Grid:
        """User grid with the would-be placement of ``ship_type`` marked."""
        return self.placement.preview(row, col, orientation, ship_type)

    def auto_place_user(self) -> None:
        """Place the user's remaining ships at random."""
        self._require_phase(GamePhase.SETUP)
        self.placement.place_randomly(self._rng)
        self.sides[Player.USER] = Side(self.placement.grid, self.placement.fleet)

    def start(self) -> None:
        """Deploy the computer fleet and hand the first move to the user."""
        with tracer.start_as_current_span("game.start"):
            self._require_phase(GamePhase.SETUP)
            if not self.placement.is_complete:
                remaining = ", ".join(ship_type.value for ship_type in self.placement.remaining)
                logger.error("game_start_rejected", extra={"remaining": remaining})
                raise RuntimeError(f"Place all ships before starting (remaining: {remaining}).")
            grid, fleet = place_all_computer_ships(
                self._rng,
                size=self.board_size,
                id_generator=self._id_generators[Player.COMPUTER],
                owner=Player.COMPUTER.value,
            )
            self.sides[Player.COMPUTER] = Side(grid, fleet)
            self.phase = GamePhase.PLAYING
            self.current_player = Player.USER
            logger.info("game_started", extra={"board_size": self.board_size})

    def setup_random(self) -> None:
        """Randomly place the user fleet and start the game."""
        self.auto_place_user()
        self.start()

    # Play

    def fire(self, row: int, col: int) -> ShotOutcome:
        """Resolve the user's shot at the computer's grid."""
        return self._apply_shot(Player.USER, row, col)

    def computer_turn(self) -> tuple[TargetDecision, ShotOutcome]:
        """Let the computer pick a target on the user grid and fire."""
        with tracer.start_as_current_span("game.computer_turn") as span:
            self._require_turn(Player.COMPUTER)
            request = TargetingRequest.from_grid(self.sides[Player.USER].grid)
            decision = self._select_target(request)
            span.set_attribute("targeting.mode", decision.mode.value)
            self.last_rationale = decision.rationale
            outcome = self._apply_shot(Player.COMPUTER, decision.row, decision.column)
            return decision, outcome

    def _select_target(self, request: TargetingRequest) -> TargetDecision:
        """Ask the strategy, falling back locally when its answer breaks the target contract."""
        try:
            decision = self.strategy.choose_target(request)
            validate_target(request, decision.row, decision.column)
            return decision
        except (StrategyServiceFailure, OutOfBoundsTarget, AlreadyFiredTarget) as exc:
            logger.warning(
                "strategy_result_rejected",
                extra={"strategy": self.strategy.name, "error": str(exc)},
            )
        decision = self.fallback.choose_target(request)
        return replace(
            decision,
            rationale=f"Fallback after rejected target. {decision.rationale}",
            mode=TargetingMode.FALLBACK,
        )

    def _apply_shot(self, player: Player, row: int, col: int) -> ShotOutcome:
        with tracer.start_as_current_span("game.make_move") as span:
            span.set_attribute("player", player.value)
            span.set_attribute("row", row)
            span.set_attribute("col", col)
            self._require_turn(player)

            defender = player.opponent()
            side = self.sides[defender]
            ensure_fireable(side.grid, row, col)
            resolution = process_shot(side.grid, side.fleet, row, col)
            self.sides[defender] = Side(resolution.grid, resolution.fleet)
            self.last_outcome = resolution.outcome

            if is_fleet_destroyed(resolution.fleet):
                self.winner = player
                self.phase = GamePhase.GAME_OVER
                span.set_attribute("game.winner", player.value)
                logger.info("game_finished", extra={"winner": player.value})
            else:
                self.current_player = defender
                span.set_attribute("next_player", defender.value)

            MOVE_COUNTER.add(
                1, attributes={"result": resolution.outcome.kind.value, "player": player.value}
            )
            return resolution.outcome

    def _require_phase(self, phase: GamePhase) -> None:
        if self.phase is not phase:
            logger.error(
                "action_rejected_wrong_phase",
                extra={"phase": self.phase.value, "expected": phase.value},
            )
            raise RuntimeError(f"Game is in phase {self.phase.value}, expected {phase.value}.")

    def _require_turn(self, player: Player) -> None:
        self._require_phase(GamePhase.PLAYING)
        if player is not self.current_player:
            logger.error(
                "move_rejected_wrong_player",
                extra={"player": player.value, "current": self.current_player.value},
            )
            raise RuntimeError("It is not this player's turn.")

    # Queries

    def get_state(self) -> GameState:
        """Return an immutable view of the current match."""
        return GameState(
            phase=self.phase,
            current_player=self.current_player,
            winner=self.winner,
            sides=dict(self.sides),
            last_outcome=self.last_outcome,
            last_rationale=self.last_rationale,
        )

    def valid_moves(self, player: Player) -> list[Coordinate]:
        """Return all coordinates the player can legally target."""
        if self.phase is not GamePhase.PLAYING:
            return []
        return self.sides[player.opponent()].grid.unfired_coordinates()
