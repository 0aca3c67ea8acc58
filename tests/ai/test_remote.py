"""Tests for the remote targeting strategy and its fallback."""

import json
import random

import httpx
import pytest
from naval_standoff.ai import remote as remote_module
from naval_standoff.ai.remote import RemoteTargetingStrategy
from naval_standoff.ai.targeting import TargetingMode, TargetingRequest, validate_target
from naval_standoff.engine.errors import StrategyServiceFailure
from naval_standoff.engine.game import GameSession, Player

ENDPOINT = "http://strategy.test/next-shot"


def _request() -> TargetingRequest:
    return TargetingRequest(
        board_size=10, hit_coordinates=[(4, 4)], miss_coordinates=[(0, 0), (9, 9)]
    )


def _strategy(handler) -> RemoteTargetingStrategy:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RemoteTargetingStrategy(
        ENDPOINT, timeout=2.0, client=client, rng=random.Random(0)
    )


def _reply(payload, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return handler


def test_valid_response_is_used() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={"row": 4, "column": 5, "reasoning": "Targeting Mode: right of (4,4) at (4,5)."},
        )

    decision = _strategy(handler).choose_target(_request())
    assert (decision.row, decision.column) == (4, 5)
    assert decision.mode is TargetingMode.TARGETING
    assert decision.rationale.startswith("Targeting Mode")
    assert seen == [
        {
            "boardSize": 10,
            "maxCoordinate": 9,
            "hitCoordinates": [[4, 4]],
            "missCoordinates": [[0, 0], [9, 9]],
        }
    ]


def test_extra_response_fields_are_ignored() -> None:
    handler = _reply({"row": 1, "column": 1, "reasoning": "Hunting Mode: (1,1).", "confidence": 0.4})
    decision = _strategy(handler).choose_target(_request())
    assert (decision.row, decision.column) == (1, 1)
    assert decision.mode is TargetingMode.HUNTING


def _raise(exc_type):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("boom", request=request)

    return handler


def _malformed(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=b"not json at all")


FAILING_HANDLERS = {
    "out_of_bounds": _reply({"row": 10, "column": 3, "reasoning": "off the edge"}),
    "negative": _reply({"row": -1, "column": 3, "reasoning": "off the edge"}),
    "already_fired": _reply({"row": 0, "column": 0, "reasoning": "again"}),
    "already_hit": _reply({"row": 4, "column": 4, "reasoning": "again"}),
    "malformed_json": _malformed,
    "missing_field": _reply({"row": 3, "reasoning": "no column"}),
    "wrong_type": _reply({"row": "3", "column": 3, "reasoning": "string row"}),
    "server_error": _reply({"detail": "down"}, status_code=500),
    "timeout": _raise(httpx.ReadTimeout),
    "connect_error": _raise(httpx.ConnectError),
    "stray_coordinate": _reply(
        {"row": 2, "column": 2, "reasoning": "Targeting Mode: shooting (7,7) next to (4,4)."}
    ),
}


@pytest.mark.parametrize("case", sorted(FAILING_HANDLERS))
def test_failures_fall_back_to_local_choice(case: str) -> None:
    request = _request()
    decision = _strategy(FAILING_HANDLERS[case]).choose_target(request)
    assert decision.mode is TargetingMode.FALLBACK
    assert decision.rationale.startswith("Fallback after remote failure.")
    validate_target(request, decision.row, decision.column)


@pytest.mark.parametrize("case", sorted(FAILING_HANDLERS))
def test_request_target_reports_service_failure(case: str) -> None:
    with pytest.raises(StrategyServiceFailure):
        _strategy(FAILING_HANDLERS[case]).request_target(_request())


@pytest.mark.parametrize("use_client", [True, False])
def test_unparseable_endpoint_falls_back(use_client: bool) -> None:
    client = httpx.Client(transport=httpx.MockTransport(_reply({}))) if use_client else None
    strategy = RemoteTargetingStrategy(
        "http://[::1", timeout=0.5, client=client, rng=random.Random(0)
    )
    request = TargetingRequest(board_size=10)

    with pytest.raises(StrategyServiceFailure):
        strategy.request_target(request)
    decision = strategy.choose_target(request)
    assert decision.mode is TargetingMode.FALLBACK
    validate_target(request, decision.row, decision.column)


def test_reasoning_without_target_gets_it_appended() -> None:
    handler = _reply({"row": 3, "column": 6, "reasoning": "Hunting Mode: sweeping the middle."})
    decision = _strategy(handler).choose_target(_request())
    assert (decision.row, decision.column) == (3, 6)
    assert decision.rationale == "Hunting Mode: sweeping the middle. Selected (3,6)."
    assert decision.mode is TargetingMode.HUNTING


def test_reasoning_may_name_known_shots() -> None:
    handler = _reply(
        {"row": 5, "column": 4, "reasoning": "Targeting Mode: below the hit at ( 4, 4 ), try (5,4)."}
    )
    decision = _strategy(handler).choose_target(_request())
    assert (decision.row, decision.column) == (5, 4)
    assert decision.mode is TargetingMode.TARGETING


def test_failure_is_a_runtime_error() -> None:
    with pytest.raises(RuntimeError):
        _strategy(FAILING_HANDLERS["server_error"]).request_target(_request())


def test_metrics_record_fallback_and_latency(monkeypatch: pytest.MonkeyPatch) -> None:
    counters: list[str] = []
    latencies: list[tuple[str, float]] = []
    monkeypatch.setattr(
        remote_module, "record_game_metric", lambda name, value, attrs=None: counters.append(name)
    )
    monkeypatch.setattr(
        remote_module,
        "record_latency",
        lambda name, seconds, attrs=None: latencies.append((name, seconds)),
    )

    _strategy(FAILING_HANDLERS["timeout"]).choose_target(_request())
    assert counters == ["naval_standoff_strategy_failures_total"]
    assert [name for name, _ in latencies] == ["naval_standoff_strategy_latency"]
    assert latencies[0][1] >= 0

    counters.clear()
    _strategy(_reply({"row": 2, "column": 2, "reasoning": "Hunting Mode: (2,2)."})).choose_target(
        _request()
    )
    assert counters == ["naval_standoff_strategy_decisions_total"]


def test_game_survives_unparseable_endpoint() -> None:
    session = GameSession(
        rng_seed=6, strategy=RemoteTargetingStrategy("http://[::1", rng=random.Random(6))
    )
    session.setup_random()
    session.fire(0, 0)
    decision, outcome = session.computer_turn()
    assert decision.mode is TargetingMode.FALLBACK
    assert outcome.coordinate == decision.coordinate
    assert session.current_player is Player.USER
