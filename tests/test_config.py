"""Tests for game settings and strategy construction."""

import pytest
from naval_standoff.ai.factory import create_strategy
from naval_standoff.ai.remote import RemoteTargetingStrategy
from naval_standoff.ai.targeting import HuntTargetStrategy, RandomTargetingStrategy
from naval_standoff.config import GameSettings
from pydantic import ValidationError

ENV_NAMES = (
    "NAVAL_STANDOFF_BOARD_SIZE",
    "NAVAL_STANDOFF_STRATEGY",
    "NAVAL_STANDOFF_STRATEGY_ENDPOINT",
    "NAVAL_STANDOFF_STRATEGY_TIMEOUT",
    "NAVAL_STANDOFF_SEED",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = GameSettings()
    assert settings.board_size == 10
    assert settings.strategy == "hunt_target"
    assert settings.strategy_endpoint is None
    assert settings.strategy_timeout_s == 10.0
    assert settings.rng_seed is None


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NAVAL_STANDOFF_BOARD_SIZE", "12")
    monkeypatch.setenv("NAVAL_STANDOFF_STRATEGY", "remote")
    monkeypatch.setenv("NAVAL_STANDOFF_STRATEGY_ENDPOINT", "http://localhost:8080/shot")
    monkeypatch.setenv("NAVAL_STANDOFF_STRATEGY_TIMEOUT", "2.5")
    monkeypatch.setenv("NAVAL_STANDOFF_SEED", "7")

    settings = GameSettings.from_env()
    assert settings.board_size == 12
    assert settings.strategy == "remote"
    assert settings.strategy_endpoint == "http://localhost:8080/shot"
    assert settings.strategy_timeout_s == 2.5
    assert settings.rng_seed == 7


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NAVAL_STANDOFF_STRATEGY", "random")
    settings = GameSettings.from_env(strategy="hunt_target", rng_seed=None)
    assert settings.strategy == "hunt_target"
    assert settings.rng_seed is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"board_size": 4},
        {"board_size": 27},
        {"strategy": "remote"},
        {"strategy": "minimax"},
        {"strategy_timeout_s": 0},
    ],
)
def test_invalid_settings_are_rejected(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        GameSettings(**kwargs)


def test_create_strategy_by_name() -> None:
    assert isinstance(create_strategy(GameSettings()), HuntTargetStrategy)
    assert isinstance(create_strategy(GameSettings(strategy="random")), RandomTargetingStrategy)

    remote = create_strategy(
        GameSettings(strategy="remote", strategy_endpoint="http://strategy.test", strategy_timeout_s=3)
    )
    assert isinstance(remote, RemoteTargetingStrategy)
    assert remote.endpoint == "http://strategy.test"
    assert remote.timeout == 3
    assert isinstance(remote.fallback, RandomTargetingStrategy)


def test_create_strategy_rejects_remote_without_endpoint() -> None:
    unchecked = GameSettings.model_construct(
        board_size=10,
        strategy="remote",
        strategy_endpoint=None,
        strategy_timeout_s=10.0,
        rng_seed=None,
    )
    with pytest.raises(ValueError):
        create_strategy(unchecked)
