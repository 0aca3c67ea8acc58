"""Targeting backed by a remote reasoning service, with a local fallback."""

from __future__ import annotations

import logging
import random
import re
import time
from dataclasses import replace

import httpx
from pydantic import BaseModel, ConfigDict

from naval_standoff.engine.errors import (
    AlreadyFiredTarget,
    OutOfBoundsTarget,
    StrategyServiceFailure,
)
from naval_standoff.telemetry import get_tracer, record_game_metric, record_latency

from .targeting import (
    RandomTargetingStrategy,
    TargetDecision,
    TargetingMode,
    TargetingRequest,
    TargetingStrategy,
    validate_target,
)

logger = logging.getLogger(__name__)
tracer = get_tracer("naval_standoff.ai.remote")

DEFAULT_TIMEOUT_S = 10.0
_COORDINATE_PATTERN = re.compile(r"\(\s*(-?\d+)\s*,\s*(-?\d+)\s*\)")


class TargetingResponse(BaseModel):
    """Body the reasoning service must return."""

    model_config = ConfigDict(extra="ignore", strict=True)

    row: int
    column: int
    reasoning: str


class RemoteTargetingStrategy(TargetingStrategy):
    """Ask a remote service for the next shot; fall back locally on any failure.

    The service receives the fog-of-war request as JSON and answers with
    ``{"row": ..., "column": ..., "reasoning": ...}``. Any transport error,
    unparseable endpoint, malformed body or out-of-contract target is reported
    as :class:`StrategyServiceFailure` and answered by ``fallback`` instead.
    The reasoning may only name the target and cells already fired at.
    """

    name = "remote"

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        fallback: TargetingStrategy | None = None,
        client: httpx.Client | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self.fallback = fallback or RandomTargetingStrategy(rng)
        self._client = client

    def choose_target(self, request: TargetingRequest) -> TargetDecision:
        with tracer.start_as_current_span("targeting.remote") as span:
            span.set_attribute("strategy.endpoint", self.endpoint)
            start = time.perf_counter()
            try:
                decision = self.request_target(request)
            except StrategyServiceFailure as exc:
                span.record_exception(exc)
                span.set_attribute("strategy.fallback", True)
                record_game_metric("naval_standoff_strategy_failures_total", 1, {"strategy": self.name})
                logger.warning(
                    "strategy_fallback",
                    extra={"endpoint": self.endpoint, "error": str(exc), "fallback": self.fallback.name},
                )
                fallback = self.fallback.choose_target(request)
                return replace(
                    fallback,
                    rationale=f"Fallback after remote failure. {fallback.rationale}",
                    mode=TargetingMode.FALLBACK,
                )
            finally:
                record_latency(
                    "naval_standoff_strategy_latency",
                    time.perf_counter() - start,
                    {"strategy": self.name},
                )

            span.set_attribute("strategy.fallback", False)
            span.set_attribute("targeting.mode", decision.mode.value)
            record_game_metric(
                "naval_standoff_strategy_decisions_total",
                1,
                {"strategy": self.name, "mode": decision.mode.value},
            )
            return decision

    def request_target(self, request: TargetingRequest) -> TargetDecision:
        """Call the service once and return its validated answer."""
        try:
            response = self._post(request.to_wire())
            response.raise_for_status()
            payload = TargetingResponse.model_validate(response.json())
        except httpx.TimeoutException as exc:
            raise StrategyServiceFailure(f"Strategy service timed out after {self.timeout}s.") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise StrategyServiceFailure(f"Strategy service request failed: {exc}") from exc
        except ValueError as exc:
            # JSON decoding and schema validation errors both land here.
            raise StrategyServiceFailure(f"Strategy service returned a malformed body: {exc}") from exc

        try:
            validate_target(request, payload.row, payload.column)
        except (OutOfBoundsTarget, AlreadyFiredTarget) as exc:
            raise StrategyServiceFailure(f"Strategy service broke the target contract: {exc}") from exc

        rationale = self._checked_rationale(request, payload)
        logger.info(
            "strategy_remote_target",
            extra={"row": payload.row, "col": payload.column, "endpoint": self.endpoint},
        )
        return TargetDecision(
            payload.row,
            payload.column,
            rationale,
            TargetingMode.from_rationale(rationale),
        )

    @staticmethod
    def _checked_rationale(request: TargetingRequest, payload: TargetingResponse) -> str:
        """Reject reasoning that names a cell other than the target or a known shot.

        Reasoning that never names the target gets it appended.
        """
        chosen = (payload.row, payload.column)
        known = request.fired()
        mentioned = {
            (int(row), int(col)) for row, col in _COORDINATE_PATTERN.findall(payload.reasoning)
        }
        stray = sorted(mentioned - known - {chosen})
        if stray:
            raise StrategyServiceFailure(
                f"Strategy service reasoning names untargeted cells {stray} instead of {chosen}."
            )
        if chosen not in mentioned:
            return f"{payload.reasoning.rstrip()} Selected ({payload.row},{payload.column})."
        return payload.reasoning

    def _post(self, body: dict) -> httpx.Response:
        if self._client is not None:
            return self._client.post(self.endpoint, json=body, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(self.endpoint, json=body)
