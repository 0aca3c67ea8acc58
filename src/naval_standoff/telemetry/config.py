"""Telemetry configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field

from .logger import init_logging
from .metrics import init_metrics
from .tracer import init_tracing

ENV_PREFIX = "NAVAL_STANDOFF_"
_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(*names: str) -> bool | None:
    """Return the first boolean found among ``names``, or ``None``."""
    for name in names:
        value = os.getenv(name)
        if value is not None:
            return value.strip().lower() in _TRUTHY
    return None


def _signal_endpoint(base: str | None, signal: str) -> str | None:
    if not base:
        return None
    return f"{base.rstrip('/')}/v1/{signal}"


class TelemetryConfig(BaseModel):
    """Runtime configuration for telemetry exporters."""

    enable_tracing: bool = False
    enable_metrics: bool = False
    enable_logging: bool = False
    log_level: str = "INFO"
    otlp_traces_endpoint: str | None = None
    otlp_metrics_endpoint: str | None = None
    otlp_logs_endpoint: str | None = None
    service_name: str = "naval-standoff"
    service_namespace: str = "game"
    resource_attributes: dict[str, str] = Field(default_factory=dict)
    trace_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    def resource(self) -> dict[str, str]:
        """Resource attributes shared by every signal provider."""
        attributes = {
            "service.name": self.service_name,
            "service.namespace": self.service_namespace,
        }
        attributes.update(self.resource_attributes)
        return attributes

    @classmethod
    def from_env(cls, **overrides: Any) -> "TelemetryConfig":
        """Construct config from env vars (`NAVAL_STANDOFF_*` + `OTEL_*`)."""

        data: Dict[str, Any] = cls().model_dump()
        data.update(overrides)

        switches = {
            "enable_tracing": (f"{ENV_PREFIX}ENABLE_TRACING", "OTEL_TRACES_ENABLED"),
            "enable_metrics": (f"{ENV_PREFIX}ENABLE_METRICS", "OTEL_METRICS_ENABLED"),
            "enable_logging": (f"{ENV_PREFIX}ENABLE_LOGGING", "OTEL_LOGS_ENABLED"),
        }
        for key, env_names in switches.items():
            flag = env_flag(*env_names)
            if flag is not None:
                data[key] = flag

        log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")
        if log_level:
            data["log_level"] = log_level.strip().upper()

        sample_ratio = os.getenv(f"{ENV_PREFIX}TRACE_SAMPLE_RATIO") or os.getenv("OTEL_TRACES_SAMPLER_ARG")
        if sample_ratio:
            data["trace_sample_ratio"] = sample_ratio.strip()

        base_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        for signal in ("traces", "metrics", "logs"):
            key = f"otlp_{signal}_endpoint"
            if data.get(key):
                continue
            data[key] = os.getenv(f"OTEL_EXPORTER_OTLP_{signal.upper()}_ENDPOINT") or _signal_endpoint(
                base_endpoint, signal
            )

        if os.getenv("OTEL_SERVICE_NAME"):
            data["service_name"] = os.environ["OTEL_SERVICE_NAME"]
        if os.getenv("OTEL_SERVICE_NAMESPACE"):
            data["service_namespace"] = os.environ["OTEL_SERVICE_NAMESPACE"]

        resource_env = os.getenv("OTEL_RESOURCE_ATTRIBUTES")
        if resource_env:
            attrs = {**data.get("resource_attributes", {})}
            for part in resource_env.split(","):
                key, sep, value = part.partition("=")
                if sep:
                    attrs[key.strip()] = value.strip()
            data["resource_attributes"] = attrs

        # An endpoint implies the matching exporter.
        for signal, switch in (
            ("traces", "enable_tracing"),
            ("metrics", "enable_metrics"),
            ("logs", "enable_logging"),
        ):
            if data.get(f"otlp_{signal}_endpoint"):
                data[switch] = True

        return cls(**data)


@lru_cache(maxsize=1)
def load_telemetry_config() -> TelemetryConfig:
    """Load and cache telemetry config from the environment."""

    return TelemetryConfig.from_env()


def init_telemetry(config: TelemetryConfig | None = None) -> TelemetryConfig:
    """Initialise telemetry subsystems lazily."""

    resolved = config or load_telemetry_config()

    if resolved.enable_tracing:
        init_tracing(resolved)
    if resolved.enable_metrics:
        init_metrics(resolved)
    if resolved.enable_logging:
        init_logging(resolved)
    return resolved
