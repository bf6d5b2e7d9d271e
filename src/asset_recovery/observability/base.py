# src/asset_recovery/observability/base.py

import logging
from typing import Protocol, runtime_checkable

Labels = dict[str, str]


@runtime_checkable
class MetricsHook(Protocol):
    """Where recovery and ingestion metrics go.

    Injected into `RecoveryPipeline` and `AssetExtractor` by keyword.
    Implementations must not raise: a failing hook would turn a parse that
    never raises into one that does.
    """

    def record_latency(
        self, name: str, value_ms: float, labels: Labels | None = None
    ) -> None: ...

    def increment(
        self, name: str, value: int = 1, labels: Labels | None = None
    ) -> None: ...

    def record_gauge(
        self, name: str, value: float, labels: Labels | None = None
    ) -> None: ...


class NoOpMetricsHook:
    """Default hook. Discards everything."""

    def record_latency(self, name, value_ms, labels=None) -> None:
        return None

    def increment(self, name, value=1, labels=None) -> None:
        return None

    def record_gauge(self, name, value, labels=None) -> None:
        return None


class LoggingMetricsHook:
    """Writes every metric as one log line, for deployments without a metrics backend.

    Example:
        >>> pipeline = RecoveryPipeline(shape, metrics_hook=LoggingMetricsHook())
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        level: int = logging.DEBUG,
    ) -> None:
        self.logger = logger or logging.getLogger("asset_recovery.metrics")
        self.level = level

    def record_latency(
        self, name: str, value_ms: float, labels: Labels | None = None
    ) -> None:
        self._emit("latency", name, f"{value_ms:.1f}ms", labels)

    def increment(
        self, name: str, value: int = 1, labels: Labels | None = None
    ) -> None:
        self._emit("counter", name, f"+{value}", labels)

    def record_gauge(
        self, name: str, value: float, labels: Labels | None = None
    ) -> None:
        self._emit("gauge", name, value, labels)

    def _emit(self, kind: str, name: str, value: object, labels: Labels | None) -> None:
        rendered = ",".join(f"{k}={v}" for k, v in sorted((labels or {}).items()))
        self.logger.log(self.level, "%s %s %s [%s]", kind, name, value, rendered)
