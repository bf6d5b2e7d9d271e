# src/asset_recovery/assets/service.py

import inspect
import logging
from dataclasses import dataclass, field
from time import monotonic
from typing import Any, Protocol

from pydantic import ValidationError

from asset_recovery.observability import names
from asset_recovery.observability.base import MetricsHook, NoOpMetricsHook
from asset_recovery.recovery.config import RecordShape
from asset_recovery.recovery.models import ParseResult, RecoveryEvent
from asset_recovery.recovery.pipeline import RecoveryPipeline

from .keywords import assets_from_brief
from .models import ASSET_SHAPE, AssetRecord

logger = logging.getLogger(__name__)


class AssetSink(Protocol):
    """Persistence collaborator. `save` may be sync or async.

    The sink decides whether a non-empty event trail blocks the save.
    """

    def save(self, records: list[AssetRecord], events: list[RecoveryEvent]) -> Any: ...


@dataclass(frozen=True)
class RejectedRecord:
    position: int
    fields: dict[str, Any]
    error: str


@dataclass(frozen=True)
class IngestionReport:
    parse_result: ParseResult
    saved: list[AssetRecord]
    rejected: list[RejectedRecord] = field(default_factory=list)
    used_brief_fallback: bool = False


class AssetExtractor:
    """Recover asset records from a generated response and hand them to a sink."""

    def __init__(
        self,
        sink: AssetSink,
        shape: RecordShape = ASSET_SHAPE,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.sink = sink
        self.pipeline = RecoveryPipeline(shape, metrics_hook=metrics_hook)
        self.metrics_hook = metrics_hook

    async def ingest(self, raw: str, *, brief: str | None = None) -> IngestionReport:
        """Parse, validate and save.

        Args:
            raw: Unmodified response text from the generation service.
            brief: Project brief. When given and nothing is recovered, assets
                are derived from its keywords instead.

        Returns:
            IngestionReport with the parse result, saved and rejected records.

        Raises:
            Whatever the sink raises. Parsing and validation never raise.
        """
        start = monotonic()
        result = self.pipeline.parse(raw)

        assets, rejected = self._validate(result)
        used_brief_fallback = False
        if not assets and not rejected and brief:
            assets = assets_from_brief(brief)
            used_brief_fallback = True
            logger.warning(
                "No assets recovered; using %d keyword-derived asset(s) from brief",
                len(assets),
            )
            self.metrics_hook.increment(names.ASSET_BRIEF_FALLBACKS_TOTAL)

        if assets:
            if inspect.iscoroutinefunction(self.sink.save):
                await self.sink.save(assets, result.events)
            else:
                self.sink.save(assets, result.events)
        else:
            logger.warning("Nothing to save: %d event(s) recorded", len(result.events))

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.ASSET_INGEST_DURATION, elapsed_ms)
        self.metrics_hook.increment(names.ASSET_RECORDS_SAVED, len(assets))
        self.metrics_hook.increment(names.ASSET_RECORDS_REJECTED, len(rejected))

        logger.info(
            "Ingested assets: saved=%d, rejected=%d, strategy=%s",
            len(assets),
            len(rejected),
            result.strategy.value,
        )
        return IngestionReport(
            parse_result=result,
            saved=assets,
            rejected=rejected,
            used_brief_fallback=used_brief_fallback,
        )

    def _validate(
        self, result: ParseResult
    ) -> tuple[list[AssetRecord], list[RejectedRecord]]:
        assets = []
        rejected = []
        for position, record in enumerate(result.records):
            try:
                assets.append(AssetRecord(**record.to_dict()))
            except ValidationError as exc:
                logger.warning("Rejected record %d: %s", position, exc)
                rejected.append(
                    RejectedRecord(
                        position=position, fields=record.to_dict(), error=str(exc)
                    )
                )
        return assets, rejected
