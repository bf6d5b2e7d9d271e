# src/asset_recovery/recovery/pipeline.py

import json
import logging
from dataclasses import dataclass, field
from time import monotonic
from typing import Any

from asset_recovery.observability import names
from asset_recovery.observability.base import MetricsHook, NoOpMetricsHook

from .boundaries import locate_object_spans, locate_records_array
from .config import RecordShape
from .decoding import PairsDict, decode, nested_duplicate_count, plain
from .fallback import extract_records
from .models import (
    EventKind,
    ObjectSpan,
    ParseResult,
    RecoveredRecord,
    RecoveryEvent,
    Strategy,
)
from .normalizer import NormalizedText, normalize
from .records import accept_record, reclosed_event, recover_span
from .splitter import reclose_orphan_objects

logger = logging.getLogger(__name__)


@dataclass
class _TierOutcome:
    records: list[RecoveredRecord] = field(default_factory=list)
    events: list[RecoveryEvent] = field(default_factory=list)
    clean: bool = False
    reason: str = ""


class RecoveryPipeline:
    """Escalating recovery parser for generated record lists.

    Tiers run in order, each at most once:
    Strict -> Normalized -> Split -> FallbackExtracted. The first tier that
    yields at least one record, with unique keys in every record and no
    unrecoverable span, wins. FallbackExtracted always terminates the run.

    Pure given (raw, shape): no state is shared between calls, so one
    pipeline may serve concurrent callers. Data problems never raise.
    """

    def __init__(
        self,
        shape: RecordShape,
        *,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.shape = shape
        self.metrics_hook = metrics_hook

    def parse(self, raw: str) -> ParseResult:
        start = monotonic()
        attempted: list[Strategy] = []

        attempted.append(Strategy.STRICT)
        outcome = self._strict(raw)

        if not outcome.clean:
            logger.debug("Strict tier failed: %s", outcome.reason)
            normalized = normalize(raw)
            attempted.append(Strategy.NORMALIZED)
            outcome = self._normalized(raw, normalized)

            if not outcome.clean:
                logger.debug("Normalized tier failed: %s", outcome.reason)
                attempted.append(Strategy.SPLIT)
                outcome = self._split(normalized)

                if not outcome.clean:
                    logger.debug("Split tier failed: %s", outcome.reason)
                    attempted.append(Strategy.FALLBACK_EXTRACTED)
                    outcome = self._fallback(raw)

        result = ParseResult(
            records=outcome.records,
            events=outcome.events,
            strategy=attempted[-1],
            tiers_attempted=attempted,
        )
        self._report(result, 1000 * (monotonic() - start))
        return result

    def _strict(self, raw: str) -> _TierOutcome:
        try:
            document = decode(raw)
        except json.JSONDecodeError as exc:
            return _TierOutcome(reason=f"{exc.msg} at {exc.pos}")

        spans = locate_object_spans(raw, locate_records_array(raw, self.shape.records_key))
        return self._from_document(document, spans)

    def _normalized(self, raw: str, normalized: NormalizedText) -> _TierOutcome:
        if normalized.text == raw:
            return _TierOutcome(reason="normalization changed nothing")
        try:
            document = decode(normalized.text)
        except json.JSONDecodeError as exc:
            return _TierOutcome(reason=f"{exc.msg} at {exc.pos}")

        spans = locate_object_spans(
            normalized.text,
            locate_records_array(normalized.text, self.shape.records_key),
            synthetic_from=normalized.synthetic_from,
        )
        if any(not span.complete for span in spans):
            return _TierOutcome(reason="a record was closed only by appended characters")
        return self._from_document(
            document, [normalized.to_raw_span(span) for span in spans]
        )

    def _split(self, normalized: NormalizedText) -> _TierOutcome:
        reclosure = reclose_orphan_objects(
            normalized, locate_records_array(normalized.text, self.shape.records_key)
        )
        normalized = reclosure.normalized
        text = normalized.text
        spans = locate_object_spans(
            text,
            locate_records_array(text, self.shape.records_key),
            synthetic_from=normalized.synthetic_from,
        )
        if not spans:
            return _TierOutcome(reason="no object spans located")

        outcome = _TierOutcome()
        unrecoverable = 0
        for position, span in enumerate(spans):
            if span.end - 1 in reclosure.closers:
                outcome.events.append(
                    reclosed_event(normalized.to_raw_span(span), position)
                )
            recovery = recover_span(
                text,
                span,
                self.shape,
                position=position,
                to_raw=normalized.to_raw_span,
            )
            outcome.records.extend(recovery.records)
            outcome.events.extend(recovery.events)
            unrecoverable += recovery.unrecoverable

        if unrecoverable:
            outcome.reason = f"{unrecoverable} unrecoverable span(s)"
        elif not outcome.records:
            outcome.reason = "no records recovered"
        else:
            outcome.clean = True
        return outcome

    def _fallback(self, raw: str) -> _TierOutcome:
        extraction = extract_records(raw, self.shape)
        return _TierOutcome(
            records=extraction.records,
            events=extraction.events,
            clean=True,
        )

    def _from_document(
        self, document: Any, spans: list[ObjectSpan]
    ) -> _TierOutcome:
        items = self._document_items(document)
        if items is None:
            return _TierOutcome(reason="document does not hold a record list")
        if not items:
            return _TierOutcome(reason="record list is empty")

        # Spans exist only for object items
        objects = sum(1 for item in items if isinstance(item, PairsDict))
        aligned = len(spans) == objects
        object_index = 0
        outcome = _TierOutcome()
        for position, item in enumerate(items):
            if not isinstance(item, PairsDict):
                outcome.events.append(
                    RecoveryEvent(
                        kind=EventKind.MALFORMED_RECORD,
                        span=None,
                        detail=f"record {position}: {type(item).__name__} is not an object",
                    )
                )
                continue
            span = spans[object_index] if aligned else None
            object_index += 1
            if item.dropped:
                return _TierOutcome(reason=f"record {position} repeats keys")
            nested = nested_duplicate_count(item)
            if nested:
                logger.warning(
                    "Record %d: %d duplicate key(s) in nested values kept first occurrence",
                    position,
                    nested,
                )
            accepted = accept_record(plain(item), span, self.shape, position=position)
            if isinstance(accepted, RecoveredRecord):
                outcome.records.append(accepted)
            else:
                outcome.events.append(accepted)

        if not outcome.records:
            outcome.reason = "no valid records"
            return outcome
        outcome.clean = True
        return outcome

    def _document_items(self, document: Any) -> list[Any] | None:
        if isinstance(document, list):
            return document
        if isinstance(document, dict):
            key = self.shape.records_key
            if key is not None and isinstance(document.get(key), list):
                return document[key]
            if self.shape.discriminating_key in document:
                return [document]
        return None

    def _report(self, result: ParseResult, elapsed_ms: float) -> None:
        strategy = result.strategy.value
        self.metrics_hook.record_latency(
            names.RECOVERY_PARSE_DURATION, elapsed_ms, labels={"strategy": strategy}
        )
        self.metrics_hook.increment(
            names.RECOVERY_RUNS_TOTAL, labels={"strategy": strategy}
        )
        self.metrics_hook.increment(
            names.RECOVERY_RECORDS_RECOVERED, len(result.records)
        )
        self.metrics_hook.record_gauge(
            names.RECOVERY_TIERS_ATTEMPTED, len(result.tiers_attempted)
        )
        for event in result.events:
            self.metrics_hook.increment(
                names.RECOVERY_EVENTS_TOTAL, labels={"kind": event.kind.value}
            )

        logger.info(
            "Recovered %d record(s) via %s tier, events=%d, latency=%.1fms",
            len(result.records),
            strategy,
            len(result.events),
            elapsed_ms,
        )


def parse_records(
    raw: str,
    shape: RecordShape,
    *,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> ParseResult:
    """Recover records from a generated response. Never raises on bad data.

    Example:
        >>> shape = RecordShape(discriminating_key="asset_name")
        >>> result = parse_records('[{"asset_name": "Stage"}]', shape)
        >>> result.strategy
        <Strategy.STRICT: 'strict'>
    """
    return RecoveryPipeline(shape, metrics_hook=metrics_hook).parse(raw)
