# src/asset_recovery/recovery/records.py

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .config import RecordShape
from .decoding import PairsDict, decode, plain
from .duplicates import resolve_duplicate_keys
from .merges import MergeStatus, detect_merge
from .models import EventKind, ObjectSpan, RecoveredRecord, RecoveryEvent
from .normalizer import without_trailing_commas
from .splitter import split_merged

logger = logging.getLogger(__name__)

SpanMapper = Callable[[ObjectSpan], ObjectSpan]


def _identity(span: ObjectSpan) -> ObjectSpan:
    return span


@dataclass
class SpanRecovery:
    """Records and events produced from one object span."""

    records: list[RecoveredRecord] = field(default_factory=list)
    events: list[RecoveryEvent] = field(default_factory=list)
    unrecoverable: bool = False


def unrecoverable_event(span: ObjectSpan, detail: str) -> RecoveryEvent:
    logger.warning("Unrecoverable span [%d, %d): %s", span.start, span.end, detail)
    return RecoveryEvent(kind=EventKind.UNRECOVERABLE_SPAN, span=span, detail=detail)


def reclosed_event(span: ObjectSpan, position: int) -> RecoveryEvent:
    detail = f"record {position}: closed before the next record's opening brace"
    logger.warning("Span [%d, %d): %s", span.start, span.end, detail)
    return RecoveryEvent(kind=EventKind.MERGE_SPLIT, span=span, detail=detail)


def accept_record(
    fields: dict[str, Any],
    span: ObjectSpan | None,
    shape: RecordShape,
    *,
    position: int,
) -> RecoveredRecord | RecoveryEvent:
    """Turn decoded fields into a record, or a malformed-record event."""
    missing = shape.missing_fields(fields)
    if missing:
        logger.warning(
            "Dropped record %d: missing %s", position, ", ".join(missing)
        )
        return RecoveryEvent(
            kind=EventKind.MALFORMED_RECORD,
            span=span,
            detail=f"record {position}: missing required field(s) {', '.join(missing)}",
        )

    unknown = shape.unknown_fields(fields)
    if unknown:
        logger.debug("Record %d carries unknown field(s): %s", position, unknown)
    return RecoveredRecord(fields=fields, span=span)


def recover_span(
    text: str,
    span: ObjectSpan,
    shape: RecordShape,
    *,
    position: int,
    to_raw: SpanMapper = _identity,
) -> SpanRecovery:
    """Detect, split or resolve one located object into clean records.

    Args:
        text: Text the span is relative to.
        span: Located object.
        shape: Record shape (discriminating key, required fields).
        position: Index of the span among its siblings, for event details.
        to_raw: Maps spans of `text` onto raw-response offsets.
    """
    result = SpanRecovery()
    raw_span = to_raw(span)

    if not span.complete:
        result.events.append(
            unrecoverable_event(raw_span, f"record {position}: object is not terminated")
        )
        result.unrecoverable = True
        return result

    detection = detect_merge(text, span, shape.discriminating_key)

    if detection.status is MergeStatus.MERGED:
        outcome = split_merged(text, detection)
        if outcome.ok:
            count = detection.record_count
            detail = f"record {position}: split {count} fused records"
            if count >= 3:
                detail += " (best effort, three or more records were fused)"
            logger.warning("Span [%d, %d): %s", raw_span.start, raw_span.end, detail)
            result.events.append(
                RecoveryEvent(kind=EventKind.MERGE_SPLIT, span=raw_span, detail=detail)
            )
            for part in outcome.parts:
                _append(result, part.fields, to_raw(part.span), shape, position)
            return result

        logger.warning(
            "Split of span [%d, %d) abandoned: %s",
            raw_span.start,
            raw_span.end,
            outcome.failure,
        )
        result.events.append(
            RecoveryEvent(
                kind=EventKind.MERGE_SPLIT_FALLBACK,
                span=raw_span,
                detail=(
                    f"record {position}: {detection.record_count} fused records could "
                    f"not be split ({outcome.failure}); keeping first occurrence of each key"
                ),
            )
        )
        _resolve(result, text, span, raw_span, shape, position)
        return result

    try:
        value = decode(without_trailing_commas(span.slice(text)))
    except json.JSONDecodeError as exc:
        result.events.append(
            unrecoverable_event(raw_span, f"record {position}: {exc.msg} at {exc.pos}")
        )
        result.unrecoverable = True
        return result

    if not isinstance(value, PairsDict):
        result.events.append(
            unrecoverable_event(raw_span, f"record {position}: not an object")
        )
        result.unrecoverable = True
        return result

    if value.dropped:
        _resolve(result, text, span, raw_span, shape, position)
    else:
        _append(result, plain(value), raw_span, shape, position)
    return result


def _resolve(
    result: SpanRecovery,
    text: str,
    span: ObjectSpan,
    raw_span: ObjectSpan,
    shape: RecordShape,
    position: int,
) -> None:
    resolution = resolve_duplicate_keys(
        text,
        span,
        position=position,
        discriminating_key=shape.discriminating_key,
        event_span=raw_span,
    )
    if resolution.fields is None:
        result.events.append(
            unrecoverable_event(raw_span, f"record {position}: object does not decode")
        )
        result.unrecoverable = True
        return
    result.events.extend(resolution.events)
    _append(result, resolution.fields, raw_span, shape, position)


def _append(
    result: SpanRecovery,
    fields: dict[str, Any],
    raw_span: ObjectSpan,
    shape: RecordShape,
    position: int,
) -> None:
    outcome = accept_record(dict(fields), raw_span, shape, position=position)
    if isinstance(outcome, RecoveredRecord):
        result.records.append(outcome)
    else:
        result.events.append(outcome)
