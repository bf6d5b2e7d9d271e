# src/asset_recovery/recovery/duplicates.py

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from .decoding import PairsDict, decode, plain
from .models import EventKind, ObjectSpan, RecoveryEvent
from .normalizer import without_trailing_commas

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    fields: dict[str, Any] | None
    events: list[RecoveryEvent] = field(default_factory=list)


def resolve_duplicate_keys(
    text: str,
    span: ObjectSpan,
    *,
    position: int,
    discriminating_key: str | None = None,
    event_span: ObjectSpan | None = None,
) -> Resolution:
    """Rebuild the object at `span` keeping the first occurrence of every key.

    Lossy: every discarded key produces a `duplicate-key-dropped` event
    naming the key and the record position. Returns `fields=None` when the
    span does not decode to an object at all.

    Args:
        text: Text the span is relative to.
        span: Object to rebuild.
        position: Record position reported in event details.
        discriminating_key: Key whose later occurrences mark a lost record.
        event_span: Span to attach to events (defaults to `span`).
    """
    if event_span is None:
        event_span = span
    try:
        value = decode(without_trailing_commas(span.slice(text)))
    except json.JSONDecodeError as exc:
        logger.debug("Span [%d, %d) does not decode: %s", span.start, span.end, exc)
        return Resolution(fields=None)

    if not isinstance(value, PairsDict):
        return Resolution(fields=None)

    events = []
    for key, discarded in value.dropped:
        logger.warning(
            "Dropped duplicate key %r from record %d (discarded value %.60r)",
            key,
            position,
            discarded,
        )
        events.append(
            RecoveryEvent(
                kind=EventKind.DUPLICATE_KEY_DROPPED,
                span=event_span,
                detail=(
                    f"record {position}: dropped later occurrence of key {key!r} "
                    f"(value {json.dumps(plain(discarded), ensure_ascii=False)})"
                ),
                key=key,
                record_lost=key == discriminating_key,
            )
        )

    return Resolution(fields=plain(value), events=events)
