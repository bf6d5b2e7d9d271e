# src/asset_recovery/recovery/fallback.py

import logging
from dataclasses import dataclass, field

from .boundaries import top_level_keys
from .config import RecordShape
from .models import EventKind, ObjectSpan, RecoveredRecord, RecoveryEvent
from .records import recover_span
from .scanner import find_closing, structural_openers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackExtraction:
    records: list[RecoveredRecord] = field(default_factory=list)
    events: list[RecoveryEvent] = field(default_factory=list)
    candidates: int = 0


def extract_records(raw: str, shape: RecordShape) -> FallbackExtraction:
    """Recover records from the raw response, ignoring array structure.

    Every `{` outside a string literal is a candidate start. A candidate
    whose top-level keys include the discriminating key is recovered in
    isolation; when that works, scanning resumes after it. When it fails,
    the candidate is reported as unrecoverable and scanning descends into it,
    so records nested inside a broken outer object are still found.
    """
    records: list[RecoveredRecord] = []
    events: list[RecoveryEvent] = []
    candidates = 0
    resume = 0

    for start in structural_openers(raw):
        if start < resume:
            continue

        closing = find_closing(raw, start)
        if closing is None:
            span = ObjectSpan(start, len(raw), complete=False)
        elif closing[1]:
            span = ObjectSpan(start, closing[0] + 1)
        else:
            span = ObjectSpan(start, closing[0], complete=False)

        keys = top_level_keys(raw, span)
        if not any(key.name == shape.discriminating_key for key in keys):
            continue

        candidates += 1
        recovery = recover_span(raw, span, shape, position=candidates - 1)
        events.extend(recovery.events)
        if recovery.unrecoverable:
            logger.debug("Descending into candidate [%d, %d)", span.start, span.end)
            continue
        records.extend(recovery.records)
        resume = span.end

    if records:
        events.append(
            RecoveryEvent(
                kind=EventKind.FALLBACK_EXTRACTION,
                span=ObjectSpan(0, len(raw)),
                detail=(
                    f"extracted {len(records)} record(s) from {candidates} "
                    f"candidate object(s) outside the array structure"
                ),
            )
        )
    else:
        logger.warning("Fallback extraction recovered no records")
        events.append(
            RecoveryEvent(
                kind=EventKind.EMPTY_RESULT,
                span=ObjectSpan(0, len(raw)),
                detail=f"no records recovered from {len(raw)} character(s) of input",
            )
        )

    return FallbackExtraction(records=records, events=events, candidates=candidates)
