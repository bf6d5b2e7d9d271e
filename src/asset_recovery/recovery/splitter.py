# src/asset_recovery/recovery/splitter.py

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from .boundaries import ArrayBounds
from .decoding import decode, duplicate_keys, plain
from .merges import MergeDetection
from .models import ObjectSpan
from .normalizer import NormalizedText, without_trailing_commas
from .scanner import CLOSERS, OPENERS, Scanner, scan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitPart:
    fields: dict[str, Any]
    span: ObjectSpan  # source range of the part, synthetic braces excluded


@dataclass(frozen=True)
class SplitOutcome:
    parts: list[SplitPart] = field(default_factory=list)
    failure: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def split_merged(text: str, detection: MergeDetection) -> SplitOutcome:
    """Partition a fused object at each later occurrence of the discriminating key.

    Every key occurrence after the first starts a new object: the text
    before it is closed with a synthetic `}` and the text from it is opened
    with a synthetic `{`. Fields are never reordered and no values are
    invented. Each part must stand alone as a balanced object with unique
    keys, otherwise the whole split is abandoned.
    """
    span = detection.span
    if not span.complete:
        return SplitOutcome(failure="span is not terminated")

    cuts = detection.key_offsets[1:]
    starts = [span.start + 1, *cuts]
    ends = [*cuts, span.end - 1]

    parts = []
    for index, (start, end) in enumerate(zip(starts, ends)):
        body = text[start:end].strip()
        if body.endswith(","):
            body = body[:-1].rstrip()
        candidate = "{" + body + "}"

        if not scan(candidate).balanced:
            return SplitOutcome(failure=f"part {index} is not balanced")
        try:
            value = decode(without_trailing_commas(candidate))
        except json.JSONDecodeError as exc:
            return SplitOutcome(failure=f"part {index} does not parse: {exc.msg}")
        duplicates = duplicate_keys(value)
        if duplicates:
            return SplitOutcome(
                failure=f"part {index} repeats key(s) {', '.join(sorted(set(duplicates)))}"
            )

        part_span = ObjectSpan(
            span.start if index == 0 else start,
            span.end if index == len(starts) - 1 else end,
        )
        parts.append(SplitPart(fields=plain(value), span=part_span))

    logger.debug(
        "Split span [%d, %d) into %d part(s)", span.start, span.end, len(parts)
    )
    return SplitOutcome(parts=parts)


@dataclass(frozen=True)
class Reclosure:
    normalized: NormalizedText
    closers: frozenset[int] = frozenset()  # offsets of synthetic `}` in the new text

    @property
    def changed(self) -> bool:
        return bool(self.closers)


def reclose_orphan_objects(normalized: NormalizedText, bounds: ArrayBounds) -> Reclosure:
    """Close records whose `}` is missing before the next record's `{`.

    Inside a record the only legal `{` follows a colon. A `{` in key
    position starts the next record, so the current one is closed with a
    synthetic `}`: ahead of the separating comma, or followed by a synthetic
    comma when there is none.
    """
    text = normalized.text
    record_level = bounds.record_depth + 1
    insertions: dict[int, str] = {}
    depth = 0
    last = None  # last significant offset outside whitespace

    for pos in Scanner(text, bounds.start):
        i = pos.offset
        ch = text[i]
        if pos.in_string:
            last = i
            continue
        if ch.isspace():
            continue
        if (
            ch == "{"
            and depth == record_level
            and last is not None
            and text[last] not in ":{"
        ):
            if text[last] == ",":
                insertions[last] = "}"
            else:
                insertions[last + 1] = "},"
            logger.debug("Orphan object at %d re-closes the record before it", i)
        elif ch in OPENERS:
            depth += 1
        elif ch in CLOSERS and depth > 0:
            depth -= 1
            if bounds.is_array and depth == 0:
                break
        last = i

    if not insertions:
        return Reclosure(normalized)

    closers = []
    shift = 0
    for offset in sorted(insertions):
        closers.append(offset + shift)
        shift += len(insertions[offset])
    return Reclosure(normalized.with_insertions(insertions), frozenset(closers))
