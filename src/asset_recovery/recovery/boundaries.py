# src/asset_recovery/recovery/boundaries.py

import json
import logging
from dataclasses import dataclass

from .models import ObjectSpan
from .scanner import CLOSERS, Scanner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArrayBounds:
    """Where record objects live in a text.

    `start` is the offset of the records array's `[`, or the first
    structural character for a bare sequence of objects. Records are the
    `{` found at `record_depth`.
    """

    start: int
    record_depth: int

    @property
    def is_array(self) -> bool:
        return self.record_depth > 0


@dataclass(frozen=True)
class KeyOccurrence:
    name: str
    offset: int  # opening quote
    end: int  # one past the closing quote


def top_level_keys(text: str, span: ObjectSpan) -> list[KeyOccurrence]:
    """Keys that sit directly inside the object at `span` (object depth 1).

    A key is a string literal at depth 1 followed by a colon. Key-like text
    inside string values or nested structures is never reported.
    """
    keys = []
    key_start = None
    scanner = Scanner(text, span.start, span.end)
    for pos in scanner:
        ch = text[pos.offset]
        if key_start is None:
            if not pos.in_string and pos.depth == 1 and ch == '"':
                key_start = pos.offset
            continue
        if pos.in_string and not pos.escape_next and ch == '"':
            literal = text[key_start : pos.offset + 1]
            if _next_significant(text, pos.offset + 1, span.end) == ":":
                keys.append(
                    KeyOccurrence(_decode_key(literal), key_start, pos.offset + 1)
                )
            key_start = None
    return keys


def locate_records_array(text: str, records_key: str | None = None) -> ArrayBounds:
    """Find the records array: a root array, an envelope's `records_key`
    array, or (failing both) a bare sequence of objects.
    """
    root = _first_significant_offset(text)
    if root is None:
        return ArrayBounds(start=len(text), record_depth=0)

    if text[root] == "[":
        return ArrayBounds(start=root, record_depth=1)

    if text[root] == "{" and records_key is not None:
        envelope = ObjectSpan(root, len(text), complete=False)
        for key in top_level_keys(text, envelope):
            if key.name != records_key:
                continue
            colon = text.index(":", key.end)
            value = _first_significant_offset(text, colon + 1)
            if value is not None and text[value] == "[":
                return ArrayBounds(start=value, record_depth=1)
            logger.debug("Envelope key %r does not hold an array", records_key)
            break

    return ArrayBounds(start=root, record_depth=0)


def locate_object_spans(
    text: str,
    bounds: ArrayBounds,
    *,
    synthetic_from: int | None = None,
) -> list[ObjectSpan]:
    """Ordered spans of every object at `bounds.record_depth`.

    An object closed by a bracket of the wrong kind, by a closer appended
    during normalization, or by end of input is returned with
    `complete=False`.
    """
    spans = []
    open_start = None
    depth = bounds.record_depth
    synthetic_from = len(text) if synthetic_from is None else synthetic_from

    scanner = Scanner(text, bounds.start)
    for pos in scanner:
        if pos.in_string:
            continue
        ch = text[pos.offset]
        if ch == "{" and pos.depth == depth and open_start is None:
            open_start = pos.offset
        elif ch in CLOSERS and pos.depth == depth + 1 and open_start is not None:
            if ch == "}" and scanner.top == "{":
                complete = pos.offset < synthetic_from
                spans.append(ObjectSpan(open_start, pos.offset + 1, complete=complete))
            else:
                spans.append(ObjectSpan(open_start, pos.offset, complete=False))
            open_start = None
        elif ch in CLOSERS and pos.depth == depth and bounds.is_array:
            # The records array itself is closing
            break

    if open_start is not None:
        spans.append(ObjectSpan(open_start, len(text), complete=False))

    incomplete = sum(1 for span in spans if not span.complete)
    logger.debug("Located %d object span(s), %d incomplete", len(spans), incomplete)
    return spans


def _first_significant_offset(text: str, start: int = 0) -> int | None:
    for i in range(start, len(text)):
        if not text[i].isspace():
            return i
    return None


def _next_significant(text: str, start: int, end: int) -> str | None:
    for i in range(start, end):
        if not text[i].isspace():
            return text[i]
    return None


def _decode_key(literal: str) -> str:
    try:
        return json.loads(literal, strict=False)
    except json.JSONDecodeError:
        return literal[1:-1]
