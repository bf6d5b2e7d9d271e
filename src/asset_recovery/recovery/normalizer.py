# src/asset_recovery/recovery/normalizer.py

import logging
import re
from dataclasses import dataclass

from .models import ObjectSpan
from .scanner import CLOSERS, OPENERS, Scanner

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"\A\s*```[\w.+-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*\Z")


@dataclass(frozen=True)
class NormalizedText:
    """Normalized text plus the map back to raw-response offsets.

    `raw_offsets[i]` is the raw offset of normalized character `i`; the entry
    at `len(text)` is the raw end of the kept window. Characters appended to
    balance open structures start at `synthetic_from` and map to that end.
    """

    text: str
    raw_offsets: tuple[int, ...]
    synthetic_from: int
    removed_commas: int = 0

    @property
    def appended(self) -> str:
        return self.text[self.synthetic_from :]

    def is_synthetic(self, offset: int) -> bool:
        return offset >= self.synthetic_from

    def to_raw(self, offset: int) -> int:
        return self.raw_offsets[min(offset, len(self.raw_offsets) - 1)]

    def to_raw_span(self, span: ObjectSpan) -> ObjectSpan:
        start = self.to_raw(span.start)
        if span.end > span.start:
            # Map the last character and step past it so removed commas
            # inside the span do not shift its end
            end = self.to_raw(span.end - 1) + 1
        else:
            end = start
        return ObjectSpan(start, max(start, end), complete=span.complete)

    def with_insertions(self, insertions: dict[int, str]) -> "NormalizedText":
        """Insert synthetic characters before the given offsets.

        Inserted characters map to the raw offset of the character before
        them, so a span ending in one stops right after real text.
        """
        chars: list[str] = []
        offsets: list[int] = []
        synthetic_from = self.synthetic_from
        for i, ch in enumerate(self.text):
            inserted = insertions.get(i)
            if inserted:
                anchor = self.raw_offsets[i - 1] if i else self.raw_offsets[0]
                chars.append(inserted)
                offsets.extend([anchor] * len(inserted))
                if i < self.synthetic_from:
                    synthetic_from += len(inserted)
            chars.append(ch)
            offsets.append(self.raw_offsets[i])
        offsets.extend(self.raw_offsets[len(self.text) :])
        return NormalizedText(
            text="".join(chars),
            raw_offsets=tuple(offsets),
            synthetic_from=synthetic_from,
            removed_commas=self.removed_commas,
        )


def strip_wrapping(raw: str) -> tuple[int, int]:
    """Return the [start, end) window of `raw` that holds the JSON payload.

    Drops Markdown fences and prose before the first `[`/`{`. Trailing prose
    is dropped only after the last point where every structure was closed;
    a truncated tail is kept so nothing is lost silently.
    """
    fence = _LEADING_FENCE.match(raw)
    lo = fence.end() if fence else 0
    tail_fence = _TRAILING_FENCE.search(raw, lo)
    hi = tail_fence.start() if tail_fence else len(raw)

    first = next((i for i in range(lo, hi) if raw[i] in OPENERS), None)
    if first is None:
        return hi, hi

    scanner = Scanner(raw, first, hi)
    last_closed = None
    for pos in scanner:
        if pos.in_string or pos.depth != 1:
            continue
        if raw[pos.offset] in CLOSERS:
            last_closed = pos.offset + 1

    if last_closed is not None and scanner.depth == 0:
        # Everything closed; whatever follows is prose, quotes included
        return first, last_closed
    return first, len(raw[:hi].rstrip())


def remove_trailing_commas(text: str, start: int = 0, end: int | None = None) -> list[int]:
    """Offsets in [start, end) that survive trailing-comma removal.

    A comma is dropped when it sits outside a string literal and only
    whitespace separates it from a `]` or `}`.
    """
    end = len(text) if end is None else end
    kept = []
    for pos in Scanner(text, start, end):
        i = pos.offset
        if not pos.in_string and text[i] == ",":
            j = i + 1
            while j < end and text[j].isspace():
                j += 1
            if j < end and text[j] in CLOSERS:
                continue
        kept.append(i)
    return kept


def without_trailing_commas(text: str) -> str:
    return "".join(text[i] for i in remove_trailing_commas(text))


def normalize(raw: str) -> NormalizedText:
    """Strip wrapping, drop trailing commas and balance unterminated structures.

    Never raises; an input with no structure normalizes to empty text.
    """
    lo, hi = strip_wrapping(raw)
    kept = remove_trailing_commas(raw, lo, hi)
    removed = (hi - lo) - len(kept)

    body = "".join(raw[i] for i in kept)
    tail = Scanner(body).run()

    closing = ""
    if tail.in_string:
        if tail.position.escape_next:
            # A dangling backslash would escape the closing quote
            body = body[:-1]
            kept = kept[:-1]
        closing = '"'
    closing += tail.closers_needed()

    if lo or hi < len(raw) or removed or closing:
        logger.debug(
            "Normalized response: window=[%d, %d), commas_removed=%d, appended=%r",
            lo,
            hi,
            removed,
            closing,
        )

    text = body + closing
    raw_offsets = tuple(kept) + (hi,) * (len(closing) + 1)
    return NormalizedText(
        text=text,
        raw_offsets=raw_offsets,
        synthetic_from=len(body),
        removed_commas=removed,
    )
