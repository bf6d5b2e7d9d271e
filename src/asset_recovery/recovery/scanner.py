# src/asset_recovery/recovery/scanner.py

from collections.abc import Iterator

from .models import ScanPosition

OPENERS = "{["
CLOSERS = "}]"
PAIRS = {"{": "}", "[": "]"}


class Scanner:
    """Single-pass, string- and escape-aware nesting scanner.

    - Iterating yields the state *before* each character is consumed
    - Braces and brackets inside string literals never change depth
    - Any closer pops one level; a closer of the wrong kind is recorded
      in `mismatched`, a closer at depth 0 in `stray_closers`
    - Never raises: open depth or an open string at the end are results
    """

    def __init__(self, text: str, start: int = 0, end: int | None = None) -> None:
        self.text = text
        self._offset = start
        self._end = len(text) if end is None else min(end, len(text))
        self._stack: list[str] = []
        self._in_string = False
        self._escape_next = False
        self.mismatched: list[int] = []
        self.stray_closers: list[int] = []

    @property
    def position(self) -> ScanPosition:
        return ScanPosition(
            offset=self._offset,
            depth=len(self._stack),
            in_string=self._in_string,
            escape_next=self._escape_next,
        )

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def in_string(self) -> bool:
        return self._in_string

    @property
    def open_stack(self) -> tuple[str, ...]:
        return tuple(self._stack)

    @property
    def top(self) -> str | None:
        return self._stack[-1] if self._stack else None

    @property
    def balanced(self) -> bool:
        """True when the scanned range closed everything it opened, cleanly."""
        return (
            not self._stack
            and not self._in_string
            and not self.mismatched
            and not self.stray_closers
        )

    def __iter__(self) -> Iterator[ScanPosition]:
        while self._offset < self._end:
            yield self.position
            self._advance(self.text[self._offset])

    def run(self) -> "Scanner":
        """Consume the remaining range and return self for inspection."""
        for _ in self:
            pass
        return self

    def closers_needed(self) -> str:
        """Minimal closing characters that would balance the open structures."""
        return "".join(PAIRS[opener] for opener in reversed(self._stack))

    def _advance(self, ch: str) -> None:
        if self._in_string:
            if self._escape_next:
                self._escape_next = False
            elif ch == "\\":
                self._escape_next = True
            elif ch == '"':
                self._in_string = False
            # Raw newlines stay inside the string
        elif ch == '"':
            self._in_string = True
        elif ch in OPENERS:
            self._stack.append(ch)
        elif ch in CLOSERS:
            if self._stack:
                opener = self._stack.pop()
                if PAIRS[opener] != ch:
                    self.mismatched.append(self._offset)
            else:
                self.stray_closers.append(self._offset)
        self._offset += 1


def scan(text: str, start: int = 0, end: int | None = None) -> Scanner:
    """Scan a range to its end and return the finished scanner."""
    return Scanner(text, start, end).run()


def find_closing(text: str, open_offset: int) -> tuple[int, bool] | None:
    """Find the closer that pops the opener at `open_offset`.

    Returns (offset, matched) where `matched` is False when the closer is of
    the wrong kind, or None when the opener is still open at end of input.
    The opener is assumed to sit outside any string literal.
    """
    scanner = Scanner(text, open_offset)
    for pos in scanner:
        if pos.in_string or pos.depth != 1:
            continue
        ch = text[pos.offset]
        if ch in CLOSERS:
            return pos.offset, ch == PAIRS[text[open_offset]]
    return None


def structural_openers(text: str, opener: str = "{") -> list[int]:
    """Offsets of every `opener` that sits outside string literals."""
    return [
        pos.offset
        for pos in Scanner(text)
        if not pos.in_string and text[pos.offset] == opener
    ]
