# src/asset_recovery/recovery/models.py

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class ScanPosition:
    """Scanner state immediately before the character at `offset` is read."""

    offset: int
    depth: int
    in_string: bool
    escape_next: bool


@dataclass(frozen=True)
class ObjectSpan:
    """Half-open [start, end) range of one candidate record.

    Offsets are relative to the text the span was located in; the pipeline
    maps them back to the raw response before they leave the package.
    """

    start: int
    end: int
    complete: bool = True  # False when no real `}` closes the object

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span: [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def slice(self, text: str) -> str:
        return text[self.start : self.end]


class EventKind(str, Enum):
    """Kind of repair (or loss) recorded in the audit trail."""

    MERGE_SPLIT = "merge-split"
    MERGE_SPLIT_FALLBACK = "merge-split-fallback"
    DUPLICATE_KEY_DROPPED = "duplicate-key-dropped"
    FALLBACK_EXTRACTION = "fallback-extraction"
    MALFORMED_RECORD = "malformed-record"
    UNRECOVERABLE_SPAN = "unrecoverable-span"
    EMPTY_RESULT = "empty-result"

    @property
    def drops_record(self) -> bool:
        """True when the event stands for a whole record that was not recovered."""
        return self in (EventKind.MALFORMED_RECORD, EventKind.UNRECOVERABLE_SPAN)

    @property
    def is_unrecoverable(self) -> bool:
        return self in (EventKind.UNRECOVERABLE_SPAN, EventKind.EMPTY_RESULT)


@dataclass(frozen=True)
class RecoveryEvent:
    """One entry of the append-only audit trail."""

    kind: EventKind
    span: ObjectSpan | None
    detail: str
    key: str | None = None  # Field a duplicate-key-dropped event discarded
    record_lost: bool = False  # A later discriminating key, i.e. a whole record

    @property
    def drops_record(self) -> bool:
        return self.kind.drops_record or self.record_lost


class Strategy(str, Enum):
    """Escalation tier that produced the final records."""

    STRICT = "strict"
    NORMALIZED = "normalized"
    SPLIT = "split"
    FALLBACK_EXTRACTED = "fallback"


@dataclass(frozen=True)
class RecoveredRecord(Mapping[str, Any]):
    """A recovered record: read-only field mapping plus the raw span it came from."""

    fields: dict[str, Any]
    span: ObjectSpan | None = None

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.fields)


@dataclass(frozen=True)
class ParseResult:
    """Final output of the pipeline. Always returned, never raised."""

    records: list[RecoveredRecord]
    events: list[RecoveryEvent]
    strategy: Strategy
    tiers_attempted: list[Strategy] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def values(self) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self.records]

    def events_of(self, kind: EventKind) -> list[RecoveryEvent]:
        return [event for event in self.events if event.kind is kind]
