# src/asset_recovery/recovery/merges.py

import logging
from dataclasses import dataclass
from enum import Enum

from .boundaries import top_level_keys
from .models import ObjectSpan

logger = logging.getLogger(__name__)


class MergeStatus(str, Enum):
    CLEAN = "clean"
    MERGED = "merged"
    MISSING_KEY = "missing-key"


@dataclass(frozen=True)
class MergeDetection:
    span: ObjectSpan
    status: MergeStatus
    key_offsets: list[int]  # opening quote of each discriminating-key occurrence

    @property
    def record_count(self) -> int:
        return len(self.key_offsets)

    @property
    def is_merged(self) -> bool:
        return self.status is MergeStatus.MERGED


def detect_merge(text: str, span: ObjectSpan, discriminating_key: str) -> MergeDetection:
    """Count the discriminating key among the span's top-level keys.

    Occurrences inside string values or nested objects do not count, so a
    free-text field that mentions the key name never reads as a merge.
    """
    offsets = [
        key.offset
        for key in top_level_keys(text, span)
        if key.name == discriminating_key
    ]

    if not offsets:
        status = MergeStatus.MISSING_KEY
    elif len(offsets) == 1:
        status = MergeStatus.CLEAN
    else:
        status = MergeStatus.MERGED
        logger.debug(
            "Span [%d, %d) holds %d occurrences of %r",
            span.start,
            span.end,
            len(offsets),
            discriminating_key,
        )

    return MergeDetection(span=span, status=status, key_offsets=offsets)
