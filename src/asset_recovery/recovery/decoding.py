# src/asset_recovery/recovery/decoding.py

import json
from typing import Any


class PairsDict(dict):
    """Decoded JSON object that keeps the first occurrence of each key.

    Later duplicates are kept aside in `dropped`, in source order, so callers
    can tell a clean object from a fused one. Plain `json.loads` would keep
    the last value and lose the evidence.
    """

    def __init__(self) -> None:
        super().__init__()
        self.dropped: list[tuple[str, Any]] = []


def _first_wins(pairs: list[tuple[str, Any]]) -> PairsDict:
    obj = PairsDict()
    for key, value in pairs:
        if key in obj:
            obj.dropped.append((key, value))
        else:
            obj[key] = value
    return obj


def decode(text: str) -> Any:
    """Decode JSON text, objects as PairsDict.

    Raw control characters (newlines, tabs) inside string literals are
    accepted.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON.
    """
    return json.loads(text, object_pairs_hook=_first_wins, strict=False)


def duplicate_keys(value: Any) -> list[str]:
    if isinstance(value, PairsDict):
        return [key for key, _ in value.dropped]
    return []


def plain(value: Any) -> Any:
    """Convert decoded values to plain dicts and lists, recursively."""
    if isinstance(value, dict):
        return {key: plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [plain(item) for item in value]
    return value


def nested_duplicate_count(value: Any) -> int:
    """Duplicate keys dropped anywhere below the top level of `value`."""
    if isinstance(value, dict):
        items = list(value.values())
    elif isinstance(value, list):
        items = value
    else:
        return 0
    total = 0
    for item in items:
        if isinstance(item, PairsDict):
            total += len(item.dropped)
        total += nested_duplicate_count(item)
    return total
