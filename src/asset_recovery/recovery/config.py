# src/asset_recovery/recovery/config.py

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import ConfigurationError


@dataclass(frozen=True)
class RecordShape:
    """Shape of the records the parser recovers.

    Immutable. Explicit. Validated on construction.
    """

    discriminating_key: str
    required_fields: tuple[str, ...] = ()
    optional_fields: tuple[str, ...] = ()
    records_key: str | None = None  # Envelope key holding the records array

    def __post_init__(self) -> None:
        if not isinstance(self.discriminating_key, str) or not self.discriminating_key:
            raise ConfigurationError("discriminating_key must be a non-empty string")
        if self.records_key is not None and not self.records_key:
            raise ConfigurationError("records_key must be None or a non-empty string")
        # Accept lists from callers but keep the dataclass hashable
        object.__setattr__(self, "required_fields", tuple(self.required_fields))
        object.__setattr__(self, "optional_fields", tuple(self.optional_fields))

    @property
    def known_fields(self) -> frozenset[str]:
        return frozenset(
            (self.discriminating_key, *self.required_fields, *self.optional_fields)
        )

    def missing_fields(self, record: Mapping[str, Any]) -> list[str]:
        """Required fields (the discriminating key included) absent from record."""
        required = (self.discriminating_key, *self.required_fields)
        seen: set[str] = set()
        missing = []
        for name in required:
            if name not in seen and name not in record:
                missing.append(name)
            seen.add(name)
        return missing

    def unknown_fields(self, record: Mapping[str, Any]) -> list[str]:
        if not self.optional_fields and not self.required_fields:
            return []
        known = self.known_fields
        return [name for name in record if name not in known]
