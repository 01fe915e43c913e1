"""
Cached metadata state.

The embedded cache is either absent, present but malformed, or loaded.
A loaded-but-empty cache (``{}``) is a distinct, valid state.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CacheStatus(str, Enum):
    ABSENT = "absent"
    NO_PAYLOAD = "no_payload"
    INVALID_PAYLOAD = "invalid_payload"
    LOADED = "loaded"


_MALFORMED_MESSAGES = {
    CacheStatus.NO_PAYLOAD: "Metadata not found in cache element. ",
    CacheStatus.INVALID_PAYLOAD: "Invalid JSON in Cached metadata. ",
}


class CachedState(BaseModel):
    """
    Result of reading the embedded metadata cache.

    ``metadata`` is populated only for ``LOADED``.
    """

    status: CacheStatus = Field(
        ...,
        description="What was found where the cache element should be",
    )

    metadata: Optional[Dict[str, Any]] = Field(
        None,
        description="Deserialized cache mapping (LOADED only)",
    )

    @model_validator(mode="after")
    def enforce_metadata_presence(self):
        if self.status is CacheStatus.LOADED:
            if self.metadata is None:
                raise ValueError("A loaded cache must carry its metadata")
        elif self.metadata is not None:
            raise ValueError(
                f"Cache metadata must not be present for status "
                f"'{self.status.value}'"
            )
        return self

    # ------------------------------------------------------------------
    # Convenience constructors
    # ------------------------------------------------------------------

    @classmethod
    def absent(cls) -> "CachedState":
        return cls(status=CacheStatus.ABSENT)

    @classmethod
    def no_payload(cls) -> "CachedState":
        return cls(status=CacheStatus.NO_PAYLOAD)

    @classmethod
    def invalid_payload(cls) -> "CachedState":
        return cls(status=CacheStatus.INVALID_PAYLOAD)

    @classmethod
    def loaded(cls, metadata: Dict[str, Any]) -> "CachedState":
        return cls(status=CacheStatus.LOADED, metadata=metadata)

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------

    @property
    def present(self) -> bool:
        """True when a cache element exists, whether or not it parsed."""
        return self.status is not CacheStatus.ABSENT

    @property
    def malformed(self) -> bool:
        return self.status in _MALFORMED_MESSAGES

    @property
    def message(self) -> Optional[str]:
        """Description of the malformed state, or None."""
        return _MALFORMED_MESSAGES.get(self.status)

    model_config = ConfigDict(frozen=True)
