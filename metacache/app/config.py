"""
Runtime configuration for the metadata cache validator.

This module centralizes environment-driven configuration: the reserved
identifier of the embedded cache element, request size limits for the
HTTP host adapter, and logging behaviour.

Configuration is read-only at runtime and must not influence validation
outcomes beyond selecting which element is treated as the cache.
"""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, Field, field_validator


class ConfigurationError(ValueError):
    """Raised when environment configuration cannot be parsed."""


class MetacacheConfig(BaseModel):
    """
    Runtime configuration for the metadata cache validator.

    Configuration is environment-driven and immutable once loaded.
    """

    # ------------------------------------------------------------------
    # Cache element
    # ------------------------------------------------------------------

    CACHE_ELEMENT_ID: str = Field(
        "metadata_cache",
        description=(
            "Reserved id attribute of the <script> element holding the "
            "serialized metadata cache"
        ),
    )

    # ------------------------------------------------------------------
    # Safety and resource limits
    # ------------------------------------------------------------------

    MAX_DOCUMENT_SIZE_KB: int = Field(
        2048,
        description="Maximum accepted size of a submitted test document",
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    LOG_LEVEL: str = Field(
        "INFO",
        description="Root log level applied by the HTTP host adapter",
    )

    LOG_SOURCE: bool = Field(
        False,
        description=(
            "Also write regenerated cache source to the log when a pass "
            "reports an issue"
        ),
    )

    # ------------------------------------------------------------------
    # Validators (Pydantic v2)
    # ------------------------------------------------------------------

    @field_validator("CACHE_ELEMENT_ID")
    @classmethod
    def validate_element_id(cls, v: str) -> str:
        if not v or any(ch.isspace() for ch in v):
            raise ValueError(
                f"CACHE_ELEMENT_ID must be a non-empty token without "
                f"whitespace, got {v!r}"
            )
        return v

    @field_validator("MAX_DOCUMENT_SIZE_KB")
    @classmethod
    def validate_size_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("MAX_DOCUMENT_SIZE_KB must be positive")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        if level not in allowed:
            raise ValueError(
                f"Unsupported LOG_LEVEL '{v}'. "
                f"Allowed values: {sorted(allowed)}"
            )
        return level

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @property
    def log_level(self) -> int:
        return logging.getLevelName(self.LOG_LEVEL)

    @classmethod
    def from_env(cls) -> "MetacacheConfig":
        """
        Load configuration from environment variables.

        All values are parsed once at startup and must remain immutable.
        """

        def env_bool(name: str, default: bool) -> bool:
            raw = os.getenv(name)
            if raw is None:
                return default
            return raw.lower() in {"1", "true", "yes", "on"}

        raw_size = os.getenv("METACACHE_MAX_DOCUMENT_SIZE_KB", "2048")
        try:
            max_size = int(raw_size)
        except ValueError as exc:
            raise ConfigurationError(
                f"METACACHE_MAX_DOCUMENT_SIZE_KB is not an integer: {raw_size!r}"
            ) from exc

        return cls(
            CACHE_ELEMENT_ID=os.getenv(
                "METACACHE_CACHE_ELEMENT_ID", "metadata_cache"
            ),
            MAX_DOCUMENT_SIZE_KB=max_size,
            LOG_LEVEL=os.getenv("METACACHE_LOG_LEVEL", "INFO"),
            LOG_SOURCE=env_bool("METACACHE_LOG_SOURCE", False),
        )

    model_config = {
        "frozen": True,
    }
