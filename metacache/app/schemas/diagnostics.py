"""
Diagnostic schema.

Defines the structure used to report every issue raised during a
validation pass: advisory contact-format warnings, duplicate test names,
and the single top-level cache outcome message.

Diagnostics are descriptive. They never stop a validation pass.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations (FROZEN CONTRACTS)
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    """
    Severity class of a diagnostic.

    Maps onto the CSS class the browser report used for the message
    element, so the values must remain stable.
    """

    WARNING = "warning"
    ERROR = "error"


class DiagnosticCode(str, Enum):
    """
    Stable identifier of the condition a diagnostic describes.
    """

    INVALID_CONTACT = "invalid_contact"
    DUPLICATE_TEST_NAME = "duplicate_test_name"

    # Top-level cache outcomes (at most one per pass)
    CACHE_NOT_PRESENT = "cache_not_present"
    CACHE_NO_PAYLOAD = "cache_no_payload"
    CACHE_INVALID_PAYLOAD = "cache_invalid_payload"
    CACHE_OUT_OF_SYNC = "cache_out_of_sync"


CACHE_OUTCOME_CODES = frozenset(
    {
        DiagnosticCode.CACHE_NOT_PRESENT,
        DiagnosticCode.CACHE_NO_PAYLOAD,
        DiagnosticCode.CACHE_INVALID_PAYLOAD,
        DiagnosticCode.CACHE_OUT_OF_SYNC,
    }
)


# ---------------------------------------------------------------------------
# Canonical Diagnostic Object
# ---------------------------------------------------------------------------


class Diagnostic(BaseModel):
    """
    A single immutable diagnostic message.
    """

    code: DiagnosticCode = Field(
        ...,
        description="Condition that produced the diagnostic",
    )

    severity: Severity = Field(
        ...,
        description="Display severity",
    )

    message: str = Field(
        ...,
        description="Human-readable message text",
    )

    test_name: Optional[str] = Field(
        None,
        description="Test the diagnostic refers to, when test-specific",
    )

    field: Optional[str] = Field(
        None,
        description="Metadata field the diagnostic refers to, when field-specific",
    )

    @property
    def is_cache_outcome(self) -> bool:
        return self.code in CACHE_OUTCOME_CODES

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )
