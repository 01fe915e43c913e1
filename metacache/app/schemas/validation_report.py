"""
ValidationReport schema.

Summarizes a single validation pass: how the embedded cache compared with
the metadata extracted from the executed tests, every diagnostic emitted on
the way, and whether regenerated cache source was offered.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from metacache.app.schemas.diagnostics import Diagnostic


class ValidationOutcome(str, Enum):
    """
    Classification of the embedded cache after a pass.
    """

    IN_SYNC = "in_sync"
    NOT_PRESENT = "not_present"
    MALFORMED = "malformed"
    OUT_OF_SYNC = "out_of_sync"


class ValidationReport(BaseModel):
    """
    Immutable result of one validation pass.
    """

    pass_id: str = Field(
        ...,
        description="Identifier of the validation pass",
    )

    outcome: ValidationOutcome = Field(
        ...,
        description="Cache classification",
    )

    issue: Optional[Diagnostic] = Field(
        None,
        description="The single top-level cache diagnostic (absent when in sync)",
    )

    diagnostics: List[Diagnostic] = Field(
        default_factory=list,
        description="All diagnostics emitted during the pass, in order",
    )

    source_available: bool = Field(
        False,
        description="Whether regenerated cache source was offered",
    )

    test_count: int = Field(
        0,
        description="Number of distinct test names extracted",
    )

    @model_validator(mode="after")
    def enforce_outcome_invariants(self):
        if self.outcome is ValidationOutcome.IN_SYNC:
            if self.issue is not None or self.source_available:
                raise ValueError(
                    "An in-sync pass must not carry an issue or offer source"
                )
        elif self.issue is None:
            raise ValueError(
                f"Outcome '{self.outcome.value}' requires a top-level issue"
            )

        if self.issue is not None and not self.issue.is_cache_outcome:
            raise ValueError(
                f"'{self.issue.code.value}' is not a cache outcome"
            )

        # The top-level issue is the only cache outcome and is emitted last.
        outcomes = [d for d in self.diagnostics if d.is_cache_outcome]
        expected = [self.issue] if self.issue is not None else []
        if outcomes != expected or (
            expected and self.diagnostics[-1] != self.issue
        ):
            raise ValueError(
                "Diagnostics must end with the top-level issue and contain "
                "no other cache outcome"
            )
        return self

    @property
    def in_sync(self) -> bool:
        return self.outcome is ValidationOutcome.IN_SYNC

    model_config = ConfigDict(frozen=True)
