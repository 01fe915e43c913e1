from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from metacache.app.schemas.cache_state import CachedState


class ValidationPassContext(BaseModel):
    """
    State of one validation pass.

    Created fresh for every completion event and passed explicitly to
    each step. Nothing here is shared between passes.

    IMPORTANT:
    - current_metadata is retained so source regeneration can be repeated
      after the pass without re-extracting.
    - cached is read-only once loaded.
    """

    pass_id: str = Field(
        default_factory=lambda: uuid4().hex,
        description="Identifier of the pass (diagnostic only)",
    )

    element_id: str = Field(
        ...,
        description="Reserved id of the cache element",
    )

    current_metadata: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Extracted metadata, test name -> field -> value",
    )

    cached: Optional[CachedState] = Field(
        None,
        description="Cache state, set once the document has been read",
    )

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )
