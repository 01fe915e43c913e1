"""
Validation pass coordinator.

Runs once per "all tests completed" event:

    1. Extract current metadata from every executed test
    2. Read the embedded cache from the test document
    3. Compare and classify the cache
    4. Report at most one top-level issue and offer regenerated source

The coordinator holds configuration only. All pass state lives in a
ValidationPassContext created for that pass.

Data problems (bad contacts, duplicate names, missing or stale caches)
are reported as diagnostics and never raised. Anything else is a bug and
propagates after being logged.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from metacache.app.config import MetacacheConfig
from metacache.app.checks.cache_reader import load_cached_metadata
from metacache.app.checks.comparison import validate_cache
from metacache.app.checks.extraction import build_current_metadata
from metacache.app.coordinator.context import ValidationPassContext
from metacache.app.rendering.serializer import (
    generate_source,
    source_instructions,
)
from metacache.app.schemas.cache_state import CacheStatus, CachedState
from metacache.app.schemas.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    Severity,
)
from metacache.app.schemas.test_record import HarnessStatus, TestRecord
from metacache.app.schemas.validation_report import (
    ValidationOutcome,
    ValidationReport,
)
from metacache.app.sinks import DiagnosticSink, NullDiagnosticSink

logger = logging.getLogger(__name__)


NOT_PRESENT_MESSAGE = "Cached metdata not present. "
OUT_OF_SYNC_MESSAGE = "Cached metadata out of sync. "

_MALFORMED_CODES = {
    CacheStatus.NO_PAYLOAD: DiagnosticCode.CACHE_NO_PAYLOAD,
    CacheStatus.INVALID_PAYLOAD: DiagnosticCode.CACHE_INVALID_PAYLOAD,
}


class _RecordingSink:
    """
    Forwards to the caller's sink and keeps a copy for the report.
    """

    def __init__(self, inner: DiagnosticSink) -> None:
        self._inner = inner
        self.diagnostics: List[Diagnostic] = []
        self.source_offered = False

    def report_issue(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        self._inner.report_issue(diagnostic)

    def offer_regenerated_source(self, source: str, instructions: str) -> None:
        self.source_offered = True
        self._inner.offer_regenerated_source(source, instructions)


class MetadataCacheCoordinator:
    """
    Orchestrates a single metadata cache validation pass.
    """

    def __init__(self, config: Optional[MetacacheConfig] = None) -> None:
        self._config = config or MetacacheConfig()

    @property
    def element_id(self) -> str:
        return self._config.CACHE_ELEMENT_ID

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(
        self,
        tests: Iterable[TestRecord],
        harness_status: Optional[HarnessStatus] = None,
        *,
        document: str,
        sink: Optional[DiagnosticSink] = None,
        pass_id: Optional[str] = None,
    ) -> ValidationReport:
        """
        Run a full validation pass for one completed test file.
        """
        recorder = _RecordingSink(sink or NullDiagnosticSink())

        if harness_status is not None:
            logger.debug(
                "Harness status %s (%s)",
                harness_status.status,
                harness_status.message,
            )

        try:
            context = self.build_context(
                tests,
                document=document,
                sink=recorder,
                pass_id=pass_id,
            )

            outcome, issue = self.classify(context)

            if issue is not None:
                recorder.report_issue(issue)
                recorder.offer_regenerated_source(
                    self.render_source(context),
                    source_instructions(
                        context.cached.present, context.element_id
                    ),
                )

        except Exception:
            logger.exception("Metadata cache validation pass failed")
            raise

        logger.info(
            "Metadata cache pass %s: %s (%d tests)",
            context.pass_id,
            outcome.value,
            len(context.current_metadata),
        )

        return ValidationReport(
            pass_id=context.pass_id,
            outcome=outcome,
            issue=issue,
            diagnostics=recorder.diagnostics,
            source_available=recorder.source_offered,
            test_count=len(context.current_metadata),
        )

    def build_context(
        self,
        tests: Iterable[TestRecord],
        *,
        document: str,
        sink: DiagnosticSink,
        pass_id: Optional[str] = None,
    ) -> ValidationPassContext:
        """
        Extract current metadata and read the cache (steps 1 and 2).
        """
        context = ValidationPassContext(element_id=self.element_id)
        if pass_id is not None:
            context.pass_id = pass_id

        context.current_metadata = build_current_metadata(tests, sink)
        context.cached = load_cached_metadata(document, self.element_id)
        return context

    @staticmethod
    def classify(
        context: ValidationPassContext,
    ) -> Tuple[ValidationOutcome, Optional[Diagnostic]]:
        """
        Decide the pass outcome and the top-level diagnostic, if any.
        """
        cached: CachedState = context.cached

        if cached is None:
            raise RuntimeError(
                "Invariant violation: classify() called before the cache "
                "was read"
            )

        if cached.status is CacheStatus.ABSENT:
            return ValidationOutcome.NOT_PRESENT, Diagnostic(
                code=DiagnosticCode.CACHE_NOT_PRESENT,
                severity=Severity.WARNING,
                message=NOT_PRESENT_MESSAGE,
            )

        if cached.malformed:
            return ValidationOutcome.MALFORMED, Diagnostic(
                code=_MALFORMED_CODES[cached.status],
                severity=Severity.ERROR,
                message=cached.message,
            )

        if not validate_cache(context.current_metadata, cached.metadata):
            return ValidationOutcome.OUT_OF_SYNC, Diagnostic(
                code=DiagnosticCode.CACHE_OUT_OF_SYNC,
                severity=Severity.ERROR,
                message=OUT_OF_SYNC_MESSAGE,
            )

        return ValidationOutcome.IN_SYNC, None

    @staticmethod
    def render_source(context: ValidationPassContext) -> str:
        """
        Regenerated cache block for the pass.

        Safe to call repeatedly; output depends only on the retained
        current metadata.
        """
        return generate_source(context.current_metadata, context.element_id)
