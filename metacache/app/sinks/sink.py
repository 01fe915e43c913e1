from __future__ import annotations

from typing import Protocol

from metacache.app.schemas.diagnostics import Diagnostic


class DiagnosticSink(Protocol):
    """
    Interface for surfacing validation diagnostics to a human.

    Implementations decide where messages go (a report page, a log, an
    HTTP response). The validation logic depends only on this interface.

    Implementations must be:
    - synchronous
    - side-effect free with respect to validation state
    """

    def report_issue(self, diagnostic: Diagnostic) -> None:
        ...

    def offer_regenerated_source(self, source: str, instructions: str) -> None:
        ...


class NullDiagnosticSink:
    """
    A no-op sink.

    Used when:
    - only the returned ValidationReport matters
    - tests that do not care about emitted diagnostics
    """

    def report_issue(self, diagnostic: Diagnostic) -> None:
        return

    def offer_regenerated_source(self, source: str, instructions: str) -> None:
        return
