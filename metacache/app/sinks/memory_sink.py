from __future__ import annotations

from typing import List, Optional

from metacache.app.schemas.diagnostics import Diagnostic, Severity
from metacache.app.sinks.sink import DiagnosticSink


class MemoryDiagnosticSink(DiagnosticSink):
    """
    In-memory sink that records everything it is given.

    Properties:
    - deterministic ordering
    - a repeated source offer replaces the previous one
    """

    def __init__(self) -> None:
        self.diagnostics: List[Diagnostic] = []
        self.source: Optional[str] = None
        self.instructions: Optional[str] = None

    def report_issue(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def offer_regenerated_source(self, source: str, instructions: str) -> None:
        self.source = source
        self.instructions = instructions

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def messages(self) -> List[str]:
        return [d.message for d in self.diagnostics]
