from __future__ import annotations

import logging
from typing import Optional

from metacache.app.schemas.diagnostics import Diagnostic, Severity
from metacache.app.sinks.sink import DiagnosticSink


_LEVELS = {
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingDiagnosticSink(DiagnosticSink):
    """
    Sink that writes diagnostics to a standard library logger.

    Regenerated source is logged at INFO only when ``include_source`` is
    set; otherwise a single line notes that source is available.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        include_source: bool = False,
    ) -> None:
        self._logger = logger or logging.getLogger("metacache.diagnostics")
        self._include_source = include_source

    def report_issue(self, diagnostic: Diagnostic) -> None:
        if diagnostic.test_name is not None:
            self._logger.log(
                _LEVELS[diagnostic.severity],
                "[%s] %s (test=%r)",
                diagnostic.code.value,
                diagnostic.message.strip(),
                diagnostic.test_name,
            )
        else:
            self._logger.log(
                _LEVELS[diagnostic.severity],
                "[%s] %s",
                diagnostic.code.value,
                diagnostic.message.strip(),
            )

    def offer_regenerated_source(self, source: str, instructions: str) -> None:
        if self._include_source:
            self._logger.info("%s\n%s", instructions, source)
        else:
            self._logger.info("Regenerated metadata cache source is available")
