"""
FastAPI entrypoint for the metadata cache validator.

A test harness integration posts the completion event of a test file run
(the executed tests, the harness status and the HTML source of the test
file). The service validates the embedded metadata cache and returns a
ValidationReport, together with regenerated cache source when the cache
is missing, malformed or out of sync.

The service is stateless: every request is an independent validation pass.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field
from starlette.responses import Response

from metacache.app.config import MetacacheConfig
from metacache.app.coordinator.coordinator import MetadataCacheCoordinator
from metacache.app.schemas.test_record import CompletionEvent
from metacache.app.schemas.validation_report import ValidationReport
from metacache.app.sinks import (
    LoggingDiagnosticSink,
    MemoryDiagnosticSink,
    NullDiagnosticSink,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Presentation helpers (presentation-only)
# ---------------------------------------------------------------------------

def pretty_json(data: Any) -> str:
    """
    Pretty-print JSON for human-readable output.
    """
    return json.dumps(
        data,
        ensure_ascii=False,
        allow_nan=False,
        indent=2,
        separators=(", ", ": "),
    )


class PrettyJSONResponse(Response):
    """
    Pretty-printed JSON response for human-readable console output.
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        return pretty_json(content).encode("utf-8")


class ValidationResponse(BaseModel):
    """
    ValidationReport plus the regenerated source offered during the pass.
    """

    report: ValidationReport
    source: Optional[str] = Field(
        None,
        description="Replacement cache block (only when an issue was reported)",
    )
    instructions: Optional[str] = Field(
        None,
        description="Where the replacement cache block belongs",
    )


# ---------------------------------------------------------------------------
# Application setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Metadata Cache Service",
    description="Validates and regenerates cached test metadata",
    version="0.1.0",
)


@app.on_event("startup")
def startup_event() -> None:
    """
    Application startup hook.

    Configuration is loaded once and treated as immutable for the lifetime
    of the process.
    """
    config = MetacacheConfig.from_env()

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app.state.config = config
    app.state.coordinator = MetadataCacheCoordinator(config)

    logger.info(
        "config: cache element id=%s, max document size=%d KB",
        config.CACHE_ELEMENT_ID,
        config.MAX_DOCUMENT_SIZE_KB,
    )


def _services(request: Request) -> tuple[MetacacheConfig, MetadataCacheCoordinator]:
    return request.app.state.config, request.app.state.coordinator


def _check_document(event: CompletionEvent, config: MetacacheConfig) -> None:
    """
    Hard resource safety limits (NOT validation decisions).
    """
    if not event.document.strip():
        raise HTTPException(
            status_code=400,
            detail="Submitted test document is empty",
        )

    max_size_bytes = config.MAX_DOCUMENT_SIZE_KB * 1024
    if len(event.document.encode("utf-8")) > max_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=(
                f"Test document exceeds maximum allowed size of "
                f"{config.MAX_DOCUMENT_SIZE_KB} KB"
            ),
        )


# ---------------------------------------------------------------------------
# API Routes
# ---------------------------------------------------------------------------

@app.post(
    "/metadata/validate",
    response_model=ValidationResponse,
    response_class=PrettyJSONResponse,
    summary="Validate the embedded metadata cache of a completed test file",
)
def validate_metadata(event: CompletionEvent, request: Request) -> Any:
    config, coordinator = _services(request)
    _check_document(event, config)

    sink = MemoryDiagnosticSink()
    log_sink = LoggingDiagnosticSink(include_source=config.LOG_SOURCE)

    report = coordinator.process(
        event.tests,
        event.harness_status,
        document=event.document,
        sink=sink,
    )

    for diagnostic in report.diagnostics:
        log_sink.report_issue(diagnostic)
    if sink.source is not None:
        log_sink.offer_regenerated_source(sink.source, sink.instructions)

    return ValidationResponse(
        report=report,
        source=sink.source,
        instructions=sink.instructions,
    ).model_dump(mode="json")


@app.post(
    "/metadata/source",
    response_class=PlainTextResponse,
    summary="Render the cache block for a completed test file",
)
def regenerate_source(event: CompletionEvent, request: Request) -> PlainTextResponse:
    """
    Render replacement cache source regardless of the cache's state.
    """
    config, coordinator = _services(request)
    _check_document(event, config)

    context = coordinator.build_context(
        event.tests,
        document=event.document,
        sink=NullDiagnosticSink(),
    )

    return PlainTextResponse(
        coordinator.render_source(context),
        media_type="text/html",
    )


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------

@app.get(
    "/health",
    summary="Service health check",
)
def health_check() -> JSONResponse:
    """Simple health check endpoint."""
    return JSONResponse(
        content={
            "status": "ok",
            "service": "metacache",
        }
    )
