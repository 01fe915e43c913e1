"""
Metadata extraction from executed tests.

Builds the current metadata map: test name -> allowlisted fields the test
actually declared. Presence is meaningful, so undeclared fields are
omitted rather than stored as placeholders.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable

from metacache.app.checks.contact import contact_diagnostic, validate_contact
from metacache.app.schemas.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    Severity,
)
from metacache.app.schemas.test_record import TestRecord
from metacache.app.sinks.sink import DiagnosticSink

logger = logging.getLogger(__name__)


# Recognized metadata fields, in render order.
FIELD_ALLOWLIST = ("help", "assert", "author")

# Fields whose value must carry name + contact information.
CONTACT_FIELDS = ("author",)


def extract_fields(test: TestRecord, sink: DiagnosticSink) -> Dict[str, Any]:
    """
    Copy the allowlisted fields declared by ``test``.

    Values are copied verbatim. Contact fields are checked first; a bad
    contact is reported through ``sink`` and still extracted.
    """
    metadata: Dict[str, Any] = {}

    for field in FIELD_ALLOWLIST:
        if field not in test.properties:
            continue

        value = test.properties[field]

        if field in CONTACT_FIELDS and not validate_contact(value):
            logger.debug(
                "Invalid contact in %r for test %r: %r",
                field,
                test.name,
                value,
            )
            sink.report_issue(contact_diagnostic(test.name, field))

        metadata[field] = value

    return metadata


def duplicate_name_diagnostic(test_name: str) -> Diagnostic:
    return Diagnostic(
        code=DiagnosticCode.DUPLICATE_TEST_NAME,
        severity=Severity.ERROR,
        message=f"Duplicate test name: {test_name}",
        test_name=test_name,
    )


def build_current_metadata(
    tests: Iterable[TestRecord],
    sink: DiagnosticSink,
) -> Dict[str, Dict[str, Any]]:
    """
    Extract metadata for every test, keyed by test name.

    The first test with a given name wins. Later tests with the same name
    are reported and skipped without being extracted.
    """
    current: Dict[str, Dict[str, Any]] = {}

    for test in tests:
        if test.name in current:
            sink.report_issue(duplicate_name_diagnostic(test.name))
            continue
        current[test.name] = extract_fields(test, sink)

    return current
