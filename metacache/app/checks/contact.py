"""
Contact-format check for author-style metadata.

An author value must carry a name followed by contact information, either
an angle-bracketed address or an http(s) URL:

    Jane Doe <jane@example.com>
    Jane Doe http://example.com/contact

This check is advisory. A failure produces a warning diagnostic and never
blocks extraction.
"""

from __future__ import annotations

import re
from typing import Any

from metacache.app.schemas.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    Severity,
)


# Patterns are searched, not anchored, matching how the report page
# tested them.
_BRACKETED_CONTACT = re.compile(r"(\S+)(\s*)<(.*)>(.*)")
_URL_CONTACT = re.compile(r"(\S+)(\s+)(https?://)(.*)")


def validate_contact(value: Any) -> bool:
    """
    Return True if ``value`` has a name token followed by contact details.

    Metadata values are usually lists; a list is valid when it is
    non-empty and every entry is valid. Other non-string values are
    never valid.
    """
    if isinstance(value, (list, tuple)):
        return bool(value) and all(validate_contact(v) for v in value)
    if not isinstance(value, str):
        return False
    if _BRACKETED_CONTACT.search(value):
        return True
    return _URL_CONTACT.search(value) is not None


def contact_diagnostic(test_name: str, field: str) -> Diagnostic:
    return Diagnostic(
        code=DiagnosticCode.INVALID_CONTACT,
        severity=Severity.WARNING,
        message=(
            f'Metadata property "{field}" for test: "{test_name}" '
            "must have name and contact information "
            '("name <email>" or "name http(s)://")'
        ),
        test_name=test_name,
        field=field,
    )
