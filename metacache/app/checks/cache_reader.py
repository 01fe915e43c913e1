"""
Embedded metadata cache reader.

Locates the cache element in a test document by its reserved id and
deserializes the JSON payload it carries.

PAYLOAD ISOLATION
-----------------
The cache is usually written as

    <script id="metadata_cache">/*
    { ... }
    */</script>

The payload is taken as everything from the first "{" to the last "}"
of the element's text. This tolerates whatever comment syntax surrounds
the JSON and is part of the observable behaviour: do not tighten it into
an exact wrapper match.

This module MUST NOT raise for malformed documents or payloads. Every
failure is captured as a CachedState.
"""

from __future__ import annotations

import json
import logging
from html.parser import HTMLParser
from typing import List, Optional

from metacache.app.schemas.cache_state import CachedState

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


_VOID_ELEMENTS = frozenset(
    {
        "area", "base", "br", "col", "embed", "hr", "img", "input",
        "link", "meta", "param", "source", "track", "wbr",
    }
)


# ---------------------------------------------------------------------------
# Element lookup
# ---------------------------------------------------------------------------

class _ElementTextFinder(HTMLParser):
    """
    Collect the text content of the first element with a given id.

    Text runs until the matching end tag. Implied end tags are not
    inferred, so an unclosed non-script element (e.g. a <p> followed by a
    <div>) collects everything up to the end of the document.
    """

    def __init__(self, element_id: str) -> None:
        super().__init__(convert_charrefs=True)
        self._element_id = element_id
        self._tag: Optional[str] = None
        self._depth = 0
        self._parts: List[str] = []
        self.found = False
        self.done = False

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def handle_starttag(self, tag, attrs):
        if self.done:
            return

        if self._depth:
            if tag == self._tag:
                self._depth += 1
            return

        if dict(attrs).get("id") != self._element_id:
            return

        self.found = True
        if tag in _VOID_ELEMENTS:
            self.done = True
            return

        self._tag = tag
        self._depth = 1

    def handle_startendtag(self, tag, attrs):
        if self.done or self._depth:
            return
        if dict(attrs).get("id") == self._element_id:
            self.found = True
            self.done = True

    def handle_endtag(self, tag):
        if self.done or not self._depth:
            return
        if tag == self._tag:
            self._depth -= 1
            if self._depth == 0:
                self.done = True

    def handle_data(self, data):
        if self._depth and not self.done:
            self._parts.append(data)


def find_cache_text(document: str, element_id: str) -> Optional[str]:
    """
    Return the text content of the element with id ``element_id``.

    Returns None if the document has no such element. An element with no
    content returns an empty string.
    """
    finder = _ElementTextFinder(element_id)
    finder.feed(document)
    finder.close()

    if not finder.found:
        return None
    return finder.text


# ---------------------------------------------------------------------------
# Public reader
# ---------------------------------------------------------------------------

def load_cached_metadata(document: str, element_id: str) -> CachedState:
    """
    Read and deserialize the embedded metadata cache.

    Outcomes:
    - no element with ``element_id``       -> ABSENT
    - element without a {...} payload      -> NO_PAYLOAD
    - payload is not a JSON object         -> INVALID_PAYLOAD
      (NaN and Infinity are not JSON)
    - otherwise                            -> LOADED
    """
    cache_text = find_cache_text(document, element_id)

    if cache_text is None:
        logger.debug("No element with id %r in document", element_id)
        return CachedState.absent()

    open_brace = cache_text.find("{")
    close_brace = cache_text.rfind("}")

    if open_brace < 0 or close_brace < 0:
        logger.debug("Cache element %r has no braced payload", element_id)
        return CachedState.no_payload()

    # A "}" that only appears before the first "{" yields an empty slice,
    # which then fails to parse.
    payload = cache_text[open_brace:close_brace + 1]

    try:
        metadata = json.loads(payload, parse_constant=_reject_constant)
    except ValueError as exc:
        logger.debug("Cache payload is not valid JSON: %s", exc)
        return CachedState.invalid_payload()

    if not isinstance(metadata, dict):
        return CachedState.invalid_payload()

    return CachedState.loaded(metadata)
