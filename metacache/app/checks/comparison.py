"""
Structural comparison of current and cached metadata.

The comparison is strict:
- every current test must have a cached entry, and vice versa
- a field declared on one side only is a mismatch
- shared fields must be lists of equal length with equal elements in
  the same order
- a cached field value that is not a list is a mismatch

The result is a single boolean. The first mismatch found ends the
comparison; reasons are logged at DEBUG level only.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from metacache.app.checks.extraction import FIELD_ALLOWLIST

logger = logging.getLogger(__name__)


def _field_values_match(current_value: Any, cached_value: Any) -> bool:
    if not isinstance(cached_value, list):
        return False
    if not isinstance(current_value, (list, tuple)):
        return False
    if len(cached_value) != len(current_value):
        return False
    for cached_item, current_item in zip(cached_value, current_value):
        if cached_item != current_item:
            return False
    return True


def validate_cache(
    current: Mapping[str, Mapping[str, Any]],
    cached: Mapping[str, Any],
) -> bool:
    """
    Return True if ``cached`` is structurally identical to ``current``.

    Cached entries are consumed from a working copy as they are matched;
    ``cached`` itself is left untouched.
    """
    remaining = dict(cached)

    for test_name, test_metadata in current.items():
        if test_name not in remaining:
            logger.debug("Test %r missing from cache", test_name)
            return False

        cached_test_metadata = remaining.pop(test_name)

        if not isinstance(cached_test_metadata, Mapping):
            logger.debug("Cache entry for %r is not a mapping", test_name)
            return False

        for field in FIELD_ALLOWLIST:
            in_current = field in test_metadata
            in_cached = field in cached_test_metadata

            if in_current and in_cached:
                if not _field_values_match(
                    test_metadata[field], cached_test_metadata[field]
                ):
                    logger.debug(
                        "Field %r differs for test %r", field, test_name
                    )
                    return False
            elif in_current or in_cached:
                logger.debug(
                    "Field %r declared on one side only for test %r",
                    field,
                    test_name,
                )
                return False

    if remaining:
        logger.debug("Cache holds stale tests: %s", sorted(remaining))
        return False

    return True
