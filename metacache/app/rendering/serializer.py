"""
Cache source generation.

Renders the current metadata map as pretty-printed JSON wrapped in a
passive <script> block that can be pasted into the test's <head>:

    <script id="metadata_cache">/*
    {
      "test name": {
        "help": ["http://example.org/spec#section"],
        "assert": ["first assertion",
                   "second assertion"]
      }
    }
    */</script>

Layout rules:
- each mapping entry on its own line, two spaces deeper per level
- single-element lists stay on one line
- further list elements continue on new lines aligned under the key
- an empty mapping renders as "{}"

Output is deterministic: iteration follows insertion order, which for
extracted metadata is test order then field allowlist order.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence


# List continuation lines are indented by at most this much past the
# enclosing indent, however long the key is.
_MAX_LIST_PAD = 16


def _encode_scalar(value: Any) -> str:
    encoded = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    # "<\/" is a JSON escape for "</" that cannot close the enclosing <script>.
    return encoded.replace("</", "<\\/")


def render_array(values: Sequence[Any], indent: str) -> str:
    if len(values) == 1:
        return "[" + _encode_scalar(values[0]) + "]"
    separator = ",\n  " + indent
    return "[" + separator.join(_encode_scalar(v) for v in values) + "]"


def render_value(key: str, value: Any, indent: str) -> str:
    if isinstance(value, (list, tuple)):
        pad = " " * min(5 + len(key), _MAX_LIST_PAD)
        return render_array(value, indent + pad)
    if isinstance(value, Mapping):
        return render_object(value, indent + "  ")
    return _encode_scalar(value)


def render_object(mapping: Mapping[str, Any], indent: str = "") -> str:
    entries = [
        "\n  " + indent + _encode_scalar(key) + ": "
        + render_value(key, value, indent)
        for key, value in mapping.items()
    ]
    if not entries:
        return "{}"
    return "{" + ",".join(entries) + "\n" + indent + "}"


def generate_source(
    metadata: Mapping[str, Any],
    element_id: str = "metadata_cache",
) -> str:
    """
    Render ``metadata`` as an embeddable cache block.
    """
    return (
        f'<script id="{element_id}">/*\n'
        + render_object(metadata)
        + "\n*/</script>\n"
    )


def source_instructions(
    cache_present: bool,
    element_id: str = "metadata_cache",
) -> str:
    """
    Tell the reader where the generated block goes.
    """
    if cache_present:
        return (
            f'Replace the existing <script id="{element_id}"> element '
            "in the test's <head> with the following:"
        )
    return (
        "Copy the following into the <head> element of the test "
        "or the test's metadata sidecar file:"
    )
