"""HTML escaping for variable output.

Single pass over the text via ``str.translate()`` with a precomputed table,
O(n) in the length of the text.
"""

from __future__ import annotations

from typing import Any

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)


def html_escape(value: Any) -> str:
    """Escape ``& < > " '`` in ``str(value)``.

    Example:
            >>> html_escape('<a href="x">Tom & Jerry</a>')
            '&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&lt;/a&gt;'
    """
    text = value if isinstance(value, str) else str(value)
    return text.translate(_ESCAPE_TABLE)
