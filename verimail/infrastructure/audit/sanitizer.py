"""Sanitization of attacker-controlled text before it reaches the audit log.

User agents, submitted email addresses and error messages are written to
the audit trail, which is later rendered in admin views and shipped to log
pipelines. Before storage every such value is:

1. Normalized (NFC) so equivalent strings are stored identically
2. Stripped of control characters and invisible direction/zero-width marks
3. Flattened to a single line (CR, LF, TAB become spaces)
4. Truncated to AUDIT_TEXT_MAX_LENGTH characters
5. HTML-escaped (< > & " ')
"""

import html
import re
import unicodedata
from typing import Any

from verimail.core.constants import AUDIT_TEXT_MAX_LENGTH

# Control characters to remove (except common whitespace)
_CONTROL_CHAR_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

# Invisible characters that can disguise or reorder logged text
_INVISIBLE_PATTERN = re.compile(
    "["
    "\u00ad"  # Soft hyphen
    "\u200b-\u200f"  # Zero-width space, joiners, LRM, RLM
    "\u202a-\u202e"  # BiDi embedding controls
    "\u2060-\u2064"  # Word joiner, invisible operators
    "\u2066-\u2069"  # BiDi isolate controls
    "\ufeff"  # BOM
    "]"
)

_LINE_BREAK_PATTERN = re.compile(r"[\r\n\t]+")


def sanitize_text(value: str, max_length: int = AUDIT_TEXT_MAX_LENGTH) -> str:
    """Make a free-text value safe to store and render.

    Args:
        value: Raw text from the request.
        max_length: Maximum characters kept before escaping.

    Returns:
        Sanitized, HTML-escaped text.

    Example:
        >>> sanitize_text("<script>alert(1)</script>\\r\\nInjected: yes")
        '&lt;script&gt;alert(1)&lt;/script&gt; Injected: yes'
    """
    result = unicodedata.normalize("NFC", value)
    result = _CONTROL_CHAR_PATTERN.sub("", result)
    result = _INVISIBLE_PATTERN.sub("", result)
    result = _LINE_BREAK_PATTERN.sub(" ", result).strip()
    result = result[:max_length]
    return html.escape(result, quote=True)


def sanitize_details(details: dict[str, Any]) -> dict[str, Any]:
    """Sanitize every string inside a JSON-compatible mapping.

    Keys are sanitized too. Nested dicts and lists are walked; numbers,
    booleans and None pass through unchanged.
    """
    return {sanitize_text(str(key), 100): _sanitize_value(v) for key, v in details.items()}


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, dict):
        return sanitize_details(value)
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(item) for item in value]
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return sanitize_text(str(value))


