"""
Input sanitizer

Escapes HTML-special characters in every string reachable from a request
payload. Applying it twice yields the same result as applying it once.
"""
import re
from typing import Any

_ENTITIES = {
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
}

# A bare "&" is escaped unless it already starts one of the entities above
_AMPERSAND = re.compile(r"&(?!(?:lt|gt|quot|amp|#x27);)")
_SPECIAL = re.compile(r"[<>\"']")


def _sanitize_string(value: str) -> str:
    value = _AMPERSAND.sub("&amp;", value)
    value = _SPECIAL.sub(lambda m: _ENTITIES[m.group(0)], value)
    return value.strip()


def sanitize_input(value: Any) -> Any:
    """Recursively sanitize strings inside lists, tuples and dicts."""
    if isinstance(value, str):
        return _sanitize_string(value)
    if isinstance(value, list):
        return [sanitize_input(item) for item in value]
    if isinstance(value, tuple):
        return tuple(sanitize_input(item) for item in value)
    if isinstance(value, dict):
        return {key: sanitize_input(item) for key, item in value.items()}
    return value
