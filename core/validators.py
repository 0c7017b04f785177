"""
Request validators

Pure functions that return ``None`` when a value is valid and a
human-readable message otherwise. ``password`` returns a structured result.
Route handlers collect messages with ValidationErrors and raise once.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from core.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class PasswordValidation:
    valid: bool
    errors: List[str] = field(default_factory=list)


def required(value: Any, field_name: str) -> Optional[str]:
    """Missing means None, a blank string or an empty collection."""
    if value is None:
        return f"{field_name} is required"
    if isinstance(value, str) and not value.strip():
        return f"{field_name} is required"
    if isinstance(value, (list, dict, tuple)) and len(value) == 0:
        return f"{field_name} is required"
    return None


def email(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not EMAIL_PATTERN.match(value):
        return "Invalid email format"
    return None


def password(value: Any) -> PasswordValidation:
    errors = []
    value = value if isinstance(value, str) else ""

    if len(value) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", value):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", value):
        errors.append("Password must contain at least one number")

    return PasswordValidation(valid=not errors, errors=errors)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def positive_number(value: Any, field_name: str) -> Optional[str]:
    if not _is_number(value) or value <= 0:
        return f"{field_name} must be a positive number"
    return None


def non_negative_integer(value: Any, field_name: str) -> Optional[str]:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        return f"{field_name} must be a non-negative integer"
    return None


def int_range(value: Any, field_name: str, low: int, high: int) -> Optional[str]:
    if not isinstance(value, int) or isinstance(value, bool) or not low <= value <= high:
        return f"{field_name} must be between {low} and {high}"
    return None


def string(value: Any, field_name: str) -> Optional[str]:
    if not isinstance(value, str):
        return f"{field_name} must be a string"
    return None


def required_string(value: Any, field_name: str) -> Optional[str]:
    """Present and a string; the missing message wins over the type message."""
    return required(value, field_name) or string(value, field_name)


def optional_string(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    return string(value, field_name)


def one_of(value: Any, field_name: str, choices: Iterable[str]) -> Optional[str]:
    choices = list(choices)
    if value not in choices:
        return f"{field_name} must be one of: {', '.join(choices)}"
    return None


class ValidationErrors:
    """Collects messages so a request reports every failing field at once"""

    def __init__(self):
        self.errors: List[str] = []

    def check(self, message: Optional[str]) -> bool:
        """Record message if present; returns True when the check passed."""
        if message:
            self.errors.append(message)
            return False
        return True

    def extend(self, messages: Iterable[str]) -> None:
        self.errors.extend(messages)

    def __bool__(self) -> bool:
        return bool(self.errors)

    def raise_if_any(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)
