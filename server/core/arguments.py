"""Typed access to tool arguments with caller-facing validation errors."""

from __future__ import annotations

import re
from typing import Any, Mapping

from shared.errors import ToolError

ID_PATTERN = r"^[A-Za-z0-9_-]+$"
_ID_RE = re.compile(ID_PATTERN)


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class Arguments:
    """Read-only view over a ``tools/call`` arguments object."""

    def __init__(self, values: Mapping[str, Any] | None):
        self._values = dict(values or {})

    def __contains__(self, key: str) -> bool:
        return self._values.get(key) is not None

    def raw(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def string(
        self,
        key: str,
        *,
        required: bool = False,
        default: str | None = None,
        hint: str | None = None,
    ) -> str | None:
        value = self._values.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            if required:
                message = f"{key} is required"
                raise ToolError(f"{message}. {hint}" if hint else message)
            return default
        if not isinstance(value, str):
            raise ToolError(f"{key} must be a string, got {_type_name(value)}")
        return value.strip()

    def identifier(
        self,
        key: str,
        *,
        required: bool = True,
        default: str | None = None,
        hint: str | None = None,
    ) -> str | None:
        """A platform ID: letters, digits, dashes and underscores only."""
        value = self.string(key, required=required and not default, default=default, hint=hint)
        if value is not None and not _ID_RE.match(value):
            raise ToolError(
                f"Invalid {key} format: '{value}'. IDs contain only letters, digits, '-' and '_'."
                + (f" {hint}" if hint else "")
            )
        return value

    def number(
        self,
        key: str,
        *,
        default: float | None = None,
        minimum: float | None = None,
        maximum: float | None = None,
    ) -> float | None:
        value = self._values.get(key)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ToolError(f"{key} must be a number, got {_type_name(value)}")
        if minimum is not None and value < minimum:
            raise ToolError(f"{key} must be at least {minimum:g}, got {value:g}")
        if maximum is not None and value > maximum:
            raise ToolError(f"{key} must be at most {maximum:g}, got {value:g}")
        return value

    def integer(
        self,
        key: str,
        *,
        default: int | None = None,
        minimum: int | None = None,
        maximum: int | None = None,
    ) -> int | None:
        value = self.number(key, default=None, minimum=minimum, maximum=maximum)
        if value is None:
            return default
        if isinstance(value, float):
            if not value.is_integer():
                raise ToolError(f"{key} must be a whole number, got {value:g}")
            value = int(value)
        return value

    def boolean(self, key: str, *, default: bool = False) -> bool:
        value = self._values.get(key)
        if value is None:
            return default
        if not isinstance(value, bool):
            raise ToolError(f"{key} must be true or false, got {_type_name(value)}")
        return value

    def choice(self, key: str, choices: list[str], *, default: str) -> str:
        value = self.string(key, default=default)
        normalized = value.lower()
        if normalized not in choices:
            raise ToolError(f"Invalid {key}: '{value}'. Valid values: {', '.join(choices)}")
        return normalized
