"""Handler result types.

A tool handler returns exactly one of:

* ``ContentBlocks`` -- text blocks shown to the caller as-is,
* ``RawValue`` -- any JSON-serializable value,
* ``DomainError`` -- a reportable failure, rendered with ``isError: true``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class TextBlock:
    text: str

    def to_wire(self) -> dict[str, str]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ContentBlocks:
    blocks: tuple[TextBlock, ...]


@dataclass(frozen=True)
class RawValue:
    value: Any


@dataclass(frozen=True)
class DomainError:
    message: str


HandlerResult = Union[ContentBlocks, RawValue, DomainError]


def text(*parts: str) -> ContentBlocks:
    """One text block per part."""
    return ContentBlocks(tuple(TextBlock(part) for part in parts))


def raw(value: Any) -> RawValue:
    return RawValue(value)


def error(message: str) -> DomainError:
    return DomainError(message)
