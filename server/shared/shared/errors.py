"""Exceptions for expected, reportable tool failures.

Anything raised from this hierarchy is turned into a tool result with
``isError: true`` instead of a protocol-level error. The message is shown
to the caller verbatim, so it should say what went wrong and how to fix it.
"""

from __future__ import annotations


class ToolError(Exception):
    """A tool ran but could not complete the requested operation."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingCredentialError(ToolError):
    def __init__(self, message: str = "No API key provided. Set ZEROPS_API_KEY or send 'Authorization: Bearer <api-key>'."):
        super().__init__(message)


class UpstreamError(ToolError):
    """The infrastructure API rejected a call or could not be reached."""

    def __init__(self, action: str, detail: str, status_code: int | None = None, code: str | None = None):
        super().__init__(f"Failed to {action}: remote call failed: {detail}")
        self.action = action
        self.detail = detail
        self.status_code = status_code
        self.code = code


class KnowledgeUnavailableError(ToolError):
    def __init__(self, detail: str):
        super().__init__(f"knowledge service unavailable: {detail}")
        self.detail = detail
