"""Debug module tool implementations."""

from __future__ import annotations

import platform

from core.context import InvocationContext, TransportKind
from core.instructions import detect_client_family
from core.results import HandlerResult, text
from shared.config import SERVER_NAME, SERVER_VERSION, Settings

_FAMILY_LABELS = {
    "claude": "Claude (Anthropic)",
    "chatgpt": "ChatGPT (OpenAI)",
    "gemini": "Gemini (Google)",
    "cursor": "Cursor",
    "copilot": "GitHub Copilot",
}


class DebugTools:
    def __init__(self, settings: Settings):
        self.settings = settings

    async def debug_info(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        lines = ["=== CLIENT INFORMATION ==="]
        info = ctx.client_info
        if info is not None and info.name:
            lines += [f"Client: {info.name}", f"Version: {info.version or 'unknown'}"]
        else:
            lines += [
                "Client: Unknown (no clientInfo sent)",
                "Note: client info is only sent in the initialize request",
            ]
        family = detect_client_family(info)
        label = _FAMILY_LABELS.get(family)
        if label:
            lines.append(f"Detected family: {label}")
        elif info is not None and info.name:
            lines.append(f"Detected family: unknown client ({info.name})")

        lines += ["", "=== TRANSPORT MODE ==="]
        if ctx.transport is TransportKind.HTTP:
            lines += ["Mode: HTTP (remote)", "Auth: per-request Bearer token"]
        else:
            lines += ["Mode: stdio (local)", "Auth: environment variable"]

        lines += [
            "",
            "=== SERVER INFORMATION ===",
            f"Server: {SERVER_NAME}",
            f"Version: {SERVER_VERSION}",
            f"Protocol: {ctx.protocol_version or 'not negotiated'}",
            f"Python: {platform.python_version()}",
            f"OS/Arch: {platform.system().lower()}/{platform.machine()}",
            "",
            "=== API CONNECTION ===",
        ]
        if ctx.client is not None:
            lines += ["Credential: present", f"Endpoint: {self.settings.zerops_api_url}"]
        else:
            lines.append("Credential: missing")
        return text("\n".join(lines))
