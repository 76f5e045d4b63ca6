"""Tool registry - the catalogue every transport dispatches through."""

from __future__ import annotations

import threading
import time
from typing import Any, Mapping

import structlog

from core.context import InvocationContext
from core.results import ContentBlocks, DomainError, HandlerResult, RawValue
from shared.errors import ToolError
from shared.schemas.tools import ModuleManifest, ToolDefinition

logger = structlog.get_logger()


class ToolNotFoundError(LookupError):
    """No tool is registered under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"tool not found: {name}")
        self.name = name


class ToolRegistry:
    """Maps tool names to bound definitions.

    Safe to read and write from several threads or tasks at once. The lock
    only guards the map; handlers run outside of it.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._lock = threading.RLock()

    def register(self, definition: ToolDefinition) -> None:
        """Insert or replace the definition under its name. Last registration wins."""
        if definition.handler is None:
            raise ValueError(f"Tool '{definition.name}' has no handler bound")
        with self._lock:
            replaced = definition.name in self._tools
            self._tools[definition.name] = definition
        if replaced:
            logger.warning("tool_replaced", tool=definition.name)

    def register_manifest(self, manifest: ModuleManifest, target: object) -> None:
        """Register every tool of a manifest, bound to the same-named method on ``target``."""
        for definition in manifest.tools:
            handler = getattr(target, definition.name, None)
            if handler is None:
                raise ValueError(f"{type(target).__name__} has no handler for tool '{definition.name}'")
            self.register(definition.bind(handler))
        logger.debug("module_registered", module=manifest.module_name, tools=len(manifest.tools))

    def get(self, name: str) -> ToolDefinition | None:
        with self._lock:
            return self._tools.get(name)

    def list(self) -> list[ToolDefinition]:
        """Snapshot of all tools, sorted by name."""
        with self._lock:
            tools = list(self._tools.values())
        return sorted(tools, key=lambda tool: tool.name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools

    async def invoke(
        self, ctx: InvocationContext, name: str, arguments: Mapping[str, Any] | None
    ) -> HandlerResult:
        """Run a tool and return its result.

        Raises ``ToolNotFoundError`` for unknown names. Handler failures come
        back as ``DomainError`` so one broken call never takes the server down.
        """
        definition = self.get(name)
        if definition is None:
            raise ToolNotFoundError(name)

        log = logger.bind(tool=name, transport=ctx.transport.value)
        started = time.monotonic()
        try:
            result = await definition.handler(ctx, dict(arguments or {}))
        except ToolError as e:
            log.info("tool_failed", error=e.message)
            return DomainError(e.message)
        except Exception as e:
            log.exception("tool_crashed", error=str(e))
            return DomainError(f"Internal error in tool '{name}': {e}")

        if not isinstance(result, (ContentBlocks, RawValue, DomainError)):
            log.error("tool_bad_result", result_type=type(result).__name__)
            return DomainError(f"Internal error in tool '{name}': unsupported result type {type(result).__name__}")

        log.info(
            "tool_invoked",
            duration_ms=round((time.monotonic() - started) * 1000),
            is_error=isinstance(result, DomainError),
        )
        return result
