"""Server assembly: logging, the tool registry and the two transports."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import structlog

from core.context import TransportKind
from core.dispatcher import Dispatcher, Session
from core.registry import ToolRegistry
from core.transports.http import create_app
from core.transports.stdio import StdioTransport, open_stdin_reader
from modules.account.manifest import MANIFEST as ACCOUNT_MANIFEST
from modules.account.tools import AccountTools
from modules.debug.manifest import MANIFEST as DEBUG_MANIFEST
from modules.debug.tools import DebugTools
from modules.deployer.executor import ProcessExecutor
from modules.deployer.manifest import MANIFEST as DEPLOYER_MANIFEST
from modules.deployer.tools import DeployerTools
from modules.knowledge.manifest import MANIFEST as KNOWLEDGE_MANIFEST
from modules.knowledge.tools import KnowledgeTools
from modules.processes.manifest import MANIFEST as PROCESSES_MANIFEST
from modules.processes.tools import ProcessTools
from modules.projects.manifest import MANIFEST as PROJECTS_MANIFEST
from modules.projects.tools import ProjectTools
from modules.services.manifest import MANIFEST as SERVICES_MANIFEST
from modules.services.tools import ServiceTools
from shared.config import SERVER_NAME, SERVER_VERSION, Settings

logger = structlog.get_logger()


class StartupError(Exception):
    """The server cannot start with the current configuration."""


def configure_logging(level: str = "info") -> None:
    """JSON logs on stderr; stdout is reserved for the pipe transport."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_registry(settings: Settings, executor: ProcessExecutor | None = None) -> ToolRegistry:
    """Register every module's tools, bound to their handler objects."""
    registry = ToolRegistry()
    registry.register_manifest(ACCOUNT_MANIFEST, AccountTools())
    registry.register_manifest(PROJECTS_MANIFEST, ProjectTools(settings))
    registry.register_manifest(SERVICES_MANIFEST, ServiceTools(settings))
    registry.register_manifest(PROCESSES_MANIFEST, ProcessTools(settings))
    registry.register_manifest(DEPLOYER_MANIFEST, DeployerTools(settings, executor))
    registry.register_manifest(KNOWLEDGE_MANIFEST, KnowledgeTools(settings))
    registry.register_manifest(DEBUG_MANIFEST, DebugTools(settings))
    logger.info("tools_registered", count=len(registry))
    return registry


async def serve_stdio(settings: Settings, registry: ToolRegistry | None = None) -> None:
    api_key = settings.zerops_api_key or None
    if api_key is None and not settings.mcp_skip_api_key_validation:
        raise StartupError(
            "ZEROPS_API_KEY is not set. Set it, or pass --skip-validation to start without a credential."
        )

    if registry is None:
        registry = build_registry(settings)
    dispatcher = Dispatcher(registry, settings)
    session = Session(TransportKind.STDIO, api_key=api_key)
    reader = await open_stdin_reader()
    transport = StdioTransport(dispatcher, session, reader, sys.stdout.buffer)

    task = asyncio.current_task()
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, task.cancel)
        except (NotImplementedError, RuntimeError):
            # not supported on this platform's event loop
            continue
        installed.append(sig)

    logger.info("server_starting", server=SERVER_NAME, version=SERVER_VERSION, transport="stdio")
    try:
        await transport.serve()
    except asyncio.CancelledError:
        logger.info("server_stopped", transport="stdio", reason="signal")
        return
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def serve_http(settings: Settings, registry: ToolRegistry | None = None) -> None:
    import uvicorn

    if registry is None:
        registry = build_registry(settings)
    app = create_app(registry, settings)
    logger.info(
        "server_starting",
        server=SERVER_NAME,
        version=SERVER_VERSION,
        transport="http",
        host=settings.mcp_host,
        port=settings.mcp_port,
    )
    uvicorn.run(app, host=settings.mcp_host, port=settings.mcp_port, log_level=settings.log_level.lower())
