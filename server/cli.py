"""Command-line entry point for the Zerops MCP server."""

from __future__ import annotations

import asyncio

import click

from shared.config import SERVER_NAME, SERVER_VERSION, get_settings


@click.group()
@click.version_option(SERVER_VERSION, prog_name=SERVER_NAME)
def cli():
    """Zerops MCP server."""
    pass


@cli.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "http"]),
    default=None,
    help="Transport to serve (default: MCP_TRANSPORT or stdio).",
)
@click.option("--host", default=None, help="HTTP bind address (default: MCP_HOST).")
@click.option("--port", type=int, default=None, help="HTTP port (default: MCP_PORT).")
@click.option(
    "--skip-validation",
    is_flag=True,
    default=False,
    help="Start the stdio transport without ZEROPS_API_KEY (local testing).",
)
def serve(transport, host, port, skip_validation):
    """Serve MCP tools over stdio or HTTP."""
    from core.main import StartupError, configure_logging, serve_http, serve_stdio

    settings = get_settings()
    overrides = {}
    if transport:
        overrides["mcp_transport"] = transport
    if host:
        overrides["mcp_host"] = host
    if port:
        overrides["mcp_port"] = port
    if skip_validation:
        overrides["mcp_skip_api_key_validation"] = True
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level)
    if settings.mcp_transport == "http":
        serve_http(settings)
        return
    try:
        asyncio.run(serve_stdio(settings))
    except StartupError as e:
        raise click.ClickException(str(e))


@cli.command()
def tools():
    """List the registered tools."""
    from core.main import build_registry, configure_logging

    settings = get_settings()
    configure_logging("warning")
    for definition in build_registry(settings).list():
        summary = (definition.description.splitlines() or [""])[0]
        click.echo(f"{definition.name}: {summary}")


if __name__ == "__main__":
    cli()
