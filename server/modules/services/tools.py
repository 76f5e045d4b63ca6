"""Services module tool implementations."""

from __future__ import annotations

from typing import Any

import structlog

from core.arguments import Arguments
from core.context import InvocationContext
from core.results import HandlerResult, raw, text
from modules.projects.tools import PROJECT_ID_HINT, read_env_assignment
from modules.services.logs import FACILITIES, LOG_FORMATS, SEVERITY_LEVELS, build_log_query, format_logs
from modules.services.service_types import (
    HIDDEN_TYPE_NAMES,
    HIDDEN_TYPE_PREFIXES,
    parse_import_yaml,
    type_hints,
)
from shared.config import Settings
from shared.errors import ToolError, UpstreamError
from shared.schemas.zerops import Process, ServiceStack

logger = structlog.get_logger()

SERVICE_ID_HINT = "Get it from discovery or service_list."

# (argument pair, autoscaling section, field)
SCALING_LIMITS = [
    ("cpu", "vertical", "cpu"),
    ("ram", "vertical", "memory"),
    ("disk", "vertical", "diskGBytes"),
    ("containers", "horizontal", "Containers"),
]


def format_service(index: int, service: ServiceStack) -> str:
    lines = [
        f"{index}. {service.name} ({service.type_name})",
        f"   SERVICE_ID: {service.id}",
        f"   Status: {service.status}",
    ]
    if service.mode:
        lines.append(f"   Mode: {service.mode}")
    if service.subdomain_access is not None:
        lines.append(f"   Subdomain: {'enabled' if service.subdomain_access else 'disabled'}")
    return "\n".join(lines) + "\n"


def process_summary(process: Process, message: str, **extra: Any) -> dict[str, Any]:
    return {
        "process_id": process.id,
        "action_name": process.action_name,
        "status": process.status,
        **extra,
        "message": message,
    }


def build_autoscaling(a: Arguments) -> dict[str, Any]:
    """Autoscaling request body from the optional min/max arguments."""
    vertical_min: dict[str, Any] = {}
    vertical_max: dict[str, Any] = {}
    horizontal: dict[str, Any] = {}
    for name, section, field in SCALING_LIMITS:
        if name in ("cpu", "containers"):
            low = a.integer(f"min_{name}")
            high = a.integer(f"max_{name}")
        else:
            low = a.number(f"min_{name}")
            high = a.number(f"max_{name}")
        if low is not None and high is not None and low > high:
            raise ToolError(f"min_{name} ({low:g}) must not be greater than max_{name} ({high:g})")
        if section == "vertical":
            if low is not None:
                vertical_min[field] = low
            if high is not None:
                vertical_max[field] = high
        else:
            if low is not None:
                horizontal[f"min{field}"] = low
            if high is not None:
                horizontal[f"max{field}"] = high

    body: dict[str, Any] = {}
    if vertical_min or vertical_max:
        vertical: dict[str, Any] = {}
        if vertical_min:
            vertical["minResource"] = vertical_min
        if vertical_max:
            vertical["maxResource"] = vertical_max
        body["verticalAutoscaling"] = vertical
    if horizontal:
        body["horizontalAutoscaling"] = horizontal
    if not body:
        raise ToolError(
            "Provide at least one limit: min_cpu, max_cpu, min_ram, max_ram, min_disk, max_disk, "
            "min_containers or max_containers"
        )
    return body


def remount_commands(service_name: str) -> dict[str, str]:
    mount_path = f"/var/www/{service_name}"
    unmount = f'fusermount -u "{mount_path}" 2>/dev/null || umount "{mount_path}" 2>/dev/null || true'
    mkdir = f'mkdir -p "{mount_path}"'
    sshfs = (
        "sshfs -o StrictHostKeyChecking=no,reconnect,ServerAliveInterval=15,"
        f'ServerAliveCountMax=3,auto_cache,kernel_cache "{service_name}:/var/www" "{mount_path}"'
    )
    combined = (
        f'if mount | grep -q "{mount_path}"; then\n    {unmount}\nfi\n{mkdir}\n{sshfs}\n'
    )
    return {
        "check_mount": f'mount | grep "{mount_path}"',
        "unmount": unmount,
        "mkdir": mkdir,
        "sshfs": sshfs,
        "combined": combined,
    }


class ServiceTools:
    """Service lifecycle, configuration and observability."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @staticmethod
    def _service_id(a: Arguments) -> str:
        return a.identifier("service_id", hint=SERVICE_ID_HINT)

    async def service_list(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        project_id = Arguments(args).identifier(
            "project_id", default=self.settings.default_project_id or None, hint=PROJECT_ID_HINT
        )
        services = await client.search_services(project_id)
        if not services:
            return text(f"No services in project {project_id}.\n\nAdd services with import_services.")
        body = "\n".join(format_service(i, s) for i, s in enumerate(services, 1))
        return text(
            f"Found {len(services)} service(s):\n\n{body}\n"
            "Use the SERVICE_ID value (not the hostname) with other tools."
        )

    async def service_info(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        service = await ctx.require_client().get_service(self._service_id(Arguments(args)))
        details = format_service(1, service).split("\n", 1)[1]
        return text(
            f"Service: {service.name}\nType: {service.type_name}\nProject ID: {service.project_id}\n"
            f"Created: {service.created or 'unknown'}\n{details}"
        )

    async def service_start(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        service_id = self._service_id(Arguments(args))
        process = await ctx.require_client().start_service(service_id)
        return raw(process_summary(process, "Service start initiated. Monitor it with get_process_status.", service_id=service_id))

    async def service_stop(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        service_id = self._service_id(Arguments(args))
        process = await ctx.require_client().stop_service(service_id)
        return raw(process_summary(process, "Service stop initiated. Monitor it with get_process_status.", service_id=service_id))

    async def restart_service(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        service_id = self._service_id(Arguments(args))
        service = await client.get_service(service_id)
        stop = await client.stop_service(service_id)
        start = await client.start_service(service_id)
        logger.info("service_restarted", service_id=service_id, stop_process=stop.id, start_process=start.id)
        return raw(process_summary(
            start,
            "Service restart initiated (stop + start). Monitor it with get_process_status.",
            service_id=service_id,
            service_name=service.name,
            stop_process_id=stop.id,
            start_process_id=start.id,
        ))

    async def service_delete(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        a = Arguments(args)
        service_id = self._service_id(a)
        if not a.boolean("confirm"):
            return text("Deletion cancelled. Set confirm=true to proceed.")
        process = await client.delete_service(service_id)
        return text(f"Service deletion initiated\nProcess ID: {process.id}")

    async def enable_preview_subdomain(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        service_id = self._service_id(Arguments(args))
        process = await ctx.require_client().enable_subdomain(service_id)
        return raw(process_summary(
            process,
            "Subdomain enablement started. Check progress with get_process_status; "
            "once finished, discovery shows the URL.",
            service_id=service_id,
        ))

    async def disable_preview_subdomain(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        service_id = self._service_id(Arguments(args))
        process = await ctx.require_client().disable_subdomain(service_id)
        return raw(process_summary(process, "Subdomain disablement started.", service_id=service_id))

    async def scale_service(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        a = Arguments(args)
        service_id = self._service_id(a)
        autoscaling = build_autoscaling(a)
        process = await client.update_autoscaling(service_id, autoscaling)
        return raw(process_summary(
            process,
            "Scaling configuration submitted.",
            service_id=service_id,
            autoscaling=autoscaling,
        ))

    async def remount_service(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        service_name = Arguments(args).string("service_name", required=True)
        if not service_name.isalnum() or not service_name.isascii():
            raise ToolError(f"Invalid service_name: '{service_name}'. Use the service hostname, letters and digits only.")
        commands = remount_commands(service_name)
        return raw({
            "service_name": service_name,
            "mount_path": f"/var/www/{service_name}",
            "commands": commands,
            "message": f"Commands to remount SSHFS for service '{service_name}'. Run 'combined', or the steps in order.",
        })

    async def set_service_env(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        a = Arguments(args)
        service_id = self._service_id(a)
        key, value = read_env_assignment(a)
        process = await client.set_service_env(service_id, key, value)
        return raw(process_summary(
            process,
            f"Service environment variable '{key}' has been set. Apply it with restart_service.",
            service_id=service_id,
            key=key,
        ))

    async def get_service_types(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        stack_types = await ctx.require_client().search_service_types()
        names: list[str] = []
        for stack_type in stack_types:
            if stack_type.name.startswith(HIDDEN_TYPE_PREFIXES) or stack_type.name in HIDDEN_TYPE_NAMES:
                continue
            versions = [v.name for v in stack_type.service_stack_type_version_list]
            if stack_type.default_service_stack_version:
                versions.insert(0, stack_type.default_service_stack_version.name)
            for version in versions:
                # version names already carry the type prefix, e.g. "nodejs@22"
                name = version if "@" in version else f"{stack_type.name}@{version}"
                if name not in names:
                    names.append(name)
        return raw({
            "service_types": names,
            "count": len(names),
            "note": "Use knowledge_search for configuration examples of a type.",
        })

    async def import_services(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        a = Arguments(args)
        project_id = a.identifier("project_id", default=self.settings.default_project_id or None, hint=PROJECT_ID_HINT)
        a.string("yaml", required=True, hint="Pass import YAML with a 'services' list.")
        # sent upstream exactly as given
        yaml_text = a.raw("yaml")
        services = parse_import_yaml(yaml_text)
        hints = type_hints(services)

        try:
            result = await client.import_services(project_id, yaml_text)
        except UpstreamError as e:
            if e.code == "serviceStackTypeNotFound" or "serviceStackTypeNotFound" in e.detail:
                message = "Service type not found. Check available types with get_service_types."
                if hints:
                    message += "\n" + "\n".join(f"- {hint}" for hint in hints)
                raise ToolError(message)
            raise

        failed = [s for s in result.service_stacks if s.error]
        logger.info("services_imported", project_id=project_id, services=len(result.service_stacks), failed=len(failed))
        return raw({
            "status": "import_completed" if not failed else "import_partially_failed",
            "project_id": result.project_id or project_id,
            "project_name": result.project_name,
            "service_stacks": [s.model_dump(by_alias=True) for s in result.service_stacks],
            "warnings": hints,
            "message": "Services are being created. Use discovery to see their IDs and get_running_processes to follow progress.",
        })

    async def get_service_logs(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        a = Arguments(args)
        service_id = self._service_id(a)
        limit = a.integer("limit", default=100, minimum=1, maximum=1000)
        message_type = a.choice("message_type", list(FACILITIES), default="application")
        log_format = a.choice("format", LOG_FORMATS, default="full")
        severity = None
        if "minimum_severity" in a:
            severity = a.choice("minimum_severity", list(SEVERITY_LEVELS), default="")

        service = await client.get_service(service_id)
        access = await client.get_project_log_access(service.project_id)
        entries = await client.fetch_logs(access, build_log_query(service_id, limit, message_type, severity))

        return raw({
            "service_id": service_id,
            "service_name": service.name,
            "project_id": service.project_id,
            "logs": format_logs(entries, log_format),
            "total_entries": len(entries),
            "parameters": {
                "limit": limit,
                "minimum_severity": severity,
                "message_type": message_type,
                "format": log_format,
            },
        })
