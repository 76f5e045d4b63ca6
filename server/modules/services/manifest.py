"""Services module manifest: tool definitions."""

from core.arguments import ID_PATTERN
from modules.projects.manifest import PROJECT_ID_OPTIONAL
from modules.services.logs import FACILITIES, LOG_FORMATS, SEVERITY_LEVELS
from shared.schemas.tools import ModuleManifest, ToolDefinition, ToolParameter

SERVICE_ID = ToolParameter(
    name="service_id",
    type="string",
    description="Service ID from discovery or service_list (not the hostname).",
    pattern=ID_PATTERN,
)

CONFIRM = ToolParameter(name="confirm", type="boolean", description="Must be true to confirm.")


def _service_tool(name: str, description: str) -> ToolDefinition:
    return ToolDefinition(name=name, description=description, parameters=[SERVICE_ID])


def _limit(name: str, description: str, minimum: float, maximum: float, kind: str = "number") -> ToolParameter:
    return ToolParameter(
        name=name, type=kind, description=description, required=False, minimum=minimum, maximum=maximum
    )


MANIFEST = ModuleManifest(
    module_name="services",
    description="Service lifecycle, scaling, configuration, import and logs.",
    tools=[
        ToolDefinition(
            name="service_list",
            description="List the services of a project with their IDs, types and status.",
            parameters=[PROJECT_ID_OPTIONAL],
        ),
        _service_tool("service_info", "Show details of one service."),
        _service_tool("service_start", "Start a stopped service. Returns a process ID to monitor."),
        _service_tool("service_stop", "Stop a running service. Returns a process ID to monitor."),
        _service_tool(
            "restart_service",
            "Restart a service (stop, then start). Required after changing environment variables; "
            "monitor completion with get_process_status.",
        ),
        ToolDefinition(
            name="service_delete",
            description="Delete a service. WARNING: its data is lost.",
            parameters=[SERVICE_ID, CONFIRM],
        ),
        _service_tool(
            "enable_preview_subdomain",
            "Enable the public *.zerops.app subdomain of a web service. Not needed for databases.",
        ),
        _service_tool("disable_preview_subdomain", "Disable the public *.zerops.app subdomain of a service."),
        ToolDefinition(
            name="scale_service",
            description=(
                "Configure vertical and horizontal autoscaling. Omitted limits keep their current "
                "value; equal min and max pin the allocation."
            ),
            parameters=[
                SERVICE_ID,
                _limit("min_cpu", "Minimum CPU cores (1-20).", 1, 20, kind="integer"),
                _limit("max_cpu", "Maximum CPU cores (1-20), at least min_cpu.", 1, 20, kind="integer"),
                _limit("min_ram", "Minimum RAM in GB (0.25-32).", 0.25, 32),
                _limit("max_ram", "Maximum RAM in GB (0.25-32), at least min_ram.", 0.25, 32),
                _limit("min_disk", "Minimum disk in GB (1-100).", 1, 100),
                _limit("max_disk", "Maximum disk in GB (1-100), at least min_disk.", 1, 100),
                _limit("min_containers", "Minimum container count (1-6).", 1, 6, kind="integer"),
                _limit("max_containers", "Maximum container count (1-6), at least min_containers.", 1, 6, kind="integer"),
            ],
        ),
        ToolDefinition(
            name="remount_service",
            description=(
                "Return the commands that reconnect the SSHFS mount of a service's /var/www. "
                "Use after a deploy or restart when file access through the mount breaks."
            ),
            parameters=[
                ToolParameter(
                    name="service_name",
                    type="string",
                    description="Service hostname (not the ID).",
                    pattern=r"^[a-zA-Z0-9]+$",
                ),
            ],
        ),
        ToolDefinition(
            name="set_service_env",
            description=(
                "Set a service-level environment variable. The service reads it only after restart_service."
            ),
            parameters=[
                SERVICE_ID,
                ToolParameter(name="key", type="string", description="Variable name.", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$"),
                ToolParameter(name="value", type="string", description="Variable value."),
            ],
        ),
        ToolDefinition(
            name="get_service_types",
            description=(
                "List the service types that can be imported, in 'runtime@version' form "
                "(e.g. nodejs@22, postgresql@16). Use it when an import fails with serviceStackTypeNotFound."
            ),
        ),
        ToolDefinition(
            name="import_services",
            description=(
                "Create services in a project from import YAML. Import databases first, then "
                "runtimes with startWithoutCode: true for development. Monitor the returned "
                "processes with get_process_status.\n\n"
                "services:\n  - hostname: app          # lowercase alphanumeric\n"
                "    type: nodejs@22        # from get_service_types\n    startWithoutCode: true"
            ),
            parameters=[
                PROJECT_ID_OPTIONAL,
                ToolParameter(name="yaml", type="string", description="Import YAML with a 'services' list."),
            ],
        ),
        ToolDefinition(
            name="get_service_logs",
            description="Read recent runtime logs of a service, newest first.",
            parameters=[
                SERVICE_ID,
                ToolParameter(
                    name="limit",
                    type="integer",
                    description="Number of log lines (1-1000, default 100).",
                    required=False,
                    minimum=1,
                    maximum=1000,
                    default=100,
                ),
                ToolParameter(
                    name="minimum_severity",
                    type="string",
                    description="Only return entries at this severity or more severe.",
                    required=False,
                    enum=list(SEVERITY_LEVELS),
                ),
                ToolParameter(
                    name="message_type",
                    type="string",
                    description="Log source (default application).",
                    required=False,
                    enum=list(FACILITIES),
                    default="application",
                ),
                ToolParameter(
                    name="format",
                    type="string",
                    description="Output detail (default full).",
                    required=False,
                    enum=LOG_FORMATS,
                    default="full",
                ),
            ],
        ),
    ],
)
