"""Processes module manifest: tool definitions."""

from core.arguments import ID_PATTERN
from shared.schemas.tools import ModuleManifest, ToolDefinition, ToolParameter

MANIFEST = ModuleManifest(
    module_name="processes",
    description="Follow the asynchronous processes started by lifecycle operations.",
    tools=[
        ToolDefinition(
            name="get_process_status",
            description=(
                "Check the status of an asynchronous process (service start/stop, import, "
                "subdomain changes). Poll until it reports FINISHED, FAILED or CANCELED."
            ),
            parameters=[
                ToolParameter(
                    name="process_id",
                    type="string",
                    description="Process ID returned by the operation.",
                    pattern=ID_PATTERN,
                ),
            ],
        ),
        ToolDefinition(
            name="get_running_processes",
            description=(
                "List pending and running processes, filtered by service or project. "
                "Without filters the default project is used."
            ),
            parameters=[
                ToolParameter(
                    name="service_id",
                    type="string",
                    description="Only processes touching this service.",
                    required=False,
                    pattern=ID_PATTERN,
                ),
                ToolParameter(
                    name="project_id",
                    type="string",
                    description="Only processes of this project.",
                    required=False,
                    pattern=ID_PATTERN,
                ),
            ],
        ),
    ],
)
