"""Projects module manifest: tool definitions."""

from core.arguments import ID_PATTERN
from shared.schemas.tools import ModuleManifest, ToolDefinition, ToolParameter

PROJECT_ID_OPTIONAL = ToolParameter(
    name="project_id",
    type="string",
    description=(
        "Project ID (22-char string like 'ePbuhAuFRTWx2tE3VCGBgQ'). "
        "Falls back to the $projectId environment variable when omitted."
    ),
    required=False,
    pattern=ID_PATTERN,
)

MANIFEST = ModuleManifest(
    module_name="projects",
    description="Project lifecycle, discovery and project-level environment variables.",
    tools=[
        ToolDefinition(
            name="project_list",
            description="List all projects across all your organizations.",
        ),
        ToolDefinition(
            name="project_search",
            description="Search for projects by name (case-insensitive, partial match).",
            parameters=[
                ToolParameter(name="name", type="string", description="Project name or part of it."),
            ],
        ),
        ToolDefinition(
            name="project_create",
            description="Create a new project in your first organization.",
            parameters=[
                ToolParameter(name="name", type="string", description="Project name (alphanumeric, hyphens allowed)."),
                ToolParameter(
                    name="description",
                    type="string",
                    description="Optional project description.",
                    required=False,
                ),
                ToolParameter(
                    name="tags",
                    type="array",
                    description="Optional project tags.",
                    required=False,
                    items={"type": "string"},
                ),
            ],
        ),
        ToolDefinition(
            name="project_delete",
            description="Delete a project. WARNING: deletes all of its services and data.",
            parameters=[
                ToolParameter(
                    name="project_id",
                    type="string",
                    description="Project ID (22-char string like 'ePbuhAuFRTWx2tE3VCGBgQ').",
                    pattern=ID_PATTERN,
                ),
                ToolParameter(name="confirm", type="boolean", description="Must be true to confirm deletion."),
            ],
        ),
        ToolDefinition(
            name="discovery",
            description=(
                "ESSENTIAL FIRST STEP: lists every service of a project with its ID, hostname, "
                "type, environment variable keys and running processes, plus the project's own "
                "environment variable keys. Service IDs from here are required by most other tools."
            ),
            parameters=[PROJECT_ID_OPTIONAL],
        ),
        ToolDefinition(
            name="set_project_env",
            description=(
                "Set a project-level environment variable, shared by all services. "
                "Services read the new value only after restart_service."
            ),
            parameters=[
                PROJECT_ID_OPTIONAL,
                ToolParameter(name="key", type="string", description="Variable name.", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$"),
                ToolParameter(name="value", type="string", description="Variable value."),
            ],
        ),
    ],
)
