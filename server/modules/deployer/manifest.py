"""Deployer module manifest: tool definitions."""

from shared.schemas.tools import ModuleManifest, ToolDefinition, ToolParameter

WORKING_DIR = ToolParameter(
    name="working_dir",
    type="string",
    description="Directory holding the code to deploy (default: current directory).",
    required=False,
)

CONFIG_PATH = ToolParameter(
    name="config_path",
    type="string",
    description="Path to zerops.yml, relative to working_dir (default: zerops.yml).",
    required=False,
)

MANIFEST = ModuleManifest(
    module_name="deployer",
    description="Push local code to a service with the zcli deployment CLI.",
    tools=[
        ToolDefinition(
            name="deploy_validate",
            description=(
                "Check deployment prerequisites: the working directory exists, git is initialized, "
                "zerops.yml is present and valid YAML, and zcli is installed."
            ),
            parameters=[WORKING_DIR, CONFIG_PATH],
        ),
        ToolDefinition(
            name="deploy_push",
            description=(
                "Deploy code to a service with 'zcli push'. Needs zcli installed, a git repository "
                "with at least one commit, and both the project ID and the service ID "
                "(22-character IDs from project_list and service_list, not hostnames)."
            ),
            parameters=[
                ToolParameter(name="project_id", type="string", description="Project ID from project_list."),
                ToolParameter(
                    name="service_id",
                    type="string",
                    description="Service ID from service_list, NOT the service hostname.",
                ),
                WORKING_DIR,
                CONFIG_PATH,
            ],
        ),
    ],
)
