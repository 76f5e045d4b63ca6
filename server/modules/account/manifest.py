"""Account module manifest: tool definitions."""

from shared.schemas.tools import ModuleManifest, ToolDefinition

MANIFEST = ModuleManifest(
    module_name="account",
    description="Credential checks and account overview.",
    tools=[
        ToolDefinition(
            name="auth_validate",
            description="Validate the API key and show the account it belongs to.",
        ),
        ToolDefinition(
            name="auth_show",
            description="Show the current authentication status, organizations and available regions.",
        ),
    ],
)
