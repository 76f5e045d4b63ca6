"""Debug module manifest: tool definitions."""

from shared.schemas.tools import ModuleManifest, ToolDefinition

MANIFEST = ModuleManifest(
    module_name="debug",
    description="Connection diagnostics.",
    tools=[
        ToolDefinition(
            name="debug_info",
            description=(
                "Show diagnostic information: calling client, transport, server version, "
                "protocol version, runtime and whether an API credential is present."
            ),
        ),
    ],
)
