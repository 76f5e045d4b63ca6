"""Knowledge module manifest: tool definitions."""

from shared.schemas.tools import ModuleManifest, ToolDefinition, ToolParameter

GUIDE_TYPES = ["fresh_project", "existing_service", "add_services"]

MANIFEST = ModuleManifest(
    module_name="knowledge",
    description="Recipes, service configurations and workflow guides for the Zerops platform.",
    tools=[
        ToolDefinition(
            name="knowledge_search",
            description=(
                "Search the Zerops knowledge base for recipes, service configurations and "
                "deployment patterns. Returns ranked results with IDs; pass an ID to "
                "knowledge_get for the full content."
            ),
            parameters=[
                ToolParameter(
                    name="query",
                    type="string",
                    description=(
                        "Search terms: framework names (laravel, django), services "
                        "(nodejs, postgresql) or features (database, cache)."
                    ),
                ),
                ToolParameter(
                    name="limit",
                    type="integer",
                    description="Number of results to return (default 10, max 20).",
                    required=False,
                    minimum=1,
                    maximum=20,
                    default=10,
                ),
            ],
        ),
        ToolDefinition(
            name="knowledge_get",
            description="Get the full content of one knowledge item by its ID.",
            parameters=[
                ToolParameter(
                    name="id",
                    type="string",
                    description="Knowledge ID in the form {type}/{name}, e.g. 'recipe/laravel' or 'service/nodejs'.",
                    pattern=r"^[^/\s]+/\S+$",
                ),
            ],
        ),
        ToolDefinition(
            name="load_platform_guide",
            description=(
                "Load a step-by-step workflow guide. Guides are fetched from the "
                "zagent-knowledge repository and cached for 10 minutes; a built-in "
                "outline is returned when the repository is unreachable.\n\n"
                "- fresh_project: set up a project from scratch\n"
                "- existing_service: develop on services that already run\n"
                "- add_services: extend a project with new services"
            ),
            parameters=[
                ToolParameter(
                    name="path_type",
                    type="string",
                    description="Which guide to load.",
                    enum=GUIDE_TYPES,
                ),
            ],
        ),
    ],
)
