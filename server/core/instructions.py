"""Operating instructions sent to pipe-transport callers on ``initialize``."""

from __future__ import annotations

import structlog

from core.context import ClientInfo

logger = structlog.get_logger()

# (substring in the client name, model family); first match wins
_CLIENT_FAMILIES = [
    ("claude", "claude"),
    ("chatgpt", "chatgpt"),
    ("openai", "chatgpt"),
    ("gemini", "gemini"),
    ("google", "gemini"),
    ("cursor", "cursor"),
    ("copilot", "copilot"),
]

_BASE = """# Zerops MCP Instructions

## Start with the knowledge base
Before creating anything, look up a proven configuration:
- knowledge_search("technology stack") finds recipes and patterns
- knowledge_get("recipe/name") returns the complete configuration
- load_platform_guide("fresh_project") explains the end-to-end workflow
"""

_FAMILY_HINTS = {
    "claude": """
## Notes for Claude
- Use knowledge_search generously before writing any YAML
- When a deployment fails, read get_service_logs before changing configuration
""",
    "chatgpt": """
## Notes for ChatGPT
- Break deployments into sequential steps and confirm each one
- Verify service types with get_service_types before importing
""",
    "gemini": """
## Notes for Gemini
- Choose HA mode for production databases and NON_HA for development
- Size scale_service limits from observed usage, not guesses
""",
    "cursor": """
## Notes for Cursor
- zerops.yml and zerops-project-import.yml live in the repository root
- Use deploy_validate before deploy_push to catch configuration mistakes early
""",
    "copilot": """
## Notes for GitHub Copilot
- Check existing zerops.yml files in the repository and follow their patterns
- Use knowledge_get for service configuration templates
""",
    "generic": """
## General guidelines
- Verify service types with get_service_types or the knowledge base
- Ask for clarification when requirements are unclear
""",
}

_WORKFLOW = """
## Workflow
1. discovery(project_id) shows the project, its services and running processes
2. import_services(project_id, yaml) creates services from zerops-project-import.yml
3. git init && git add . && git commit (deploys need at least one commit)
4. deploy_push(project_id, service_id) builds and deploys the working directory
5. get_process_status(process_id) and get_service_logs(service_id) track the result

## Key requirements
- Service IDs are the 22-character IDs shown by service_list, never the hostname
- The setup name in zerops.yml must match the service hostname
- Hostnames are lowercase alphanumeric, without hyphens

## Recovering from errors
- serviceStackTypeNotFound: call get_service_types and use an exact type such as postgresql@16
- A failed deploy: run deploy_validate, then read the build logs with get_service_logs
"""


def detect_client_family(client_info: ClientInfo | None) -> str:
    name = (client_info.name if client_info else "").lower()
    for needle, family in _CLIENT_FAMILIES:
        if needle in name:
            return family
    return "generic"


def get_instructions(client_info: ClientInfo | None) -> str:
    """Instructions tailored to the connected client."""
    family = detect_client_family(client_info)
    logger.info(
        "instructions_customized",
        client_name=client_info.name if client_info else None,
        client_version=client_info.version if client_info else None,
        family=family,
    )
    return _BASE + _FAMILY_HINTS[family] + _WORKFLOW
