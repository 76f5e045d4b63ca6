"""Projects module tool implementations."""

from __future__ import annotations

import re

import structlog

from core.arguments import Arguments
from core.context import InvocationContext
from core.results import HandlerResult, raw, text
from shared.config import Settings
from shared.errors import ToolError, UpstreamError
from shared.schemas.zerops import Project
from shared.zerops_client import ZeropsClient

logger = structlog.get_logger()

ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

PROJECT_ID_HINT = "Get it from project_list, or set the $projectId environment variable."

# Process states that still hold a lock on the service
ACTIVE_PROCESS_STATES = ["PENDING", "RUNNING"]


def format_project(index: int, project: Project, organization: str | None = None) -> str:
    lines = [f"{index}. {project.name}", f"   ID: {project.id}", f"   Status: {project.status}"]
    if organization:
        lines.append(f"   Organization: {organization}")
    if project.description:
        lines.append(f"   Description: {project.description}")
    return "\n".join(lines) + "\n"


def read_env_assignment(a: Arguments) -> tuple[str, str]:
    """Validated (key, value) pair for the env tools."""
    key = a.string("key", required=True)
    if not ENV_KEY_RE.match(key):
        raise ToolError(
            f"Invalid environment variable name: '{key}'. Use letters, digits and underscores, "
            "not starting with a digit."
        )
    value = a.raw("value")
    if not isinstance(value, str):
        raise ToolError("value is required and must be a string")
    return key, value


class ProjectTools:
    """Project lifecycle and discovery."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def _project_id(self, a: Arguments) -> str:
        return a.identifier("project_id", default=self.settings.default_project_id or None, hint=PROJECT_ID_HINT)

    async def _all_projects(self, client: ZeropsClient) -> list[tuple[Project, str]]:
        user = await client.get_user_info()
        projects = []
        for client_user in user.client_user_list:
            organization = client_user.client.account_name if client_user.client else client_user.client_id
            for project in await client.search_projects(client_user.client_id):
                projects.append((project, organization))
        return projects

    async def project_list(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        projects = await self._all_projects(ctx.require_client())
        if not projects:
            return text("No projects found.\n\nCreate your first project with project_create.")
        body = "\n".join(format_project(i, p, org) for i, (p, org) in enumerate(projects, 1))
        return text(f"Found {len(projects)} project(s):\n\n{body}")

    async def project_search(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        name = Arguments(args).string("name", required=True)
        needle = name.lower()
        matches = [
            (project, org)
            for project, org in await self._all_projects(ctx.require_client())
            if needle in project.name.lower()
        ]
        if not matches:
            return text(f"No projects found matching '{name}'")
        body = "\n".join(format_project(i, p, org) for i, (p, org) in enumerate(matches, 1))
        return text(f"Found {len(matches)} project(s) matching '{name}':\n\n{body}")

    async def project_create(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        a = Arguments(args)
        name = a.string("name", required=True)
        description = a.string("description", default="")
        tags = a.raw("tags") or []
        if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
            raise ToolError("tags must be an array of strings")

        user = await client.get_user_info()
        if user.primary_client_id is None:
            raise ToolError("No organizations found for this user")
        project = await client.create_project(user.primary_client_id, name, description, tags)
        logger.info("project_created", project_id=project.id)
        return text(
            "Project created successfully\n\n"
            f"Name: {project.name}\n"
            f"ID: {project.id}\n\n"
            "Next: use import_services to add services"
        )

    async def project_delete(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        a = Arguments(args)
        project_id = a.identifier("project_id")
        if not a.boolean("confirm"):
            return text("Deletion cancelled. Set confirm=true to proceed.")
        process = await client.delete_project(project_id)
        logger.info("project_delete_started", project_id=project_id, process_id=process.id)
        return text(f"Project deletion initiated\nProcess ID: {process.id}")

    async def discovery(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        """Project, its services, env keys and active processes in one structured answer."""
        client = ctx.require_client()
        project_id = self._project_id(Arguments(args))

        project = await client.get_project(project_id)
        project_env = await client.search_project_env(project_id)
        services = await client.search_services(project_id)
        processes = await client.search_processes(project_id=project_id, statuses=ACTIVE_PROCESS_STATES)

        project_info = {
            "id": project.id,
            "name": project.name,
            "status": project.status,
            "environment_variables": {"project_env_keys": [env.key for env in project_env]},
        }
        if not services:
            return raw({
                "services": [],
                "project": project_info,
                "message": "No services found in this project. Use import_services to add services.",
            })

        service_infos = []
        for service in services:
            try:
                env_keys = [env.key for env in await client.search_service_env(service.id)]
            except UpstreamError as e:
                logger.warning("discovery_env_unavailable", service_id=service.id, error=e.detail)
                env_keys = None
            running = [
                {"id": process.id, "action": process.action_name, "status": process.status, "created": process.created}
                for process in processes
                if any(stack.id == service.id for stack in process.service_stacks)
            ]
            service_infos.append({
                "id": service.id,
                "hostname": service.name,
                "type": service.type_name,
                "status": service.status,
                "mode": service.mode,
                "subdomain_access": bool(service.subdomain_access),
                "environment_variables": {"service_env_keys": env_keys},
                "running_processes": running,
            })

        return raw({"services": service_infos, "count": len(service_infos), "project": project_info})

    async def set_project_env(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        a = Arguments(args)
        project_id = self._project_id(a)
        key, value = read_env_assignment(a)
        process = await client.set_project_env(project_id, key, value)
        return raw({
            "process_id": process.id,
            "status": "env_var_set",
            "key": key,
            "message": (
                f"Project environment variable '{key}' has been set. "
                "Restart services that read it with restart_service."
            ),
        })
