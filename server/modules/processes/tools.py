"""Processes module tool implementations."""

from __future__ import annotations

from typing import Any

from core.arguments import Arguments
from core.context import InvocationContext
from core.results import HandlerResult, raw
from modules.projects.tools import ACTIVE_PROCESS_STATES
from shared.config import Settings
from shared.errors import ToolError
from shared.schemas.zerops import Process

TERMINAL_STATES = {"FINISHED", "FAILED", "CANCELED"}


def describe_process(process: Process) -> dict[str, Any]:
    return {
        "id": process.id,
        "action_name": process.action_name,
        "status": process.status,
        "created": process.created,
        "started": process.started,
        "finished": process.finished,
        "services": [{"id": s.id, "name": s.name} for s in process.service_stacks],
    }


class ProcessTools:
    def __init__(self, settings: Settings):
        self.settings = settings

    async def get_process_status(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        process_id = Arguments(args).identifier("process_id")
        process = await ctx.require_client().get_process(process_id)
        info = describe_process(process)
        if process.status in TERMINAL_STATES:
            info["message"] = f"Process {process.status.lower()}."
        else:
            info["message"] = "Process still in progress. Check again in a few seconds."
        return raw(info)

    async def get_running_processes(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        client = ctx.require_client()
        a = Arguments(args)
        service_id = a.identifier("service_id", required=False)
        project_id = a.identifier("project_id", required=False)
        if service_id is None and project_id is None:
            project_id = self.settings.default_project_id or None
        if service_id is None and project_id is None:
            raise ToolError("Provide service_id or project_id to list processes.")

        processes = await client.search_processes(
            project_id=project_id, service_id=service_id, statuses=ACTIVE_PROCESS_STATES
        )
        result: dict[str, Any] = {
            "processes": [describe_process(p) for p in processes],
            "count": len(processes),
        }
        if service_id:
            result["service_id"] = service_id
        if project_id:
            result["project_id"] = project_id
        if not processes:
            result["message"] = "No running processes found"
        return raw(result)
