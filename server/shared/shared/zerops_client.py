"""Async client for the Zerops public REST API.

One client is bound to one API key. Every call opens its own
``httpx.AsyncClient`` so nothing is shared between callers holding
different keys.
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from shared.errors import UpstreamError
from shared.schemas.zerops import (
    EnvVariable,
    ImportResult,
    LogEntry,
    Process,
    Project,
    ProjectLogAccess,
    Region,
    ServiceStack,
    ServiceStackType,
    UserInfo,
)

logger = structlog.get_logger()

API_PREFIX = "/api/rest/public"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _eq(name: str, value: str) -> dict[str, str]:
    return {"name": name, "operator": "eq", "value": value}


def _describe_status_error(resp: httpx.Response) -> tuple[str, str | None]:
    """Build a readable detail from an error response, plus the platform error code."""
    code = None
    message = None
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        code = body["error"].get("code")
        message = body["error"].get("message")
    detail = f"HTTP {resp.status_code}"
    if code:
        detail += f" {code}"
    if message:
        detail += f": {message}"
    elif body is None and resp.text:
        detail += f": {resp.text[:200]}"
    return detail, code


class ZeropsClient:
    """Typed access to the infrastructure API for a single credential."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def __repr__(self) -> str:
        return f"ZeropsClient(base_url={self.base_url!r})"

    def _http(self, **kwargs: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport, **kwargs)

    async def _request(self, method: str, path: str, *, action: str, json: Any = None) -> Any:
        url = f"{self.base_url}{API_PREFIX}{path}"
        headers = {"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"}
        try:
            async with self._http(headers=headers) as client:
                resp = await client.request(method, url, json=json)
        except httpx.TimeoutException:
            logger.warning("zerops_api_timeout", method=method, path=path)
            raise UpstreamError(action, f"timed out after {self.timeout:g}s")
        except httpx.RequestError as e:
            logger.warning("zerops_api_unreachable", method=method, path=path, error=str(e))
            raise UpstreamError(action, str(e) or e.__class__.__name__)

        if resp.status_code >= 400:
            detail, code = _describe_status_error(resp)
            logger.warning("zerops_api_error", method=method, path=path, status=resp.status_code, code=code)
            raise UpstreamError(action, detail, status_code=resp.status_code, code=code)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            raise UpstreamError(action, "response was not valid JSON", status_code=resp.status_code)

    @staticmethod
    def _parse(model: type[ModelT], data: Any, action: str) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(action, f"unexpected response shape ({e.error_count()} errors)")

    def _parse_items(self, model: type[ModelT], data: Any, action: str) -> list[ModelT]:
        items = data.get("items", []) if isinstance(data, dict) else []
        return [self._parse(model, item, action) for item in items]

    # -- Account ------------------------------------------------------------

    async def get_user_info(self) -> UserInfo:
        data = await self._request("GET", "/user/info", action="get user info")
        return self._parse(UserInfo, data, "get user info")

    async def list_regions(self) -> list[Region]:
        data = await self._request("GET", "/region", action="list regions")
        return self._parse_items(Region, data, "list regions")

    # -- Projects -----------------------------------------------------------

    async def search_projects(self, client_id: str) -> list[Project]:
        body = {"search": [_eq("clientId", client_id)]}
        data = await self._request("POST", "/project/search", action="list projects", json=body)
        return self._parse_items(Project, data, "list projects")

    async def get_project(self, project_id: str) -> Project:
        data = await self._request("GET", f"/project/{project_id}", action="get project")
        return self._parse(Project, data, "get project")

    async def create_project(
        self, client_id: str, name: str, description: str = "", tags: list[str] | None = None
    ) -> Project:
        body = {"clientId": client_id, "name": name, "description": description, "tagList": tags or []}
        data = await self._request("POST", "/project", action="create project", json=body)
        return self._parse(Project, data, "create project")

    async def delete_project(self, project_id: str) -> Process:
        data = await self._request("DELETE", f"/project/{project_id}", action="delete project")
        return self._parse(Process, data, "delete project")

    async def search_project_env(self, project_id: str) -> list[EnvVariable]:
        body = {"search": [_eq("projectId", project_id)]}
        data = await self._request("POST", "/project-env/search", action="list project env", json=body)
        return self._parse_items(EnvVariable, data, "list project env")

    async def set_project_env(self, project_id: str, key: str, content: str) -> Process:
        body = {"projectId": project_id, "key": key, "content": content}
        data = await self._request("POST", "/project-env", action="set project env", json=body)
        return self._parse(Process, data, "set project env")

    async def get_project_log_access(self, project_id: str) -> ProjectLogAccess:
        data = await self._request("GET", f"/project/{project_id}/log", action="get log access")
        return self._parse(ProjectLogAccess, data, "get log access")

    async def fetch_logs(self, access: ProjectLogAccess, params: dict[str, Any]) -> list[LogEntry]:
        """Read log lines from the signed endpoint returned by ``get_project_log_access``."""
        method, _, target = access.url.strip().partition(" ")
        if not target:
            method, target = "GET", method
        if not target.startswith(("http://", "https://")):
            target = f"https://{target}"
        # keeps the signature already in the query string
        url = httpx.URL(target).copy_merge_params(params)
        try:
            async with self._http() as client:
                resp = await client.request(method, url)
        except httpx.TimeoutException:
            raise UpstreamError("fetch logs", f"timed out after {self.timeout:g}s")
        except httpx.RequestError as e:
            raise UpstreamError("fetch logs", str(e) or e.__class__.__name__)
        if resp.status_code >= 400:
            detail, code = _describe_status_error(resp)
            raise UpstreamError("fetch logs", detail, status_code=resp.status_code, code=code)
        try:
            data = resp.json()
        except ValueError:
            raise UpstreamError("fetch logs", "response was not valid JSON")
        return self._parse_items(LogEntry, data, "fetch logs")

    # -- Services -----------------------------------------------------------

    async def search_services(self, project_id: str) -> list[ServiceStack]:
        body = {"search": [_eq("projectId", project_id)]}
        data = await self._request("POST", "/service-stack/search", action="list services", json=body)
        return self._parse_items(ServiceStack, data, "list services")

    async def get_service(self, service_id: str) -> ServiceStack:
        data = await self._request("GET", f"/service-stack/{service_id}", action="get service")
        return self._parse(ServiceStack, data, "get service")

    async def delete_service(self, service_id: str) -> Process:
        data = await self._request("DELETE", f"/service-stack/{service_id}", action="delete service")
        return self._parse(Process, data, "delete service")

    async def start_service(self, service_id: str) -> Process:
        data = await self._request("PUT", f"/service-stack/{service_id}/start", action="start service")
        return self._parse(Process, data, "start service")

    async def stop_service(self, service_id: str) -> Process:
        data = await self._request("PUT", f"/service-stack/{service_id}/stop", action="stop service")
        return self._parse(Process, data, "stop service")

    async def enable_subdomain(self, service_id: str) -> Process:
        data = await self._request(
            "PUT", f"/service-stack/{service_id}/enable-subdomain-access", action="enable subdomain access"
        )
        return self._parse(Process, data, "enable subdomain access")

    async def disable_subdomain(self, service_id: str) -> Process:
        data = await self._request(
            "PUT", f"/service-stack/{service_id}/disable-subdomain-access", action="disable subdomain access"
        )
        return self._parse(Process, data, "disable subdomain access")

    async def update_autoscaling(self, service_id: str, autoscaling: dict[str, Any]) -> Process:
        data = await self._request(
            "PUT", f"/service-stack/{service_id}/autoscaling", action="update autoscaling", json=autoscaling
        )
        return self._parse(Process, data, "update autoscaling")

    async def search_service_env(self, service_id: str) -> list[EnvVariable]:
        body = {"search": [_eq("serviceStackId", service_id)]}
        data = await self._request("POST", "/user-data/search", action="list service env", json=body)
        return self._parse_items(EnvVariable, data, "list service env")

    async def set_service_env(self, service_id: str, key: str, content: str) -> Process:
        body = {"serviceStackId": service_id, "key": key, "content": content}
        data = await self._request("POST", "/user-data", action="set service env", json=body)
        return self._parse(Process, data, "set service env")

    async def import_services(self, project_id: str, yaml_text: str) -> ImportResult:
        body = {"projectId": project_id, "yaml": yaml_text}
        data = await self._request("POST", "/service-stack/import", action="import services", json=body)
        return self._parse(ImportResult, data, "import services")

    async def search_service_types(self) -> list[ServiceStackType]:
        data = await self._request("POST", "/service-stack-type/search", action="list service types", json={})
        return self._parse_items(ServiceStackType, data, "list service types")

    # -- Processes ----------------------------------------------------------

    async def get_process(self, process_id: str) -> Process:
        data = await self._request("GET", f"/process/{process_id}", action="get process")
        return self._parse(Process, data, "get process")

    async def search_processes(
        self,
        *,
        project_id: str | None = None,
        service_id: str | None = None,
        statuses: list[str] | None = None,
    ) -> list[Process]:
        search: list[dict[str, Any]] = []
        if project_id:
            search.append(_eq("projectId", project_id))
        if service_id:
            search.append(_eq("serviceStackId", service_id))
        if statuses:
            search.append({"name": "status", "operator": "in", "value": statuses})
        body = {"search": search, "sort": [{"name": "created", "ascending": False}]}
        data = await self._request("POST", "/process/search", action="list processes", json=body)
        return self._parse_items(Process, data, "list processes")
