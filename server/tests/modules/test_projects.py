"""Tests for the projects and account modules."""

from __future__ import annotations

import json

import httpx
import pytest

from conftest import PROJECT_ID, SERVICE_ID, make_process, make_service, make_user, text_of
from core.results import RawValue
from modules.account.tools import AccountTools
from modules.projects.tools import ProjectTools
from shared.errors import MissingCredentialError, ToolError


@pytest.fixture
def tools(settings):
    return ProjectTools(settings)


def _project(project_id: str, name: str, client_id: str = "c1", **extra) -> dict:
    return {"id": project_id, "clientId": client_id, "name": name, "status": "ACTIVE", **extra}


def _projects_by_client(api, mapping: dict[str, list[dict]]) -> None:
    def handler(request):
        client_id = json.loads(request.content)["search"][0]["value"]
        return httpx.Response(200, json={"items": mapping.get(client_id, [])})

    api.add_handler("POST", "/project/search", handler)


class TestProjectList:

    @pytest.mark.asyncio
    async def test_lists_projects_of_every_organization(self, tools, ctx, api):
        api.add("GET", "/user/info", make_user(("c1", "Acme"), ("c2", "Side Gig")))
        _projects_by_client(api, {
            "c1": [_project("p1", "shop", description="Online shop")],
            "c2": [_project("p2", "blog", client_id="c2")],
        })
        body = text_of(await tools.project_list(ctx, {}))
        assert "Found 2 project(s)" in body
        assert "1. shop" in body
        assert "Organization: Acme" in body
        assert "Description: Online shop" in body
        assert "2. blog" in body
        assert "Organization: Side Gig" in body

    @pytest.mark.asyncio
    async def test_empty(self, tools, ctx, api):
        api.add("GET", "/user/info", make_user(("c1", "Acme")))
        _projects_by_client(api, {})
        body = text_of(await tools.project_list(ctx, {}))
        assert body.startswith("No projects found.")

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_substring(self, tools, ctx, api):
        api.add("GET", "/user/info", make_user(("c1", "Acme")))
        _projects_by_client(api, {"c1": [_project("p1", "Web-Shop"), _project("p2", "blog")]})
        body = text_of(await tools.project_search(ctx, {"name": "shop"}))
        assert "Found 1 project(s) matching 'shop'" in body
        assert "Web-Shop" in body
        assert "blog" not in body

    @pytest.mark.asyncio
    async def test_requires_credential(self, tools, anon_ctx):
        with pytest.raises(MissingCredentialError, match="No API key provided"):
            await tools.project_list(anon_ctx, {})


class TestProjectLifecycle:

    @pytest.mark.asyncio
    async def test_create_in_primary_organization(self, tools, ctx, api):
        api.add("GET", "/user/info", make_user(("c1", "Acme"), ("c2", "Other")))
        api.add("POST", "/project", _project("pnew", "demo"))
        body = text_of(await tools.project_create(ctx, {"name": "demo", "tags": ["test"]}))
        assert api.json_of("POST", "/project") == {
            "clientId": "c1", "name": "demo", "description": "", "tagList": ["test"],
        }
        assert "ID: pnew" in body

    @pytest.mark.asyncio
    async def test_create_rejects_bad_tags(self, tools, ctx):
        with pytest.raises(ToolError, match="tags must be an array of strings"):
            await tools.project_create(ctx, {"name": "demo", "tags": "test"})

    @pytest.mark.asyncio
    async def test_create_without_organization(self, tools, ctx, api):
        api.add("GET", "/user/info", make_user())
        with pytest.raises(ToolError, match="No organizations found"):
            await tools.project_create(ctx, {"name": "demo"})

    @pytest.mark.asyncio
    async def test_delete_requires_confirm(self, tools, ctx, api):
        body = text_of(await tools.project_delete(ctx, {"project_id": PROJECT_ID, "confirm": False}))
        assert "Deletion cancelled" in body
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_delete_confirm_must_be_boolean(self, tools, ctx):
        with pytest.raises(ToolError, match="confirm must be true or false"):
            await tools.project_delete(ctx, {"project_id": PROJECT_ID, "confirm": "yes"})

    @pytest.mark.asyncio
    async def test_set_project_env(self, tools, ctx, api):
        api.add("POST", "/project-env", make_process("env1", "projectEnv.create"))
        result = await tools.set_project_env(ctx, {"project_id": PROJECT_ID, "key": "APP_ENV", "value": ""})
        assert isinstance(result, RawValue)
        assert result.value["status"] == "env_var_set"
        assert api.json_of("POST", "/project-env") == {"projectId": PROJECT_ID, "key": "APP_ENV", "content": ""}


class TestDiscovery:

    def _stub(self, api, services: list[dict]) -> None:
        api.add("GET", f"/project/{PROJECT_ID}", _project(PROJECT_ID, "demo"))
        api.add("POST", "/project-env/search", {"items": [{"key": "SHARED_SECRET", "content": "hidden"}]})
        api.add("POST", "/service-stack/search", {"items": services})
        api.add("POST", "/process/search", {"items": [
            make_process("run1", "stack.build", "RUNNING", serviceStacks=[{"id": SERVICE_ID, "name": "app"}]),
        ]})

    @pytest.mark.asyncio
    async def test_services_env_keys_and_processes(self, tools, ctx, api):
        self._stub(api, [make_service(subdomainAccess=True), make_service("svcdb", name="db")])
        api.add_handler("POST", "/user-data/search", lambda request: _user_data(request))
        result = await tools.discovery(ctx, {"project_id": PROJECT_ID})
        value = result.value
        assert value["count"] == 2
        assert value["project"]["environment_variables"]["project_env_keys"] == ["SHARED_SECRET"]
        app, db = value["services"]
        assert app["environment_variables"]["service_env_keys"] == ["PORT"]
        assert app["subdomain_access"] is True
        assert [p["id"] for p in app["running_processes"]] == ["run1"]
        assert db["running_processes"] == []
        assert db["environment_variables"]["service_env_keys"] is None
        # values never leave the server
        assert "hidden" not in json.dumps(value)

    @pytest.mark.asyncio
    async def test_empty_project(self, tools, ctx, api):
        self._stub(api, [])
        result = await tools.discovery(ctx, {"project_id": PROJECT_ID})
        assert result.value["services"] == []
        assert "import_services" in result.value["message"]

    @pytest.mark.asyncio
    async def test_default_project(self, settings, ctx, api):
        self._stub(api, [])
        tools = ProjectTools(settings.model_copy(update={"default_project_id": PROJECT_ID}))
        result = await tools.discovery(ctx, {})
        assert result.value["project"]["id"] == PROJECT_ID


def _user_data(request):
    service_id = json.loads(request.content)["search"][0]["value"]
    if service_id == SERVICE_ID:
        return httpx.Response(200, json={"items": [{"key": "PORT", "content": "3000"}]})
    return httpx.Response(403, json={"error": {"code": "forbidden", "message": "no access"}})


class TestAccount:

    @pytest.mark.asyncio
    async def test_validate(self, ctx, api):
        api.add("GET", "/user/info", make_user(("c1", "Acme")))
        body = text_of(await AccountTools().auth_validate(ctx, {}))
        assert body.startswith("Authentication successful")
        assert "- Acme (OWNER)" in body

    @pytest.mark.asyncio
    async def test_validate_rejected_key(self, ctx, api):
        api.add("GET", "/user/info", {"error": {"code": "unauthorized", "message": "invalid token"}}, status=401)
        with pytest.raises(ToolError, match="Authentication failed: HTTP 401 unauthorized: invalid token"):
            await AccountTools().auth_validate(ctx, {})

    @pytest.mark.asyncio
    async def test_show_without_credential(self, anon_ctx):
        body = text_of(await AccountTools().auth_show(anon_ctx, {}))
        assert body.startswith("Not authenticated")

    @pytest.mark.asyncio
    async def test_show_lists_regions(self, ctx, api):
        api.add("GET", "/user/info", make_user(("c1", "Acme")))
        api.add("GET", "/region", {"items": [
            {"name": "prg1", "address": "api.app-prg1.zerops.io", "isDefault": True},
            {"name": "fra1"},
        ]})
        body = text_of(await AccountTools().auth_show(ctx, {}))
        assert "- prg1 (default)" in body
        assert "  Address: api.app-prg1.zerops.io" in body
        assert "- fra1" in body
