"""Tests for the deployer module with a scripted process executor."""

from __future__ import annotations

import asyncio
import os
import sys

import pytest

from conftest import PROJECT_ID, SERVICE_ID, text_of
from modules.deployer.executor import ExecutionResult, ProcessExecutor, SubprocessExecutor
from modules.deployer.tools import DeployerTools, build_push_args, diagnostic_lines
from shared.errors import MissingCredentialError, ToolError


class FakeExecutor(ProcessExecutor):
    """Records every invocation and replays scripted results in order."""

    def __init__(self, *results: ExecutionResult, installed: bool = True):
        self.results = list(results)
        self.calls: list[dict] = []
        self.installed = installed

    def which(self, program: str) -> str | None:
        return f"/usr/local/bin/{program}" if self.installed else None

    async def execute(self, args, *, env=None, cwd=None, timeout=None) -> ExecutionResult:
        self.calls.append({"args": list(args), "env": env, "cwd": cwd, "timeout": timeout})
        return self.results.pop(0) if self.results else ExecutionResult(0, "", "")


@pytest.fixture
def repo(tmp_path):
    (tmp_path / ".git").mkdir()
    (tmp_path / "zerops.yml").write_text("zerops:\n  - setup: app\n    run:\n      start: npm start\n")
    return tmp_path


def _ok(stdout: str = "") -> ExecutionResult:
    return ExecutionResult(0, stdout, "")


class TestValidate:

    @pytest.mark.asyncio
    async def test_all_checks_pass(self, settings, ctx, repo):
        executor = FakeExecutor(_ok("zcli v1.0.30\n"))
        body = text_of(await DeployerTools(settings, executor).deploy_validate(ctx, {"working_dir": str(repo)}))
        assert body.startswith("Deployment validation successful")
        assert f"Config file: {repo / 'zerops.yml'}" in body
        assert "zcli version: zcli v1.0.30" in body
        assert executor.calls[0]["args"] == ["/usr/local/bin/zcli", "version"]

    @pytest.mark.asyncio
    async def test_missing_directory(self, settings, ctx, tmp_path):
        with pytest.raises(ToolError, match="Directory not found"):
            await DeployerTools(settings, FakeExecutor()).deploy_validate(ctx, {"working_dir": str(tmp_path / "nope")})

    @pytest.mark.asyncio
    async def test_git_required(self, settings, ctx, tmp_path):
        with pytest.raises(ToolError, match="Git not initialized"):
            await DeployerTools(settings, FakeExecutor()).deploy_validate(ctx, {"working_dir": str(tmp_path)})

    @pytest.mark.asyncio
    async def test_config_required(self, settings, ctx, repo):
        (repo / "zerops.yml").unlink()
        with pytest.raises(ToolError, match="Config file not found"):
            await DeployerTools(settings, FakeExecutor()).deploy_validate(ctx, {"working_dir": str(repo)})

    @pytest.mark.asyncio
    async def test_config_must_parse(self, settings, ctx, repo):
        (repo / "zerops.yml").write_text("zerops: [\n")
        with pytest.raises(ToolError, match="Invalid YAML"):
            await DeployerTools(settings, FakeExecutor()).deploy_validate(ctx, {"working_dir": str(repo)})

    @pytest.mark.asyncio
    async def test_zcli_required(self, settings, ctx, repo):
        with pytest.raises(ToolError, match="zcli not found"):
            await DeployerTools(settings, FakeExecutor(installed=False)).deploy_validate(ctx, {"working_dir": str(repo)})


class TestPush:

    @pytest.mark.asyncio
    async def test_login_then_push(self, settings, ctx, repo):
        executor = FakeExecutor(_ok(), _ok("Deploying...\nDone"))
        tools = DeployerTools(settings, executor)
        body = text_of(await tools.deploy_push(ctx, {
            "project_id": PROJECT_ID, "service_id": SERVICE_ID, "working_dir": str(repo), "config_path": "zerops.yml",
        }))
        login, push = executor.calls
        assert login["args"] == ["/usr/local/bin/zcli", "login", "test-key"]
        assert push["args"] == [
            "/usr/local/bin/zcli", "push", "--projectId", PROJECT_ID, "--serviceId", SERVICE_ID,
            "--zeropsYamlPath", "zerops.yml", "--workingDir", str(repo),
        ]
        assert push["env"] == {"ZEROPS_TOKEN": "test-key"}
        assert push["cwd"] == str(repo)
        assert push["timeout"] == settings.deploy_timeout
        assert body.startswith("Deployment successful")

    @pytest.mark.asyncio
    async def test_relative_working_dir_is_resolved(self, settings, ctx, repo, monkeypatch):
        monkeypatch.chdir(repo.parent)
        executor = FakeExecutor(_ok(), _ok())
        await DeployerTools(settings, executor).deploy_push(ctx, {
            "project_id": PROJECT_ID, "service_id": SERVICE_ID, "working_dir": repo.name,
        })
        push = executor.calls[1]
        working_dir = push["args"][push["args"].index("--workingDir") + 1]
        assert os.path.isabs(working_dir)
        assert os.path.samefile(working_dir, repo)
        assert push["cwd"] == working_dir

    @pytest.mark.asyncio
    async def test_success_decided_by_exit_code(self, settings, ctx, repo):
        # output that mentions failure does not matter when the exit code is 0
        executor = FakeExecutor(_ok(), _ok("0 failed checks"))
        body = text_of(await DeployerTools(settings, executor).deploy_push(ctx, {
            "project_id": PROJECT_ID, "service_id": SERVICE_ID, "working_dir": str(repo),
        }))
        assert body.startswith("Deployment successful")

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_failure(self, settings, ctx, repo):
        executor = FakeExecutor(_ok(), ExecutionResult(1, "Uploading\nDeploy finished successfully?\n", "ERROR: build failed\n"))
        with pytest.raises(ToolError) as exc_info:
            await DeployerTools(settings, executor).deploy_push(ctx, {
                "project_id": PROJECT_ID, "service_id": SERVICE_ID, "working_dir": str(repo),
            })
        message = exc_info.value.message
        assert message.startswith("Deployment failed")
        assert "Exit code: 1" in message
        assert "ERROR: build failed" in message

    @pytest.mark.asyncio
    async def test_login_failure_stops_before_push(self, settings, ctx, repo):
        executor = FakeExecutor(ExecutionResult(1, "", "invalid token"))
        with pytest.raises(ToolError, match="zcli login failed"):
            await DeployerTools(settings, executor).deploy_push(ctx, {
                "project_id": PROJECT_ID, "service_id": SERVICE_ID, "working_dir": str(repo),
            })
        assert len(executor.calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,value", [("service_id", "app"), ("project_id", "x" * 30)])
    async def test_id_length_checked(self, settings, ctx, repo, field, value):
        args = {"project_id": PROJECT_ID, "service_id": SERVICE_ID, "working_dir": str(repo), field: value}
        executor = FakeExecutor()
        with pytest.raises(ToolError, match="Invalid (service|project) ID format"):
            await DeployerTools(settings, executor).deploy_push(ctx, args)
        assert executor.calls == []

    @pytest.mark.asyncio
    async def test_requires_credential(self, settings, anon_ctx, repo):
        with pytest.raises(MissingCredentialError):
            await DeployerTools(settings, FakeExecutor()).deploy_push(anon_ctx, {
                "project_id": PROJECT_ID, "service_id": SERVICE_ID, "working_dir": str(repo),
            })

    def test_push_args_omit_defaults(self):
        assert build_push_args("zcli", "p" * 22, "s" * 22, ".", None) == [
            "zcli", "push", "--projectId", "p" * 22, "--serviceId", "s" * 22,
        ]

    def test_diagnostic_lines_prefer_errors(self):
        result = ExecutionResult(1, "step 1\nstep 2\n", "Error: denied\n")
        assert diagnostic_lines(result) == ["Error: denied"]


class TestSubprocessExecutor:

    @pytest.mark.asyncio
    async def test_collects_output_and_exit_code(self):
        result = await SubprocessExecutor().execute(
            [sys.executable, "-c", "import os, sys; print(os.environ['ZEROPS_TOKEN']); sys.exit(3)"],
            env={"ZEROPS_TOKEN": "abc"},
            timeout=30,
        )
        assert result.exit_code == 3
        assert result.stdout.strip() == "abc"
        assert not result.ok

    @pytest.mark.asyncio
    async def test_timeout_kills_child(self):
        with pytest.raises(ToolError, match="timed out after 0.2s"):
            await SubprocessExecutor().execute([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.2)

    @pytest.mark.asyncio
    async def test_missing_program(self):
        with pytest.raises(ToolError, match="not found"):
            await SubprocessExecutor().execute(["definitely-not-a-real-zcli-binary"])

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        task = asyncio.create_task(
            SubprocessExecutor().execute([sys.executable, "-c", "import time; time.sleep(30)"], timeout=60)
        )
        await asyncio.sleep(0.2)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
