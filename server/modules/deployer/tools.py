"""Deployer tool implementations."""

from __future__ import annotations

import os

import structlog
import yaml

from core.arguments import Arguments
from core.context import InvocationContext
from core.results import HandlerResult, text
from modules.deployer.executor import ZCLI_INSTALL_URL, ExecutionResult, ProcessExecutor, SubprocessExecutor
from shared.config import Settings
from shared.errors import ToolError

logger = structlog.get_logger()

DEFAULT_CONFIG = "zerops.yml"

# Platform IDs are 22 characters; allow a little slack either way
ID_MIN_LENGTH = 20
ID_MAX_LENGTH = 24

# Lines of CLI output worth surfacing when a deploy fails
_ERROR_MARKERS = ("error", "failed", "denied", "not found", "invalid")


def git_init_help(working_dir: str) -> str:
    return (
        f"Git not initialized in {working_dir}\n\n"
        "Run these commands to initialize git:\n"
        f"  cd {working_dir}\n"
        "  git init\n"
        "  git add .\n"
        '  git commit -m "Initial commit"\n\n'
        "Note: at least one commit is required to deploy."
    )


def check_id(value: str, label: str, source: str) -> None:
    if not ID_MIN_LENGTH <= len(value) <= ID_MAX_LENGTH:
        raise ToolError(
            f"Invalid {label} ID format: '{value}'\n\n"
            f"Expected: 22-character ID like 'ePbuhAuFRTWx2tE3VCGBgQ'\n"
            f"Got: {len(value)} characters\n\n"
            f"Use '{source}' to get the correct {label} ID. "
            "The ID is not the hostname."
        )


def build_push_args(
    zcli: str,
    project_id: str,
    service_id: str,
    working_dir: str,
    config_path: str | None,
) -> list[str]:
    """argv for ``zcli push``, with both IDs so the CLI never prompts."""
    args = [zcli, "push", "--projectId", project_id, "--serviceId", service_id]
    if config_path:
        args += ["--zeropsYamlPath", config_path]
    if working_dir not in ("", "."):
        args += ["--workingDir", working_dir]
    return args


def diagnostic_lines(result: ExecutionResult, limit: int = 10) -> list[str]:
    lines = [line.strip() for line in result.output.splitlines() if line.strip()]
    flagged = [line for line in lines if any(m in line.lower() for m in _ERROR_MARKERS)]
    return (flagged or lines)[-limit:]


class DeployerTools:
    def __init__(self, settings: Settings, executor: ProcessExecutor | None = None):
        self.settings = settings
        self.executor = executor or SubprocessExecutor()

    def _zcli(self) -> str:
        path = self.executor.which(self.settings.zcli_path)
        if path is None:
            raise ToolError(f"zcli not found. Install it from: {ZCLI_INSTALL_URL}")
        return path

    @staticmethod
    def _working_dir(a: Arguments) -> str:
        working_dir = os.path.abspath(a.string("working_dir", default="."))
        if not os.path.isdir(working_dir):
            raise ToolError(f"Directory not found: {working_dir}")
        if not os.path.exists(os.path.join(working_dir, ".git")):
            raise ToolError(git_init_help(working_dir))
        return working_dir

    async def deploy_validate(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        a = Arguments(args)
        working_dir = self._working_dir(a)
        config_path = a.string("config_path", default=DEFAULT_CONFIG)
        if not os.path.isabs(config_path):
            config_path = os.path.join(working_dir, config_path)
        if not os.path.isfile(config_path):
            raise ToolError(
                f"Config file not found: {config_path}\n\n"
                "Create a zerops.yml file with your deployment configuration."
            )
        with open(config_path, encoding="utf-8") as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ToolError(f"Invalid YAML in {config_path}: {e}")
        if not isinstance(config, dict) or "zerops" not in config:
            raise ToolError(f"{config_path} must contain a top-level 'zerops' list of setups")

        zcli = self._zcli()
        version = await self.executor.execute([zcli, "version"], timeout=self.settings.upstream_timeout)
        if not version.ok:
            raise ToolError(f"Failed to check zcli version: {version.output or f'exit code {version.exit_code}'}")

        return text(
            "Deployment validation successful\n\n"
            f"Working directory: {working_dir}\n"
            f"Git initialized: {os.path.join(working_dir, '.git')}\n"
            f"Config file: {config_path}\n"
            f"zcli path: {zcli}\n"
            f"zcli version: {version.stdout.strip()}"
        )

    async def deploy_push(self, ctx: InvocationContext, args: dict) -> HandlerResult:
        api_key = ctx.require_client().api_key
        a = Arguments(args)
        project_id = a.string("project_id", required=True, hint="Get it from project_list.")
        service_id = a.string("service_id", required=True, hint="Get it from service_list.")
        check_id(service_id, "service", "service_list")
        check_id(project_id, "project", "project_list")
        config_path = a.string("config_path")
        zcli = self._zcli()
        working_dir = self._working_dir(a)

        env = {"ZEROPS_TOKEN": api_key}
        login = await self.executor.execute(
            [zcli, "login", api_key], env=env, cwd=working_dir, timeout=self.settings.upstream_timeout * 3
        )
        if not login.ok:
            raise ToolError("zcli login failed:\n" + "\n".join(diagnostic_lines(login)))

        push_args = build_push_args(zcli, project_id, service_id, working_dir, config_path)
        logger.info("deploy_started", project_id=project_id, service_id=service_id, working_dir=working_dir)
        result = await self.executor.execute(
            push_args, env=env, cwd=working_dir, timeout=self.settings.deploy_timeout
        )
        command = " ".join(["zcli", *push_args[1:]])
        if not result.ok:
            logger.warning("deploy_failed", service_id=service_id, exit_code=result.exit_code)
            raise ToolError(
                "Deployment failed\n\n"
                f"Command: {command}\n"
                f"Working dir: {working_dir}\n"
                f"Exit code: {result.exit_code}\n\n"
                "Output:\n" + "\n".join(diagnostic_lines(result))
            )

        logger.info("deploy_finished", service_id=service_id)
        return text(
            "Deployment successful\n\n"
            f"Service ID: {service_id}\n"
            f"Command: {command}\n\n"
            f"Output:\n{result.output}\n\n"
            "Follow the build with get_running_processes, then check get_service_logs."
        )
