"""External process execution for the deployment CLI."""

from __future__ import annotations

import abc
import asyncio
import os
import shutil
from dataclasses import dataclass

import structlog

from shared.errors import ToolError

logger = structlog.get_logger()

ZCLI_INSTALL_URL = "https://docs.zerops.io/references/cli"


@dataclass(frozen=True)
class ExecutionResult:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        return (self.stdout + self.stderr).strip()


class ProcessExecutor(abc.ABC):
    """Runs an external program and collects its exit code and output."""

    @abc.abstractmethod
    def which(self, program: str) -> str | None:
        """Resolved path of ``program``, or None when it is not installed."""

    @abc.abstractmethod
    async def execute(
        self,
        args: list[str],
        *,
        env: dict[str, str] | None = None,
        cwd: str | None = None,
        timeout: float | None = None,
    ) -> ExecutionResult:
        ...


class SubprocessExecutor(ProcessExecutor):
    """Executor backed by ``asyncio.create_subprocess_exec``.

    The child is killed when the timeout expires or the calling task is
    cancelled, so a hung CLI never outlives the request that started it.
    """

    def which(self, program: str) -> str | None:
        return shutil.which(program)

    async def execute(
        self,
        args: list[str],
        *,
        env: dict[str, str] | None = None,
        cwd: str | None = None,
        timeout: float | None = None,
    ) -> ExecutionResult:
        full_env = {**os.environ, **(env or {})}
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=full_env,
                cwd=cwd,
            )
        except FileNotFoundError:
            raise ToolError(f"{args[0]} not found. Install it from: {ZCLI_INSTALL_URL}")

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(proc)
            logger.warning("subprocess_timeout", program=args[0], timeout=timeout)
            raise ToolError(f"'{' '.join(args[:2])}' timed out after {timeout:g}s")
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        return ExecutionResult(
            exit_code=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                return
            await proc.wait()
