"""Run external tools locally or inside the tool container."""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from typing import Protocol

from docker.errors import DockerException

from .config import DEFAULT_IMAGE
from .container import exec_in_container, get_container
from .run_output import ExecResult
from .status import StatusLog, status_log


class CancellationToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class Runner(Protocol):
    async def run(
        self,
        command: str,
        args: list[str],
        cwd: str,
        stdin: bytes | None = None,
        token: CancellationToken | None = None,
    ) -> ExecResult: ...


async def _race_token(
    work: Awaitable[ExecResult],
    token: CancellationToken | None,
    on_cancel: Callable[[], None] | None = None,
) -> ExecResult:
    """Await ``work`` unless ``token`` fires first."""
    task = asyncio.ensure_future(work)
    if token is None:
        return await task

    waiter = asyncio.ensure_future(token.wait())
    done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    if task in done:
        waiter.cancel()
        return task.result()

    if on_cancel is not None:
        on_cancel()
        # Let the killed process be reaped; its partial output is discarded
        await asyncio.wait({task})
    else:
        task.cancel()
    return ExecResult(cancelled=True)


class LocalRunner:
    def __init__(self, status: StatusLog = status_log, env: dict[str, str] | None = None) -> None:
        self.status = status
        self.env = env

    async def run(
        self,
        command: str,
        args: list[str],
        cwd: str,
        stdin: bytes | None = None,
        token: CancellationToken | None = None,
    ) -> ExecResult:
        logging.debug(f"Executing: {' '.join([command, *args])} (cwd={cwd})")
        try:
            return await self._run(command, args, cwd, stdin, token)
        finally:
            self.status.append_line(" ".join(["Finished running tool:", command, *args]))

    async def _run(
        self,
        command: str,
        args: list[str],
        cwd: str,
        stdin: bytes | None,
        token: CancellationToken | None,
    ) -> ExecResult:
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                cwd=cwd,
                env=self.env,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            if not os.path.isdir(cwd):
                logging.error(f"Working directory '{cwd}' does not exist")
                return ExecResult(error=f"working directory not found: {cwd}")
            logging.warning(f"Tool '{command}' not found: {e}")
            return ExecResult(tool_missing=True)
        except OSError as e:
            logging.error(f"Failed to start '{command}': {e}")
            return ExecResult(error=str(e))

        async def communicate() -> ExecResult:
            stdout, stderr = await process.communicate(stdin)
            return ExecResult(
                stdout=stdout.decode("utf-8", errors="replace"),
                stderr=stderr.decode("utf-8", errors="replace"),
                return_code=process.returncode,
            )

        def kill() -> None:
            if process.returncode is None:
                process.kill()

        return await _race_token(communicate(), token, on_cancel=kill)


class ContainerRunner:
    def __init__(
        self,
        image: str = DEFAULT_IMAGE,
        root: str | None = None,
        status: StatusLog = status_log,
    ) -> None:
        self.image = image
        self.root = root
        self.status = status

    async def run(
        self,
        command: str,
        args: list[str],
        cwd: str,
        stdin: bytes | None = None,
        token: CancellationToken | None = None,
    ) -> ExecResult:
        logging.debug(f"Executing in container: {' '.join([command, *args])} (cwd={cwd})")
        try:
            return await _race_token(self._run(command, args, cwd, stdin), token)
        finally:
            self.status.append_line(" ".join(["Finished running tool:", command, *args]))

    async def _run(self, command: str, args: list[str], cwd: str, stdin: bytes | None) -> ExecResult:
        try:
            container = await get_container(self.image, self.root)
            return await asyncio.to_thread(
                exec_in_container, container, command, args, stdin, cwd
            )
        except (DockerException, OSError) as e:
            logging.error(f"Container execution of '{command}' failed: {e}")
            return ExecResult(error=str(e))
