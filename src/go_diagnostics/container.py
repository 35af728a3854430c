"""Docker container holding the Go toolchain.

The container is created lazily on first use and shared by every later
request for the lifetime of the process. Creation is single-flight:
requests arriving while the container is being created await the same
future.
"""

import asyncio
import logging
import os
import socket
from collections.abc import Iterable

import docker
from docker.errors import DockerException
from docker.models.containers import Container
from docker.utils.socket import STDERR, frames_iter

from .config import DEFAULT_IMAGE, WORKSPACE_ENV_VAR
from .run_output import ExecResult

DOCKER_SOCKET = "unix:///var/run/docker.sock"

_container_future: "asyncio.Future[Container] | None" = None


def create_container(image: str, root: str) -> Container:
    client = docker.DockerClient(base_url=DOCKER_SOCKET)
    logging.info(f"Creating container from image '{image}' with '{root}' mounted")
    container = client.containers.create(
        image,
        volumes={root: {"bind": root, "mode": "rw"}},
        environment={WORKSPACE_ENV_VAR: root},
        stdin_open=True,
        tty=False,
        detach=True,
    )
    try:
        container.start()
    except DockerException:
        container.remove(force=True)
        raise
    logging.debug(f"Started container {container.short_id}")
    return container


def _forget_failed(future: "asyncio.Future[Container]") -> None:
    global _container_future
    if future.cancelled() or future.exception() is not None:
        if _container_future is future:
            _container_future = None


async def get_container(image: str = DEFAULT_IMAGE, root: str | None = None) -> Container:
    """Return the shared container, creating it on the first call."""
    global _container_future
    if _container_future is None:
        root = root or os.getcwd()
        _container_future = asyncio.ensure_future(
            asyncio.to_thread(create_container, image, root)
        )
        _container_future.add_done_callback(_forget_failed)
    # One waiter giving up must not cancel creation for the others
    return await asyncio.shield(_container_future)


def reset_container() -> None:
    """Forget the memoized container. Intended for tests."""
    global _container_future
    _container_future = None


def demux_frames(frames: Iterable[tuple[int, bytes]]) -> tuple[str, str]:
    """Split multiplexed exec frames into decoded stdout and stderr."""
    stdout: list[bytes] = []
    stderr: list[bytes] = []
    for stream_id, payload in frames:
        if stream_id == STDERR:
            stderr.append(payload)
        else:
            stdout.append(payload)
    return (
        b"".join(stdout).decode("utf-8", errors="replace"),
        b"".join(stderr).decode("utf-8", errors="replace"),
    )


def _is_missing_executable(exit_code: int | None, output: str) -> bool:
    return exit_code in (126, 127) and "executable file not found" in output


def exec_in_container(
    container: Container,
    command: str,
    args: list[str],
    stdin: bytes | None = None,
    workdir: str | None = None,
) -> ExecResult:
    api = container.client.api
    exec_id = api.exec_create(
        container.id,
        [command, *args],
        stdout=True,
        stderr=True,
        stdin=stdin is not None,
        tty=False,
        workdir=workdir,
    )["Id"]

    sock = api.exec_start(exec_id, socket=True)
    try:
        if stdin is not None:
            raw = getattr(sock, "_sock", sock)
            raw.sendall(stdin)
            raw.shutdown(socket.SHUT_WR)
        stdout, stderr = demux_frames(frames_iter(sock, tty=False))
    finally:
        sock.close()

    exit_code = api.exec_inspect(exec_id)["ExitCode"]
    return ExecResult(
        stdout=stdout,
        stderr=stderr,
        return_code=exit_code,
        tool_missing=_is_missing_executable(exit_code, stdout + stderr),
    )
