from __future__ import annotations

import asyncio
import contextlib
import json
import os
from collections import deque
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from .config import CONTAINER_HOST
from .config import podman_host as env_podman_host
from .errors import RuntimeClientError, TestcontainerError
from .helpers import flatten_env, get_podman_exe
from .preflight import run_preflight_checks

__all__ = ["ExecInstance", "PodmanClient"]

logger = structlog.get_logger(__name__)

# Lines of combined output kept to explain a failed streaming command
_ERROR_TAIL = 20


async def _read_lines(reader: asyncio.StreamReader) -> AsyncIterator[bytes]:
    """Yield newline-terminated chunks of any length.

    A line longer than the reader limit is collected piecewise instead of
    failing the whole stream.
    """
    pending = b""
    while True:
        try:
            chunk = await reader.readuntil(b"\n")
        except asyncio.LimitOverrunError as e:
            pending += await reader.readexactly(e.consumed)
            continue
        except asyncio.IncompleteReadError as e:
            if pending or e.partial:
                yield pending + e.partial
            return
        yield pending + chunk
        pending = b""


@dataclass
class ExecInstance:
    """A command prepared to run inside a container.

    ``exit_code`` is filled in once the output of ``PodmanClient.start_exec``
    has been fully consumed.
    """

    container_id: str
    command: list[str]
    env: list[str] = field(default_factory=list)
    exit_code: int | None = None


class PodmanClient:
    """Asynchronous client for the ``podman`` command line.

    The client only carries configuration, so one instance can be shared
    between the event loop and the threads used for teardown.
    """

    def __init__(self, podman_exe: str | None = None, podman_host: str | None = None):
        """Initialize a client, optionally against a remote Podman service."""
        self._podman_exe = podman_exe
        self.podman_host = podman_host

    @classmethod
    def from_env(cls, preflight: bool = False) -> PodmanClient:
        """Build a client from local defaults and ``CONTAINER_HOST``.

        With ``preflight`` the host is verified first and ``PreflightError``
        raised on the first problem found.
        """
        client = cls(podman_host=env_podman_host())
        if preflight:
            run_preflight_checks(client)
        return client

    # --------------------------------------------------------------------- #
    # Podman executable
    # --------------------------------------------------------------------- #
    def _get_podman(self) -> str:
        if self._podman_exe is None:
            self._podman_exe = get_podman_exe()
        return self._podman_exe

    def _get_env(self) -> dict[str, str] | None:
        if not self.podman_host:
            return None
        return {**os.environ, CONTAINER_HOST: self.podman_host}

    # --------------------------------------------------------------------- #
    # Process plumbing
    # --------------------------------------------------------------------- #
    async def _run(self, *args: str) -> str:
        cmd = [self._get_podman(), *args]
        process = await asyncio.create_subprocess_exec(  # noqa: S603
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=self._get_env(),
        )
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            raise RuntimeClientError(cmd, process.returncode, stderr.decode(errors="replace"))
        return stdout.decode(errors="replace")

    async def _stream(
        self, *args: str, on_exit: Callable[[int], None] | None = None
    ) -> AsyncIterator[str]:
        """Yield combined stdout/stderr lines of a podman command as they arrive.

        Closing the generator early terminates the process. Without
        ``on_exit`` a non-zero exit status raises ``RuntimeClientError``.
        """
        cmd = [self._get_podman(), *args]
        process = await asyncio.create_subprocess_exec(  # noqa: S603
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            env=self._get_env(),
        )
        assert process.stdout is not None
        tail: deque[str] = deque(maxlen=_ERROR_TAIL)
        try:
            async for raw in _read_lines(process.stdout):
                line = raw.decode(errors="replace").rstrip("\r\n")
                tail.append(line)
                yield line
            returncode = await process.wait()
        finally:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.terminate()
                await process.wait()

        if on_exit is not None:
            on_exit(returncode)
        elif returncode != 0:
            raise RuntimeClientError(cmd, returncode, "\n".join(tail))

    # --------------------------------------------------------------------- #
    # Images
    # --------------------------------------------------------------------- #
    async def inspect_image(self, reference: str) -> dict[str, Any]:
        """Return the image metadata; raises ``RuntimeClientError`` if unknown locally."""
        output = await self._run("image", "inspect", reference)
        return json.loads(output)[0]

    def pull_image(self, reference: str) -> AsyncIterator[str]:
        """Stream the progress lines of ``podman pull``."""
        return self._stream("pull", reference)

    # --------------------------------------------------------------------- #
    # Containers
    # --------------------------------------------------------------------- #
    async def create_container(
        self,
        image: str,
        cmd: Sequence[str] | None = None,
        entrypoint: Sequence[str] | None = None,
        env: Mapping[str, str | None] | None = None,
        publish_all: bool = True,
        labels: Mapping[str, str] | None = None,
    ) -> str:
        """Create (but do not start) a container and return its id."""
        args = ["create"]
        if publish_all:
            args.append("--publish-all")
        for key, value in (labels or {}).items():
            args += ["--label", f"{key}={value}"]
        for item in flatten_env(env or {}):
            args += ["-e", item]
        if entrypoint is not None:
            args += ["--entrypoint", json.dumps(list(entrypoint))]
        args.append(image)
        if cmd is not None:
            args += [*cmd]

        container_id = (await self._run(*args)).strip()
        if not container_id:
            raise TestcontainerError(f"Container for {image!r} created but no ID returned")
        return container_id

    async def start_container(self, container_id: str) -> None:
        await self._run("start", container_id)

    async def inspect_container(self, container_id: str) -> dict[str, Any]:
        output = await self._run("container", "inspect", container_id)
        return json.loads(output)[0]

    async def stop_container(self, container_id: str) -> None:
        await self._run("stop", container_id)

    async def remove_container(self, container_id: str, force: bool = True) -> None:
        args = ["rm"]
        if force:
            args.append("-f")
        await self._run(*args, container_id)

    def logs(self, container_id: str, follow: bool = True) -> AsyncIterator[str]:
        """Stream the combined stdout/stderr of a container."""
        args = ["logs"]
        if follow:
            args.append("-f")
        return self._stream(*args, container_id)

    # --------------------------------------------------------------------- #
    # Exec
    # --------------------------------------------------------------------- #
    def create_exec(
        self,
        container_id: str,
        command: Sequence[str],
        env: Mapping[str, str | None] | None = None,
    ) -> ExecInstance:
        return ExecInstance(container_id, list(command), flatten_env(env or {}))

    def start_exec(self, instance: ExecInstance) -> AsyncIterator[str]:
        """Run the exec and stream its combined output; records ``exit_code``."""
        args = ["exec"]
        for item in instance.env:
            args += ["-e", item]
        args += [instance.container_id, *instance.command]

        def _record(returncode: int) -> None:
            instance.exit_code = returncode

        return self._stream(*args, on_exit=_record)

    def __repr__(self) -> str:
        """Return a string representation of the client."""
        return f"<PodmanClient host={self.podman_host or 'local'}>"
