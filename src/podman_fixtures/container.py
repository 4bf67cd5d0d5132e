from __future__ import annotations

import asyncio
import contextlib
import threading
from abc import ABC, abstractmethod
from typing import Any, ClassVar, TypeVar

import structlog

from .client import PodmanClient
from .config import DROP_ACTION_ENV, drop_action_override
from .errors import UndefinedPortError, UnexposedPortError
from .settings import ContainerSettings, DropAction
from .task import Task

__all__ = [
    "AdminContainer",
    "Container",
    "ContainerHandle",
    "DatabaseContainer",
    "ServiceContainer",
]

logger = structlog.get_logger(__name__)

C = TypeVar("C", bound="Container")
R = TypeVar("R")


class ContainerHandle:
    """Live identity of one container plus the client that created it.

    A handle is owned by exactly one ``Container`` and cannot be copied.
    Closing it applies the drop action once; later closes are no-ops.
    """

    def __init__(
        self,
        container_id: str,
        client: PodmanClient,
        drop_action: DropAction = DropAction.REMOVE,
    ):
        """Wrap a freshly created container."""
        self.id = container_id
        self.client = client
        self.drop_action = drop_action
        self._closed = False

    # --------------------------------------------------------------------- #
    # Port mapping
    # --------------------------------------------------------------------- #
    async def host_port_for(self, port_spec: str) -> int:
        """Return the host port bound to the first internal port starting with ``port_spec``."""
        info = await self.client.inspect_container(self.id)
        ports = (info.get("NetworkSettings") or {}).get("Ports") or {}

        for internal, bindings in ports.items():
            if not internal.startswith(port_spec):
                continue
            if not bindings:
                raise UnexposedPortError(port_spec)
            return int(bindings[0]["HostPort"])

        raise UndefinedPortError(port_spec)

    # --------------------------------------------------------------------- #
    # Teardown
    # --------------------------------------------------------------------- #
    @property
    def closed(self) -> bool:
        return self._closed

    def effective_drop_action(self) -> DropAction:
        """Configured drop action, overridden by the process-wide variable if valid."""
        action = self.drop_action
        override = drop_action_override()
        if override is None:
            return action

        parsed = DropAction.parse(override)
        if parsed is None:
            logger.warning(
                "Ignoring invalid drop action override",
                variable=DROP_ACTION_ENV,
                value=override,
                fallback=action.value,
            )
            return action
        return parsed

    async def _apply(self, action: DropAction) -> None:
        if action is DropAction.REMOVE:
            logger.info("Removing container", container_id=self.id)
            await self.client.remove_container(self.id, force=True)
        elif action is DropAction.STOP:
            logger.info("Stopping container", container_id=self.id)
            await self.client.stop_container(self.id)
        else:
            logger.info("Retaining container", container_id=self.id)

    async def _teardown(self, action: DropAction) -> None:
        try:
            await self._apply(action)
        except Exception as e:
            logger.error(
                "Container teardown failed",
                container_id=self.id,
                action=action.value,
                error=str(e),
            )

    async def aclose(self) -> None:
        """Apply the drop action from a running event loop."""
        if self._closed:
            return
        self._closed = True
        await self._teardown(self.effective_drop_action())

    def close(self) -> None:
        """Apply the drop action from synchronous code.

        The runtime call runs on a dedicated worker thread with its own event
        loop; this call blocks until the worker signals completion. There is
        no timeout.
        """
        if self._closed:
            return
        self._closed = True
        action = self.effective_drop_action()
        if action is DropAction.RETAIN:
            logger.info("Retaining container", container_id=self.id)
            return

        done = threading.Event()

        def _worker() -> None:
            try:
                asyncio.run(self._teardown(action))
            finally:
                done.set()

        try:
            threading.Thread(
                target=_worker, name=f"podman-teardown-{self.id[:12]}", daemon=True
            ).start()
        except RuntimeError as e:
            # Interpreter shutdown refuses new threads
            logger.error("Could not start teardown worker", container_id=self.id, error=str(e))
            return
        done.wait()

    def __del__(self) -> None:
        """Make sure the drop action runs when the handle is garbage collected."""
        if getattr(self, "_closed", True):
            return
        # At interpreter shutdown logging and thread creation may already be gone
        with contextlib.suppress(Exception):
            self.close()

    def __copy__(self) -> Any:
        raise TypeError("ContainerHandle is exclusively owned and cannot be copied")

    def __deepcopy__(self, memo: dict[int, Any]) -> Any:
        raise TypeError("ContainerHandle is exclusively owned and cannot be copied")

    def __repr__(self) -> str:
        """Return a string representation of the handle."""
        status = "closed" if self._closed else "open"
        return f"<ContainerHandle id={self.id} [{status}] drop_action={self.drop_action.value}>"


class Container:
    """A started container: its handle plus the settings it was created from.

    Supports ``with`` and ``async with``; leaving the block closes the handle.
    """

    host: ClassVar[str] = "localhost"

    def __init__(self, handle: ContainerHandle, settings: ContainerSettings):
        """Initialize a container around a live handle."""
        self._handle = handle
        self._settings = settings

    @classmethod
    def attach(cls: type[C], handle: ContainerHandle, settings: ContainerSettings) -> C:
        return cls(handle, settings)

    @property
    def handle(self) -> ContainerHandle:
        return self._handle

    @property
    def settings(self) -> ContainerSettings:
        return self._settings

    @property
    def id(self) -> str:
        return self._handle.id

    def with_drop_action(self: C, drop_action: DropAction) -> C:
        self._handle.drop_action = drop_action
        return self

    async def host_port_for(self, port_spec: str) -> int:
        return await self._handle.host_port_for(port_spec)

    async def execute(self, task: Task[R]) -> R:
        """Run an ad hoc task against this container."""
        return await task.execute(self._handle)

    # --------------------------------------------------------------------- #
    # Lifecycle
    # --------------------------------------------------------------------- #
    def close(self) -> None:
        self._handle.close()

    async def aclose(self) -> None:
        await self._handle.aclose()

    def __enter__(self: C) -> C:
        """Enter a ``with`` block; the container is already running."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Close the handle when leaving a ``with`` block."""
        self.close()

    async def __aenter__(self: C) -> C:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        """Return a string representation of the container."""
        status = "closed" if self._handle.closed else "running"
        return f"<{type(self).__name__} {self._settings.fullname()} [{status}] id={self.id}>"


# --------------------------------------------------------------------- #
# Capabilities
# --------------------------------------------------------------------- #
class ServiceContainer(Container):
    """A container with one well-known service port."""

    internal_service_port: ClassVar[str]

    async def service_port(self) -> int:
        return await self.host_port_for(self.internal_service_port)


class AdminContainer(Container):
    """A container with a secondary administrative port."""

    internal_admin_port: ClassVar[str]

    async def admin_port(self) -> int:
        return await self.host_port_for(self.internal_admin_port)


class DatabaseContainer(ServiceContainer, ABC):
    """A service container that accepts database connections."""

    @abstractmethod
    def protocol(self) -> str: ...

    @abstractmethod
    def username(self) -> str: ...

    @abstractmethod
    def password(self) -> str: ...

    @abstractmethod
    def database(self) -> str: ...

    @abstractmethod
    async def jdbc_url(self) -> str: ...

    @abstractmethod
    async def connect_cli(self) -> str:
        """Shell command that opens the workload's own client against this container."""

    async def connect_url(self) -> str:
        port = await self.service_port()
        return (
            f"{self.protocol()}://{self.username()}:{self.password()}"
            f"@{self.host}:{port}/{self.database()}"
        )
