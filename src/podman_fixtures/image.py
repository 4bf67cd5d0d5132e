from __future__ import annotations

import contextlib
from collections.abc import Generator, Iterable
from typing import Any, Generic, TypeVar

import structlog

from .client import PodmanClient
from .config import MANAGED_LABEL
from .container import Container, ContainerHandle
from .errors import RuntimeClientError, StartupError
from .settings import ContainerSettings, ImageSettings, Qualifier
from .task import Task

__all__ = ["Image"]

logger = structlog.get_logger(__name__)

C = TypeVar("C", bound=Container)
ImageT = TypeVar("ImageT", bound="Image[Any]")


class Image(Generic[C]):
    """Describes a container to start and drives its startup pipeline.

    ``start_container`` runs, in order: pull if absent, the
    ``on_before_start_container`` hook, create, start, the
    ``on_after_start_container`` hook, then every task of the settings.
    Workloads customise behaviour by overriding the two hooks.
    """

    container_type: type[C]

    def __init__(self, settings: ImageSettings):
        """Initialize an image from its settings."""
        self.settings = settings

    # --------------------------------------------------------------------- #
    # Builder shortcuts
    # --------------------------------------------------------------------- #
    def set_env_variable(self, key: str, value: str | None) -> None:
        self.settings.set_env_variable(key, value)

    def with_env_variable(self: ImageT, key: str, value: str | None) -> ImageT:
        self.settings.set_env_variable(key, value)
        return self

    def with_cmd(self: ImageT, cmd: Iterable[str] | None) -> ImageT:
        self.settings.with_cmd(cmd)
        return self

    def with_entrypoint(self: ImageT, entrypoint: Iterable[str] | None) -> ImageT:
        self.settings.with_entrypoint(entrypoint)
        return self

    def with_qualifier(self: ImageT, qualifier: Qualifier | str) -> ImageT:
        self.settings.set_qualifier(qualifier)
        return self

    def with_task(self: ImageT, task: Task[Any]) -> ImageT:
        self.settings.append_task(task)
        return self

    # --------------------------------------------------------------------- #
    # Pipeline steps
    # --------------------------------------------------------------------- #
    async def on_pull_image(self, client: PodmanClient) -> None:
        fullname = self.settings.fullname()
        try:
            await client.inspect_image(fullname)
            return
        except RuntimeClientError:
            logger.info("Pulling image", image=fullname)

        async with contextlib.aclosing(client.pull_image(fullname)) as progress:
            async for line in progress:
                logger.debug("Pull progress", image=fullname, line=line)

    async def on_before_start_container(self, client: PodmanClient) -> None:
        """Hook run before the container exists."""

    async def on_create_container(self, client: PodmanClient) -> ContainerHandle:
        container_id = await client.create_container(
            self.settings.fullname(),
            cmd=self.settings.cmd,
            entrypoint=self.settings.entrypoint,
            env=self.settings.env,
            publish_all=True,
            labels={MANAGED_LABEL: "true"},
        )
        logger.debug("Container created", image=self.settings.fullname(), container_id=container_id)
        return ContainerHandle(container_id, client)

    async def on_start_container(self, handle: ContainerHandle) -> None:
        await handle.client.start_container(handle.id)

    async def on_after_start_container(self, handle: ContainerHandle) -> None:
        """Hook run once the container has been started, before the tasks."""

    async def on_execute_tasks(self, handle: ContainerHandle) -> None:
        for task in self.settings.tasks:
            logger.debug("Executing task", task=repr(task), container_id=handle.id)
            await task.execute(handle)

    @contextlib.contextmanager
    def _phase(self, phase: str) -> Generator[None, None, None]:
        try:
            yield
        except Exception as e:
            raise StartupError(phase, self.settings.fullname(), str(e)) from e

    # --------------------------------------------------------------------- #
    # Lifecycle
    # --------------------------------------------------------------------- #
    async def start_container(self, client: PodmanClient | None = None) -> C:
        """Run the startup pipeline and return the attached container."""
        if client is None:
            client = PodmanClient.from_env()

        with self._phase("pull"):
            await self.on_pull_image(client)
        with self._phase("before_start"):
            await self.on_before_start_container(client)
        with self._phase("create"):
            handle = await self.on_create_container(client)

        # From here on the handle owns a real container
        try:
            with self._phase("start"):
                await self.on_start_container(handle)
            with self._phase("after_start"):
                await self.on_after_start_container(handle)
            with self._phase("tasks"):
                await self.on_execute_tasks(handle)
        except BaseException:
            await handle.aclose()
            raise

        logger.info("Container ready", image=self.settings.fullname(), container_id=handle.id)
        return self.container_type.attach(
            handle, ContainerSettings.from_image_settings(self.settings)
        )

    def __repr__(self) -> str:
        """Return a string representation of the image."""
        return f"<{type(self).__name__} {self.settings.fullname()}>"
