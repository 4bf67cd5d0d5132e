from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from .container import ContainerHandle

__all__ = ["Task"]

R = TypeVar("R")


class Task(ABC, Generic[R]):
    """A unit of asynchronous work executed against a running container.

    Tasks appended to an image run in order once the container has started;
    any task can also be run later through ``Container.execute``. A task
    instance may be executed more than once and from several event loops,
    so implementations keep per-run state local to ``execute``.
    """

    @abstractmethod
    async def execute(self, handle: ContainerHandle) -> R:
        """Run the task against the container behind ``handle``."""
