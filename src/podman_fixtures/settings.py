from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .helpers import flatten_env

if TYPE_CHECKING:
    from .task import Task

__all__ = [
    "DIGEST_PREFIX",
    "ContainerSettings",
    "Digest",
    "DropAction",
    "ImageSettings",
    "Qualifier",
    "Tag",
]

DIGEST_PREFIX = "sha256:"
DEFAULT_TAG = "latest"


# --------------------------------------------------------------------- #
# Version qualifier
# --------------------------------------------------------------------- #
@dataclass(frozen=True)
class Qualifier(ABC):
    """Identifies an image revision, by tag or by content digest."""

    value: str

    @staticmethod
    def parse(value: str | Qualifier) -> Qualifier:
        """``sha256:...`` becomes a ``Digest``, anything else a ``Tag``."""
        if isinstance(value, Qualifier):
            return value
        if value.startswith(DIGEST_PREFIX):
            return Digest(value)
        return Tag(value)

    @abstractmethod
    def render(self, name: str) -> str:
        """Full image reference for ``name`` at this revision."""

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Tag(Qualifier):
    def render(self, name: str) -> str:
        return f"{name}:{self.value}"


@dataclass(frozen=True)
class Digest(Qualifier):
    def render(self, name: str) -> str:
        return f"{name}@{self.value}"


# --------------------------------------------------------------------- #
# Teardown action
# --------------------------------------------------------------------- #
class DropAction(enum.Enum):
    """What happens to a container when its handle is closed."""

    REMOVE = "remove"
    RETAIN = "retain"
    STOP = "stop"

    @classmethod
    def parse(cls, value: str) -> DropAction | None:
        """Case-insensitive lookup; ``None`` for unknown names."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


# --------------------------------------------------------------------- #
# Image descriptor
# --------------------------------------------------------------------- #
@dataclass
class ImageSettings:
    """Everything needed to create a container from an image.

    Key features:
    - ``qualifier`` → accepts a ``Qualifier`` or a plain string (parsed)
    - ``env`` → ``None`` values are passed as a bare ``KEY``
    - ``tasks`` → run in order once the container has started

    The ``with_*`` methods mutate the settings and return them for chaining.
    """

    name: str
    qualifier: Qualifier | str = DEFAULT_TAG
    cmd: list[str] | None = None
    entrypoint: list[str] | None = None
    env: dict[str, str | None] = field(default_factory=dict)
    tasks: list[Task[Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.qualifier = Qualifier.parse(self.qualifier)

    def fullname(self) -> str:
        """Fully qualified reference, ``name:tag`` or ``name@digest``."""
        return Qualifier.parse(self.qualifier).render(self.name)

    def environment_list(self) -> list[str]:
        return flatten_env(self.env)

    def set_qualifier(self, qualifier: Qualifier | str) -> None:
        self.qualifier = Qualifier.parse(qualifier)

    def with_qualifier(self, qualifier: Qualifier | str) -> ImageSettings:
        self.set_qualifier(qualifier)
        return self

    def with_cmd(self, cmd: Iterable[str] | None) -> ImageSettings:
        self.cmd = None if cmd is None else list(cmd)
        return self

    def with_entrypoint(self, entrypoint: Iterable[str] | None) -> ImageSettings:
        self.entrypoint = None if entrypoint is None else list(entrypoint)
        return self

    def set_env_variable(self, key: str, value: str | None) -> None:
        self.env[key] = value

    def with_env_variable(self, key: str, value: str | None) -> ImageSettings:
        self.set_env_variable(key, value)
        return self

    def append_task(self, task: Task[Any]) -> None:
        self.tasks.append(task)

    def with_task(self, task: Task[Any]) -> ImageSettings:
        self.append_task(task)
        return self


# --------------------------------------------------------------------- #
# Container settings
# --------------------------------------------------------------------- #
@dataclass(frozen=True)
class ContainerSettings:
    """Read-only snapshot of the image settings a container was started from."""

    name: str
    qualifier: Qualifier
    environment: Mapping[str, str | None]

    @classmethod
    def from_image_settings(cls, settings: ImageSettings) -> ContainerSettings:
        return cls(
            name=settings.name,
            qualifier=Qualifier.parse(settings.qualifier),
            environment=MappingProxyType(dict(settings.env)),
        )

    def fullname(self) -> str:
        return self.qualifier.render(self.name)

    def env_value(self, key: str, default: str) -> str:
        """Return the configured value of ``key``, or ``default`` if unset or bare."""
        value = self.environment.get(key)
        return default if value is None else value
