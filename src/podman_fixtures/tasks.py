from __future__ import annotations

import asyncio
import contextlib
import dataclasses
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from .errors import ExecStatusError, LogPatternNotFoundError, ReadinessTimeoutError
from .task import Task

if TYPE_CHECKING:
    from .container import ContainerHandle

__all__ = ["Execute", "MatchLogOutput", "PatternCursor"]

logger = structlog.get_logger(__name__)


def _as_tuple(values: str | Iterable[str]) -> tuple[str, ...]:
    # A bare string is one item, not a sequence of characters
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass
class PatternCursor:
    """Tracks progress through an ordered list of substrings.

    Each fed line advances the cursor by at most one position, and only if
    it contains the pattern currently awaited.
    """

    patterns: Sequence[str]
    position: int = 0

    @property
    def satisfied(self) -> bool:
        return self.position >= len(self.patterns)

    @property
    def current(self) -> str | None:
        """The pattern still awaited, or ``None`` once satisfied."""
        if self.satisfied:
            return None
        return self.patterns[self.position]

    def feed(self, line: str) -> bool:
        """Consume one output line and return whether all patterns were seen."""
        current = self.current
        if current is not None and current in line:
            self.position += 1
        return self.satisfied


@dataclass(frozen=True)
class MatchLogOutput(Task[None]):
    """Block until the container output contains the patterns, in order.

    The log stream is closed as soon as the last pattern is seen. If the
    container stops logging first, ``LogPatternNotFoundError`` is raised.
    """

    patterns: tuple[str, ...]
    timeout: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "patterns", _as_tuple(self.patterns))

    @classmethod
    def containing(cls, pattern: str, timeout: float | None = None) -> MatchLogOutput:
        return cls((pattern,), timeout)

    @classmethod
    def containing_in_order(
        cls, patterns: str | Iterable[str], timeout: float | None = None
    ) -> MatchLogOutput:
        return cls(_as_tuple(patterns), timeout)

    async def execute(self, handle: ContainerHandle) -> None:
        cursor = PatternCursor(self.patterns)
        if cursor.satisfied:
            return
        if self.timeout is None:
            await self._follow(handle, cursor)
            return
        try:
            await asyncio.wait_for(self._follow(handle, cursor), self.timeout)
        except asyncio.TimeoutError as e:
            raise ReadinessTimeoutError(self.timeout, cursor.current or "") from e

    async def _follow(self, handle: ContainerHandle, cursor: PatternCursor) -> None:
        async with contextlib.aclosing(handle.client.logs(handle.id, follow=True)) as stream:
            async for line in stream:
                if cursor.feed(line):
                    logger.debug("Log patterns matched", container_id=handle.id)
                    return
        raise LogPatternNotFoundError(cursor.current or "")


@dataclass(frozen=True)
class Execute(Task[int]):
    """Run a command inside the container, echoing its output to stdout.

    Returns the exit status. With ``required_status`` set, any other status
    raises ``ExecStatusError``.
    """

    command: tuple[str, ...]
    env: tuple[tuple[str, str | None], ...] = ()
    required_status: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "command", _as_tuple(self.command))

    def with_env_variable(self, key: str, value: str | None = None) -> Execute:
        return dataclasses.replace(self, env=(*self.env, (key, value)))

    def with_required_status(self, required_status: int) -> Execute:
        return dataclasses.replace(self, required_status=required_status)

    async def execute(self, handle: ContainerHandle) -> int:
        client = handle.client
        instance = client.create_exec(handle.id, self.command, dict(self.env))
        async with contextlib.aclosing(client.start_exec(instance)) as output:
            async for line in output:
                print(line, flush=True)  # noqa: T201

        if self.required_status is not None and instance.exit_code != self.required_status:
            raise ExecStatusError(list(self.command), self.required_status, instance.exit_code)
        return instance.exit_code if instance.exit_code is not None else -1
