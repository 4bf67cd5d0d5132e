from __future__ import annotations

from collections.abc import AsyncIterator, Generator, Iterable, Mapping, Sequence
from typing import Any

import pytest

from podman_fixtures import ExecInstance, PodmanClient, RuntimeClientError
from podman_fixtures.config import DROP_ACTION_ENV

# TEST CONSTANTS
FAKE_CONTAINER_ID = "f00dfeed1234567890abcdef"


class FakePodmanClient(PodmanClient):
    """In-memory stand-in for podman that records every call it receives."""

    def __init__(
        self,
        *,
        image_present: bool = True,
        log_lines: Iterable[str] = (),
        ports: Mapping[str, Any] | None = None,
        exec_output: Iterable[str] = (),
        exec_exit_code: int = 0,
        fail_on: Iterable[str] = (),
    ):
        super().__init__(podman_exe="podman")
        self.image_present = image_present
        self.log_lines = list(log_lines)
        self.ports = dict(ports or {})
        self.exec_output = list(exec_output)
        self.exec_exit_code = exec_exit_code
        self.fail_on = set(fail_on)
        self.calls: list[tuple[Any, ...]] = []
        self.log_lines_read = 0
        self.log_stream_closed = False

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise RuntimeClientError(["podman", name], 125, f"{name} failed")

    async def inspect_image(self, reference: str) -> dict[str, Any]:
        self.calls.append(("inspect_image", reference))
        if not self.image_present:
            raise RuntimeClientError(["podman", "image", "inspect", reference], 125, "unknown")
        return {"Id": "sha256:abc"}

    async def pull_image(self, reference: str) -> AsyncIterator[str]:  # type: ignore[override]
        self._record("pull_image", reference)
        yield f"Trying to pull {reference}..."
        yield "Writing manifest to image destination"

    async def create_container(
        self,
        image: str,
        cmd: Sequence[str] | None = None,
        entrypoint: Sequence[str] | None = None,
        env: Mapping[str, str | None] | None = None,
        publish_all: bool = True,
        labels: Mapping[str, str] | None = None,
    ) -> str:
        self._record(
            "create_container",
            image,
            cmd,
            entrypoint,
            dict(env or {}),
            publish_all,
            dict(labels or {}),
        )
        return FAKE_CONTAINER_ID

    async def start_container(self, container_id: str) -> None:
        self._record("start_container", container_id)

    async def inspect_container(self, container_id: str) -> dict[str, Any]:
        self._record("inspect_container", container_id)
        return {"Id": container_id, "NetworkSettings": {"Ports": self.ports}}

    async def stop_container(self, container_id: str) -> None:
        self._record("stop_container", container_id)

    async def remove_container(self, container_id: str, force: bool = True) -> None:
        self._record("remove_container", container_id, force)

    async def logs(  # type: ignore[override]
        self, container_id: str, follow: bool = True
    ) -> AsyncIterator[str]:
        self._record("logs", container_id, follow)
        try:
            for line in self.log_lines:
                self.log_lines_read += 1
                yield line
        finally:
            self.log_stream_closed = True

    async def start_exec(self, instance: ExecInstance) -> AsyncIterator[str]:  # type: ignore[override]
        self._record("start_exec", instance.container_id, instance.command, instance.env)
        for line in self.exec_output:
            yield line
        instance.exit_code = self.exec_exit_code


@pytest.fixture
def fake_client() -> FakePodmanClient:
    return FakePodmanClient()


@pytest.fixture(autouse=True)
def no_drop_action_override(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep the developer's own drop action override out of the tests."""
    monkeypatch.delenv(DROP_ACTION_ENV, raising=False)
    yield


@pytest.fixture
def make_client() -> type[FakePodmanClient]:
    """Build fake clients with specific behaviour: ``make_client(log_lines=[...])``."""
    return FakePodmanClient
