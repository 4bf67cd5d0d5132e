from __future__ import annotations

import shutil
import subprocess
from collections.abc import Generator
from pathlib import Path

import pytest

from podman_fixtures import PodmanClient
from podman_fixtures.config import MANAGED_LABEL

PODMAN_EXE = shutil.which("podman")
HERE = Path(__file__).parent


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Everything under tests/integration needs a working podman."""
    skip = pytest.mark.skip(reason="'podman' executable not found in PATH")
    for item in items:
        if not item.path.is_relative_to(HERE):
            continue
        item.add_marker(pytest.mark.integration)
        if PODMAN_EXE is None:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def podman_exe() -> str:
    """Expose the podman executable for direct checks."""
    assert PODMAN_EXE is not None
    return PODMAN_EXE


@pytest.fixture
def client(podman_exe: str) -> PodmanClient:
    return PodmanClient(podman_exe=podman_exe)


@pytest.fixture(autouse=True, scope="session")
def cleanup_stale_containers() -> Generator[None, None, None]:
    yield
    # After all tests: anything a failing test retained or leaked
    if PODMAN_EXE is not None:
        subprocess.run(  # noqa: S603
            [PODMAN_EXE, "rm", "-f", "--filter", f"label={MANAGED_LABEL}=true"],
            check=False,
            capture_output=True,
        )
