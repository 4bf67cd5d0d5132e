from __future__ import annotations

import os
import re
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import structlog

from .config import CONTAINER_HOST
from .errors import PreflightError

if TYPE_CHECKING:
    from .client import PodmanClient

__all__ = ["CHECKS", "Check", "run_preflight_checks"]

logger = structlog.get_logger(__name__)

MIN_PODMAN_VERSION = (4, 0)

Check = Callable[["PodmanClient"], None]


# --------------------------------------------------------------------------- #
# Plumbing
# --------------------------------------------------------------------------- #
def _fail(msg: str) -> NoReturn:
    logger.error("Preflight check failed", reason=msg)
    raise PreflightError(msg)


def _podman(client: PodmanClient, *args: str) -> subprocess.CompletedProcess[str]:
    """Run a short podman query with the client's executable and service."""
    return subprocess.run(  # noqa: S603
        [client._get_podman(), *args],
        capture_output=True,
        text=True,
        check=False,
        env=client._get_env(),
    )


def _target(client: PodmanClient) -> str:
    return client.podman_host or "the local podman"


# --------------------------------------------------------------------------- #
# Individual checks
# --------------------------------------------------------------------------- #
def _check_executable(client: PodmanClient) -> None:
    try:
        exe = client._get_podman()
    except RuntimeError:
        _fail("No podman executable in PATH; install podman 4.0 or newer")
    if shutil.which(exe) is None:
        _fail(f"Configured podman executable {exe!r} does not exist or is not executable")


def _check_version(client: PodmanClient) -> None:
    result = _podman(client, "version", "--format", "{{.Client.Version}}")
    if result.returncode != 0:
        return  # Reported by the service check
    match = re.match(r"(\d+)\.(\d+)", result.stdout.strip())
    if not match:
        return
    version = (int(match.group(1)), int(match.group(2)))
    if version < MIN_PODMAN_VERSION:
        _fail(
            f"podman {result.stdout.strip()} is too old; "
            f"{'.'.join(map(str, MIN_PODMAN_VERSION))} or newer is needed for "
            "--publish-all port inspection and log following"
        )


def _check_service(client: PodmanClient) -> None:
    result = _podman(client, "info", "--format", "{{.Store.GraphRoot}}")
    if result.returncode == 0:
        return
    hint = (
        f"check {CONTAINER_HOST} and that the remote podman.socket is running"
        if client.podman_host
        else "run 'podman system migrate' or check the rootless setup"
    )
    _fail(f"Cannot reach {_target(client)}: {result.stderr.strip()}\nHint: {hint}")


def _check_storage_writable(client: PodmanClient) -> None:
    if client.podman_host:
        return  # Storage lives on the remote machine
    result = _podman(client, "info", "--format", "{{.Store.GraphRoot}}")
    if result.returncode != 0:
        return
    graph_root = Path(result.stdout.strip())
    if not graph_root.is_dir():
        _fail(f"Image storage {graph_root} does not exist")
    marker = graph_root / ".podman-fixtures-write"
    try:
        marker.write_text("")
        marker.unlink()
    except OSError as e:
        _fail(f"Image storage {graph_root} is not writable ({e}); pulls and creates will fail")


def _check_snap_sandbox(client: PodmanClient) -> None:
    if client.podman_host:
        return
    if "snap" in os.environ.get("XDG_DATA_HOME", "").lower():
        _fail(
            "Running inside a Snap confined application: containers end up in a "
            "private storage that the host podman does not see"
        )


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #
CHECKS: list[Check] = [
    _check_executable,
    _check_snap_sandbox,
    _check_version,
    _check_service,
    _check_storage_writable,
]


def run_preflight_checks(
    client: PodmanClient, custom_checks: list[Check] | None = None
) -> None:
    """Verify ``client`` can run containers; raise ``PreflightError`` if not."""
    for check in CHECKS + (custom_checks or []):
        try:
            check(client)
        except PreflightError:
            raise
        except Exception as e:
            _fail(f"{getattr(check, '__name__', check)}: {e}")
    logger.debug("Preflight checks passed", host=_target(client))
