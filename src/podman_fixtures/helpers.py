from __future__ import annotations

import shutil
from collections.abc import Mapping

__all__ = ["flatten_env", "get_podman_exe"]


def get_podman_exe() -> str:
    """Find podman executable."""
    exe = shutil.which("podman")
    if not exe:
        raise RuntimeError("podman not found in PATH")

    return exe


def flatten_env(env: Mapping[str, str | None]) -> list[str]:
    """Render an environment mapping as ``KEY=VALUE`` / bare ``KEY`` entries."""
    return [key if value is None else f"{key}={value}" for key, value in env.items()]
