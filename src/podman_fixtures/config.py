from __future__ import annotations

import os

__all__ = [
    "CONTAINER_HOST",
    "DROP_ACTION_ENV",
    "MANAGED_LABEL",
    "drop_action_override",
    "podman_host",
]

DROP_ACTION_ENV = "PODMAN_FIXTURES_DROP_ACTION"
CONTAINER_HOST = "CONTAINER_HOST"

# Every container created by this library carries this label
MANAGED_LABEL = "io.podman-fixtures.managed"


def drop_action_override() -> str | None:
    """Return the process-wide teardown override, if set."""
    return os.environ.get(DROP_ACTION_ENV)


def podman_host() -> str | None:
    """Return the remote Podman service URL, if set."""
    return os.environ.get(CONTAINER_HOST) or None
