from __future__ import annotations

from ..container import AdminContainer, ServiceContainer
from ..image import Image
from ..settings import ImageSettings
from ..tasks import MatchLogOutput

__all__ = ["CockroachDbContainer", "CockroachDbImage"]

IMAGE_NAME = "cockroachdb/cockroach"
DEFAULT_TAG = "latest"


class CockroachDbContainer(ServiceContainer, AdminContainer):
    """Single insecure CockroachDB node; the admin port serves the web UI."""

    internal_service_port = "26257/tcp"
    internal_admin_port = "8080/tcp"


class CockroachDbImage(Image[CockroachDbContainer]):
    container_type = CockroachDbContainer

    def __init__(self) -> None:
        super().__init__(
            ImageSettings(IMAGE_NAME, DEFAULT_TAG)
            .with_cmd(["start-single-node", "--insecure", "--accept-sql-without-tls"])
            .with_task(MatchLogOutput.containing("nodeID:"))
        )
