from __future__ import annotations

from ..container import ServiceContainer
from ..image import Image
from ..settings import ImageSettings
from ..tasks import MatchLogOutput

__all__ = ["RedisContainer", "RedisImage"]

IMAGE_NAME = "redis"
DEFAULT_TAG = "latest"


class RedisContainer(ServiceContainer):
    internal_service_port = "6379/tcp"


class RedisImage(Image[RedisContainer]):
    container_type = RedisContainer

    def __init__(self) -> None:
        super().__init__(
            ImageSettings(IMAGE_NAME, DEFAULT_TAG).with_task(
                MatchLogOutput.containing("Ready to accept connections")
            )
        )
