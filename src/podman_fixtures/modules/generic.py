from __future__ import annotations

from ..container import Container
from ..image import Image
from ..settings import DEFAULT_TAG, ImageSettings, Qualifier

__all__ = ["GenericContainer", "GenericImage"]


class GenericContainer(Container):
    """A container with no workload-specific capabilities."""


class GenericImage(Image[GenericContainer]):
    """Any image, configured entirely by the caller."""

    container_type = GenericContainer

    def __init__(self, name: str, qualifier: Qualifier | str = DEFAULT_TAG):
        super().__init__(ImageSettings(name, qualifier))
