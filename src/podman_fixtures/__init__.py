from importlib.metadata import PackageNotFoundError, version

from .client import ExecInstance, PodmanClient
from .container import (
    AdminContainer,
    Container,
    ContainerHandle,
    DatabaseContainer,
    ServiceContainer,
)
from .errors import (
    ExecStatusError,
    LogPatternNotFoundError,
    PreflightError,
    ReadinessTimeoutError,
    RuntimeClientError,
    StartupError,
    TestcontainerError,
    UndefinedPortError,
    UnexposedPortError,
)
from .image import Image
from .settings import ContainerSettings, Digest, DropAction, ImageSettings, Qualifier, Tag
from .task import Task
from .tasks import Execute, MatchLogOutput

try:
    __version__ = version("podman-fixtures")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "AdminContainer",
    "Container",
    "ContainerHandle",
    "ContainerSettings",
    "DatabaseContainer",
    "Digest",
    "DropAction",
    "ExecInstance",
    "ExecStatusError",
    "Execute",
    "Image",
    "ImageSettings",
    "LogPatternNotFoundError",
    "MatchLogOutput",
    "PodmanClient",
    "PreflightError",
    "Qualifier",
    "ReadinessTimeoutError",
    "RuntimeClientError",
    "ServiceContainer",
    "StartupError",
    "Tag",
    "Task",
    "TestcontainerError",
    "UndefinedPortError",
    "UnexposedPortError",
    "__version__",
]
