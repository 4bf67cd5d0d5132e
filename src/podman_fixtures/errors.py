from __future__ import annotations

__all__ = [
    "ExecStatusError",
    "LogPatternNotFoundError",
    "PreflightError",
    "ReadinessTimeoutError",
    "RuntimeClientError",
    "StartupError",
    "TestcontainerError",
    "UndefinedPortError",
    "UnexposedPortError",
]


class TestcontainerError(Exception):
    """Base error for everything raised by podman-fixtures."""

    __test__ = False  # not a pytest test class

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnexposedPortError(TestcontainerError):
    """The internal port exists, but the runtime returned no host binding for it."""

    def __init__(self, port_spec: str):
        super().__init__(f"Internal port {port_spec} is not exposed.")
        self.port_spec = port_spec


class UndefinedPortError(TestcontainerError):
    """The internal port is not declared by the image at all."""

    def __init__(self, port_spec: str):
        super().__init__(f"Request port {port_spec} is not defined for this image.")
        self.port_spec = port_spec


class RuntimeClientError(TestcontainerError):
    """A podman invocation failed."""

    def __init__(self, command: list[str], returncode: int | None, stderr: str = ""):
        cmd_str = " ".join(command)
        super().__init__(
            f"Podman command failed (exit {returncode}):\n"
            f"Command: {cmd_str}\n"
            f"stderr: {stderr.strip()}"
        )
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class StartupError(TestcontainerError):
    """A startup pipeline phase failed; the original error is the ``__cause__``."""

    def __init__(self, phase: str, image: str, reason: str):
        super().__init__(f"Failed to start {image!r} during {phase!r}: {reason}")
        self.phase = phase
        self.image = image


class LogPatternNotFoundError(TestcontainerError):
    """The log stream ended before every expected pattern was seen."""

    def __init__(self, pattern: str):
        super().__init__(f"Log stream ended before {pattern!r} was seen")
        self.pattern = pattern


class ReadinessTimeoutError(TestcontainerError):
    def __init__(self, timeout: float, pattern: str):
        super().__init__(f"Pattern {pattern!r} not seen within {timeout}s")
        self.timeout = timeout
        self.pattern = pattern


class ExecStatusError(TestcontainerError):
    def __init__(self, command: list[str], expected: int, actual: int | None):
        super().__init__(
            f"Command {' '.join(command)!r} exited with {actual}, expected {expected}"
        )
        self.command = command
        self.expected = expected
        self.actual = actual


class PreflightError(TestcontainerError):
    """The host environment cannot run Podman containers."""
