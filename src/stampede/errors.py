"""Exception hierarchy for load-test orchestration."""


class StampedeError(Exception):
    """Base class for all stampede errors."""


class ConfigurationError(StampedeError, ValueError):
    """Raised when a test configuration is rejected before anything runs."""


class ScriptGenerationError(ConfigurationError):
    """Raised when a k6 script cannot be built from a configuration."""


class ExecutionError(StampedeError):
    """Raised when the load engine failed to start or produced no usable metrics."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        output_tail: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output_tail = output_tail


__all__ = [
    "ConfigurationError",
    "ExecutionError",
    "ScriptGenerationError",
    "StampedeError",
]
