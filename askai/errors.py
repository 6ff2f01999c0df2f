"""Error taxonomy for askai.

Every error raised on purpose by the package derives from AskAiError so the
CLI layer can report it with a single except clause.
"""


class AskAiError(Exception):
    """Base class for all askai errors."""


class ExternalToolError(AskAiError):
    """A generation backend is absent or exited with a failure."""


class GenerationQualityError(AskAiError):
    """The backend answered, but not with a usable command."""


class ExecutionError(AskAiError):
    """A scheduled shell command failed to launch or exited non-zero."""


class CycleDetectedError(ExecutionError):
    """An execution plan cannot be fully scheduled."""

    def __init__(self, stuck_ids, unknown_ids=None):
        self.stuck_ids = sorted(stuck_ids)
        self.unknown_ids = sorted(unknown_ids or [])
        message = f"Cannot schedule tasks {self.stuck_ids}"
        if self.unknown_ids:
            message += f" (unknown dependencies: {self.unknown_ids})"
        else:
            message += " (dependency cycle)"
        super().__init__(message)


class DangerousCommandError(AskAiError):
    """A generated command matches a forbidden pattern and must not run."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"Dangerous pattern detected: {pattern}")


class ConfigurationError(AskAiError):
    """A required setting or path could not be resolved."""


class TransportError(AskAiError):
    """Daemon IPC failed while binding, connecting, reading or writing."""


class SerializationError(AskAiError):
    """Malformed JSON crossed the daemon IPC boundary."""
