"""Custom exception hierarchy for the grabber validation framework."""


class GrabberValidationError(Exception):
    """Base exception for all grabber validation framework errors."""

    pass


class ConfigurationError(GrabberValidationError):
    """Raised when caller-supplied settings are invalid or missing."""

    pass


class ChildTerminatedError(GrabberValidationError):
    """Raised when a child process was killed by a signal we did not send.

    The harness can no longer assume a controlled child failure (typically
    an operator interrupt), so the whole validation run stops.
    """

    def __init__(self, command: str, signal_number: int):
        self.command = command
        self.signal_number = signal_number
        super().__init__(
            f"Command terminated by signal {signal_number}: {command}"
        )


class StageExecutionError(GrabberValidationError):
    """Raised when a pipeline stage fails unexpectedly."""

    def __init__(self, stage_id: str, cause: Exception):
        self.stage_id = stage_id
        self.cause = cause
        super().__init__(f"Stage {stage_id} failed: {cause}")


class StageRegistrationError(GrabberValidationError):
    """Raised when stage registration fails (e.g., duplicate positions)."""

    pass
