"""Validation of XMLTV grabbers against the documented capability contract."""

__version__ = "0.1.0"

# Core components
from grabber_validation.context import GrabberConfig, ValidationRun, ValidationReport
from grabber_validation.checks.base import ErrorCode, Stage, StageResult, ValidationError
from grabber_validation.process import (
    CommandLog,
    Completed,
    LaunchFailed,
    ProcessRunner,
    SignalTerminated,
    TimedOut,
)
from grabber_validation.capabilities import CapabilityProbe
from grabber_validation.tools import CommandFileValidator, ListingsTools

# Entry points
from grabber_validation.runner.execute import (
    configure_grabber,
    run_validation,
    validate_grabber,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "GrabberConfig",
    "ValidationRun",
    "ValidationReport",
    "ErrorCode",
    "Stage",
    "StageResult",
    "ValidationError",
    "CapabilityProbe",
    "ListingsTools",
    "CommandFileValidator",
    # Processes
    "ProcessRunner",
    "CommandLog",
    "Completed",
    "TimedOut",
    "SignalTerminated",
    "LaunchFailed",
    # Execution
    "configure_grabber",
    "run_validation",
    "validate_grabber",
]
