"""Execution context for validation runs."""

import shlex
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from grabber_validation.checks.base import ValidationError
from grabber_validation.exceptions import ChildTerminatedError
from grabber_validation.process import ExitOutcome, ProcessRunner, SignalTerminated
from grabber_validation.tools import FileValidator, ListingsTools


def raise_for_signal(command: str, outcome: ExitOutcome) -> None:
    """Escalate a child killed by a signal the runner did not send."""
    if isinstance(outcome, SignalTerminated):
        raise ChildTerminatedError(command, outcome.signal_number)


@dataclass(frozen=True)
class GrabberConfig:
    """The grabber under test: how to start it and which options to pass."""
    command: str
    config_file: str
    share_dir: Optional[str] = None
    use_cache: bool = False


@dataclass
class ValidationRun:
    """State of a single validation pass, threaded through every stage."""
    name: str
    grabber: GrabberConfig
    output_prefix: str
    runner: ProcessRunner
    file_validator: FileValidator
    tools: ListingsTools = field(default_factory=ListingsTools)
    errors: List[ValidationError] = field(default_factory=list)
    fatal: bool = False
    capabilities: FrozenSet[str] = frozenset()
    grab_options: str = ""
    # Listings files produced by successful grabs, keyed by invocation pattern
    artifacts: Dict[str, str] = field(default_factory=dict)

    def path(self, suffix: str) -> str:
        return f"{self.output_prefix}{suffix}"

    def grab_command(self, offset: int, days: int) -> str:
        return (
            f"{self.grabber.command} --config-file {shlex.quote(str(self.grabber.config_file))}"
            f" --offset {offset} --days {days}{self.grab_options}"
        )

    def run(self, command: str) -> ExitOutcome:
        outcome = self.runner.run(command)
        raise_for_signal(command, outcome)
        return outcome

    def run_capture(self, command: str) -> Optional[str]:
        execution = self.runner.execute(command, capture=True)
        raise_for_signal(command, execution.outcome)
        if execution.outcome.ok:
            return execution.output
        return None


@dataclass
class ValidationReport:
    """Outcome of a finalised validation run."""
    name: str
    errors: List[ValidationError]
    aborted: bool
    command_log: str
    capabilities: FrozenSet[str] = frozenset()

    @property
    def codes(self) -> List[str]:
        return [str(e.code) for e in self.errors]

    @property
    def passed(self) -> bool:
        return not self.errors

    def to_dict(self):
        return {
            "name": self.name,
            "passed": self.passed,
            "aborted": self.aborted,
            "codes": self.codes,
            "errors": [e.to_dict() for e in self.errors],
            "command_log": self.command_log,
            "capabilities": sorted(self.capabilities),
        }
