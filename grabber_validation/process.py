"""Subprocess execution with a bounded timeout and process-group termination."""

import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import IO, Optional, Union

from grabber_validation.config import COMMAND_TIMEOUT, KILL_GRACE_PERIOD
from grabber_validation.exceptions import ConfigurationError
from grabber_validation.logging_config import get_logger

logger = get_logger("process")


@dataclass(frozen=True)
class Completed:
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class TimedOut:
    timeout: float
    ok = False


@dataclass(frozen=True)
class SignalTerminated:
    signal_number: int
    ok = False


@dataclass(frozen=True)
class LaunchFailed:
    reason: str
    ok = False


ExitOutcome = Union[Completed, TimedOut, SignalTerminated, LaunchFailed]


@dataclass
class CommandExecution:
    """A single subprocess invocation and its result."""

    command: str
    timeout: float
    outcome: Optional[ExitOutcome] = None
    output: Optional[str] = None
    duration: Optional[float] = None


class CommandLog:
    """Sink recording every command run during a validation pass.

    One line per command, written before the command starts so that a
    hanging grabber still leaves a reproducible trail.
    """

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = os.fspath(path)
        self._fh: Optional[IO[str]] = None

    def open(self) -> "CommandLog":
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._fh = open(self.path, "w", encoding="utf-8")
        return self

    @property
    def closed(self) -> bool:
        return self._fh is None

    def record(self, command: str) -> None:
        if self._fh is None:
            raise ValueError(f"Command log {self.path} is not open")
        self._fh.write(command + "\n")
        self._fh.flush()

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self):
        """Context manager entry"""
        if self._fh is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()


class _GroupKiller:
    """Per-invocation timer that terminates a child's process group.

    SIGTERM goes out ``grace`` seconds before the bound and SIGKILL at the
    bound, so a timed out child never outlives ``timeout``. The grace is
    capped at half the bound.
    """

    def __init__(self, process: subprocess.Popen, timeout: float, grace: float):
        self.process = process
        self.grace = min(grace, timeout / 2)
        self.fired = False
        self._lock = threading.Lock()
        self._timer = threading.Timer(timeout - self.grace, self._expire)
        self._timer.daemon = True

    def start(self) -> None:
        self._timer.start()

    def cancel(self) -> None:
        self._timer.cancel()

    def _expire(self) -> None:
        with self._lock:
            if self.process.poll() is not None:
                return
            self.fired = True
        kill_process_group(self.process, signal.SIGTERM)
        try:
            self.process.wait(timeout=self.grace)
        except subprocess.TimeoutExpired:
            pass
        # Descendants may outlive the leader and hold the stdout pipe open
        kill_process_group(self.process, signal.SIGKILL)


def kill_process_group(process: subprocess.Popen, sig: int) -> None:
    """Send ``sig`` to the whole process group led by ``process``."""
    try:
        os.killpg(process.pid, sig)
    except (ProcessLookupError, PermissionError):
        pass


class ProcessRunner:
    """Runs shell commands one at a time, each in its own process group.

    Args:
        log: Command log that receives every command line before it runs.
        timeout: Wall-clock bound in seconds for every invocation.
        kill_grace: Seconds between SIGTERM and SIGKILL on timeout.
    """

    def __init__(
        self,
        log: Optional[CommandLog] = None,
        timeout: float = COMMAND_TIMEOUT,
        kill_grace: float = KILL_GRACE_PERIOD,
    ) -> None:
        if timeout <= 0:
            raise ConfigurationError(f"Command timeout must be positive, got {timeout}")
        self.log = log
        self.timeout = timeout
        self.kill_grace = kill_grace

    def run(self, command: str, timeout: Optional[float] = None) -> ExitOutcome:
        """Run ``command`` and return how it ended."""
        return self.execute(command, timeout).outcome

    def run_capture(self, command: str, timeout: Optional[float] = None) -> Optional[str]:
        """Run ``command`` and return its stdout, or None unless it exited 0."""
        execution = self.execute(command, timeout, capture=True)
        if isinstance(execution.outcome, Completed) and execution.outcome.ok:
            return execution.output
        return None

    def execute(
        self, command: str, timeout: Optional[float] = None, capture: bool = False
    ) -> CommandExecution:
        timeout = self.timeout if timeout is None else timeout
        execution = CommandExecution(command=command, timeout=timeout)

        if self.log is not None:
            self.log.record(command)
        logger.debug(f"Running: {command}", extra={"command": command})

        start_time = time.time()
        try:
            process = subprocess.Popen(
                command,
                shell=True,
                stdout=subprocess.PIPE if capture else None,
                preexec_fn=os.setsid,  # Create new process group
                encoding="utf-8" if capture else None,
                errors="replace" if capture else None,
            )
        except OSError as e:
            logger.warning(f"Failed to execute {command}: {e}")
            execution.outcome = LaunchFailed(str(e))
            execution.duration = time.time() - start_time
            return execution

        killer = _GroupKiller(process, timeout, self.kill_grace)
        killer.start()
        try:
            if capture:
                execution.output, _ = process.communicate()
            else:
                process.wait()
        except KeyboardInterrupt:
            killer.cancel()
            kill_process_group(process, signal.SIGKILL)
            process.wait()
            raise
        finally:
            killer.cancel()
        execution.duration = time.time() - start_time

        if killer.fired:
            # Reap anything in the group that ignored SIGTERM
            kill_process_group(process, signal.SIGKILL)
            logger.warning(
                f"Timeout after {timeout}s: {command}",
                extra={"command": command, "timeout": timeout},
            )
            execution.outcome = TimedOut(timeout)
            execution.output = None
        elif process.returncode < 0:
            logger.error(f"Terminated by signal {-process.returncode}: {command}")
            execution.outcome = SignalTerminated(-process.returncode)
        else:
            execution.outcome = Completed(process.returncode)
        return execution

    def run_interactive(self, command: str) -> ExitOutcome:
        """Run ``command`` attached to the caller's terminal.

        The child stays in the caller's session and process group so it can
        prompt through the controlling terminal, and no timeout applies.
        Ctrl-C reaches the child directly; the runner waits for it to exit
        before re-raising ``KeyboardInterrupt``.
        """
        if self.log is not None:
            self.log.record(command)
        logger.debug(f"Running interactively: {command}", extra={"command": command})

        try:
            process = subprocess.Popen(command, shell=True)
        except OSError as e:
            logger.warning(f"Failed to execute {command}: {e}")
            return LaunchFailed(str(e))

        try:
            process.wait()
        except KeyboardInterrupt:
            process.wait()
            raise

        if process.returncode < 0:
            logger.error(f"Terminated by signal {-process.returncode}: {command}")
            return SignalTerminated(-process.returncode)
        return Completed(process.returncode)
