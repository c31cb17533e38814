import os
import shlex
import time
from typing import Iterable, List, Optional

from grabber_validation.checks.base import Stage, StageResult, ValidationError
from grabber_validation.checks.registry import stages as registered_stages
from grabber_validation.config import COMMAND_TIMEOUT
from grabber_validation.context import (
    GrabberConfig,
    ValidationReport,
    ValidationRun,
    raise_for_signal,
)
from grabber_validation.exceptions import (
    ConfigurationError,
    GrabberValidationError,
    StageExecutionError,
)
from grabber_validation.logging_config import get_logger
from grabber_validation.process import CommandLog, ProcessRunner
from grabber_validation.tools import CommandFileValidator, FileValidator, ListingsTools
import grabber_validation.checks  # noqa: F401

logger = get_logger("runner")


def _execute_stage(stage: Stage, run: ValidationRun) -> StageResult:
    """Execute a single stage and return its result."""
    start_time = time.time()
    try:
        result = stage.run(run)
    except GrabberValidationError:
        raise
    except Exception as e:
        logger.error(
            f"Stage {stage.stage_id} unexpected error: {str(e)}",
            extra={"stage_id": stage.stage_id, "error": str(e)},
            exc_info=True,
        )
        raise StageExecutionError(stage.stage_id, e) from e

    execution_time = time.time() - start_time
    logger.debug(
        f"Stage {stage.stage_id} completed in {execution_time:.2f}s",
        extra={
            "stage_id": stage.stage_id,
            "execution_time": execution_time,
            "codes": result.codes,
            "abort": result.abort,
        },
    )
    return result


def collapse_duplicates(errors: Iterable[ValidationError]) -> List[ValidationError]:
    """Drop errors whose code repeats the code right before them."""
    collapsed: List[ValidationError] = []
    for err in errors:
        if collapsed and str(collapsed[-1].code) == str(err.code):
            continue
        collapsed.append(err)
    return collapsed


def run_stages(run: ValidationRun, stages: Iterable[Stage]) -> None:
    """Run ``stages`` in order, stopping at the first one that aborts."""
    for stage in stages:
        result = _execute_stage(stage, run)
        run.errors.extend(result.errors)
        if result.abort:
            run.fatal = True
            logger.info(
                f"Stage {stage.stage_id} aborted the validation of {run.name}",
                extra={"stage_id": stage.stage_id},
            )
            break


def run_validation(
    name: str,
    command: str,
    config_file: str,
    output_prefix: str,
    share_dir: Optional[str] = None,
    use_cache: bool = False,
    *,
    file_validator: Optional[FileValidator] = None,
    tools: Optional[ListingsTools] = None,
    timeout: float = COMMAND_TIMEOUT,
    stages: Optional[Iterable[Stage]] = None,
) -> ValidationReport:
    """Validate a grabber and return the full report.

    Args:
        name: Short name for the grabber, used in messages only
        command: Command line that starts the grabber
        config_file: Configuration file passed with --config-file
        output_prefix: Prefix prepended to every artifact written
        share_dir: Passed via --share if the grabber supports 'share'
        use_cache: Pass --cache if the grabber supports 'cache'
        file_validator: Returns error keywords for a listings file;
            defaults to running tv_validate_file
        tools: tv_cat/tv_sort/diff adapters
        timeout: Wall-clock bound for every command
        stages: Stages to run; defaults to the registered pipeline

    Raises:
        ChildTerminatedError: A child was killed by a signal we did not send.
            The command log is closed before this propagates.
    """
    if not command or not command.strip():
        raise ConfigurationError("Grabber command must not be empty")

    grabber = GrabberConfig(
        command=command,
        config_file=str(config_file),
        share_dir=None if share_dir is None else str(share_dir),
        use_cache=use_cache,
    )
    output_prefix = str(output_prefix)

    with CommandLog(f"{output_prefix}commands.log") as command_log:
        run = ValidationRun(
            name=name,
            grabber=grabber,
            output_prefix=output_prefix,
            runner=ProcessRunner(log=command_log, timeout=timeout),
            file_validator=None,
            tools=tools or ListingsTools(),
        )
        run.file_validator = file_validator or CommandFileValidator(run)

        logger.info(
            f"Validating {name}",
            extra={"grabber": name, "command": command, "config_file": grabber.config_file},
        )
        run_stages(run, registered_stages() if stages is None else stages)

    errors = collapse_duplicates(run.errors)
    report = ValidationReport(
        name=name,
        errors=errors,
        aborted=run.fatal,
        command_log=command_log.path,
        capabilities=run.capabilities,
    )

    if errors:
        logger.info(
            f"{name} did not validate ok. See {command_log.path} for a "
            "list of the commands that were used",
            extra={"grabber": name, "codes": report.codes},
        )
    else:
        logger.info(f"{name} validated ok.", extra={"grabber": name})
    return report


def validate_grabber(
    name: str,
    command: str,
    config_file: str,
    output_prefix: str,
    share_dir: Optional[str] = None,
    use_cache: bool = False,
    **kwargs,
) -> List[str]:
    """Validate a grabber; returns the error keywords found (empty on success)."""
    return run_validation(
        name, command, config_file, output_prefix, share_dir, use_cache, **kwargs
    ).codes


def configure_grabber(command: str, config_file: str) -> bool:
    """Run the grabber's interactive --configure against ``config_file``.

    The grabber keeps the caller's terminal and runs without the command
    timeout.
    """
    directory = os.path.dirname(str(config_file))
    if directory:
        os.makedirs(directory, exist_ok=True)
    cmd = f"{command} --configure --config-file {shlex.quote(str(config_file))}"
    outcome = ProcessRunner().run_interactive(cmd)
    raise_for_signal(cmd, outcome)
    if not outcome.ok:
        logger.error("Error returned from grabber during configure.")
        return False
    return True
