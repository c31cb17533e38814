import os
import shlex

from grabber_validation.checks.base import ErrorCode, Stage, StageResult, logger
from grabber_validation.checks.registry import register
from grabber_validation.tools import has_output

PRIMARY = "primary"
OUTPUT_MODE = "output_mode"
DAY_TWO = "day_two"
QUIET_OUTPUT = "quiet_output"


def _stderr_leak(stage, run, logfile, what):
    """notquiet error if ``logfile`` has content, else remove it."""
    if has_output(logfile):
        return stage.error(
            ErrorCode.NOTQUIET,
            f"{run.name} {what} produced output to STDERR when it "
            f"shouldn't have. See {logfile}",
        )
    _remove(logfile)
    return None


def _remove(path):
    if os.path.exists(path):
        os.remove(path)


@register(position=40, stage_id="configuration_file")
class ConfigurationFileCheck(Stage):
    def run(self, run):
        conf = run.grabber.config_file
        if not os.path.isfile(conf):
            return StageResult.stop(
                self.error(
                    ErrorCode.NOCONFIGURATIONFILE,
                    f"Configuration file {conf} does not exist. Aborting.",
                )
            )
        return StageResult.proceed()


@register(position=50, stage_id="primary_grab")
class PrimaryGrab(Stage):
    """Grab two days from tomorrow in quiet mode; the baseline for later stages."""

    def run(self, run):
        output = run.path("1_2.xml")
        logfile = run.path("1.log")
        cmd = run.grab_command(1, 2)
        outcome = run.run(f"{cmd} --quiet > {shlex.quote(output)} 2>{shlex.quote(logfile)}")
        if not outcome.ok:
            return StageResult.stop(
                self.error(ErrorCode.GRABERROR, f"{run.name} failed: See {logfile}")
            )

        run.artifacts[PRIMARY] = output
        leak = _stderr_leak(self, run, logfile, "with --quiet")
        return StageResult.proceed(*([leak] if leak else []))


@register(position=60, stage_id="output_validation")
class OutputValidation(Stage):
    """Run the listings file validator over the primary output.

    Its error keywords are passed through verbatim.
    """

    def run(self, run):
        output = run.artifacts[PRIMARY]
        codes = list(run.file_validator(output))
        if codes:
            logger.warning(f"Errors found in {output}: {', '.join(codes)}")
            return StageResult.stop(
                *[
                    self.error(code, f"{output} failed validation: {code}")
                    for code in codes
                ]
            )
        logger.info(f"{output} validates ok")
        return StageResult.proceed()


@register(position=70, stage_id="structural_check")
class StructuralCheck(Stage):
    """tv_cat is stricter about structure than the file validator."""

    def run(self, run):
        output = run.artifacts[PRIMARY]
        logfile = run.path("6.log")
        if not run.tools.cat_file(run, output, os.devnull, logfile):
            return StageResult.stop(
                self.error(
                    ErrorCode.CATERROR,
                    f"{output} makes tv_cat choke, see {logfile}",
                )
            )
        return StageResult.proceed()


@register(position=80, stage_id="sort_check")
class SortCheck(Stage):
    def run(self, run):
        output = run.artifacts[PRIMARY]
        sort_errors = run.path("1_2.sort.log")
        if not run.tools.sort_file(run, output, run.path("1_2.sorted.xml"), sort_errors):
            return StageResult.proceed(
                self.error(
                    ErrorCode.SORTERROR,
                    f"tv_sort failed on {output}, probably because of strange "
                    f"start or stop times. See {sort_errors}",
                )
            )
        return StageResult.proceed()


@register(position=90, stage_id="output_mode_grab")
class OutputModeGrab(Stage):
    """Grab tomorrow only, writing through --output instead of stdout."""

    def run(self, run):
        output = run.path("1_1.xml")
        logfile = run.path("2.log")
        cmd = (
            f"{run.grab_command(1, 1)} --output {shlex.quote(output)}"
            f" 2>{shlex.quote(logfile)}"
        )
        if not run.run(cmd).ok:
            return StageResult.proceed(
                self.error(
                    ErrorCode.GRABERROR,
                    f"{run.name} with --output failed: See {logfile}",
                )
            )
        run.artifacts[OUTPUT_MODE] = output
        return StageResult.proceed()


@register(position=100, stage_id="split_grabs")
class SplitGrabs(Stage):
    """Grab the day after tomorrow, and tomorrow again with --quiet --output.

    Also checks that tomorrow's data does not depend on whether --quiet
    was given.
    """

    def run(self, run):
        errors = []

        output = run.path("2_1.xml")
        logfile = run.path("3.log")
        cmd = (
            f"{run.grab_command(2, 1)} > {shlex.quote(output)}"
            f" 2>{shlex.quote(logfile)}"
        )
        if run.run(cmd).ok:
            run.artifacts[DAY_TWO] = output
            _remove(logfile)
        else:
            errors.append(
                self.error(ErrorCode.GRABERROR, f"{run.name} failed: See {logfile}")
            )

        quiet_output = run.path("4.xml")
        logfile = run.path("4.log")
        cmd = (
            f"{run.grab_command(1, 1)} --quiet --output {shlex.quote(quiet_output)}"
            f" 2>{shlex.quote(logfile)}"
        )
        if run.run(cmd).ok:
            run.artifacts[QUIET_OUTPUT] = quiet_output
            leak = _stderr_leak(self, run, logfile, "with --quiet and --output")
            if leak:
                errors.append(leak)
        else:
            errors.append(
                self.error(
                    ErrorCode.GRABERROR,
                    f"{run.name} with --quiet and --output failed: See {logfile}",
                )
            )

        if OUTPUT_MODE in run.artifacts and QUIET_OUTPUT in run.artifacts:
            diff = run.path("1_1-4.diff")
            if not run.tools.compare_files(
                run, run.artifacts[OUTPUT_MODE], run.artifacts[QUIET_OUTPUT], diff
            ):
                errors.append(
                    self.error(
                        ErrorCode.OUTPUTDIFFERS,
                        f"{run.name} produced different output with and without "
                        f"--quiet. See {diff}",
                    )
                )

        return StageResult.proceed(*errors)
