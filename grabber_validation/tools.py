"""Adapters around the external XMLTV tools and ``diff``.

Every call goes through an executor exposing ``run(command) -> ExitOutcome``
(normally the ValidationRun), so tool invocations land in the command log
next to the grabber invocations.
"""

import os
import shlex
from typing import Callable, List, Optional

from grabber_validation import config
from grabber_validation.logging_config import get_logger

logger = get_logger("tools")

FileValidator = Callable[[str], List[str]]
"""Callable returning the error keywords found in a listings file."""


def _q(path) -> str:
    return shlex.quote(os.fspath(path))


def has_output(path) -> bool:
    """True if ``path`` exists and is non-empty."""
    return os.path.exists(path) and os.path.getsize(path) > 0


class ListingsTools:
    """Thin call-outs to tv_cat, tv_sort and diff.

    Each method returns True on success so the checks can branch on it.
    """

    def __init__(
        self,
        cat_command: Optional[str] = None,
        sort_command: Optional[str] = None,
        diff_command: Optional[str] = None,
    ) -> None:
        self.cat_command = cat_command or config.tool_command(config.TV_CAT)
        self.sort_command = sort_command or config.tool_command(config.TV_SORT)
        self.diff_command = diff_command or config.tool_command(config.DIFF)

    def cat_file(self, executor, source, outfile, logfile) -> bool:
        """Pass a single listings file through tv_cat."""
        outcome = executor.run(
            f"{self.cat_command} {_q(source)} > {_q(outfile)} 2>{_q(logfile)}"
        )
        return outcome.ok

    def cat_files(self, executor, first, second, outfile, logfile) -> bool:
        """Concatenate two listings files."""
        outcome = executor.run(
            f"{self.cat_command} {_q(first)} {_q(second)} "
            f"> {_q(outfile)} 2>{_q(logfile)}"
        )
        return outcome.ok

    def sort_file(
        self, executor, source, outfile, logfile, duplicate_error: bool = True
    ) -> bool:
        """Sort a listings file.

        In duplicate-detecting mode any diagnostic output counts as failure,
        even with a zero exit code.
        """
        flag = " --duplicate-error" if duplicate_error else ""
        outcome = executor.run(
            f"{self.sort_command}{flag} {_q(source)} > {_q(outfile)} 2>{_q(logfile)}"
        )
        if duplicate_error and has_output(logfile):
            return False
        return outcome.ok

    def compare_files(self, executor, first, second, outfile=os.devnull) -> bool:
        """True if both files have identical contents."""
        outcome = executor.run(
            f"{self.diff_command} {_q(first)} {_q(second)} > {_q(outfile)}"
        )
        return outcome.ok


class CommandFileValidator:
    """File validator backed by the ``tv_validate_file`` command.

    The tool only reports pass/fail, so a failure maps to ``notvalid``.
    Callers with a richer validator inject any FileValidator instead.
    """

    error_code = "notvalid"

    def __init__(self, executor, command: Optional[str] = None) -> None:
        self.executor = executor
        self.command = command or config.tool_command(config.TV_VALIDATE_FILE)

    def __call__(self, path: str) -> List[str]:
        logfile = f"{os.path.splitext(path)[0]}.validate.log"
        outcome = self.executor.run(
            f"{self.command} {_q(path)} > {_q(logfile)} 2>&1"
        )
        if outcome.ok:
            return []
        logger.warning(f"{self.command} rejected {path}, see {logfile}")
        return [self.error_code]
