"""Probe a grabber's self-description and advertised capabilities."""

import shlex
from typing import FrozenSet, List, Optional

from grabber_validation.config import REQUIRED_CAPABILITIES
from grabber_validation.logging_config import get_logger

logger = get_logger("capabilities")


class CapabilityProbe:
    """Issues --version, --description and --capabilities against a grabber.

    Args:
        executor: Object exposing ``run`` and ``run_capture`` (a ValidationRun).
        command: Command line that starts the grabber.
    """

    def __init__(self, executor, command: str) -> None:
        self.executor = executor
        self.command = command

    def fetch_version(self) -> bool:
        return self.executor.run(f"{self.command} --version > /dev/null 2>&1").ok

    def fetch_description(self) -> bool:
        return self.executor.run(f"{self.command} --description > /dev/null 2>&1").ok

    def fetch_capabilities(self) -> Optional[FrozenSet[str]]:
        """Advertised capability set, or None if --capabilities failed."""
        output = self.executor.run_capture(f"{self.command} --capabilities 2>/dev/null")
        if output is None:
            return None
        capabilities = frozenset(output.split())
        logger.debug(f"Advertised capabilities: {sorted(capabilities)}")
        return capabilities

    @staticmethod
    def missing_required(capabilities: FrozenSet[str]) -> List[str]:
        """Required capabilities absent from ``capabilities``, in fixed order."""
        return [c for c in REQUIRED_CAPABILITIES if c not in capabilities]

    @staticmethod
    def grab_options(capabilities, grabber, output_prefix: str) -> str:
        """Extra flags appended to every grab command of a run."""
        options = ""
        if "cache" in capabilities and grabber.use_cache:
            options += f" --cache {shlex.quote(output_prefix + 'cache')}"
        if "share" in capabilities and grabber.share_dir is not None:
            options += f" --share {shlex.quote(str(grabber.share_dir))}"
        return options
