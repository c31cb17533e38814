from grabber_validation.capabilities import CapabilityProbe
from grabber_validation.checks.base import ErrorCode, Stage, StageResult, logger
from grabber_validation.checks.registry import register
from grabber_validation.config import INVALID_FLAG


@register(position=10, stage_id="param_check", flag=INVALID_FLAG)
class ParamCheck(Stage):
    """The grabber must reject a command-line flag it does not know."""

    def run(self, run):
        flag = self.params.get("flag", INVALID_FLAG)
        outcome = run.run(f"{run.grabber.command} {flag} > /dev/null 2>&1")
        if outcome.ok:
            return StageResult.proceed(
                self.error(
                    ErrorCode.NOPARAMCHECK,
                    f"{run.name} with {flag} did not fail. The grabber seems to "
                    "accept any command-line parameter without returning an error.",
                )
            )
        return StageResult.proceed()


@register(position=20, stage_id="self_description")
class SelfDescription(Stage):
    """--version and --description must both succeed."""

    def run(self, run):
        probe = CapabilityProbe(run, run.grabber.command)
        errors = []
        if not probe.fetch_version():
            errors.append(
                self.error(ErrorCode.NOVERSION, f"{run.name} with --version failed")
            )
        if not probe.fetch_description():
            errors.append(
                self.error(
                    ErrorCode.NODESCRIPTION, f"{run.name} with --description failed"
                )
            )
        return StageResult.proceed(*errors)


@register(position=30, stage_id="capabilities")
class CapabilityCheck(Stage):
    """Reads the advertised capabilities and derives the grab options.

    Leaves ``run.capabilities`` and ``run.grab_options`` set for the later
    stages; an unreadable capability list counts as empty.
    """

    _MISSING = {
        "baseline": ErrorCode.NOBASELINE,
        "manualconfig": ErrorCode.NOMANUALCONFIG,
    }

    def run(self, run):
        probe = CapabilityProbe(run, run.grabber.command)
        errors = []

        capabilities = probe.fetch_capabilities()
        if capabilities is None:
            errors.append(
                self.error(
                    ErrorCode.NOCAPABILITIES, f"{run.name} with --capabilities failed"
                )
            )
            capabilities = frozenset()

        for name in probe.missing_required(capabilities):
            errors.append(
                self.error(
                    self._MISSING[name],
                    f"The grabber does not claim to support the '{name}' capability.",
                )
            )

        run.capabilities = capabilities
        run.grab_options = probe.grab_options(
            capabilities, run.grabber, run.output_prefix
        )
        if run.grab_options:
            logger.info(f"Extra grab options:{run.grab_options}")
        return StageResult.proceed(*errors)
