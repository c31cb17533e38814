from grabber_validation.checks.base import ErrorCode, Stage, StageResult, logger
from grabber_validation.checks.grab import DAY_TWO, OUTPUT_MODE, PRIMARY
from grabber_validation.checks.registry import register


@register(position=110, stage_id="additivity")
class AdditivityCheck(Stage):
    """Grabbing tomorrow and the day after separately and concatenating the
    results must give the same programmes as grabbing both days at once.

    Both sides are normalised with tv_sort before the byte-wise diff. The
    sort runs without --duplicate-error; duplicates are the sort check's
    business, and here they have to show up in the diff.
    """

    def run(self, run):
        if OUTPUT_MODE not in run.artifacts or DAY_TWO not in run.artifacts:
            logger.warning(
                f"Skipping additivity check for {run.name}: a single-day grab failed"
            )
            return StageResult.proceed()

        combined = run.path("1_2-2.xml")
        cat_log = run.path("5.log")
        if not run.tools.cat_files(
            run, run.artifacts[OUTPUT_MODE], run.artifacts[DAY_TWO], combined, cat_log
        ):
            return StageResult.proceed(
                self.error(
                    ErrorCode.CATERROR,
                    f"tv_cat failed to concatenate the data. See {cat_log}",
                )
            )

        primary_sorted = run.path("1_2-1.sorted.xml")
        primary_log = run.path("8.log")
        if not run.tools.sort_file(
            run, run.artifacts[PRIMARY], primary_sorted, primary_log,
            duplicate_error=False,
        ):
            return StageResult.proceed(
                self.error(
                    ErrorCode.SORTERROR,
                    f"tv_sort failed on {run.artifacts[PRIMARY]}. See {primary_log}",
                )
            )

        combined_sorted = run.path("1_2-2.sorted.xml")
        combined_log = run.path("7.log")
        if not run.tools.sort_file(
            run, combined, combined_sorted, combined_log, duplicate_error=False
        ):
            return StageResult.proceed(
                self.error(
                    ErrorCode.SORTERROR,
                    f"tv_sort failed on the concatenated data. See {combined_log}",
                )
            )

        diff = run.path("_1_2.diff")
        if not run.tools.compare_files(run, primary_sorted, combined_sorted, diff):
            return StageResult.proceed(
                self.error(ErrorCode.NOTADDITIVE, f"The data is not additive. See {diff}")
            )
        return StageResult.proceed()
