import argparse, json, os, sys
from grabber_validation.checks.registry import list_registered
from grabber_validation.config import DEFAULT_OUTPUT_PREFIX
from grabber_validation.exceptions import ChildTerminatedError
from grabber_validation.logging_config import setup_logging
from grabber_validation.runner.execute import configure_grabber, run_validation


def _default_name(command):
    return os.path.basename(command.split()[-1]) if command.split() else "grabber"


def _configure(args):
    ok = configure_grabber(args.command, args.config_file)
    return 0 if ok else 1


def _print_stages():
    for stage in list_registered():
        print(f"{stage['position']:>4}  {stage['stage_id']}", file=sys.stderr)


def _validate(args):
    if args.list_stages:
        _print_stages()
    name = args.name or _default_name(args.command)
    prefix = args.prefix or os.path.join(DEFAULT_OUTPUT_PREFIX, f"{name}_")
    report = run_validation(
        name,
        args.command,
        args.config_file,
        prefix,
        share_dir=args.share,
        use_cache=args.cache,
    )
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        for code in report.codes:
            print(code)
    return 0 if report.passed else 1


def main(argv=None):
    p = argparse.ArgumentParser(
        prog="grabber-validation",
        description="Check that an XMLTV grabber honours the capability contract",
    )
    p.add_argument("--log-level", type=str, default=None, help="DEBUG, INFO, WARNING, ...")
    subs = p.add_subparsers(dest="cmd", required=True)

    p1 = subs.add_parser("configure", help="Run the grabber's --configure step")
    p1.add_argument("command", type=str, help="Command that starts the grabber")
    p1.add_argument("config_file", type=str)
    p1.set_defaults(func=_configure)

    p2 = subs.add_parser("validate", help="Validate a configured grabber")
    p2.add_argument("command", type=str, help="Command that starts the grabber")
    p2.add_argument("config_file", type=str)
    p2.add_argument("--name", type=str, help="Short name used in messages")
    p2.add_argument("--prefix", type=str, help="Prefix for all output files")
    p2.add_argument("--share", type=str, help="Metadata directory passed via --share")
    p2.add_argument("--cache", action="store_true", help="Pass --cache if supported")
    p2.add_argument("--json", action="store_true", help="Print the report as JSON")
    p2.add_argument(
        "--list-stages", action="store_true", help="Print registered stages before validating"
    )
    p2.set_defaults(func=_validate)

    args = p.parse_args(argv)
    # stdout carries the result only
    setup_logging(level=args.log_level, stream=sys.stderr)
    try:
        return args.func(args)
    except ChildTerminatedError as e:
        print(f"Aborted: {e}", file=sys.stderr)
        return 2

if __name__ == "__main__":
    sys.exit(main())
