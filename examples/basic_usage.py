#!/usr/bin/env python3
"""Basic usage example for the grabber validation framework.

This example demonstrates how to:
1. Configure a grabber interactively
2. Validate it against the capability contract
3. Inspect the report
"""

import sys
from pathlib import Path
from grabber_validation import configure_grabber, run_validation
from grabber_validation.logging_config import setup_logging


def main():
    """Run basic validation example."""
    if len(sys.argv) < 2:
        print(f"usage: {sys.argv[0]} <grabber-command> [config-file]")
        return 2

    setup_logging(level="INFO")
    command = sys.argv[1]
    name = Path(command.split()[-1]).name
    conf = Path(sys.argv[2] if len(sys.argv) > 2 else f"{name}.conf")

    # 1. Configure the grabber once if there is no configuration yet
    if not conf.exists():
        print(f"No configuration at {conf}, running --configure")
        if not configure_grabber(command, str(conf)):
            print("Configuration failed")
            return 1

    # 2. Validate
    report = run_validation(name, command, str(conf), f"validation_runs/{name}_")

    # 3. Inspect the results
    if report.passed:
        print(f"{name} passed")
        return 0
    for err in report.errors:
        print(f"{err.code:20} {err.message}")
    print(f"Commands used: {report.command_log}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
