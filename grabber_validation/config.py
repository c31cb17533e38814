"""Configuration management with environment variable loading and tool lookup."""

import os
from typing import Optional
from pathlib import Path

def load_env_file():
    """Load environment variables from .env file if it exists."""
    env_file = Path(__file__).parent.parent / ".env"
    if env_file.exists():
        with open(env_file, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#') and '=' in line:
                    key, value = line.split('=', 1)
                    if key not in os.environ:  # Don't override existing env vars
                        os.environ[key] = value

def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.environ.get(name, default)

def tool_command(tool: str) -> str:
    """Command used to invoke an external XMLTV tool, e.g. ``tv_sort``.

    GRABBER_VALIDATION_TV_SORT (and friends) override the default.
    """
    return get_env(f"GRABBER_VALIDATION_{tool.upper()}", tool)

# Load .env file on import
load_env_file()

# Core Configuration Constants
COMMAND_TIMEOUT = 600
"""int: Wall-clock bound in seconds applied to every subprocess invocation."""

KILL_GRACE_PERIOD = 5
"""int: Seconds between SIGTERM and SIGKILL when a process group times out."""

DEFAULT_OUTPUT_PREFIX = "./validation_runs/"
"""str: Default directory prefix for validation artifacts."""

INVALID_FLAG = "--ahdmegkeja"
"""str: Nonsense flag every grabber must reject."""

REQUIRED_CAPABILITIES = ("baseline", "manualconfig")
"""tuple: Capabilities every conforming grabber must advertise."""

# External XMLTV tools
TV_CAT = "tv_cat"
TV_SORT = "tv_sort"
TV_VALIDATE_FILE = "tv_validate_file"
DIFF = "diff"
