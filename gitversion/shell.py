"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running git, plus
output formatting helpers shared by the release pipeline.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

from .errors import ExternalProcessError


def git(*args: str, cwd: Path | str | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--porcelain").
        cwd: Directory to run git in. Defaults to the process cwd.
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., upstream lookup).

    Returns:
        Stripped stdout from the git command. Empty when check is False
        and the command failed.

    Raises:
        ExternalProcessError: If git exits non-zero and check is True.
    """
    cmd = ["git", *args]
    result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, check=False)
    if result.returncode != 0:
        if check:
            raise ExternalProcessError(cmd, result.returncode, result.stdout, result.stderr)
        return ""
    return result.stdout.strip()


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the release pipeline in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a warning to stderr without interrupting the pipeline."""
    print(f"WARNING: {msg}", file=sys.stderr)


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the pipeline.
    """
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
