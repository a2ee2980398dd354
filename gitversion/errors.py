"""Exception hierarchy for gitversion.

Everything except PublishError is fatal: the CLI reports it and exits
non-zero before any further mutation is attempted.
"""

from __future__ import annotations

from collections.abc import Sequence


class GitVersionError(Exception):
    """Base class for all gitversion errors."""


class ExternalProcessError(GitVersionError):
    """An external process (git) exited with a non-zero status.

    Attributes:
        command: Command line that was executed.
        returncode: Exit status of the process.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"`{' '.join(self.command)}` failed with exit code {returncode}")

    def details(self) -> str:
        """Captured output, formatted for diagnostics."""
        parts = [str(self)]
        if self.stdout.strip():
            parts.append(f"stdout:\n{self.stdout.rstrip()}")
        if self.stderr.strip():
            parts.append(f"stderr:\n{self.stderr.rstrip()}")
        return "\n".join(parts)


class ConfigurationError(GitVersionError):
    """Invalid configuration or workspace manifest."""


class FilesystemError(GitVersionError):
    """Reading or writing a manifest or changelog failed."""


class PublishError(GitVersionError):
    """A publish plugin failed. Never fatal."""

    def __init__(self, plugin: str, cause: BaseException) -> None:
        self.plugin = plugin
        self.cause = cause
        super().__init__(f"Publish plugin '{plugin}' failed: {cause}")
