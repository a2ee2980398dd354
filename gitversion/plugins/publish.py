"""Publish plugin contract.

Publish plugins run after the release commit and tags are pushed. They are
best-effort: a failing plugin is reported and recorded, later plugins still
run, and the pushed git state stays as it is.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from ..errors import ConfigurationError, PublishError
from ..models import ReleaseSet
from ..shell import warn
from ..versions import parse_version

_PLACEHOLDER = re.compile(r"\{([A-Za-z.]+)\}")


@runtime_checkable
class PublishPlugin(Protocol):
    """Anything with a ``publish(release)`` method can be a publish plugin."""

    def publish(self, release: ReleaseSet) -> None: ...


def plugin_name(plugin: object) -> str:
    return getattr(plugin, "name", None) or type(plugin).__name__


def run_publish_plugins(
    plugins: Iterable[PublishPlugin], release: ReleaseSet
) -> list[PublishError]:
    """Invoke plugins in order, collecting failures instead of raising.

    Returns:
        One PublishError per failed plugin, in invocation order.
    """
    failures: list[PublishError] = []
    for plugin in plugins:
        name = plugin_name(plugin)
        print(f"  {name}")
        try:
            plugin.publish(release)
        except Exception as exc:  # noqa: BLE001 - plugin failures never abort the run
            error = PublishError(name, exc)
            warn(str(error))
            failures.append(error)
    return failures


def render_file_name(template: str, version: str, release_channel: str) -> str:
    """Expand an artifact file name template for one release.

    Placeholders: ``{version}``, ``{version.major}``, ``{version.minor}``,
    ``{version.patch}`` and ``{releaseChannel}`` (the release branch).

    Example:
        "docs/{version.major}.{version.minor}.x.zip" → "docs/1.3.x.zip"

    Raises:
        ConfigurationError: If the template uses an unknown placeholder.
    """
    parsed = parse_version(version)
    values = {
        "version": str(parsed),
        "version.major": str(parsed.major),
        "version.minor": str(parsed.minor),
        "version.patch": str(parsed.patch),
        "releaseChannel": release_channel,
    }

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in values:
            raise ConfigurationError(f"Unknown placeholder '{{{name}}}' in '{template}'")
        return values[name]

    return _PLACEHOLDER.sub(substitute, template)
