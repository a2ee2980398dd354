"""Configuration loading.

Settings come from ``.gitversion.toml`` at the repository root, or from the
``[tool.gitversion]`` table of the root pyproject.toml when that file is
absent. Both are read with tomlkit, like every other TOML file we touch.

Example::

    [tool.gitversion]
    independent_versioning = false
    feature_bump_behavior = "conventional"
    version_tag_prefix = "v"

    [[tool.gitversion.plugins]]
    use = "my_release_tools.publish:UploadDocs"
    options = { bucket_name = "docs" }
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomlkit.exceptions import ParseError

from .errors import ConfigurationError
from .versions import FeatureBumpBehavior

CONFIG_FILE = ".gitversion.toml"
PYPROJECT_FILE = "pyproject.toml"


class PluginSpec(BaseModel):
    """A publish plugin declaration.

    Attributes:
        use: Import path of the plugin factory, as "module:attribute".
        options: Keyword arguments passed to the factory.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    use: str
    options: dict[str, Any] = Field(default_factory=dict)


class Configuration(BaseModel):
    """Process-wide settings, loaded once per run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    independent_versioning: bool = False
    feature_bump_behavior: FeatureBumpBehavior = FeatureBumpBehavior.ALWAYS
    version_tag_prefix: str = "v"
    plugins: list[PluginSpec] = Field(default_factory=list)


def _read_table(cwd: Path) -> tuple[Path | None, dict[str, Any]]:
    """Locate the raw configuration table for a repository."""
    config_file = cwd / CONFIG_FILE
    if config_file.is_file():
        return config_file, tomlkit.parse(config_file.read_text()).unwrap()

    pyproject = cwd / PYPROJECT_FILE
    if pyproject.is_file():
        doc = tomlkit.parse(pyproject.read_text()).unwrap()
        table = doc.get("tool", {}).get("gitversion")
        if table is not None:
            return pyproject, table

    return None, {}


def load_config(cwd: Path | str) -> Configuration:
    """Load and validate configuration for the repository at ``cwd``.

    Missing configuration yields the defaults.

    Raises:
        ConfigurationError: If the file cannot be parsed or fails validation.
    """
    root = Path(cwd)
    try:
        source, table = _read_table(root)
    except ParseError as exc:
        raise ConfigurationError(f"Invalid TOML in configuration: {exc}") from exc

    try:
        return Configuration.model_validate(table)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {source}:\n{exc}") from exc


def load_plugins(config: Configuration) -> list[Any]:
    """Instantiate the configured publish plugins, in declared order.

    Raises:
        ConfigurationError: If a plugin cannot be imported or constructed.
    """
    plugins: list[Any] = []
    for spec in config.plugins:
        module_name, _, attr = spec.use.partition(":")
        if not module_name or not attr:
            raise ConfigurationError(
                f"Invalid plugin '{spec.use}': expected 'module:attribute'"
            )
        try:
            factory = getattr(importlib.import_module(module_name), attr)
        except (ImportError, AttributeError) as exc:
            raise ConfigurationError(f"Cannot load plugin '{spec.use}': {exc}") from exc
        try:
            plugins.append(factory(**spec.options))
        except TypeError as exc:
            raise ConfigurationError(f"Invalid options for plugin '{spec.use}': {exc}") from exc
    return plugins
