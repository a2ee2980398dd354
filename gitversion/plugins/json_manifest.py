"""JSON manifest handling shared by the node and gradle plugins.

Version updates touch only the top-level version value in the original
text, so indentation, key order and the presence of a trailing newline stay
as they were and diffs stay minimal.
"""

from __future__ import annotations

import json
import re
from json.decoder import scanstring
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..versions import is_valid_version
from ..workspace import (
    DEFAULT_PACKAGE_VERSION,
    ManifestCheck,
    Workspace,
    read_text,
    write_text,
)

_WHITESPACE = re.compile(r"\s*")
_DECODER = json.JSONDecoder()


class JsonManifest(BaseModel):
    """Fields we read from a JSON manifest; anything else is carried along."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    version: str | None = None
    private: bool | None = None
    workspaces: list[str] | None = None

    @field_validator("version")
    @classmethod
    def _semantic_version(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_version(value):
            raise ValueError(f"'{value}' is not a semantic version")
        return value


class JsonManifestContent(BaseModel):
    """A manifest as read from disk.

    Attributes:
        data: Parsed JSON object.
        text: Raw file content.
    """

    data: dict[str, Any]
    text: str

    @property
    def eof_newline(self) -> bool:
        return self.text.endswith("\n")


def check_manifest(data: Any) -> ManifestCheck:
    """Validate parsed JSON against the manifest schema.

    Returns a structured result rather than raising for shape mismatches.
    """
    if not isinstance(data, dict):
        return ManifestCheck.invalid("manifest is not a JSON object")
    try:
        JsonManifest.model_validate(data)
    except ValidationError as exc:
        return ManifestCheck.invalid(
            *(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors())
        )
    return ManifestCheck()


def load_json_manifest(path: Path) -> ManifestCheck:
    """Read and validate a JSON manifest file."""
    if not path.is_file():
        return ManifestCheck.missing()
    text = read_text(path)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        return ManifestCheck.invalid(f"invalid JSON: {exc}")
    check = check_manifest(data)
    if not check.ok:
        return check
    return ManifestCheck(manifest=JsonManifestContent(data=data, text=text))


def _skip_whitespace(text: str, index: int) -> int:
    return _WHITESPACE.match(text, index).end()


def top_level_value_span(text: str, key: str) -> tuple[int, int] | None:
    """Locate the raw value of ``key`` in the outermost JSON object.

    Nested objects are skipped whole, so a ``"version"`` inside e.g.
    ``scripts`` never matches.

    Returns:
        (start, end) offsets of the value text, or None when the key is not
        a top-level member.
    """
    index = _skip_whitespace(text, 0)
    if text[index : index + 1] != "{":
        return None
    index = _skip_whitespace(text, index + 1)
    while text[index : index + 1] == '"':
        name, index = scanstring(text, index + 1)
        index = _skip_whitespace(text, index)
        if text[index : index + 1] != ":":
            return None
        start = _skip_whitespace(text, index + 1)
        _, end = _DECODER.raw_decode(text, start)
        if name == key:
            return start, end
        index = _skip_whitespace(text, end)
        if text[index : index + 1] != ",":
            return None
        index = _skip_whitespace(text, index + 1)
    return None


def replace_version(content: JsonManifestContent, version: str) -> str:
    """Return the manifest text with the version set to ``version``.

    The top-level "version" value is rewritten in place. Without one, the
    document is re-serialized with two-space indentation.
    """
    expected = {**content.data, "version": version}
    span = top_level_value_span(content.text, "version")
    if span is not None:
        start, end = span
        text = content.text[:start] + json.dumps(version) + content.text[end:]
        # Duplicate keys resolve to the last one when parsed.
        if json.loads(text) == expected:
            return text

    text = json.dumps(expected, indent=2, ensure_ascii=False)
    if content.eof_newline:
        text += "\n"
    return text


class JsonManifestWorkspace(Workspace):
    """Workspace backed by a JSON manifest with name/version/private/workspaces."""

    manifest: JsonManifestContent

    @classmethod
    def load(cls, folder: Path) -> ManifestCheck:
        return load_json_manifest(folder / cls.manifest_file)

    @classmethod
    def version_from_text(cls, text: str) -> str | None:
        data = json.loads(text)
        return data.get("version") if isinstance(data, dict) else None

    @property
    def package_name(self) -> str:
        return self.manifest.data.get("name") or ""

    @property
    def version(self) -> str:
        return self.manifest.data.get("version") or DEFAULT_PACKAGE_VERSION

    @property
    def private(self) -> bool:
        return self.manifest.data.get("private") is True

    @property
    def workspace_globs(self) -> list[str]:
        return list(self.manifest.data.get("workspaces") or [])

    def update_version(self, version: str) -> None:
        text = replace_version(self.manifest, version)
        write_text(self.manifest_path, text)
        self.manifest = JsonManifestContent(data=json.loads(text), text=text)
