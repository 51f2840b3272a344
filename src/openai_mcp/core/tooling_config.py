from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, field_validator, model_validator


class ToolingConfigError(RuntimeError):
    """Raised when the tooling YAML is missing or invalid."""


# core -> openai_mcp -> src -> <repo>
_REPO_ROOT = Path(__file__).resolve().parents[3]


def resolve_tooling_config_path(path: str) -> Path:
    """Find the tooling YAML named by `TOOLING_CONFIG_FILE`.

    MCP hosts often launch the server from an unrelated directory, so a
    relative path is tried against the working directory first and the
    repository root second.
    """
    if not path or not path.strip():
        raise ToolingConfigError("Tooling config path is empty")

    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        tried = [candidate]
    else:
        tried = [Path.cwd() / candidate, _REPO_ROOT / candidate]

    for p in tried:
        if p.is_file():
            return p.resolve()

    raise ToolingConfigError(
        f"Tooling config file not found: '{path}' (tried {', '.join(str(p) for p in tried)})"
    )


class ToolingConfig(BaseModel):
    """Which provider tools the server exposes, and under what names."""

    # Prepended to every registered tool name, e.g. "work__" -> "work__openai_list_models".
    tool_name_prefix: str = ""

    # Matched against the unprefixed tool name.
    allow_tools: Optional[List[str]] = None
    deny_tools: Optional[List[str]] = None

    @field_validator("tool_name_prefix")
    @classmethod
    def _clean_prefix(cls, value: str) -> str:
        value = (value or "").strip()
        if any(ch.isspace() for ch in value):
            raise ValueError("tool_name_prefix may not contain whitespace")
        return value

    @field_validator("allow_tools", "deny_tools")
    @classmethod
    def _clean_names(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        names = [t.strip() for t in (value or []) if t and t.strip()]
        return names or None

    @model_validator(mode="after")
    def _reject_overlap(self) -> "ToolingConfig":
        overlap = sorted(set(self.allow_tools or []) & set(self.deny_tools or []))
        if overlap:
            raise ValueError(f"allow_tools and deny_tools overlap: {overlap}")
        return self

    def is_enabled(self, tool_name: str) -> bool:
        if self.allow_tools is not None and tool_name not in self.allow_tools:
            return False
        if self.deny_tools is not None and tool_name in self.deny_tools:
            return False
        return True

    def full_name(self, tool_name: str) -> str:
        return f"{self.tool_name_prefix}{tool_name}"


def load_tooling_config(path: str) -> ToolingConfig:
    """Load the tooling YAML, expanding ${VARS} in its contents.

    Keys may sit at the top level or under a `tooling:` section.
    """
    raw = os.path.expandvars(resolve_tooling_config_path(path).read_text(encoding="utf-8"))

    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as e:
        raise ToolingConfigError(f"Failed to parse tooling YAML: {e}") from e

    if not isinstance(data, dict):
        raise ToolingConfigError("Tooling YAML root must be a mapping")
    if isinstance(data.get("tooling"), dict):
        data = data["tooling"]

    try:
        return ToolingConfig.model_validate(data)
    except ValueError as e:
        raise ToolingConfigError(f"Invalid tooling config: {e}") from e


def tooling_snapshot(cfg: ToolingConfig) -> Dict[str, Any]:
    """A small, stable summary for startup logs."""
    return {
        "tool_name_prefix": cfg.tool_name_prefix,
        "allow_tools": cfg.allow_tools,
        "deny_tools": cfg.deny_tools,
    }
