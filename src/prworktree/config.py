"""Configuration helpers for prworktree.

Settings come from built-in defaults, an optional JSON config file, and
``PRWORKTREE_*`` environment variables (later sources win). Everything is
validated with Pydantic models.

Example:
    >>> Settings().timeouts.pr_create
    60.0
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping

from platformdirs import user_config_dir
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .io import die

PRWORKTREE_APP_NAME = "prworktree"
CONFIG_FILENAME = "config.json"
ENV_PREFIX = "PRWORKTREE_"
CONFIG_PATH_ENV = "PRWORKTREE_CONFIG"


class TimeoutConfig(BaseModel):
    """Time budgets, in seconds, for every remote call.

    Example:
        >>> TimeoutConfig().pr_check
        30.0
    """

    model_config = ConfigDict(extra="forbid")

    pr_check: float = Field(default=30.0, gt=0)
    pr_create: float = Field(default=60.0, gt=0)
    pr_update: float = Field(default=30.0, gt=0)
    pr_info: float = Field(default=30.0, gt=0)
    rate_limit: float = Field(default=30.0, gt=0)
    ls_remote: float = Field(default=30.0, gt=0)
    side_channel: float = Field(default=30.0, gt=0)


class Settings(BaseModel):
    """Runtime settings shared by every command."""

    model_config = ConfigDict(extra="forbid")

    remote: str = "origin"
    default_base_branch: str = "main"
    git_path: str = "git"
    gh_path: str = "gh"
    rate_limit_warning_threshold: int = Field(default=10, ge=1)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)

    @field_validator("remote", "default_base_branch", "git_path", "gh_path", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip()
            if not normalized:
                raise ValueError("must not be empty")
            return normalized
        return value


_ENV_FIELDS = {
    "REMOTE": "remote",
    "DEFAULT_BASE_BRANCH": "default_base_branch",
    "GIT_PATH": "git_path",
    "GH_PATH": "gh_path",
    "RATE_LIMIT_WARNING_THRESHOLD": "rate_limit_warning_threshold",
}


def default_config_path() -> Path:
    """Return the per-user config file location."""
    return Path(user_config_dir(PRWORKTREE_APP_NAME)) / CONFIG_FILENAME


def resolve_config_path(env: Mapping[str, str]) -> Path:
    raw = env.get(CONFIG_PATH_ENV, "").strip()
    if raw:
        return Path(raw).expanduser()
    return default_config_path()


def load_json(path: Path) -> dict | None:
    """Load a JSON object from disk, or ``None`` when the file is missing.

    Example:
        >>> load_json(Path("missing-prworktree.json")) is None
        True
    """
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, dict):
        raise ValueError("config file must contain a JSON object")
    return payload


def env_overrides(env: Mapping[str, str]) -> dict:
    """Collect ``PRWORKTREE_*`` overrides into a settings payload.

    Example:
        >>> env_overrides({"PRWORKTREE_REMOTE": "upstream", "PRWORKTREE_TIMEOUT_PR_CREATE": "90"})
        {'remote': 'upstream', 'timeouts': {'pr_create': '90'}}
    """
    payload: dict = {}
    for suffix, field in _ENV_FIELDS.items():
        value = env.get(f"{ENV_PREFIX}{suffix}")
        if value is not None and value.strip():
            payload[field] = value.strip()
    timeouts: dict[str, str] = {}
    for name in TimeoutConfig.model_fields:
        value = env.get(f"{ENV_PREFIX}TIMEOUT_{name.upper()}")
        if value is not None and value.strip():
            timeouts[name] = value.strip()
    if timeouts:
        payload["timeouts"] = timeouts
    return payload


def _merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def parse_settings(payload: dict, source: Path | str | None = None) -> Settings:
    """Validate a settings payload, exiting with a readable error if invalid."""
    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        location = f" at {source}" if source else ""
        die(f"invalid config{location}:\n{exc}")


def load_settings(
    env: Mapping[str, str] | None = None, path: Path | None = None
) -> Settings:
    """Load settings from an optional config file and the environment.

    Args:
        env: Environment mapping (defaults to ``os.environ``).
        path: Config file to read (defaults to ``PRWORKTREE_CONFIG`` or the
            per-user config location).

    Returns:
        Validated ``Settings``.
    """
    active_env = os.environ if env is None else env
    config_path = path or resolve_config_path(active_env)
    file_payload: dict = {}
    try:
        file_payload = load_json(config_path) or {}
    except (OSError, ValueError) as exc:
        die(f"invalid config at {config_path}: {exc}")
    payload = _merge(file_payload, env_overrides(active_env))
    return parse_settings(payload, source=config_path)
