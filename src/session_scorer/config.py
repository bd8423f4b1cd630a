"""Configuration loading for Session Scorer.

Configuration is built once at startup and passed explicitly to the store,
the scan orchestrator and the watcher. Sources are merged in priority order:
    1. Defaults (defined in ScorerConfig)
    2. Global config (~/.session-scorer.toml)
    3. Project config (./session-scorer.toml)
    4. Explicit config file (--config)
    5. Environment variables (SESSIONS_DIR, SCORES_FILE, SESSION_SCORER_*)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(sessions_dir="/tmp/sessions", verbose=True)
    >>> config.verbosity
    'verbose'
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "SESSION_SCORER_"

# Historical environment names for the two location settings
LEGACY_ENV_VARS = {
    "SESSIONS_DIR": "sessions_dir",
    "SCORES_FILE": "scores_file",
}


def _default_sessions_dir() -> str:
    return str(Path.home() / ".codex" / "sessions")


@dataclass(frozen=True)
class ScorerConfig:
    """Settings for ingestion, scoring and watching.

    Attributes:
        Locations:
            sessions_dir: Root of the session log tree to scan and watch
            scores_file: JSON document holding the score report

        Session files:
            transcript_extension: Suffix of files treated as session logs
            session_id_prefix: Prefix stripped from file stems to get the session id

        Watching:
            debounce_seconds: Quiet period after a notification before reading the file
            max_workers: Threads used to debounce and parse watch events

        Direct scoring:
            max_transcript_bytes: Largest transcript accepted for rule-based scoring

        Output control:
            recent_sessions: Sessions listed by the report command
            verbosity: Logging verbosity level
    """

    sessions_dir: str = ""
    scores_file: str = "session-scores.json"

    transcript_extension: str = ".jsonl"
    session_id_prefix: str = "rollout-"

    debounce_seconds: float = 0.1
    max_workers: int = 4

    max_transcript_bytes: int = 10 * 1024 * 1024

    recent_sessions: int = 5
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration and expand user paths."""
        sessions_dir = self.sessions_dir or _default_sessions_dir()
        object.__setattr__(self, "sessions_dir", str(Path(sessions_dir).expanduser()))
        object.__setattr__(self, "scores_file", str(Path(self.scores_file).expanduser()))

        if not self.transcript_extension.startswith("."):
            raise ValueError("transcript_extension must start with '.'")
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds must be non-negative")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.max_transcript_bytes < 1:
            raise ValueError("max_transcript_bytes must be at least 1")
        if self.recent_sessions < 0:
            raise ValueError("recent_sessions must be non-negative")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be one of quiet, normal, verbose")

    @property
    def sessions_path(self) -> Path:
        return Path(self.sessions_dir)

    @property
    def scores_path(self) -> Path:
        return Path(self.scores_file)


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> ScorerConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options fall through.

    Returns:
        Validated ScorerConfig instance

    Raises:
        ConfigurationError: If a config file is missing or unreadable
        InvalidConfigError: If a value fails validation
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".session-scorer.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / "session-scorer.toml"
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(ScorerConfig)}
    for key in merged:
        if key not in known:
            raise InvalidConfigError(key, merged[key], "unknown setting")

    try:
        return ScorerConfig(**merged)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from the environment.

    ``SESSIONS_DIR`` and ``SCORES_FILE`` are read first; any
    ``SESSION_SCORER_<FIELD>`` variable overrides them.
    """
    type_hints = get_type_hints(ScorerConfig)
    result: dict[str, Any] = {}

    for env_key, field_name in LEGACY_ENV_VARS.items():
        value = os.environ.get(env_key)
        if value:
            result[field_name] = value

    for f in fields(ScorerConfig):
        env_key = f"{ENV_PREFIX}{f.name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue
        try:
            result[f.name] = _parse_env_value(env_value, type_hints[f.name])
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type."""
    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")
    if type_hint is int:
        return int(value)
    if type_hint is float:
        return float(value)
    # str and Literal fields
    return value


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file, accepting an optional [session_scorer] table."""
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")

    return data.get("session_scorer", data)
