"""
Application configuration.

Layers, lowest precedence first:
  1. ``config/default.toml``   committed defaults
  2. ``config/local.toml``     per-machine overrides, read from the same
                               directory as the main file when present
  3. ``.env`` at project root  loaded into the environment (never overrides
                               variables that are already set)
  4. ``PSYCHOSOCIAL_SCORING_*`` environment variables (see ``_ENV_OVERRIDES``)

Entry point: ``load_config(config_path=None) -> AppConfig``

Only the CLI reads configuration.  ``ScoringEngine`` and everything below it
take instruments and catalogs as arguments, so library callers never need a
TOML file.  Relative directories are resolved against the project root with
``AppConfig.resolve_path``.
"""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_INSTRUMENT_ID_RE = re.compile(r"^[a-z][a-z0-9_]*$")

# env suffix → (section, key)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "INSTRUMENTS_DIR":     ("instruments", "definitions_dir"),
    "RECOMMENDATIONS_DIR": ("instruments", "recommendations_dir"),
    "DEFAULT_INSTRUMENT":  ("instruments", "default_instrument"),
    "OUTPUT_DIR":          ("reporting", "output_dir"),
    "LOG_LEVEL":           ("logging", "level"),
    "LOG_FILE":            ("logging", "log_file"),
}
_ENV_PREFIX = "PSYCHOSOCIAL_SCORING_"


# ── Sections ──────────────────────────────────────────────────────────────────


class InstrumentsConfig(BaseModel):
    """Where instrument definitions and recommendation catalogs live."""

    model_config = ConfigDict(frozen=True)

    definitions_dir: str = "config/instruments"
    recommendations_dir: str = "config/recommendations"
    default_instrument: str = "hse_it"

    @field_validator("default_instrument")
    @classmethod
    def validate_default_instrument(cls, v: str) -> str:
        if not _INSTRUMENT_ID_RE.match(v):
            raise ValueError(
                f"default_instrument must be a lowercase snake_case id, got '{v}'."
            )
        return v


class ReportingConfig(BaseModel):
    """Terminal report and export settings."""

    model_config = ConfigDict(frozen=True)

    top_questions: int = 15
    output_dir: str = "data/outputs"
    decimals: int = 2

    @field_validator("top_questions")
    @classmethod
    def validate_top_questions(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"top_questions must be >= 0, got {v}.")
        return v

    @field_validator("decimals")
    @classmethod
    def validate_decimals(cls, v: int) -> int:
        if not 0 <= v <= 6:
            raise ValueError(f"decimals must be in [0, 6], got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Log level, optional log file and output format."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'; expected one of {', '.join(_LOG_LEVELS)}.")
        return level


class AppConfig(BaseModel):
    """Merged, validated configuration handed to every CLI command."""

    model_config = ConfigDict(frozen=True)

    instruments: InstrumentsConfig = InstrumentsConfig()
    reporting: ReportingConfig = ReportingConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False

    def resolve_path(self, value: str) -> Path:
        """``value`` as an absolute path; relative paths hang off the project root."""
        path = Path(value)
        return path if path.is_absolute() else project_root() / path


# ── Loading ───────────────────────────────────────────────────────────────────

_FALLBACK_ROOT = Path(__file__).resolve().parent.parent


def project_root() -> Path:
    """Nearest ancestor of this package that holds ``pyproject.toml``."""
    for parent in Path(__file__).resolve().parents:
        if (parent / "pyproject.toml").exists():
            return parent
    return _FALLBACK_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Read, merge and validate configuration.

    Args:
        config_path: TOML file to start from.  Defaults to
            ``<project_root>/config/default.toml``.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        pydantic.ValidationError: If a merged value is invalid.
    """
    root = project_root()
    load_dotenv(dotenv_path=root / ".env", override=False)

    path = Path(config_path) if config_path is not None else root / "config" / "default.toml"
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            "Create config/default.toml or pass --config."
        )

    raw = _read_toml(path)
    local = path.parent / "local.toml"
    if local.exists() and local != path:
        raw = _deep_merge(raw, _read_toml(local))

    return AppConfig.model_validate(_apply_env_overrides(raw))


def _read_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in; nested tables merge key by key."""
    merged = dict(base)
    for key, val in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(val, dict):
            merged[key] = _deep_merge(current, val)
        else:
            merged[key] = val
    return merged


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``PSYCHOSOCIAL_SCORING_*`` variables onto the raw config dict.

    Every suffix in ``_ENV_OVERRIDES`` sets one ``[section] key``;
    ``PSYCHOSOCIAL_SCORING_DEBUG`` sets the top-level ``debug`` flag
    (``1``/``true``/``yes`` enable it, anything else disables it).
    """
    for suffix, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(_ENV_PREFIX + suffix)
        if value:
            raw.setdefault(section, {})[key] = value

    debug = os.environ.get(_ENV_PREFIX + "DEBUG")
    if debug:
        raw["debug"] = debug.strip().lower() in ("1", "true", "yes")

    return raw
