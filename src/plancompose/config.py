"""Compiler configuration: defaults plus an optional YAML override file.

Config file schema (every key optional):
  purpose_floors:          # seconds reserved per scene purpose
    hook: 4
    cta: 4
  default_duration: 60     # used when the plan has no usable Duration
  transition_duration: 1.0 # length of transient (transition) layers
  job_soft_ceiling: 40     # above this the validator suggests batching
  default_platform: social
  default_language: en
  tts_provider: elevenlabs
  default_voice_id: eva
  render_job: false        # emit a final render job after compositing
  paths:                   # ${name} substitution for Logo/Asset values
    brand: "/srv/brand"
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from types import MappingProxyType

import yaml


DEFAULT_FLOORS = {"hook": 4, "cta": 4}


@dataclass(frozen=True)
class CompilerConfig:
    purpose_floors: MappingProxyType = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_FLOORS))
    )
    default_duration: float = 60
    transition_duration: float = 1.0
    job_soft_ceiling: int = 40
    default_platform: str = "social"
    default_language: str = "en"
    tts_provider: str = "elevenlabs"
    default_voice_id: str = "eva"
    render_job: bool = False
    paths: MappingProxyType = field(
        default_factory=lambda: MappingProxyType({})
    )


_NUMBER_KEYS = {"default_duration", "transition_duration"}
_STRING_KEYS = {"default_platform", "default_language", "tts_provider", "default_voice_id"}


def load_config(config_path: str | Path | None = None) -> CompilerConfig:
    """Load a compiler config, falling back to defaults for absent keys.

    Args:
        config_path: YAML file path, or None for pure defaults.

    Returns:
        Frozen CompilerConfig.

    Raises:
        ValueError: Unknown key or a value of the wrong type/range.
        FileNotFoundError: Missing config file.
    """
    if config_path is None:
        return CompilerConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError("Config: top level must be a mapping")

    return config_from_dict(raw)


def config_from_dict(raw: dict) -> CompilerConfig:
    """Validate a plain dict and build a CompilerConfig from it."""
    known = {f.name for f in fields(CompilerConfig)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(
            f"Config: unknown key(s) {sorted(unknown)}. Valid: {sorted(known)}"
        )

    values = {}
    for key, value in raw.items():
        if key == "purpose_floors":
            values[key] = MappingProxyType(_validate_floors(value))
        elif key == "paths":
            if not isinstance(value, dict) or not all(
                isinstance(v, str) for v in value.values()
            ):
                raise ValueError("Config: 'paths' must map names to strings")
            values[key] = MappingProxyType(dict(value))
        elif key in _NUMBER_KEYS:
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ValueError(
                    f"Config: {key} must be a positive number, got {value!r}"
                )
            values[key] = value
        elif key == "job_soft_ceiling":
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(
                    f"Config: job_soft_ceiling must be a positive integer, got {value!r}"
                )
            values[key] = value
        elif key == "render_job":
            if not isinstance(value, bool):
                raise ValueError(f"Config: render_job must be true/false, got {value!r}")
            values[key] = value
        elif key in _STRING_KEYS:
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Config: {key} must be a non-empty string")
            values[key] = value.strip().lower() if key in {"default_platform", "default_language"} else value.strip()

    return replace(CompilerConfig(), **values)


def _validate_floors(value) -> dict:
    if not isinstance(value, dict):
        raise ValueError("Config: 'purpose_floors' must be a mapping")
    floors = {}
    for purpose, seconds in value.items():
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)) or seconds <= 0:
            raise ValueError(
                f"Config: purpose_floors.{purpose} must be a positive number, "
                f"got {seconds!r}"
            )
        floors[str(purpose).strip().lower()] = seconds
    return floors
