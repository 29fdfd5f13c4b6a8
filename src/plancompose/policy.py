"""Platform policy table: per-destination defaults.

A PolicyTable is an immutable, versioned lookup from platform id to
PlatformPolicy. It is passed into the compiler explicitly; nothing reads
a module-level instance behind the caller's back. The default table
ships as package data (policies.yaml).

Policy file schema:
  version: "2025.1"
  platforms:
    tiktok:
      defaultTransition: bokeh_transition
      recommendedAspectRatio: "9:16"
      allowedEffects: [cinematic_zoom, ...]
    social: {...}                # required fallback entry
"""

from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType

import yaml

from .common import normalize_name


FALLBACK_PLATFORM = "social"

REQUIRED_FIELDS = ("defaultTransition", "recommendedAspectRatio", "allowedEffects")


@dataclass(frozen=True)
class PlatformPolicy:
    platform: str
    default_transition: str
    allowed_effects: frozenset
    recommended_aspect_ratio: str

    def to_dict(self) -> dict:
        return {
            "platform": self.platform,
            "defaultTransition": self.default_transition,
            "allowedEffects": sorted(self.allowed_effects),
            "recommendedAspectRatio": self.recommended_aspect_ratio,
        }


@dataclass(frozen=True)
class PolicyTable:
    version: str
    platforms: MappingProxyType

    def __contains__(self, platform: str) -> bool:
        return platform in self.platforms

    def resolve(self, platform: str | None) -> PlatformPolicy:
        """Policy for platform, or the generic fallback when unknown."""
        if platform and platform in self.platforms:
            return self.platforms[platform]
        return self.platforms[FALLBACK_PLATFORM]

    def names(self) -> list[str]:
        return sorted(self.platforms)


def policy_table_from_dict(raw: dict) -> PolicyTable:
    """Validate a raw policy mapping and build a PolicyTable.

    Raises:
        ValueError: Missing version, missing fallback entry, or a platform
            entry missing a required field.
    """
    if not isinstance(raw, dict):
        raise ValueError("Policy table: top level must be a mapping")
    if "version" not in raw:
        raise ValueError("Policy table: missing required 'version'")

    platforms_raw = raw.get("platforms")
    if not isinstance(platforms_raw, dict) or not platforms_raw:
        raise ValueError("Policy table: 'platforms' must be a non-empty mapping")

    platforms = {}
    for name, entry in platforms_raw.items():
        key = str(name).strip().lower()
        if not isinstance(entry, dict):
            raise ValueError(f"Policy '{key}': entry must be a mapping")
        for required in REQUIRED_FIELDS:
            if required not in entry:
                raise ValueError(f"Policy '{key}': missing required field '{required}'")
        allowed = entry["allowedEffects"]
        if not isinstance(allowed, list):
            raise ValueError(f"Policy '{key}': 'allowedEffects' must be a list")
        platforms[key] = PlatformPolicy(
            platform=key,
            default_transition=normalize_name(str(entry["defaultTransition"])),
            allowed_effects=frozenset(normalize_name(str(e)) for e in allowed),
            recommended_aspect_ratio=str(entry["recommendedAspectRatio"]).strip(),
        )

    if FALLBACK_PLATFORM not in platforms:
        raise ValueError(
            f"Policy table: missing required fallback platform '{FALLBACK_PLATFORM}'"
        )

    return PolicyTable(version=str(raw["version"]), platforms=MappingProxyType(platforms))


def load_policy_table(policy_path: str | Path | None = None) -> PolicyTable:
    """Load a policy table from YAML, or the packaged default when None."""
    if policy_path is None:
        return default_policy_table()
    with open(policy_path) as f:
        raw = yaml.safe_load(f)
    return policy_table_from_dict(raw)


@lru_cache(maxsize=1)
def default_policy_table() -> PolicyTable:
    """The packaged table. Cached; the table itself is immutable."""
    text = resources.files(__package__).joinpath("policies.yaml").read_text(encoding="utf-8")
    return policy_table_from_dict(yaml.safe_load(text))
