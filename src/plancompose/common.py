"""plancompose.common: shared utilities for plan compilation.

Contains: color parsing, path variable resolution, name normalization,
and the freeze/thaw helpers that make a finished manifest read-only.
"""

import re
from collections.abc import Mapping
from types import MappingProxyType


# ── Color utilities ────────────────────────────────────────────────

HEX_COLOR_RE = re.compile(r"#([0-9a-fA-F]{6})\b")


def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    hex_str = hex_str.lstrip("#")
    if len(hex_str) != 6:
        raise ValueError(f"Not a #RRGGBB color: '{hex_str}'")
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


def format_hex_color(rgb: tuple[int, int, int]) -> str:
    """Convert (R, G, B) back to canonical upper-case '#RRGGBB'."""
    return "#{:02X}{:02X}{:02X}".format(*rgb)


def find_hex_colors(text: str) -> list[str]:
    """Return every #RRGGBB in text, normalized and de-duplicated in order."""
    seen = []
    for match in HEX_COLOR_RE.finditer(text):
        color = format_hex_color(parse_hex_color(match.group(1)))
        if color not in seen:
            seen.append(color)
    return seen


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


def is_url(value: str) -> bool:
    return bool(re.match(r"^https?://\S+$", value.strip(), re.IGNORECASE))


# ── Names ──────────────────────────────────────────────────────────

def normalize_name(value: str) -> str:
    """Lower-case, trim, and collapse spaces/hyphens to underscores.

    'Cinematic Zoom' and 'cinematic-zoom' both become 'cinematic_zoom'.
    """
    value = value.strip().lower()
    return re.sub(r"[\s\-]+", "_", value)


def dedupe(items) -> list:
    """Order-preserving de-duplication; first occurrence wins."""
    out = []
    for item in items:
        if item not in out:
            out.append(item)
    return out


# ── Freezing ───────────────────────────────────────────────────────

def freeze(obj):
    """Recursively convert dicts to read-only mappings and lists to tuples."""
    if isinstance(obj, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in obj.items()})
    if isinstance(obj, (list, tuple)):
        return tuple(freeze(item) for item in obj)
    if isinstance(obj, (set, frozenset)):
        return frozenset(obj)
    return obj


def thaw(obj):
    """Inverse of freeze(): plain dicts and lists, ready for json/yaml."""
    if isinstance(obj, Mapping):
        return {k: thaw(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [thaw(item) for item in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    return obj
