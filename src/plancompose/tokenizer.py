"""Plan tokenizer: raw plan text into directives and scene blocks.

Plan grammar:

    Platform: tiktok
    Duration: 30
    Brand: Acme #0F172A #3B82F6
    Style: educational_explainer
    Tone: professional

    Scene 1: Opening
    Purpose: hook
    Narration: "Stop scrolling."
    Visual: city skyline at dawn
    Effect: cinematic_zoom, lens_flare

    Scene 2
    ...

Everything before the first "Scene N" marker is global. Each marker opens
a block that collects Key: Value lines until the next marker. Blank lines
end a multi-line value. Narration is spoken prose, so inside it a line
like "Act now: limited offer" continues the narration unless its key is
a recognized scene field. Nothing here interprets meaning; the scene
builder does that.
"""

import logging
import re
from dataclasses import dataclass, field

from .common import find_hex_colors, normalize_name

logger = logging.getLogger(__name__)


# ── Grammar ───────────────────────────────────────────────────────

SCENE_MARKER_RE = re.compile(
    r"^\s*(?:#+\s*)?scene\s*(\d+)\b\s*(?:[:.\-–—]\s*)?(.*)$",
    re.IGNORECASE,
)

KEY_VALUE_RE = re.compile(r"^\s*(?:[-*]\s+)?([A-Za-z][A-Za-z0-9 _\-]*?)\s*:\s*(.*)$")

QUOTES = "\"'“”‘’"

# Global directive keys (normalized) -> directive kind.
DIRECTIVE_KINDS = {
    "platform": "platform",
    "duration": "duration",
    "aspect": "aspect",
    "aspect_ratio": "aspect",
    "language": "language",
    "voice": "voice",
    "voiceid": "voice_id",
    "voice_id": "voice_id",
    "music": "music",
    "brand": "brand",
    "logo": "logo",
    "transition": "transition",
    "style": "style",
    "profile": "style",
    "tone": "tone",
    "faces": "faces",
    "character_faces": "faces",
}

# Scene keys (normalized) -> canonical scene field.
SCENE_FIELDS = {
    "purpose": "purpose",
    "narration": "narration",
    "visual": "visual",
    "visuals": "visual",
    "effect": "effect",
    "effects": "effect",
    "asset": "asset",
    "music": "music",
}

DURATION_RE = re.compile(r"^~?\s*(\d+(?:\.\d+)?)\s*(?:s|sec|secs|seconds?)?$", re.IGNORECASE)


# ── Types ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Directive:
    """A resolved global directive.

    kind is one of DIRECTIVE_KINDS values. value is typed per kind:
    float for a parsed duration, tuple of '#RRGGBB' strings under
    ``colors`` for brand, plain str otherwise.
    """

    kind: str
    key: str
    value: object
    raw: str
    colors: tuple = ()


@dataclass(frozen=True)
class SceneBlock:
    number: int
    title: str
    fields: dict = field(default_factory=dict)
    extras: dict = field(default_factory=dict)


@dataclass(frozen=True)
class TokenizedPlan:
    directives: dict
    extras: dict
    blocks: tuple

    def directive(self, kind: str):
        """Return the Directive for kind, or None."""
        return self.directives.get(kind)


# ── Tokenizing ────────────────────────────────────────────────────


def tokenize_plan(text: str) -> TokenizedPlan:
    """Split plan text into typed global directives and scene blocks.

    Repeated global directives: the last one wins. Unknown keys are kept
    verbatim in the extras bags. Never raises on content.
    """
    directives = {}
    global_extras = {}
    blocks = []

    current = None          # dict for the scene being collected
    last_target = None      # (bag, key) that a continuation line extends

    for line in text.splitlines():
        if not line.strip():
            last_target = None
            continue

        marker = SCENE_MARKER_RE.match(line)
        if marker:
            current = {
                "number": int(marker.group(1)),
                "title": _strip_quotes(marker.group(2)),
                "fields": {},
                "extras": {},
            }
            blocks.append(current)
            last_target = None
            continue

        kv = KEY_VALUE_RE.match(line)
        if kv and _inside_narration(current, last_target, kv.group(1)):
            kv = None
        if kv and not _looks_like_url_tail(kv.group(1), kv.group(2)):
            raw_key, value = kv.group(1).strip(), _strip_quotes(kv.group(2))
            norm = _normalize_key(raw_key)
            if current is None:
                last_target = _store_directive(directives, global_extras, raw_key, norm, value)
            else:
                canonical = SCENE_FIELDS.get(norm)
                if canonical is not None:
                    current["fields"][canonical] = value
                    last_target = (current["fields"], canonical)
                else:
                    current["extras"][raw_key] = value
                    last_target = (current["extras"], raw_key)
            continue

        # Continuation of the previous value within the same block.
        if last_target is not None:
            bag, key = last_target
            previous = bag[key]
            tail = _strip_quotes(line.strip())
            if isinstance(previous, Directive):
                bag[key] = _make_directive(previous.kind, previous.key, f"{previous.raw} {tail}")
            else:
                bag[key] = f"{previous} {tail}".strip()

    scene_blocks = tuple(
        SceneBlock(b["number"], b["title"], b["fields"], b["extras"]) for b in blocks
    )
    logger.debug(
        "Tokenized plan: %d directive(s), %d extra(s), %d scene block(s)",
        len(directives), len(global_extras), len(scene_blocks),
    )
    return TokenizedPlan(directives, global_extras, scene_blocks)


def _store_directive(directives, extras, raw_key, norm, value):
    kind = DIRECTIVE_KINDS.get(norm)
    if kind is None:
        extras[raw_key] = value
        return (extras, raw_key)
    directives[kind] = _make_directive(kind, raw_key, value)
    return (directives, kind)


def _make_directive(kind: str, key: str, raw: str) -> Directive:
    if kind == "duration":
        return Directive(kind, key, parse_duration(raw), raw)
    if kind == "brand":
        colors = tuple(find_hex_colors(raw))
        name = re.sub(r"#[0-9a-fA-F]{6}\b", "", raw).strip(" ,;")
        return Directive(kind, key, name, raw, colors)
    if kind in {"platform", "language", "aspect"}:
        return Directive(kind, key, raw.strip().lower(), raw)
    if kind in {"style", "tone", "faces"}:
        return Directive(kind, key, normalize_name(raw), raw)
    return Directive(kind, key, raw.strip(), raw)


def parse_duration(raw: str) -> float | None:
    """'30', '30s', '~30 seconds' -> 30.0. Unparseable -> None."""
    match = DURATION_RE.match(raw.strip())
    if not match:
        return None
    value = float(match.group(1))
    return int(value) if value.is_integer() else value


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] in QUOTES and value[-1] in QUOTES:
        value = value[1:-1].strip()
    return value


def _inside_narration(current, last_target, raw_key) -> bool:
    """Narration is spoken prose: "Act now: limited offer" stays part of it.

    Only recognized scene keys end a narration inside its block.
    """
    if current is None or last_target is None:
        return False
    bag, key = last_target
    if bag is not current["fields"] or key != "narration":
        return False
    return _normalize_key(raw_key) not in SCENE_FIELDS


def _normalize_key(raw_key: str) -> str:
    return re.sub(r"[\s\-]+", "_", raw_key.strip().lower())


def _looks_like_url_tail(key: str, value: str) -> bool:
    """'https://x' would otherwise parse as key 'https'."""
    return key.lower() in {"http", "https"} and value.startswith("//")
