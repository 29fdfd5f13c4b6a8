"""Effect layering: deterministic composition order for scene effects.

Effects arrive as an unordered list of names. The renderer needs a
stable stack: camera moves underneath, then color/lighting, then content
overlays, then transitions and closing elements on top.

Every band owns a reserved numeric range. Each entry in the precedence
table gets a fixed slot inside its band (base + 10 * position), so
appending entries to a band never moves existing hints. Names matching
the same entry are ranked alphabetically (+1, +2, ...); names matching
nothing go to the trailing "unknown" band, also alphabetically. Hints
therefore depend only on the set of names, never on their input order.
"""

import fnmatch
import logging

logger = logging.getLogger(__name__)


# ── Bands ──────────────────────────────────────────────────────────

BAND_BASES = {
    "camera": 1000,
    "color": 2000,
    "overlay": 3000,
    "transition": 4000,
    "unknown": 9000,
}

SLOT_SPACING = 10

# Bands whose effects are short-lived rather than spanning the scene.
TRANSIENT_BANDS = {"transition"}


# ── Canonical precedence table ─────────────────────────────────────
# (exact name or glob pattern, band). Exact names are tried before
# patterns. New entries go at the end of their band.

CANONICAL_PRECEDENCE = (
    ("cinematic_zoom", "camera"),
    ("slow_pan", "camera"),
    ("parallax_scroll", "camera"),
    ("ken_burns", "camera"),
    ("*zoom*", "camera"),
    ("*pan*", "camera"),
    ("*parallax*", "camera"),

    ("color_grade", "color"),
    ("lens_flare", "color"),
    ("bokeh", "color"),
    ("light_leak", "color"),
    ("*bokeh*", "color"),
    ("*grade*", "color"),
    ("*flare*", "color"),

    ("overlay_text", "overlay"),
    ("text_reveal", "overlay"),
    ("data_highlight", "overlay"),
    ("chart_animation", "overlay"),
    ("lower_third", "overlay"),
    ("*text*", "overlay"),
    ("*chart*", "overlay"),
    ("*highlight*", "overlay"),

    ("bokeh_transition", "transition"),
    ("crossfade", "transition"),
    ("fade", "transition"),
    ("slide_left", "transition"),
    ("slide_up", "transition"),
    ("logo_reveal", "transition"),
    ("end_card", "transition"),
    ("*fade*", "transition"),
    ("*dissolve*", "transition"),
    ("*transition*", "transition"),
    ("*wipe*", "transition"),
    ("slide_*", "transition"),
)


def _slot_table(table):
    """Assign each table entry its fixed slot: band base + 10 * index."""
    counters = {}
    slots = []
    for pattern, band in table:
        if band not in BAND_BASES or band == "unknown":
            raise ValueError(f"Precedence table: invalid band '{band}' for '{pattern}'")
        k = counters.get(band, 0)
        counters[band] = k + 1
        slots.append((pattern, band, BAND_BASES[band] + SLOT_SPACING * k))
    return tuple(slots)


_DEFAULT_SLOTS = _slot_table(CANONICAL_PRECEDENCE)


def _is_pattern(entry: str) -> bool:
    return any(ch in entry for ch in "*?[")


def classify_effect(name: str, table=CANONICAL_PRECEDENCE) -> tuple[str, int]:
    """Return (band, slot) for an effect name.

    Exact table names win over patterns. Unrecognized names return
    ("unknown", 9000).
    """
    slots = _DEFAULT_SLOTS if table is CANONICAL_PRECEDENCE else _slot_table(table)
    for pattern, band, slot in slots:
        if not _is_pattern(pattern) and pattern == name:
            return band, slot
    for pattern, band, slot in slots:
        if _is_pattern(pattern) and fnmatch.fnmatchcase(name, pattern):
            return band, slot
    return "unknown", BAND_BASES["unknown"]


# ── Resolution ────────────────────────────────────────────────────


def assign_ordering_hints(effect_names, table=CANONICAL_PRECEDENCE) -> dict[str, int]:
    """Map each distinct effect name to a unique, order-independent hint."""
    classified = sorted(
        (classify_effect(name, table)[1], name) for name in set(effect_names)
    )
    hints = {}
    previous_slot = None
    offset = 0
    last_hint = None
    for slot, name in classified:
        offset = offset + 1 if slot == previous_slot else 0
        previous_slot = slot
        hint = slot + offset
        if last_hint is not None and hint <= last_hint:
            hint = last_hint + 1
        hints[name] = hint
        last_hint = hint
    return hints


def resolve_layers(effect_names, table=CANONICAL_PRECEDENCE) -> dict:
    """Build the layered effect block for one scene.

    Args:
        effect_names: De-duplicated effect names in plan order.
        table: Precedence table override (tests, tenants).

    Returns:
        {"layeredEffects": [...], "orderingHints": {...},
         "shotstackConfig": {"layers": [...]}}. Layer durations are left
        as None until timing is known (see fit_layer_durations).
    """
    names = list(effect_names)
    hints = assign_ordering_hints(names, table)
    layers = []
    for name in sorted(hints, key=hints.get):
        band, _ = classify_effect(name, table)
        layers.append({
            "effect": name,
            "band": band,
            "orderingHint": hints[name],
            "transient": band in TRANSIENT_BANDS,
            "start": 0,
            "layerDuration": None,
        })
        if band == "unknown":
            logger.debug("Effect '%s' placed in catch-all band at %d", name, hints[name])

    return {
        "layeredEffects": names,
        "orderingHints": hints,
        "shotstackConfig": {"layers": layers},
    }


def fit_layer_durations(
    effects: dict,
    scene_duration: float,
    transition_duration: float,
) -> dict:
    """Return a copy of effects with layer start/duration filled in.

    Transient layers last transition_duration, clipped to the scene, and
    sit at the scene tail. Everything else spans the whole scene.
    """
    layers = []
    for layer in effects["shotstackConfig"]["layers"]:
        fitted = dict(layer)
        if layer["transient"]:
            duration = min(transition_duration, scene_duration)
            fitted["start"] = round(scene_duration - duration, 3)
            fitted["layerDuration"] = duration
        else:
            fitted["start"] = 0
            fitted["layerDuration"] = scene_duration
        layers.append(fitted)
    return {
        **effects,
        "shotstackConfig": {**effects["shotstackConfig"], "layers": layers},
    }
