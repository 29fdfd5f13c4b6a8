"""Timing allocator: scene durations that exactly tile the total.

Allocation rules, applied in order:
  1. A single scene gets the whole duration.
  2. Purposes with a floor (hook/cta by default) get exactly that floor;
     the rest of the time is split evenly across the other scenes.
  3. With no un-floored scenes, surplus time is shared in proportion
     to the floors.
  4. When floors leave nothing for the other scenes, every share is
     scaled down proportionally (un-floored scenes weigh as the mean
     floor). Nothing fails, nothing goes to zero.

Rounding works on scene boundaries, not on durations: each cumulative
boundary is rounded half-up to a whole second, so rounding error never
piles up on one scene and integer floors survive intact. Every scene
keeps at least one unit. Totals shorter than the scene count use
millisecond units, and totals too short even for that keep the exact
fractional shares.
"""

import logging
import math

from .layering import fit_layer_durations

logger = logging.getLogger(__name__)


SECOND = 1
MILLISECOND = 0.001

# Absorbs float drift so a boundary at exactly .5 always rounds up.
EPSILON = 1e-9


def allocate_durations(purposes: list[str], total: float, floors: dict) -> list:
    """Return one duration per purpose, summing exactly to total.

    Raises:
        ValueError: No scenes, or a non-positive total.
    """
    if not purposes:
        raise ValueError("Cannot allocate time across zero scenes")
    if total <= 0:
        raise ValueError(f"Total duration must be positive, got {total!r}")

    if len(purposes) == 1:
        return [total]

    shares = _raw_shares(purposes, total, floors)
    return _round_shares(shares, total)


def _raw_shares(purposes, total, floors):
    floored = [floors.get(p) for p in purposes]
    body = [i for i, f in enumerate(floored) if f is None]
    floor_sum = sum(f for f in floored if f is not None)

    if not body:
        # Only floored scenes: floors act as weights (scale up or down).
        return [total * f / floor_sum for f in floored]

    if floor_sum < total:
        each = (total - floor_sum) / len(body)
        return [each if f is None else f for f in floored]

    # Floors swallow the whole total: proportional scale-down for everyone.
    n_floored = len(purposes) - len(body)
    body_weight = floor_sum / n_floored
    weights = [body_weight if f is None else f for f in floored]
    weight_sum = sum(weights)
    logger.info(
        "Floors (%ss) exceed total %ss; scaling all scenes proportionally",
        floor_sum, total,
    )
    return [total * w / weight_sum for w in weights]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _round_shares(shares, total):
    n = len(shares)
    if total >= n * SECOND:
        return _tile(shares, total, SECOND)
    if total >= n * MILLISECOND:
        return _tile(shares, total, MILLISECOND)
    # Below a millisecond per scene: exact shares, last absorbs float drift.
    head = list(shares[:-1])
    return head + [total - sum(head)]


def _tile(shares, total, unit):
    """Snap cumulative boundaries to whole units, at least one unit apart.

    The last scene takes whatever is left up to the exact total, which
    is always at least one unit.
    """
    n = len(shares)
    top = math.floor(total / unit + EPSILON)
    bounds = [0]
    cumulative = 0.0
    for i, share in enumerate(shares[:-1], start=1):
        cumulative += share / unit
        bound = _round_half_up(cumulative + EPSILON)
        bound = min(max(bound, bounds[-1] + 1), top - (n - i))
        bounds.append(bound)

    if unit == SECOND:
        head = [b - a for a, b in zip(bounds, bounds[1:])]
        return head + [total - bounds[-1]]
    head = [round((b - a) * unit, 3) for a, b in zip(bounds, bounds[1:])]
    return head + [round(total - bounds[-1] * unit, 9)]


# ── Manifest timing ───────────────────────────────────────────────


def apply_timing(manifest: dict, config) -> dict:
    """Return a copy of manifest with every scene timed.

    Fills durationSeconds/startAtSec, fits effect layer durations,
    writes narration subtitle cues, and spans the music cues.
    """
    total = manifest["metadata"]["durationSeconds"]
    scenes = manifest["scenes"]
    durations = allocate_durations(
        [s["purpose"] for s in scenes], total, dict(config.purpose_floors),
    )

    timed = []
    cursor = 0
    for scene, duration in zip(scenes, durations):
        start = cursor
        updated = dict(scene)
        updated["durationSeconds"] = duration
        updated["startAtSec"] = start
        updated["effects"] = fit_layer_durations(
            scene["effects"], duration, config.transition_duration,
        )
        updated["subtitles"] = (
            [{"text": scene["narration"], "start": start, "end": start + duration}]
            if scene["narration"] else []
        )
        timed.append(updated)
        cursor = start + duration

    spans = {s["id"]: (s["startAtSec"], s["durationSeconds"]) for s in timed}
    cue_map = {}
    for cue_id, cue in manifest["audio"]["music"]["cueMap"].items():
        cue = dict(cue)
        if cue.get("sceneId") in spans:
            cue["startSec"], cue["durationSec"] = spans[cue["sceneId"]]
        else:
            cue["startSec"], cue["durationSec"] = 0, total
        cue_map[cue_id] = cue

    logger.debug(
        "Timed %d scene(s): %s", len(timed),
        ", ".join(f"{s['id']}={s['durationSeconds']}s" for s in timed),
    )
    return {
        **manifest,
        "scenes": timed,
        "audio": {
            **manifest["audio"],
            "music": {**manifest["audio"]["music"], "cueMap": cue_map},
        },
    }
