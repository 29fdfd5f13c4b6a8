"""Scene builder: tokenized plan into a draft production manifest.

The draft carries scenes (purpose, narration, visual anchor, layered
effects), assets, audio defaults, the effects policy and the brand
block. It has no timing and no jobs yet; the timing allocator and job
graph builder fill those in.

Defaults come from the platform policy only where the plan is silent:
an explicit Aspect or Transition always wins.
"""

import logging

from .common import dedupe, is_url, normalize_name, resolve_path_vars
from .errors import MalformedPlanError
from .layering import resolve_layers

logger = logging.getLogger(__name__)


DEFAULT_PURPOSE = "body"
DEFAULT_MUSIC_MOOD = "neutral"

BRAND_ROLES = ("primary", "secondary", "accent", "background", "text")
BRAND_DEFAULTS = {
    "primary": "#000000",
    "secondary": "#FFFFFF",
    "accent": "#FF6B35",
    "background": "#F8F9FA",
    "text": "#333333",
}

ASPECT_RESOLUTIONS = {
    "16:9": "1920x1080",
    "9:16": "1080x1920",
    "1:1": "1080x1080",
    "4:5": "1080x1350",
}

# Visual profile (Style: line) -> prompt cue and fallback music mood.
PROFILE_CUES = {
    "educational_explainer": "educational explainer style, clean and professional",
    "anime_mode": "anime style, vibrant colors, dynamic composition",
    "corporate_presentation": "corporate presentation style, business professional",
}
PROFILE_MOODS = {
    "educational_explainer": "neutral_learning",
    "anime_mode": "energetic_upbeat",
    "corporate_presentation": "corporate_inspiring",
}

TONE_CUES = {
    "professional": "polished, high production value",
    "casual": "friendly and approachable",
}
TONE_MOODS = {
    "professional": "corporate_inspiring",
    "casual": "friendly_uplifting",
}

DEFAULT_TONE = "neutral"
DEFAULT_FACES = "locked"


# ── Scenes ────────────────────────────────────────────────────────


def split_effects(raw: str | None) -> list[str]:
    """'Zoom, lens flare, zoom' -> ['zoom', 'lens_flare']."""
    if not raw:
        return []
    return dedupe(
        name for name in (normalize_name(part) for part in raw.split(",")) if name
    )


def build_scenes(
    plan, *, aspect_ratio: str, paths: dict, warnings: list, profile=None, tone=None,
) -> tuple[list, dict]:
    """Turn scene blocks into scene records plus their asset entries.

    Raises:
        MalformedPlanError: No scene blocks, or a scene with neither
            narration nor visual anchor.
    """
    if not plan.blocks:
        raise MalformedPlanError("Plan contains no scenes (expected 'Scene 1:' markers)")

    scenes = []
    assets = {}
    for i, block in enumerate(plan.blocks):
        scene_id = f"s{i + 1}"
        narration = block.fields.get("narration", "").strip() or None
        visual = block.fields.get("visual", "").strip() or None

        if narration is None and visual is None:
            raise MalformedPlanError(
                f"Scene {block.number} ({scene_id}): needs a Narration or a Visual"
            )

        purpose = block.fields.get("purpose", "").strip().lower() or DEFAULT_PURPOSE
        effect_names = split_effects(block.fields.get("effect"))

        asset_id, asset = _scene_asset(
            scene_id, visual, block.fields.get("asset"), aspect_ratio, paths, warnings,
            profile=profile, tone=tone,
        )
        assets[asset_id] = asset

        if narration is None:
            warnings.append(f"Scene {scene_id} has no narration; no voice-over will be produced")

        scene = {
            "id": scene_id,
            "number": block.number,
            "title": block.title or None,
            "purpose": purpose,
            "narration": narration,
            "visualAnchor": visual,
            "assetId": asset_id,
            "musicCue": block.fields.get("music") or None,
            "durationSeconds": None,
            "startAtSec": None,
            "effects": resolve_layers(effect_names),
            "subtitles": [],
            "extras": dict(block.extras),
        }
        scenes.append(scene)

    logger.debug("Built %d scene(s)", len(scenes))
    return scenes, assets


def _scene_asset(scene_id, visual, asset_field, aspect_ratio, paths, warnings,
                 profile=None, tone=None):
    """Resolved user asset when the plan points at one, else a pending placeholder."""
    origin = None
    if asset_field:
        origin = _resolve(asset_field.strip(), paths, warnings, f"Scene {scene_id} Asset")
    elif visual and is_url(visual):
        origin = visual

    if origin:
        asset_id = f"asset_{scene_id}"
        return asset_id, {
            "id": asset_id,
            "source": "user",
            "originUrl": origin,
            "role": "primary",
            "status": "ready",
        }

    asset_id = f"gen_{scene_id}_visual"
    return asset_id, {
        "id": asset_id,
        "source": "generated",
        "role": "background",
        "status": "pending",
        "prompt": build_visual_prompt(visual, aspect_ratio, profile=profile, tone=tone),
        "resolution": resolution_for_aspect(aspect_ratio),
    }


def build_visual_prompt(hint: str | None, aspect_ratio: str, profile=None, tone=None) -> str:
    """Image prompt for a generated placeholder.

    Unknown profiles are passed through as "<profile> style".
    """
    base = hint or "cinematic B-roll, high production value"
    cues = []
    if profile:
        cues.append(PROFILE_CUES.get(profile, f"{profile.replace('_', ' ')} style"))
    if tone in TONE_CUES:
        cues.append(TONE_CUES[tone])
    style = f" {', '.join(cues).capitalize()}." if cues else ""
    return (
        f"{base}. High-resolution, cinematic lighting, shallow depth of field, "
        f"{aspect_ratio} framing.{style} No textual overlays, ready for motion."
    )


def music_mood_for(profile=None, tone=None) -> str:
    """Fallback global music mood when the plan has no Music line."""
    if profile in PROFILE_MOODS:
        return PROFILE_MOODS[profile]
    return TONE_MOODS.get(tone, DEFAULT_MUSIC_MOOD)


def resolution_for_aspect(aspect_ratio: str) -> str:
    return ASPECT_RESOLUTIONS.get(aspect_ratio, ASPECT_RESOLUTIONS["16:9"])


def _resolve(value, paths, warnings, label):
    try:
        return resolve_path_vars(value, paths)
    except ValueError as exc:
        warnings.append(f"{label}: {exc}; kept as written")
        return value


# ── Draft manifest ────────────────────────────────────────────────


def build_draft_manifest(plan, *, manifest_id: str, user_id: str, policy_table, config) -> dict:
    """Assemble the pre-timing manifest from a tokenized plan.

    Args:
        plan: TokenizedPlan from tokenize_plan().
        manifest_id: Stable id for this (user, plan, policy) triple.
        user_id: Requesting user.
        policy_table: PolicyTable providing platform defaults.
        config: CompilerConfig.

    Returns:
        Draft manifest dict (scenes untimed, jobs empty).

    Raises:
        MalformedPlanError: See build_scenes().
    """
    warnings = []

    platform = _directive_value(plan, "platform") or config.default_platform
    if platform not in policy_table:
        warnings.append(
            f"Unknown platform '{platform}'; using '{policy_table.resolve(None).platform}' policy"
        )
    policy = policy_table.resolve(platform)

    duration = _resolve_duration(plan, config, warnings)
    aspect_ratio = _directive_value(plan, "aspect") or policy.recommended_aspect_ratio
    language = _directive_value(plan, "language") or config.default_language
    transition = _directive_value(plan, "transition")
    default_transition = normalize_name(transition) if transition else policy.default_transition

    paths = dict(config.paths)
    profile = _directive_value(plan, "style")
    tone = _directive_value(plan, "tone")
    scenes, assets = build_scenes(
        plan, aspect_ratio=aspect_ratio, paths=paths, warnings=warnings,
        profile=profile, tone=tone,
    )

    brand = build_brand_block(plan, paths, warnings)
    if brand.get("logoAssetId"):
        assets[brand["logoAssetId"]] = {
            "id": brand["logoAssetId"],
            "source": "user",
            "originUrl": brand["logo"],
            "role": "logo",
            "status": "ready",
        }

    return {
        "id": manifest_id,
        "userId": user_id,
        "metadata": {
            "intent": "video",
            "durationSeconds": duration,
            "aspectRatio": aspect_ratio,
            "platform": platform,
            "policyPlatform": policy.platform,
            "language": language,
            "policyVersion": policy_table.version,
            "profile": profile,
        },
        "scenes": scenes,
        "assets": assets,
        "audio": {
            "ttsDefaults": {
                "provider": config.tts_provider,
                "voiceId": _directive_value(plan, "voice_id") or config.default_voice_id,
                "style": _directive_value(plan, "voice") or None,
                "language": language,
                "format": "mp3",
                "sampleRate": 22050,
            },
            "music": {
                "cueMap": build_cue_map(plan, scenes, music_mood_for(profile, tone)),
                "globalVolumeDuckToVoices": True,
            },
        },
        "effects": {
            "allowed": sorted(policy.allowed_effects),
            "defaultTransition": default_transition,
            "transitionSource": "plan" if transition else "policy",
        },
        "consistency": {
            "voice_style": "consistent",
            "tone": tone or DEFAULT_TONE,
            "character_faces": _directive_value(plan, "faces") or DEFAULT_FACES,
            "visual_continuity": "maintain",
            "brand": brand,
        },
        "jobs": [],
        "extras": dict(plan.extras),
        "warnings": warnings,
    }


def build_cue_map(plan, scenes, fallback_mood: str = DEFAULT_MUSIC_MOOD) -> dict:
    """One global cue for the whole timeline plus one per scene-level Music line."""
    cue_map = {
        "music_01": {
            "id": "music_01",
            "scope": "global",
            "mood": _directive_value(plan, "music") or fallback_mood,
            "startSec": None,
            "durationSec": None,
        }
    }
    for scene in scenes:
        if scene["musicCue"]:
            cue_id = f"music_{scene['id']}"
            cue_map[cue_id] = {
                "id": cue_id,
                "scope": "scene",
                "sceneId": scene["id"],
                "mood": scene["musicCue"],
                "startSec": None,
                "durationSec": None,
            }
    return cue_map


def build_brand_block(plan, paths: dict, warnings: list) -> dict:
    """Brand name, colors and role palette; logo asset when given."""
    brand_dir = plan.directive("brand")
    colors = list(brand_dir.colors) if brand_dir else []
    palette = {
        role: colors[i] if i < len(colors) else BRAND_DEFAULTS[role]
        for i, role in enumerate(BRAND_ROLES)
    }
    block = {
        "name": (brand_dir.value or None) if brand_dir else None,
        "colors": colors,
        "palette": palette,
        "logo": None,
        "logoAssetId": None,
        "logoEffects": [],
    }

    logo = _directive_value(plan, "logo")
    if logo:
        block["logo"] = _resolve(logo, paths, warnings, "Logo")
        block["logoAssetId"] = "brand_logo"
        block["logoEffects"] = ["logo_reveal"]
    return block


def _directive_value(plan, kind):
    directive = plan.directive(kind)
    if directive is None or directive.value in (None, ""):
        return None
    return directive.value


def _resolve_duration(plan, config, warnings):
    directive = plan.directive("duration")
    if directive is None:
        return config.default_duration
    if directive.value is None or directive.value <= 0:
        warnings.append(
            f"Duration '{directive.raw}' not understood; using {config.default_duration}s"
        )
        return config.default_duration
    return directive.value
