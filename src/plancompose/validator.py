"""Compatibility validator: checks a manifest against the renderer model.

Two kinds of result:
  - Structural violations (schema, timing tiling, effect hint
    uniqueness, job graph integrity). Any of these sets isValid False.
  - Advisory findings (effects outside the platform's allowed set,
    unknown effects, aspect ratio mismatch, job volume, stacked camera
    moves). Reported, never blocking, never applied.

The manifest is read, not modified: the validator works on a thawed copy.
"""

import json
import logging
import math
from collections import Counter
from functools import lru_cache
from importlib import resources

from jsonschema import Draft202012Validator

from .common import thaw
from .config import CompilerConfig
from .errors import (
    CameraConflictOptimization,
    CyclicDependencyError,
    JobVolumeOptimization,
    PlatformMismatchWarning,
    StructuralViolation,
    UnknownEffectWarning,
)
from .jobs import check_acyclic
from .layering import classify_effect
from .policy import default_policy_table

logger = logging.getLogger(__name__)


TIME_TOLERANCE = 1e-6


@lru_cache(maxsize=1)
def _schema_validator() -> Draft202012Validator:
    text = resources.files(__package__).joinpath("manifest.schema.json").read_text(encoding="utf-8")
    return Draft202012Validator(json.loads(text))


def validate_manifest(manifest, policy_table=None, config=None) -> dict:
    """Check a manifest and report findings without touching it.

    Args:
        manifest: Frozen or plain manifest mapping.
        policy_table: PolicyTable; packaged default when None.
        config: CompilerConfig; defaults when None.

    Returns:
        {"isValid", "errors", "warnings", "optimizations", "findings",
        "qualityGate"}.
        isValid is False only when a structural violation was found.
    """
    policy_table = policy_table or default_policy_table()
    config = config or CompilerConfig()
    doc = thaw(manifest)

    schema = check_schema(doc)
    timing, hints, graph = [], [], []
    findings = list(schema)
    if not schema:
        timing = check_timing(doc)
        hints = check_effect_hints(doc)
        graph = check_job_graph(doc)
        findings += timing + hints + graph
        findings += check_platform(doc, policy_table)
        findings += check_job_volume(doc, config)
        findings += check_camera_moves(doc)

    errors = [f.message for f in findings if isinstance(f, StructuralViolation)]
    report = {
        "isValid": not errors,
        "errors": errors,
        "warnings": [f.message for f in findings if f.severity == "warning"],
        "optimizations": [f.message for f in findings if f.severity == "optimization"],
        "findings": [f.to_dict() for f in findings],
        "qualityGate": quality_gate(doc, schema, timing, hints, graph),
    }
    logger.info(
        "Validated manifest %s: valid=%s, %d warning(s), %d optimization(s)",
        doc.get("id"), report["isValid"], len(report["warnings"]), len(report["optimizations"]),
    )
    return report


# ── Structural checks ─────────────────────────────────────────────


def check_schema(doc: dict) -> list:
    findings = []
    for error in sorted(_schema_validator().iter_errors(doc), key=lambda e: [str(p) for p in e.path]):
        location = "/".join(str(p) for p in error.path) or "<root>"
        findings.append(StructuralViolation(
            f"Schema: {location}: {error.message}", {"path": location},
        ))
    return findings


def check_timing(doc: dict) -> list:
    findings = []
    scenes = doc["scenes"]
    total = doc["metadata"]["durationSeconds"]

    summed = sum(s["durationSeconds"] for s in scenes)
    if not math.isclose(summed, total, abs_tol=TIME_TOLERANCE):
        findings.append(StructuralViolation(
            f"Scene durations sum to {summed}s, expected {total}s",
            {"expected": total, "actual": summed},
        ))

    if not math.isclose(scenes[0]["startAtSec"], 0, abs_tol=TIME_TOLERANCE):
        findings.append(StructuralViolation(
            f"Scene {scenes[0]['id']} starts at {scenes[0]['startAtSec']}s, expected 0s",
            {"sceneId": scenes[0]["id"]},
        ))

    for prev, nxt in zip(scenes, scenes[1:]):
        expected = prev["startAtSec"] + prev["durationSeconds"]
        if not math.isclose(nxt["startAtSec"], expected, abs_tol=TIME_TOLERANCE):
            findings.append(StructuralViolation(
                f"Scene {nxt['id']} starts at {nxt['startAtSec']}s, "
                f"expected {expected}s (gap or overlap after {prev['id']})",
                {"sceneId": nxt["id"]},
            ))
    return findings


def check_effect_hints(doc: dict) -> list:
    findings = []
    for scene in doc["scenes"]:
        hints = scene["effects"]["orderingHints"]
        duplicated = [h for h, n in Counter(hints.values()).items() if n > 1]
        if duplicated:
            findings.append(StructuralViolation(
                f"Scene {scene['id']}: duplicate effect ordering hints {sorted(duplicated)}",
                {"sceneId": scene["id"]},
            ))
        for layer in scene["effects"]["shotstackConfig"]["layers"]:
            if hints.get(layer["effect"]) != layer["orderingHint"]:
                findings.append(StructuralViolation(
                    f"Scene {scene['id']}: layer '{layer['effect']}' hint "
                    f"{layer['orderingHint']} disagrees with orderingHints",
                    {"sceneId": scene["id"], "effect": layer["effect"]},
                ))
    return findings


def check_job_graph(doc: dict) -> list:
    jobs = doc["jobs"]
    findings = []

    counts = Counter(job["id"] for job in jobs)
    for job_id, n in sorted(counts.items()):
        if n > 1:
            findings.append(StructuralViolation(
                f"Job id '{job_id}' appears {n} times", {"jobId": job_id},
            ))

    by_id = {job["id"]: job for job in jobs}
    for job in jobs:
        for dep in job["dependsOn"]:
            if dep not in by_id:
                findings.append(StructuralViolation(
                    f"Job '{job['id']}' depends on unknown job '{dep}'",
                    {"jobId": job["id"], "dependsOn": dep},
                ))
    if findings:
        return findings

    try:
        check_acyclic(jobs)
    except CyclicDependencyError as exc:
        return [StructuralViolation(str(exc), {"jobIds": exc.job_ids})]

    hints = Counter(job["orderingHint"] for job in jobs)
    for hint, n in sorted(hints.items()):
        if n > 1:
            findings.append(StructuralViolation(
                f"Job orderingHint {hint} is shared by {n} jobs", {"orderingHint": hint},
            ))
    for job in jobs:
        for dep in job["dependsOn"]:
            if by_id[dep]["orderingHint"] >= job["orderingHint"]:
                findings.append(StructuralViolation(
                    f"Job '{job['id']}' (hint {job['orderingHint']}) is not ordered "
                    f"after its dependency '{dep}' (hint {by_id[dep]['orderingHint']})",
                    {"jobId": job["id"], "dependsOn": dep},
                ))
    return findings


def quality_gate(doc: dict, schema, timing, hints, graph) -> dict:
    """Pass/fail summary a render queue can gate on.

    Everything but requiredAssetsReady is False when the schema check failed.
    """
    schema_ok = not schema
    assets = doc.get("assets")
    if not isinstance(assets, dict):
        assets = {}
    return {
        "durationCompliance": schema_ok and not timing,
        "effectOrderingValid": schema_ok and not hints,
        "jobGraphValid": schema_ok and not graph,
        "requiredAssetsReady": all(
            isinstance(asset, dict) and asset.get("status") == "ready"
            for asset in assets.values()
        ),
    }


# ── Advisory checks ───────────────────────────────────────────────


def check_platform(doc: dict, policy_table) -> list:
    metadata = doc["metadata"]
    policy = policy_table.resolve(metadata.get("policyPlatform") or metadata["platform"])
    findings = []

    for scene in doc["scenes"]:
        for name in scene["effects"]["layeredEffects"]:
            band, _ = classify_effect(name)
            if band == "unknown":
                findings.append(UnknownEffectWarning(
                    f"Scene {scene['id']}: effect '{name}' is not in the precedence "
                    f"table; layered last",
                    {"sceneId": scene["id"], "effect": name},
                ))
            if name not in policy.allowed_effects:
                findings.append(PlatformMismatchWarning(
                    f"Scene {scene['id']}: effect '{name}' is not allowed on "
                    f"{policy.platform}; kept as planned",
                    {"sceneId": scene["id"], "effect": name, "platform": policy.platform},
                ))

    if metadata["aspectRatio"] != policy.recommended_aspect_ratio:
        findings.append(PlatformMismatchWarning(
            f"Aspect ratio {metadata['aspectRatio']} differs from the "
            f"{policy.recommended_aspect_ratio} recommended for {policy.platform}",
            {"platform": policy.platform, "aspectRatio": metadata["aspectRatio"]},
        ))
    return findings


def check_job_volume(doc: dict, config) -> list:
    count = len(doc["jobs"])
    if count <= config.job_soft_ceiling:
        return []
    return [JobVolumeOptimization(
        f"{count} jobs exceed the soft ceiling of {config.job_soft_ceiling}; "
        f"consider batching tts and asset_generation jobs",
        {"jobCount": count, "ceiling": config.job_soft_ceiling},
    )]


def check_camera_moves(doc: dict) -> list:
    findings = []
    for scene in doc["scenes"]:
        camera = [
            name for name in scene["effects"]["layeredEffects"]
            if classify_effect(name)[0] == "camera"
        ]
        if len(camera) > 1:
            findings.append(CameraConflictOptimization(
                f"Scene {scene['id']}: stacks camera moves {sorted(camera)}; "
                f"consider keeping one",
                {"sceneId": scene["id"], "effects": sorted(camera)},
            ))
    return findings
