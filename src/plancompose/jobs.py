"""Job graph builder: asynchronous work implied by a timed manifest.

Jobs emitted (ids in parentheses):
  - tts (job_tts_<scene>): one per scene with narration. No dependencies.
  - asset_generation (job_asset_<scene>): one per scene whose visual is
    still a pending placeholder. No dependencies.
  - music_selection (job_music): one per manifest. No dependencies.
  - compositing (job_composite_<scene>): one per scene, depending on
    that scene's tts/asset_generation jobs.
  - render (job_render): optional, depends on every compositing job and
    on music selection.

priority is a rank: lower runs sooner. Jobs feeding a hook scene are
rank 0 so a preview can be rendered first; other scene jobs follow
scene order; manifest-scope jobs come last.

orderingHint is a topological order (Kahn's algorithm, ties broken by
priority, then scene, then job type, then id), so every job's hint is
greater than the hints of the jobs it depends on. Workers may run any set of jobs
whose dependencies are done, in parallel.
"""

import heapq
import logging
import re

from .errors import CyclicDependencyError

logger = logging.getLogger(__name__)


TYPE_RANK = {
    "tts": 0,
    "asset_generation": 1,
    "music_selection": 2,
    "compositing": 3,
    "render": 4,
}

RETRY_POLICIES = {
    "tts": {"maxRetries": 3, "backoffSeconds": 30},
    "asset_generation": {"maxRetries": 2, "backoffSeconds": 60},
    "music_selection": {"maxRetries": 2, "backoffSeconds": 60},
    "compositing": {"maxRetries": 2, "backoffSeconds": 30},
    "render": {"maxRetries": 3, "backoffSeconds": 120},
}

HOOK_PURPOSE = "hook"


def _job(job_id, job_type, priority, payload, depends_on=(), scene_id=None):
    return {
        "id": job_id,
        "type": job_type,
        "priority": priority,
        "orderingHint": None,
        "dependsOn": list(depends_on),
        "sceneId": scene_id,
        "payload": payload,
        "retryPolicy": dict(RETRY_POLICIES[job_type]),
    }


# ── Building ──────────────────────────────────────────────────────


def build_jobs(manifest: dict, config) -> list[dict]:
    """Derive the ordered job list for a timed manifest.

    Raises:
        CyclicDependencyError: Dependency rules produced a cycle.
        ValueError: A job depends on an id that does not exist.
    """
    scenes = manifest["scenes"]
    tts_defaults = manifest["audio"]["ttsDefaults"]
    jobs = []
    compositing_ids = []

    for index, scene in enumerate(scenes):
        sid = scene["id"]
        priority = 0 if scene["purpose"] == HOOK_PURPOSE else index + 1
        feeds = []

        if scene.get("narration"):
            job = _job(f"job_tts_{sid}", "tts", priority, {
                "sceneId": sid,
                "text": scene["narration"],
                "provider": tts_defaults["provider"],
                "voiceId": tts_defaults["voiceId"],
                "style": tts_defaults.get("style"),
                "language": tts_defaults.get("language"),
                "format": tts_defaults.get("format", "mp3"),
                "sampleRate": tts_defaults.get("sampleRate", 22050),
            }, scene_id=sid)
            jobs.append(job)
            feeds.append(job["id"])

        asset = manifest["assets"].get(scene.get("assetId"))
        if asset is None or asset.get("status") != "ready":
            job = _job(f"job_asset_{sid}", "asset_generation", priority, {
                "sceneId": sid,
                "resultAssetId": scene.get("assetId"),
                "prompt": (asset or {}).get("prompt"),
                "resolution": (asset or {}).get("resolution"),
                "quality": "high",
            }, scene_id=sid)
            jobs.append(job)
            feeds.append(job["id"])

        composite = _job(f"job_composite_{sid}", "compositing", priority, {
            "sceneId": sid,
            "assetId": scene.get("assetId"),
            "startAtSec": scene.get("startAtSec"),
            "durationSeconds": scene.get("durationSeconds"),
            "layerCount": len(scene["effects"]["shotstackConfig"]["layers"]),
        }, depends_on=feeds, scene_id=sid)
        jobs.append(composite)
        compositing_ids.append(composite["id"])

    tail_priority = len(scenes) + 1
    cue_map = manifest["audio"]["music"]["cueMap"]
    global_cue = cue_map.get("music_01", {})
    music = _job("job_music", "music_selection", tail_priority, {
        "cueIds": sorted(cue_map),
        "mood": global_cue.get("mood"),
        "profile": manifest["metadata"].get("profile"),
        "tone": manifest.get("consistency", {}).get("tone"),
        "durationSec": manifest["metadata"]["durationSeconds"],
    })
    jobs.append(music)

    if config.render_job:
        jobs.append(_job("job_render", "render", tail_priority + 1, {
            "manifestId": manifest.get("id"),
            "sceneCount": len(scenes),
        }, depends_on=compositing_ids + [music["id"]]))

    ordered = order_jobs(jobs)
    logger.debug("Built %d job(s)", len(ordered))
    return ordered


# ── Ordering ──────────────────────────────────────────────────────


def _natural_key(value: str):
    """'job_tts_s10' sorts after 'job_tts_s2'."""
    return tuple(int(p) if p.isdigit() else p for p in re.split(r"(\d+)", value))


def _sort_key(job):
    return (
        job["priority"],
        _natural_key(job.get("sceneId") or ""),
        TYPE_RANK.get(job["type"], len(TYPE_RANK)),
        _natural_key(job["id"]),
    )


def check_references(jobs) -> None:
    """Raise ValueError on duplicate ids or dependsOn pointing nowhere."""
    ids = set()
    for job in jobs:
        if job["id"] in ids:
            raise ValueError(f"Duplicate job id: '{job['id']}'")
        ids.add(job["id"])
    for job in jobs:
        for dep in job["dependsOn"]:
            if dep not in ids:
                raise ValueError(f"Job '{job['id']}' depends on unknown job '{dep}'")


def check_acyclic(jobs) -> None:
    """Raise CyclicDependencyError if the dependency graph has a cycle."""
    indegree = {job["id"]: len(set(job["dependsOn"])) for job in jobs}
    dependents = {job["id"]: [] for job in jobs}
    for job in jobs:
        for dep in set(job["dependsOn"]):
            dependents[dep].append(job["id"])

    ready = [jid for jid, deg in indegree.items() if deg == 0]
    seen = 0
    while ready:
        jid = ready.pop()
        seen += 1
        for nxt in dependents[jid]:
            indegree[nxt] -= 1
            if indegree[nxt] == 0:
                ready.append(nxt)

    if seen != len(jobs):
        raise CyclicDependencyError(jid for jid, deg in indegree.items() if deg > 0)


def order_jobs(jobs: list[dict]) -> list[dict]:
    """Return copies of jobs sorted topologically with orderingHint 0..n-1.

    Among jobs whose dependencies are satisfied, the lowest
    (priority, scene, type rank, id) goes next.

    Raises:
        ValueError: Duplicate id or dangling dependency.
        CyclicDependencyError: The graph has a cycle.
    """
    check_references(jobs)
    check_acyclic(jobs)

    by_id = {job["id"]: job for job in jobs}
    indegree = {job["id"]: len(set(job["dependsOn"])) for job in jobs}
    dependents = {job["id"]: [] for job in jobs}
    for job in jobs:
        for dep in set(job["dependsOn"]):
            dependents[dep].append(job["id"])

    heap = [(_sort_key(by_id[jid]), jid) for jid, deg in indegree.items() if deg == 0]
    heapq.heapify(heap)

    ordered = []
    while heap:
        _, jid = heapq.heappop(heap)
        job = dict(by_id[jid])
        job["orderingHint"] = len(ordered)
        ordered.append(job)
        for nxt in dependents[jid]:
            indegree[nxt] -= 1
            if indegree[nxt] == 0:
                heapq.heappush(heap, (_sort_key(by_id[nxt]), nxt))
    return ordered
