"""Plan compiler: plan text in, frozen manifest and report out.

Pipeline:
  1. Tokenize the plan text (tokenizer.tokenize_plan).
  2. Build scenes, assets, audio and brand blocks; resolve effect layers
     and apply platform policy defaults (scenes.build_draft_manifest).
  3. Allocate scene timing (timing.apply_timing).
  4. Derive the ordered job graph (jobs.build_jobs).
  5. Validate, record the quality gate, and freeze the manifest
     (validator.validate_manifest).

The whole run is pure and in-memory: the same plan text, user id and
policy table always produce the same manifest.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import NamedTuple

import yaml

from .common import freeze, thaw
from .config import CompilerConfig
from .jobs import build_jobs
from .policy import default_policy_table
from .scenes import build_draft_manifest
from .timing import apply_timing
from .tokenizer import tokenize_plan
from .validator import validate_manifest

logger = logging.getLogger(__name__)


MANIFEST_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "plancompose/manifest")


class CompileResult(NamedTuple):
    manifest: object
    report: dict


def manifest_id_for(text: str, user_id: str, policy_version: str) -> str:
    """Stable id for a (plan, user, policy version) triple."""
    return str(uuid.uuid5(MANIFEST_NAMESPACE, f"{policy_version}\x00{user_id}\x00{text}"))


def build_draft(text: str, user_id: str, *, policy_table=None, config=None) -> dict:
    """Tokenize and build the pre-timing draft manifest.

    Raises:
        MalformedPlanError: No scenes, or a scene with no content.
    """
    policy_table = policy_table or default_policy_table()
    config = config or CompilerConfig()

    plan = tokenize_plan(text)
    return build_draft_manifest(
        plan,
        manifest_id=manifest_id_for(text, user_id, policy_table.version),
        user_id=user_id,
        policy_table=policy_table,
        config=config,
    )


def compile_plan(text: str, user_id: str, *, policy_table=None, config=None) -> CompileResult:
    """Compile plan text into a frozen manifest plus validation report.

    Args:
        text: UTF-8 plan text.
        user_id: Requesting user.
        policy_table: PolicyTable; packaged default when None.
        config: CompilerConfig; defaults when None.

    Returns:
        CompileResult(manifest, report). The manifest is read-only;
        use manifest_to_dict() for a mutable/serializable copy.

    Raises:
        MalformedPlanError: No scenes, or a scene with no content.
        CyclicDependencyError: Job rules produced a cycle.
    """
    policy_table = policy_table or default_policy_table()
    config = config or CompilerConfig()

    draft = build_draft(text, user_id, policy_table=policy_table, config=config)
    timed = apply_timing(draft, config)
    timed["jobs"] = build_jobs(timed, config)

    report = validate_manifest(timed, policy_table, config)
    timed["qualityGate"] = dict(report["qualityGate"])
    manifest = freeze(timed)
    logger.info(
        "Compiled manifest %s: %d scene(s), %d job(s), %ss",
        manifest["id"], len(manifest["scenes"]), len(manifest["jobs"]),
        manifest["metadata"]["durationSeconds"],
    )
    return CompileResult(manifest, report)


# ── Serialization ─────────────────────────────────────────────────


def manifest_to_dict(manifest) -> dict:
    """Plain-dict deep copy of a (frozen) manifest."""
    return thaw(manifest)


def dump_manifest(manifest, output_path: str | Path) -> Path:
    """Write a manifest (or report) as JSON, or YAML for .yaml/.yml paths."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    data = thaw(manifest)
    if output_path.suffix.lower() in {".yaml", ".yml"}:
        output_path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    else:
        output_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return output_path


def load_manifest(manifest_path: str | Path) -> dict:
    """Read a manifest written by dump_manifest (JSON or YAML)."""
    manifest_path = Path(manifest_path)
    text = manifest_path.read_text(encoding="utf-8")
    if manifest_path.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Manifest {manifest_path}: top level must be a mapping")
    return data
