"""Error taxonomy for the plan compiler.

Fatal problems are exceptions raised synchronously from the build call:
  - MalformedPlanError: no scenes, or a scene with no content.
  - CyclicDependencyError: the job graph contains a cycle.

Non-fatal problems are Finding records collected into the validation
report. They never stop a manifest from being returned.
"""

from dataclasses import asdict, dataclass, field


class MalformedPlanError(ValueError):
    """Plan text cannot be turned into a manifest."""


class CyclicDependencyError(ValueError):
    """Job dependency graph is not a DAG."""

    def __init__(self, job_ids):
        self.job_ids = sorted(job_ids)
        super().__init__(
            f"Cyclic job dependencies among: {', '.join(self.job_ids)}"
        )


# ── Findings ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Finding:
    """One validator observation. Subclasses fix code and severity."""

    message: str
    context: dict = field(default_factory=dict)

    code = "finding"
    severity = "warning"

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
            **asdict(self)["context"],
        }


@dataclass(frozen=True)
class UnknownEffectWarning(Finding):
    code = "effect.unknown"


@dataclass(frozen=True)
class PlatformMismatchWarning(Finding):
    code = "platform.mismatch"


@dataclass(frozen=True)
class JobVolumeOptimization(Finding):
    code = "jobs.volume"
    severity = "optimization"


@dataclass(frozen=True)
class CameraConflictOptimization(Finding):
    code = "effect.camera_conflict"
    severity = "optimization"


@dataclass(frozen=True)
class StructuralViolation(Finding):
    code = "structure"
    severity = "error"
