"""Tests for the job graph builder and ordering."""

import pytest

from plancompose.compiler import build_draft
from plancompose.config import CompilerConfig
from plancompose.errors import CyclicDependencyError
from plancompose.jobs import build_jobs, check_acyclic, order_jobs
from plancompose.timing import apply_timing


def _jobs(text, **config):
    config = CompilerConfig(**config)
    return build_jobs(apply_timing(build_draft(text, "u1", config=config), config), config)


def _job(job_id, depends_on=(), priority=0, job_type="tts"):
    return {"id": job_id, "type": job_type, "priority": priority, "dependsOn": list(depends_on)}


class TestBuildJobs:
    def test_job_set(self, three_scene_plan):
        ids = {job["id"] for job in _jobs(three_scene_plan)}
        assert ids == {
            "job_tts_s1", "job_asset_s1", "job_composite_s1",
            "job_tts_s2", "job_asset_s2", "job_composite_s2",
            "job_tts_s3", "job_asset_s3", "job_composite_s3",
            "job_music",
        }

    def test_order(self, three_scene_plan):
        ids = [job["id"] for job in _jobs(three_scene_plan)]
        assert ids == [
            "job_tts_s1", "job_asset_s1", "job_composite_s1",
            "job_tts_s2", "job_asset_s2", "job_composite_s2",
            "job_tts_s3", "job_asset_s3", "job_composite_s3",
            "job_music",
        ]

    def test_ordering_hints_sequential(self, three_scene_plan):
        jobs = _jobs(three_scene_plan)
        assert [job["orderingHint"] for job in jobs] == list(range(len(jobs)))

    def test_dependencies_precede_dependents(self, three_scene_plan):
        jobs = _jobs(three_scene_plan)
        hints = {job["id"]: job["orderingHint"] for job in jobs}
        for job in jobs:
            for dep in job["dependsOn"]:
                assert hints[dep] < hints[job["id"]]

    def test_compositing_depends_on_scene_inputs(self, three_scene_plan):
        by_id = {job["id"]: job for job in _jobs(three_scene_plan)}
        assert sorted(by_id["job_composite_s2"]["dependsOn"]) == ["job_asset_s2", "job_tts_s2"]

    def test_hook_jobs_priority_zero(self, plan_text):
        jobs = _jobs(plan_text([("body", None), ("hook", None), ("cta", None)]))
        by_id = {job["id"]: job for job in jobs}
        assert by_id["job_tts_s2"]["priority"] == 0
        assert by_id["job_composite_s2"]["priority"] == 0
        assert by_id["job_tts_s1"]["priority"] > 0
        assert jobs[0]["id"] == "job_tts_s2"

    def test_ready_asset_has_no_generation_job(self):
        jobs = _jobs("Scene 1\nNarration: hi\nVisual: https://cdn.example.com/a.mp4")
        ids = [job["id"] for job in jobs]
        assert "job_asset_s1" not in ids
        composite = next(job for job in jobs if job["id"] == "job_composite_s1")
        assert composite["dependsOn"] == ["job_tts_s1"]

    def test_no_narration_no_tts(self):
        ids = [job["id"] for job in _jobs("Scene 1\nVisual: desk")]
        assert "job_tts_s1" not in ids

    def test_render_job_opt_in(self, three_scene_plan):
        assert "job_render" not in {job["id"] for job in _jobs(three_scene_plan)}
        jobs = _jobs(three_scene_plan, render_job=True)
        render = jobs[-1]
        assert render["id"] == "job_render"
        assert sorted(render["dependsOn"]) == [
            "job_composite_s1", "job_composite_s2", "job_composite_s3", "job_music",
        ]

    def test_payloads(self, three_scene_plan):
        by_id = {job["id"]: job for job in _jobs(three_scene_plan)}
        tts = by_id["job_tts_s1"]["payload"]
        assert tts["text"] == "Stop scrolling. This changes everything."
        assert tts["voiceId"] == "eva"
        asset = by_id["job_asset_s2"]["payload"]
        assert asset["resultAssetId"] == "gen_s2_visual"
        assert asset["resolution"] == "1920x1080"
        music = by_id["job_music"]["payload"]
        assert music["cueIds"] == ["music_01"]
        assert music["durationSec"] == 30
        composite = by_id["job_composite_s1"]["payload"]
        assert composite["durationSeconds"] == 4
        assert composite["layerCount"] == 2

    def test_music_payload_carries_profile_and_tone(self):
        jobs = _jobs("Style: anime_mode\nTone: casual\n\nScene 1\nVisual: x")
        music = next(job for job in jobs if job["id"] == "job_music")["payload"]
        assert music["mood"] == "energetic_upbeat"
        assert music["profile"] == "anime_mode"
        assert music["tone"] == "casual"

    def test_retry_policy_attached(self, three_scene_plan):
        for job in _jobs(three_scene_plan):
            assert job["retryPolicy"]["maxRetries"] >= 1


class TestOrderJobs:
    def test_priority_breaks_ties(self):
        jobs = [_job("late", priority=5), _job("early", priority=1)]
        assert [j["id"] for j in order_jobs(jobs)] == ["early", "late"]

    def test_dependency_beats_priority(self):
        jobs = [_job("a", ["b"], priority=0), _job("b", priority=9)]
        assert [j["id"] for j in order_jobs(jobs)] == ["b", "a"]

    def test_natural_id_order(self):
        jobs = [_job("job_tts_s10"), _job("job_tts_s2")]
        assert [j["id"] for j in order_jobs(jobs)] == ["job_tts_s2", "job_tts_s10"]

    def test_returns_copies(self):
        jobs = [_job("a")]
        ordered = order_jobs(jobs)
        assert ordered[0]["orderingHint"] == 0
        assert "orderingHint" not in jobs[0]

    def test_cycle_raises(self):
        jobs = [_job("a", ["b"]), _job("b", ["a"]), _job("c")]
        with pytest.raises(CyclicDependencyError) as exc_info:
            order_jobs(jobs)
        assert exc_info.value.job_ids == ["a", "b"]

    def test_dangling_dependency_raises(self):
        with pytest.raises(ValueError, match="unknown job 'ghost'"):
            order_jobs([_job("a", ["ghost"])])

    def test_duplicate_id_raises(self):
        with pytest.raises(ValueError, match="Duplicate job id"):
            order_jobs([_job("a"), _job("a")])

    def test_check_acyclic_accepts_dag(self):
        check_acyclic([_job("a"), _job("b", ["a"]), _job("c", ["a", "b"])])
