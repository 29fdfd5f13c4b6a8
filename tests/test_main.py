"""Tests for the subcommand dispatcher and CLIs."""

import json

import pytest


@pytest.fixture
def plan_file(tmp_path, three_scene_plan):
    path = tmp_path / "plan.txt"
    path.write_text(three_scene_plan, encoding="utf-8")
    return path


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        from plancompose.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0
        assert "plancompose" in capsys.readouterr().out

    def test_invalid_subcommand_errors(self):
        from plancompose.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0

    def test_compile_subcommand_exists(self):
        """Recognized, then fails on the missing plan argument."""
        from plancompose.main import main

        with pytest.raises(SystemExit):
            main(["compile"])

    def test_check_subcommand_exists(self):
        from plancompose.main import main

        with pytest.raises(SystemExit):
            main(["check"])


class TestCompileCommand:
    def test_writes_manifest_and_report(self, plan_file, tmp_path, capsys):
        from plancompose.main import main

        out = tmp_path / "manifest.json"
        report = tmp_path / "report.json"
        main(["compile", str(plan_file), "--user", "u1",
              "--output", str(out), "--report", str(report)])

        manifest = json.loads(out.read_text())
        assert [s["durationSeconds"] for s in manifest["scenes"]] == [4, 22, 4]
        assert json.loads(report.read_text())["isValid"] is True
        assert "valid" in capsys.readouterr().out

    def test_prints_json_without_output(self, plan_file, capsys):
        from plancompose.compile_cli import main

        main([str(plan_file), "--user", "u1"])
        manifest = json.loads(capsys.readouterr().out)
        assert manifest["userId"] == "u1"

    def test_draft(self, plan_file, capsys):
        from plancompose.compile_cli import main

        main([str(plan_file), "--user", "u1", "--draft"])
        draft = json.loads(capsys.readouterr().out)
        assert draft["jobs"] == []

    def test_malformed_plan_exits(self, tmp_path, capsys):
        from plancompose.compile_cli import main

        path = tmp_path / "empty.txt"
        path.write_text("Platform: tiktok\n")
        with pytest.raises(SystemExit) as exc_info:
            main([str(path), "--user", "u1"])
        assert exc_info.value.code == 1
        assert "no scenes" in capsys.readouterr().err

    def test_config_file(self, plan_file, tmp_path):
        from plancompose.compile_cli import main

        config = tmp_path / "compiler.yaml"
        config.write_text("render_job: true\n")
        out = tmp_path / "manifest.yaml"
        main([str(plan_file), "--user", "u1", "--output", str(out), "--config", str(config)])
        assert "job_render" in out.read_text()


class TestCheckCommand:
    def _compile(self, plan_file, tmp_path):
        from plancompose.compile_cli import main

        out = tmp_path / "manifest.json"
        main([str(plan_file), "--user", "u1", "--output", str(out)])
        return out

    def test_valid(self, plan_file, tmp_path, capsys):
        from plancompose.check_cli import main

        path = self._compile(plan_file, tmp_path)
        capsys.readouterr()
        main([str(path)])
        assert ": valid" in capsys.readouterr().out

    def test_invalid_exits(self, plan_file, tmp_path, capsys):
        from plancompose.check_cli import main

        path = self._compile(plan_file, tmp_path)
        doc = json.loads(path.read_text())
        doc["scenes"][0]["durationSeconds"] = 10
        path.write_text(json.dumps(doc))
        with pytest.raises(SystemExit) as exc_info:
            main([str(path)])
        assert exc_info.value.code == 1
        assert "INVALID" in capsys.readouterr().out


class TestPoliciesCommand:
    def test_lists_all(self, capsys):
        from plancompose.policies_cli import main

        main([])
        out = capsys.readouterr().out
        assert "2025.1" in out
        assert "tiktok" in out and "linkedin" in out

    def test_single_platform(self, capsys):
        from plancompose.policies_cli import main

        main(["--platform", "TikTok"])
        out = capsys.readouterr().out
        assert "9:16" in out
        assert "youtube" not in out

    def test_unknown_platform(self):
        from plancompose.policies_cli import main

        with pytest.raises(SystemExit):
            main(["--platform", "myspace"])
