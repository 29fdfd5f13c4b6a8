"""Tests for compiler configuration loading."""

import pytest
import yaml

from plancompose.config import CompilerConfig, config_from_dict, load_config


def _write_config(tmp_path, content) -> str:
    path = tmp_path / "compiler.yaml"
    path.write_text(yaml.dump(content))
    return str(path)


class TestDefaults:
    def test_defaults(self):
        config = load_config()
        assert config == CompilerConfig()
        assert dict(config.purpose_floors) == {"hook": 4, "cta": 4}
        assert config.default_duration == 60
        assert config.job_soft_ceiling == 40
        assert config.render_job is False

    def test_frozen(self):
        with pytest.raises(AttributeError):
            CompilerConfig().default_duration = 10


class TestLoadConfig:
    def test_overrides(self, tmp_path):
        path = _write_config(tmp_path, {
            "purpose_floors": {"Hook": 6, "outro": 3},
            "default_platform": "TikTok",
            "render_job": True,
            "paths": {"brand": "/srv/brand"},
        })
        config = load_config(path)
        assert dict(config.purpose_floors) == {"hook": 6, "outro": 3}
        assert config.default_platform == "tiktok"
        assert config.render_job is True
        assert config.paths["brand"] == "/srv/brand"
        assert config.default_duration == 60

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)) == CompilerConfig()

    def test_top_level_must_be_mapping(self, tmp_path):
        path = _write_config(tmp_path, [1, 2])
        with pytest.raises(ValueError, match="top level must be a mapping"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))


class TestValidation:
    def test_unknown_key(self):
        with pytest.raises(ValueError, match="unknown key"):
            config_from_dict({"floors": {}})

    def test_negative_floor(self):
        with pytest.raises(ValueError, match="purpose_floors.hook"):
            config_from_dict({"purpose_floors": {"hook": -1}})

    def test_floors_must_be_mapping(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            config_from_dict({"purpose_floors": [4, 4]})

    def test_duration_must_be_positive(self):
        with pytest.raises(ValueError, match="default_duration must be a positive number"):
            config_from_dict({"default_duration": 0})

    def test_bool_is_not_a_number(self):
        with pytest.raises(ValueError, match="transition_duration"):
            config_from_dict({"transition_duration": True})

    def test_ceiling_must_be_integer(self):
        with pytest.raises(ValueError, match="job_soft_ceiling"):
            config_from_dict({"job_soft_ceiling": 2.5})

    def test_render_job_must_be_bool(self):
        with pytest.raises(ValueError, match="render_job"):
            config_from_dict({"render_job": "yes"})

    def test_paths_must_be_strings(self):
        with pytest.raises(ValueError, match="paths"):
            config_from_dict({"paths": {"brand": 3}})

    def test_empty_string(self):
        with pytest.raises(ValueError, match="tts_provider"):
            config_from_dict({"tts_provider": "  "})
