"""Tests for CLI logging setup."""

import logging

import pytest

from plancompose.logging_utils import setup_logging


@pytest.fixture
def root_level():
    root = logging.getLogger()
    saved = root.level
    yield root
    root.setLevel(saved)


class TestSetupLogging:
    def test_explicit_level(self, root_level):
        setup_logging("info")
        assert root_level.level == logging.INFO

    def test_env_level(self, root_level, monkeypatch):
        monkeypatch.setenv("PLANCOMPOSE_LOG_LEVEL", "DEBUG")
        setup_logging()
        assert root_level.level == logging.DEBUG

    def test_default_warning(self, root_level, monkeypatch):
        monkeypatch.delenv("PLANCOMPOSE_LOG_LEVEL", raising=False)
        setup_logging()
        assert root_level.level == logging.WARNING

    def test_unknown_name_falls_back(self, root_level):
        setup_logging("chatty")
        assert root_level.level == logging.WARNING
