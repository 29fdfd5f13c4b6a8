"""Tests for plancompose.common utilities."""

from types import MappingProxyType

import pytest

from plancompose.common import (
    dedupe,
    find_hex_colors,
    format_hex_color,
    freeze,
    is_url,
    normalize_name,
    parse_hex_color,
    resolve_path_vars,
    thaw,
)


class TestParseHexColor:
    def test_with_hash(self):
        assert parse_hex_color("#e04c77") == (224, 76, 119)

    def test_without_hash(self):
        assert parse_hex_color("1A1A1A") == (26, 26, 26)

    def test_wrong_length_raises(self):
        with pytest.raises(ValueError, match="Not a #RRGGBB"):
            parse_hex_color("#FFF")

    def test_format_is_upper_case(self):
        assert format_hex_color((224, 76, 119)) == "#E04C77"


class TestFindHexColors:
    def test_normalizes_and_dedupes(self):
        text = "Acme #0f172a, #3B82F6 and again #0F172A"
        assert find_hex_colors(text) == ["#0F172A", "#3B82F6"]

    def test_no_colors(self):
        assert find_hex_colors("plain brand") == []


class TestResolvePathVars:
    def test_substitutes(self):
        assert resolve_path_vars("${brand}/logo.png", {"brand": "/srv/b"}) == "/srv/b/logo.png"

    def test_unknown_variable_raises(self):
        with pytest.raises(ValueError, match="Unknown path variable"):
            resolve_path_vars("${missing}/x.png", {})

    def test_no_variables_passthrough(self):
        assert resolve_path_vars("/abs/x.png", {}) == "/abs/x.png"


class TestNames:
    def test_normalize_name(self):
        assert normalize_name(" Cinematic Zoom ") == "cinematic_zoom"
        assert normalize_name("lens-flare") == "lens_flare"

    def test_dedupe_keeps_first(self):
        assert dedupe(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_is_url(self):
        assert is_url("https://cdn.example.com/a.mp4")
        assert not is_url("city skyline at dawn")


class TestFreeze:
    def test_freeze_makes_read_only(self):
        frozen = freeze({"a": [1, {"b": 2}]})
        assert isinstance(frozen, MappingProxyType)
        assert isinstance(frozen["a"], tuple)
        assert frozen["a"][1]["b"] == 2
        with pytest.raises(TypeError):
            frozen["a"] = 3

    def test_thaw_restores_plain_types(self):
        data = {"a": [1, {"b": 2}], "c": None}
        assert thaw(freeze(data)) == data

    def test_thaw_sorts_sets(self):
        assert thaw({"s": frozenset({"b", "a"})}) == {"s": ["a", "b"]}
