"""Tests for Matcher and compile_filter."""

import os

import pytest

from fsjet._match import Matcher, compile_filter


@pytest.fixture
def base(tmp_path):
    return str(tmp_path / "base")


def p(base, *parts):
    return os.path.join(base, *parts)


class TestMatcher:
    def test_no_patterns_not_active(self, base):
        m = Matcher(base, [])
        assert m.active is False
        assert m(p(base, "anything")) is True

    def test_basename_at_any_depth(self, base):
        m = Matcher(base, "*.txt")
        assert m.active is True
        assert m(p(base, "a.txt")) is True
        assert m(p(base, "sub", "deep", "b.txt")) is True
        assert m(p(base, "a.md")) is False

    def test_anchored_pattern(self, base):
        m = Matcher(base, ["sub/*.txt"])
        assert m(p(base, "sub", "a.txt")) is True
        assert m(p(base, "a.txt")) is False
        assert m(p(base, "other", "sub", "a.txt")) is False

    def test_dot_slash_prefix(self, base):
        m = Matcher(base, ["./a.txt"])
        assert m(p(base, "a.txt")) is True
        assert m(p(base, "sub", "a.txt")) is False

    def test_absolute_pattern_under_base(self, base):
        m = Matcher(base, [p(base, "sub", "*.txt")])
        assert m(p(base, "sub", "a.txt")) is True
        assert m(p(base, "a.txt")) is False

    def test_directory_only_pattern(self, base):
        m = Matcher(base, ["build/"])
        assert m(p(base, "build"), is_dir=True) is True
        assert m(p(base, "build"), is_dir=False) is False

    def test_negation_subtracts(self, base):
        m = Matcher(base, ["*.txt", "!keep.txt"])
        assert m(p(base, "a.txt")) is True
        assert m(p(base, "keep.txt")) is False
        assert m(p(base, "a.md")) is False

    def test_leading_negation_starts_matched(self, base):
        m = Matcher(base, ["!*.log"])
        assert m(p(base, "a.txt")) is True
        assert m(p(base, "sub", "x.log")) is False

    def test_symmetry_of_negation(self, base):
        names = ["a.txt", "b.md", "sub/c.txt", "sub/d", "e.txt.bak"]
        positive = Matcher(base, ["*.txt"])
        negative = Matcher(base, ["!*.txt"])
        for name in names:
            path = p(base, *name.split("/"))
            assert positive(path) != negative(path), name

    def test_from_file(self, tmp_path, base):
        pattern_file = tmp_path / "patterns"
        pattern_file.write_text("*.log\n# comment\n\n!keep.log\n")
        m = Matcher.from_file(base, str(pattern_file))
        assert m(p(base, "a.log")) is True
        assert m(p(base, "keep.log")) is False
        assert m(p(base, "a.txt")) is False


class TestCompileFilter:
    def test_default_accepts_everything(self, base):
        f = compile_filter(base)
        assert f(p(base, "x")) is True
        assert f(p(base, "x"), is_dir=True) is True

    def test_filter_callable(self, base):
        f = compile_filter(base, filter=lambda path: path.endswith(".py"))
        assert f(p(base, "a.py")) is True
        assert f(p(base, "a.txt")) is False

    def test_matching_wins_over_filter(self, base):
        f = compile_filter(base, matching=["*.txt"], filter=lambda path: False)
        assert f(p(base, "a.txt")) is True

    def test_empty_matching_uses_filter(self, base):
        f = compile_filter(base, matching=[], filter=lambda path: False)
        assert f(p(base, "a.txt")) is False
