#!/usr/bin/env python3
"""Tests for rule set construction and decisions."""

import os
import threading

import pytest

from gitignore_rules.core.config import ConfigManager, ConfigSource
from gitignore_rules.core.constants import MATCH_NOTHING, CompileMode, RuleAction
from gitignore_rules.core.validators import PatternCompileError, ValidationError
from gitignore_rules.rules.engine import (
    RuleGroup,
    RuleSet,
    build,
    normalize_path,
    parse,
)


class TestNormalizePath:
    """Tests for normalize_path()."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("foo", "/foo"),
            ("/foo", "/foo"),
            ("foo/bar/", "/foo/bar/"),
            ("", "/"),
            ("/", "/"),
        ],
    )
    def test_leading_separator(self, path, expected):
        """A leading '/' is added when missing."""
        assert normalize_path(path) == expected

    def test_path_like(self):
        """Path objects are accepted."""
        from pathlib import PurePosixPath

        assert normalize_path(PurePosixPath("a/b.txt")) == "/a/b.txt"

    def test_platform_separator(self, monkeypatch):
        """Backslash separators are converted on platforms that use them."""
        with monkeypatch.context() as m:
            m.setattr(os, "sep", "\\")
            normalized = normalize_path("src\\build\\out.o")
        assert normalized == "/src/build/out.o"


class TestParse:
    """Tests for parse()."""

    def test_partitions_lines(self):
        """Plain lines exclude, '!' lines re-include."""
        exclusions, inclusions = parse("/nonexistent\n!/nonexistent/foo\n*.swp\n")
        assert exclusions == ["/nonexistent", "*.swp"]
        assert inclusions == ["/nonexistent/foo"]

    def test_skips_comments_and_blank_lines(self):
        """Comments and whitespace-only lines are ignored."""
        exclusions, inclusions = parse("# comment\n\n   \n\t\nfoo\n  # indented comment\n")
        assert exclusions == ["foo"]
        assert inclusions == []

    def test_line_endings(self):
        """CRLF, CR and LF all end a line."""
        exclusions, _ = parse("a\r\nb\rc\nd")
        assert exclusions == ["a", "b", "c", "d"]

    def test_lines_are_trimmed(self):
        """Surrounding whitespace is removed."""
        exclusions, inclusions = parse("  foo  \n\t! bar\n")
        assert exclusions == ["foo"]
        assert inclusions == [" bar"]

    def test_empty_content(self):
        """Empty text gives no rules."""
        assert parse("") == ([], [])

    def test_escaped_comment_is_pattern(self):
        """A backslash-escaped '#' starts a pattern."""
        exclusions, _ = parse("\\#file\n")
        assert exclusions == ["\\#file"]


class TestRuleGroup:
    """Tests for RuleGroup."""

    def test_lines_sorted_into_combined_regex(self):
        """The combined regex alternates the sorted patterns."""
        group = RuleGroup.build(RuleAction.EXCLUDE, ["b", "a"])
        assert [p.pattern for p in group] == ["a", "b"]
        assert group.combined.source == r"(?:\/a(?:$|\/))|(?:\/b(?:$|\/))"

    def test_empty_group_matches_nothing(self):
        """An empty group never matches."""
        group = RuleGroup.build(RuleAction.INCLUDE, [])
        assert len(group) == 0
        assert group.combined.source == MATCH_NOTHING
        assert not group.matches("/")
        assert not group.matches("/anything")

    def test_longest_match(self):
        """The longest individual match wins, first pattern on ties."""
        group = RuleGroup.build(RuleAction.EXCLUDE, ["/a", "/a/b", "b"])
        length, match = group.longest_match("/a/b/c")
        assert length == len("/a/b/")
        assert match.group(0) == "/a/b/"

    def test_longest_match_without_match(self):
        """No match gives length 0."""
        group = RuleGroup.build(RuleAction.EXCLUDE, ["foo"])
        assert group.longest_match("/bar") == (0, None)

    def test_invalid_line_skipped(self, log_records):
        """Lines with broken regexes are logged and skipped."""
        group = RuleGroup.build(RuleAction.EXCLUDE, ["*[z-a]", "foo"])
        assert [p.pattern for p in group] == ["foo"]
        assert any("Skipping pattern" in m for m in log_records.messages())

    def test_empty_negation_skipped(self, log_records):
        """A bare '!' line is logged and skipped."""
        rules = RuleSet.from_text("!\nfoo\n")
        assert len(rules.inclusions) == 0
        assert len(rules.exclusions) == 1
        assert any("Skipping invalid pattern" in m for m in log_records.messages())

    def test_strict_mode_raises(self):
        """Strict mode surfaces the first broken line."""
        with pytest.raises(PatternCompileError):
            RuleGroup.build(RuleAction.EXCLUDE, ["*[z-a]", "foo"], strict=True)

    def test_strict_mode_empty_line(self):
        """Strict mode rejects an empty line."""
        with pytest.raises(ValidationError):
            RuleGroup.build(RuleAction.INCLUDE, [""], strict=True)

    def test_lazy_group(self):
        """Lazy groups compile their combined regex on first use."""
        group = RuleGroup.build(RuleAction.EXCLUDE, ["foo"], CompileMode.LAZY)
        assert not group.combined.is_compiled
        assert group.matches("/foo")
        assert group.combined.is_compiled

    def test_lazy_group_still_validates(self):
        """Lazy mode does not postpone validation."""
        with pytest.raises(PatternCompileError):
            RuleGroup.build(RuleAction.EXCLUDE, ["*[z-a]"], CompileMode.LAZY, strict=True)


class TestRuleSetFixture:
    """Decisions for the mixed fixture file."""

    @pytest.fixture
    def rules(self, gitignore_fixture):
        return RuleSet.from_text(gitignore_fixture)

    def test_group_sizes(self, rules):
        """Patterns are partitioned by polarity."""
        assert len(rules.exclusions) == 7
        assert len(rules.inclusions) == 2

    @pytest.mark.parametrize(
        "path",
        [
            "test/index.js",
            "wat/test/index.js",
            "nonexistent/foo",
            "nonexistent/foo/wat",
            "othernonexistent/a/what/foo",
        ],
    )
    def test_accepted(self, rules, path):
        """Paths that stay in the tree."""
        assert rules.accepts(path) is True
        assert rules.denies(path) is False

    @pytest.mark.parametrize(
        "path",
        [
            "test.swp",
            "foo/test.swp",
            "node_modules/wat.js",
            "foo/bar.wat",
            "nonexistent",
            "nonexistent/bar",
            "othernonexistent/what",
            "othernonexistent/a/what",
            "debug.log",
        ],
    )
    def test_denied(self, rules, path):
        """Paths that are ignored."""
        assert rules.denies(path) is True
        assert rules.accepts(path) is False

    def test_inspects(self, rules):
        """Only paths touched by some rule are inspected."""
        assert rules.inspects("lib") is False
        assert rules.inspects("baz") is True
        assert rules.inspects("baz/wat/foo") is True
        assert rules.inspects("nonexistent/foo") is True

    def test_leading_separator_optional(self, rules):
        """'/foo/bar.wat' and 'foo/bar.wat' are the same path."""
        assert rules.denies("/foo/bar.wat") is rules.denies("foo/bar.wat")

    def test_filters(self, rules):
        """accepted() and denied() partition a list in input order."""
        paths = ["test.swp", "test/index.js", "nonexistent/foo", "node_modules/a.js"]
        assert rules.accepted(paths) == ["test/index.js", "nonexistent/foo"]
        assert rules.denied(paths) == ["test.swp", "node_modules/a.js"]


class TestRuleSetSemantics:
    """Decision rules beyond the fixture."""

    def test_no_negatives(self, no_negatives_fixture):
        """Unrooted names match at any depth but not as prefixes."""
        rules = RuleSet.from_text(no_negatives_fixture)
        assert rules.accepts("node_modules.json")
        assert rules.denies("node_modules")
        assert rules.denies("node_modules/foo")
        assert rules.denies("packages/app/node_modules/x.js")

    def test_empty_rule_set(self):
        """Without rules everything is accepted and nothing inspected."""
        rules = build("")
        assert rules.accepts("anything")
        assert not rules.denies("anything")
        assert not rules.inspects("anything")

    def test_comments_only(self):
        """Comment-only content behaves like empty content."""
        rules = build("# nothing here\n\n")
        assert rules.accepts("foo") and not rules.inspects("foo")

    def test_directory_rule_cascades(self):
        """A directory-only rule denies the directory and everything below it."""
        rules = build("foo/")
        for path in ("foo", "foo/", "foo/bar", "foo/bar/baz"):
            assert rules.denies(path), path
        for path in ("xfoo", "foobar", "xfoo/bar"):
            assert rules.accepts(path), path

    def test_directory_form_in_tie_break(self):
        """The directory form of a path takes part in the longest match."""
        rules = build("foo/\n!foo\n")
        assert rules.accepts("foo")
        assert rules.accepts("foo/bar")

    def test_longer_inclusion_wins(self):
        """A re-inclusion matching more of the path overrides the exclusion."""
        rules = build("a/**\n!a/b\n")
        assert rules.accepts("a/b")
        assert rules.accepts("a/b/c")
        assert rules.denies("a/c")

    def test_longer_exclusion_wins(self):
        """An exclusion matching more of the path keeps it ignored."""
        rules = build("!foo\nfoo/bar\n")
        assert rules.denies("foo/bar")
        assert rules.accepts("foo/baz")

    def test_inclusion_wins_ties(self):
        """Equally long matches resolve to accept."""
        rules = build("foo\n!foo\n")
        assert rules.accepts("foo")
        assert not rules.denies("foo")

    def test_line_order_irrelevant(self):
        """Later lines do not override earlier ones by position."""
        forward = build("/nonexistent\n!/nonexistent/foo\n")
        backward = build("!/nonexistent/foo\n/nonexistent\n")
        for path in ("nonexistent/foo", "nonexistent/bar"):
            assert forward.accepts(path) == backward.accepts(path)

    def test_accept_deny_complementary(self, gitignore_fixture):
        """Exactly one of accepts() and denies() holds."""
        rules = RuleSet.from_text(gitignore_fixture)
        for path in ("a", "nonexistent", "nonexistent/foo", "x.log", "/", "foo/"):
            assert rules.accepts(path) != rules.denies(path)

    def test_inclusion_only_touches(self):
        """A lone re-inclusion inspects but still accepts."""
        rules = build("!keep.txt")
        assert rules.inspects("keep.txt")
        assert rules.accepts("keep.txt")

    def test_repr(self):
        """repr() shows group sizes."""
        assert repr(build("a\nb\n!c")) == "RuleSet(exclusions=2, inclusions=1)"

    def test_strict_build(self):
        """build(strict=True) raises on a broken line."""
        with pytest.raises(PatternCompileError):
            build("*[z-a]\n", strict=True)

    def test_build_logs(self, log_records):
        """Building a rule set is logged at DEBUG."""
        build("a\n!b\n")
        assert any(m.startswith("Built rule set") for m in log_records.messages())


class TestCompileModes:
    """Eager and lazy rule sets."""

    def test_lazy_and_eager_agree(self, gitignore_fixture):
        """Compile mode never changes a decision."""
        eager = RuleSet.from_text(gitignore_fixture, CompileMode.EAGER)
        lazy = RuleSet.from_text(gitignore_fixture, CompileMode.LAZY)
        paths = ["test.swp", "nonexistent/foo", "lib", "othernonexistent/a/what/foo", "baz"]
        for path in paths:
            assert eager.accepts(path) == lazy.accepts(path)
            assert eager.inspects(path) == lazy.inspects(path)

    def test_eager_compiles_up_front(self):
        """Eager rule sets are compiled after construction."""
        rules = build("foo\n!bar\n")
        assert rules.exclusions.combined.is_compiled
        assert all(p.matcher.is_compiled for p in rules.exclusions)

    def test_lazy_defers(self):
        """Lazy rule sets compile on first query."""
        rules = build("foo\n!bar\n", CompileMode.LAZY)
        assert not rules.exclusions.combined.is_compiled
        rules.accepts("foo")
        assert rules.exclusions.combined.is_compiled

    def test_shared_between_threads(self, gitignore_fixture):
        """A lazy rule set can be queried from many threads at once."""
        rules = RuleSet.from_text(gitignore_fixture, CompileMode.LAZY)
        results = []
        errors = []

        def query():
            try:
                results.append(
                    (
                        rules.denies("nonexistent/bar"),
                        rules.accepts("othernonexistent/a/what/foo"),
                    )
                )
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=query) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert results == [(True, True)] * 16


class TestFromConfig:
    """Tests for RuleSet.from_config()."""

    def test_options_from_config(self, sample_config, log_records):
        """Compile mode and diagnostics come from the configuration."""
        config = ConfigManager(load_environment=False)
        config.load_dict(sample_config, ConfigSource.CONFIG_FILE)

        rules = RuleSet.from_config("foo\n", config)

        assert not rules.exclusions.combined.is_compiled
        assert rules.accepts("foo", expected=True) is False
        assert not any("Unexpected decision" in m for m in log_records.messages())

    def test_defaults(self):
        """Default configuration builds an eager rule set."""
        rules = RuleSet.from_config("foo\n", ConfigManager(load_environment=False))
        assert rules.exclusions.combined.is_compiled
        assert rules.denies("foo")
