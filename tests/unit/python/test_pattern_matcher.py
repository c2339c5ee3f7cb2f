#!/usr/bin/env python3
"""
Unit tests for fancy_login/pattern_matcher.py
"""

import sys
import pytest

sys.path.insert(0, '.')
from fancy_login.pattern_matcher import (
    compile_pattern,
    first_match,
    glob_to_regex,
    matches_pattern,
)
from fancy_login.parsers import ContextMapping


class TestGlobToRegex:
    """Tests for glob_to_regex function."""

    def test_star_becomes_dot_star(self):
        assert glob_to_regex("*_DEV_*") == "^.*_DEV_.*$"

    def test_question_mark_single_char(self):
        assert glob_to_regex("ACME_?") == "^ACME_.$"

    def test_escapes_special_chars(self):
        regex = glob_to_regex("acme.prod[1]")
        assert r"\." in regex
        assert r"\[1\]" in regex

    def test_literal_pattern_is_anchored(self):
        assert glob_to_regex("ACME") == "^ACME$"


class TestMatchesPattern:
    """Tests for matches_pattern function."""

    def test_star_matches_across_underscores(self):
        assert matches_pattern("ACME_PROD_ADMIN", "*_PROD_*") is True

    def test_underscore_boundaries_are_literal(self):
        assert matches_pattern("ACME_PRODUCTION_ADMIN", "*_PROD_*") is False

    def test_bare_substring_pattern(self):
        assert matches_pattern("ACME_PRODUCTION_ADMIN", "*PROD*") is True
        assert matches_pattern("ACME_PROD_ADMIN", "*PROD*") is True

    def test_star_matches_empty(self):
        assert matches_pattern("_DEV_", "*_DEV_*") is True

    def test_question_mark_exactly_one(self):
        assert matches_pattern("ACME_1", "ACME_?") is True
        assert matches_pattern("ACME_12", "ACME_?") is False
        assert matches_pattern("ACME_", "ACME_?") is False

    def test_full_match_required(self):
        assert matches_pattern("XACME", "ACME") is False
        assert matches_pattern("ACMEX", "ACME") is False

    def test_trailing_newline_does_not_match(self):
        assert matches_pattern("ACME\n", "ACME") is False

    def test_dot_is_literal(self):
        assert matches_pattern("acmeXprod", "acme.prod") is False
        assert matches_pattern("acme.prod", "acme.prod") is True

    def test_case_sensitive(self):
        assert matches_pattern("acme_dev_admin", "*_DEV_*") is False

    def test_none_candidate_never_matches(self):
        assert matches_pattern(None, "*") is False


class TestCompilePattern:
    """Tests for compile_pattern function."""

    def test_valid_pattern(self):
        matcher = compile_pattern("*_DEV_*")
        assert matcher.valid is True
        assert matcher.matches("ACME_DEV_ADMIN") is True

    def test_non_string_pattern_never_matches(self):
        matcher = compile_pattern(42)
        assert matcher.valid is False
        assert matcher.matches("42") is False

    def test_compiled_patterns_are_cached(self):
        assert compile_pattern("*_QA_*") is compile_pattern("*_QA_*")


class TestFirstMatch:
    """Tests for first_match function."""

    def test_first_matching_rule_wins(self):
        rules = [
            ContextMapping("*_DEV_*", "dev-cluster"),
            ContextMapping("ACME_*", "acme-cluster"),
        ]
        assert first_match("ACME_DEV_ADMIN", rules).context == "dev-cluster"

    def test_order_is_respected(self):
        rules = [
            ContextMapping("ACME_*", "acme-cluster"),
            ContextMapping("*_DEV_*", "dev-cluster"),
        ]
        assert first_match("ACME_DEV_ADMIN", rules).context == "acme-cluster"

    def test_no_match_returns_none(self):
        rules = [ContextMapping("*_PROD_*", "prod")]
        assert first_match("ACME_DEV_ADMIN", rules) is None

    def test_empty_rules(self):
        assert first_match("ACME_DEV_ADMIN", []) is None
