#!/usr/bin/env python3
"""
Fancy Login - Pattern Matcher

Wildcard-to-regex conversion for legacy profile-to-context rules.

Usage:
    from fancy_login.pattern_matcher import compile_pattern, first_match
    if compile_pattern("*_DEV_*").matches("ACME_DEV_ADMIN"):
        print("Match found")
"""

import re
from functools import lru_cache
from typing import Iterable, Optional, Pattern


def glob_to_regex(pattern: str) -> str:
    """
    Convert a wildcard pattern to an anchored regex.

    Supports:
    - * matches zero or more characters (underscores included)
    - ? matches exactly one character
    Everything else is literal; there is no escape for * or ?.
    """
    # Escape special regex chars except * and ?
    regex = re.escape(pattern)

    # Unescape the wildcard chars we want to handle
    regex = regex.replace(r'\*', '__STAR__')
    regex = regex.replace(r'\?', '__QUESTION__')

    regex = regex.replace('__STAR__', '.*')
    regex = regex.replace('__QUESTION__', '.')

    return f'^{regex}$'


class Matcher:
    """A compiled wildcard pattern."""

    def __init__(self, pattern: str, regex: Optional[Pattern] = None):
        self.pattern = pattern
        self._regex = regex

    @property
    def valid(self) -> bool:
        return self._regex is not None

    def matches(self, candidate: str) -> bool:
        """Full-string match. Invalid patterns never match."""
        if self._regex is None or candidate is None:
            return False
        return self._regex.fullmatch(candidate) is not None

    def __repr__(self) -> str:
        return f"Matcher({self.pattern!r})"


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Matcher:
    """Compile a wildcard pattern. Never raises; bad input yields a non-matching Matcher."""
    try:
        regex = re.compile(glob_to_regex(pattern), re.DOTALL)
    except (re.error, TypeError):
        return Matcher(str(pattern), None)
    return Matcher(pattern, regex)


def matches_pattern(candidate: str, pattern: str) -> bool:
    """Check if a profile name matches a single wildcard pattern."""
    return compile_pattern(pattern).matches(candidate)


def first_match(candidate: str, mappings: Iterable):
    """
    Return the first mapping whose pattern matches the candidate.

    Args:
        candidate: Profile name to test
        mappings: Ordered objects with a ``pattern`` attribute

    Returns:
        The first matching mapping, or None
    """
    for mapping in mappings:
        if matches_pattern(candidate, mapping.pattern):
            return mapping
    return None
