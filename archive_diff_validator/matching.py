"""
Pattern matchers used by filters and expectations.
"""

from __future__ import annotations

import fnmatch
import re
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List

from archive_diff_validator.errors import ValidationInputError

Predicate = Callable[[str], bool]


def clean_patterns(patterns: Iterable[str]) -> List[str]:
    """
    Trims all patterns and drops the ones that are empty afterwards.

    :param patterns: Raw patterns.
    :return: Trimmed, non-empty patterns in input order.
    """
    cleaned = []
    for pattern in patterns:
        pattern = pattern.strip()
        if pattern:
            cleaned.append(pattern)
    return cleaned


class Matcher(ABC):
    """
    Base class of all matchers. A matcher turns a pattern into a predicate over a target string,
    e.g. the absolute path or the relative path of an entry.
    """

    name = ''

    @abstractmethod
    def compile(self, pattern: str) -> Predicate:
        """
        :param pattern: Trimmed, non-empty pattern.
        :raises ValidationInputError: If the pattern is not valid for this matcher.
        :return: Predicate that is True for the targets matched by the pattern.
        """
        raise NotImplementedError()


class RegexMatcher(Matcher):
    """
    Matches if the regular expression matches the complete target string.
    """

    name = 'regex'

    def compile(self, pattern: str) -> Predicate:
        try:
            regex = re.compile(pattern)
        except re.error as error:
            raise ValidationInputError(f'Invalid pattern "{pattern}": {error}') from error
        return lambda target: regex.fullmatch(target) is not None


class GlobMatcher(Matcher):
    """
    Matches shell-style wildcards against the complete target string. `*` also matches `/`.
    """

    name = 'glob'

    def compile(self, pattern: str) -> Predicate:
        return lambda target: fnmatch.fnmatchcase(target, pattern)


class LiteralMatcher(Matcher):
    """
    Matches if the target is equal to the pattern.
    """

    name = 'literal'

    def compile(self, pattern: str) -> Predicate:
        return lambda target: target == pattern


MATCHERS = {matcher.name: matcher for matcher in (RegexMatcher, GlobMatcher, LiteralMatcher)}


def get_matcher(name: str) -> Matcher:
    """
    :param name: One of 'regex', 'glob' or 'literal'.
    :raises ValidationInputError: If there is no matcher with the given name.
    :return: New matcher instance.
    """
    try:
        return MATCHERS[name]()
    except KeyError as error:
        raise ValidationInputError(
            f'Unknown matcher "{name}", expected one of {", ".join(sorted(MATCHERS))}') from error
