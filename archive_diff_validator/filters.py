"""
Default filter collaborator.
"""

from __future__ import annotations

from typing import Optional, Sequence

from archive_diff_validator.diff_data import FileEntry
from archive_diff_validator.matching import Matcher, RegexMatcher, clean_patterns


class PatternFilter:
    """
    Excludes an entry if any filter pattern matches its absolute path or its relative path.
    Compiled patterns are cached per filter instance.
    """

    def __init__(self, matcher: Optional[Matcher] = None):
        self.matcher = matcher if matcher is not None else RegexMatcher()
        self._compiled = {}

    def __call__(self, entry: FileEntry, filters: Sequence[str]) -> bool:
        return self.should_exclude(entry, filters)

    def should_exclude(self, entry: FileEntry, filters: Sequence[str]) -> bool:
        """
        :param entry: Entry to check.
        :param filters: Filter patterns, empty ones are ignored.
        :return: True if the entry must not take part in the comparison.
        """
        for pattern in clean_patterns(filters):
            if pattern not in self._compiled:
                self._compiled[pattern] = self.matcher.compile(pattern)
            predicate = self._compiled[pattern]
            if predicate(entry.abspath) or predicate(entry.relpath):
                return True
        return False
