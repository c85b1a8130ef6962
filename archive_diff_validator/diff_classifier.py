"""
Classification of two side trees and evaluation of the expectations against the result.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from archive_diff_validator.diff_data import DiffCategory, DiffResult, ExpectationFailure, \
    ExpectationMode, FileEntry, SideTree
from archive_diff_validator.filters import PatternFilter
from archive_diff_validator.matching import Matcher, RegexMatcher, clean_patterns

ExcludePredicate = Callable[[FileEntry, Sequence[str]], bool]
Expectations = Mapping[DiffCategory, Sequence[str]]


def is_unchanged(left: FileEntry, right: FileEntry) -> bool:
    """
    Decides whether two entries with the same relative path are considered equal. Two directories
    are always equal, two files are equal if they have the same size. A directory is never equal to
    a file.

    :param left: Entry of the left tree.
    :param right: Entry of the right tree.
    :return: True if the path is unchanged.
    """
    if left.is_dir and right.is_dir:
        return True
    if not left.is_dir and not right.is_dir:
        return left.size == right.size
    return False


def apply_filters(tree: SideTree, filters: Sequence[str],
                  should_exclude: ExcludePredicate) -> Tuple[SideTree, List[FileEntry]]:
    """
    Splits a side tree into the kept and the excluded entries.

    :param tree: Input side tree, it is not modified.
    :param filters: Filter configuration passed on to the predicate.
    :param should_exclude: Filter predicate.
    :return: Remaining tree and the excluded entries sorted by relative path.
    """
    kept = {}
    excluded = []
    for relpath in sorted(tree):
        entry = tree[relpath]
        if should_exclude(entry, filters):
            excluded.append(entry)
        else:
            kept[relpath] = entry
    return kept, excluded


def partition(left: Mapping[str, FileEntry], right: Mapping[str, FileEntry],
              filtered: Sequence[FileEntry] = (),
              source_left: Optional[Mapping[str, FileEntry]] = None,
              source_right: Optional[Mapping[str, FileEntry]] = None) -> DiffResult:
    """
    Classifies every relative path of the union of both trees into exactly one of added, removed,
    changed and unchanged. The result does not depend on the order of the trees' entries.

    :param left: Baseline side tree.
    :param right: Candidate side tree.
    :param filtered: Entries that were excluded beforehand, stored in the result as is.
    :param source_left: Left tree before filtering.
    :param source_right: Right tree before filtering.
    :return: Diff result.
    """
    added: Dict[str, FileEntry] = {}
    removed: Dict[str, FileEntry] = {}
    changed: Dict[str, Tuple[FileEntry, FileEntry]] = {}
    unchanged: Dict[str, FileEntry] = {}

    for relpath in sorted(left.keys() | right.keys()):
        if relpath not in right:
            removed[relpath] = left[relpath]
        elif relpath not in left:
            added[relpath] = right[relpath]
        elif is_unchanged(left[relpath], right[relpath]):
            unchanged[relpath] = right[relpath]
        else:
            changed[relpath] = (left[relpath], right[relpath])

    return DiffResult(
        added=MappingProxyType(added),
        removed=MappingProxyType(removed),
        changed=MappingProxyType(changed),
        unchanged=MappingProxyType(unchanged),
        filtered=tuple(filtered),
        left=MappingProxyType(dict(left)),
        right=MappingProxyType(dict(right)),
        source_left=None if source_left is None else MappingProxyType(dict(source_left)),
        source_right=None if source_right is None else MappingProxyType(dict(source_right)),
    )


def classify(left: SideTree, right: SideTree, filters: Sequence[str] = (),
             should_exclude: Optional[ExcludePredicate] = None) -> DiffResult:
    """
    Filters both trees and partitions the remaining paths.

    :param left: Baseline side tree.
    :param right: Candidate side tree.
    :param filters: Filter configuration.
    :param should_exclude: Filter predicate, defaults to a regex `PatternFilter`.
    :return: Diff result. Filtered entries are listed left side first.
    """
    if should_exclude is None:
        should_exclude = PatternFilter()

    kept_left, filtered_left = apply_filters(left, filters, should_exclude)
    kept_right, filtered_right = apply_filters(right, filters, should_exclude)
    return partition(kept_left, kept_right, filtered_left + filtered_right, left, right)


def match_targets(entry: FileEntry) -> Tuple[str, str]:
    """
    An entry is matched by a pattern if the pattern matches its absolute path or its relative path.
    """
    return entry.abspath, entry.relpath


class ExpectationChecker:
    """
    Checks a diff result against the expected patterns of each category using exactly one mode.
    """

    def __init__(self, mode: ExpectationMode = ExpectationMode.REQUIRED,
                 matcher: Optional[Matcher] = None):
        """
        :param mode: Semantics of the check.
        :param matcher: Turns patterns into predicates, defaults to full-match regular expressions.
        """
        self.mode = mode
        self.matcher = matcher if matcher is not None else RegexMatcher()

    def check(self, result: DiffResult,
              expectations: Expectations) -> Tuple[bool, List[ExpectationFailure]]:
        """
        Evaluates all categories. Categories without patterns always pass. Every category is
        evaluated even if an earlier one failed, so the failure list is complete.

        In exhaustive mode every pattern is evaluated against every entry of both trees before
        filtering, which is O(entries x patterns).

        :param result: Classification to check.
        :param expectations: Patterns per category. Patterns are trimmed, empty ones are ignored.
        :raises ValidationInputError: If a pattern can't be compiled by the matcher.
        :return: Overall validity and the failures.
        """
        fails = []
        for category in DiffCategory:
            patterns = clean_patterns(expectations.get(category, ()))
            if not patterns:
                continue
            if self.mode == ExpectationMode.REQUIRED:
                fails += self._check_required(result, category, patterns)
            else:
                fails += self._check_exhaustive(result, category, patterns)
        return not fails, fails

    def _check_required(self, result: DiffResult, category: DiffCategory,
                        patterns: List[str]) -> List[ExpectationFailure]:
        targets = [target for entry in result.entries(category) for target in match_targets(entry)]

        fails = []
        for pattern in patterns:
            predicate = self.matcher.compile(pattern)
            if not any(predicate(target) for target in targets):
                fails.append(ExpectationFailure(category, pattern))
        return fails

    def _check_exhaustive(self, result: DiffResult, category: DiffCategory,
                          patterns: List[str]) -> List[ExpectationFailure]:
        members = {entry.abspath for entry in result.members(category)}
        # filtered entries are part of the universe but never members of a category
        predicates = [(pattern, self.matcher.compile(pattern)) for pattern in patterns]

        fails = []
        for tree in result.sources():
            for relpath in sorted(tree):
                entry = tree[relpath]
                if entry.abspath in members:
                    continue
                for pattern, predicate in predicates:
                    if predicate(entry.abspath):
                        fails.append(ExpectationFailure(category, pattern, entry, entry.abspath))
                        break
        return fails
