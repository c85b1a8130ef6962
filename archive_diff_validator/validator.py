"""
Validation of the diff between two sets of archives against expected changes.
"""

from __future__ import annotations

import logging
import pathlib as pl
import time
from typing import Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from archive_diff_validator.archive_fetcher import ArchiveFetcher
from archive_diff_validator.diff_classifier import ExcludePredicate, ExpectationChecker, \
    classify
from archive_diff_validator.diff_data import DiffCategory, DiffValidation, ExpectationMode
from archive_diff_validator.errors import ValidationInputError
from archive_diff_validator.filters import PatternFilter
from archive_diff_validator.matching import Matcher, RegexMatcher, clean_patterns
from archive_diff_validator.observer import DiffObserver
from archive_diff_validator.tree_collector import TreeCollector

PARAM_EXPECT_ADDS = DiffCategory.ADDED.param_key
PARAM_EXPECT_REMOVES = DiffCategory.REMOVED.param_key
PARAM_EXPECT_CHANGES = DiffCategory.CHANGED.param_key
PARAM_EXPECT_UNCHANGES = DiffCategory.UNCHANGED.param_key
PARAM_DIFF_VERSION = 'diffVersion'

ParamValue = Union[str, Sequence[str]]


class Fetcher(Protocol):
    """
    Retrieval collaborator: returns the local root directory of an extracted archive reference.
    """

    def fetch_all(self, references: Sequence[str]) -> List[pl.Path]:
        ...


def split_list(value: Optional[ParamValue]) -> List[str]:
    """
    Splits a comma separated parameter. Lists are passed through. Items are trimmed, empty items
    are dropped.

    :param value: Parameter value or None.
    :return: List of items.
    """
    if value is None:
        return []
    items = value.split(',') if isinstance(value, str) else list(value)
    return [item.strip() for item in items if item.strip()]


def parse_expectations(params: Mapping[str, ParamValue]) -> Dict[DiffCategory, List[str]]:
    """
    Reads the expected patterns of all categories from the parameters.

    :param params: Parameters with the `expect*` keys.
    :return: Patterns per category, categories without patterns are omitted.
    """
    expectations = {}
    for category in DiffCategory:
        patterns = split_list(params.get(category.param_key))
        if patterns:
            expectations[category] = patterns
    return expectations


def split_resources(resources: Optional[Sequence[str]]) -> Tuple[List[str], List[str]]:
    """
    Splits the two resource descriptors into the archive references of each side.

    :param resources: Left and right descriptor, each a comma separated list of references.
    :raises ValidationInputError: If the descriptors are missing or the sides differ in size.
    :return: References of the left and of the right side.
    """
    if not resources:
        raise ValidationInputError('No resources given.')
    if len(resources) != 2:
        raise ValidationInputError(
            f'Expected exactly two resources (left and right), got {len(resources)}.')

    left, right = split_list(resources[0]), split_list(resources[1])
    if not left or not right:
        raise ValidationInputError('Left and right resources must not be empty.')
    if len(left) != len(right):
        raise ValidationInputError(
            f'Left resources size ({len(left)}) is not equal to right resources size'
            f' ({len(right)}).')
    return left, right


class ArchiveDiffValidator:
    """
    Compares two sides, each assembled from one or more archives, and checks the classification
    against expected patterns.
    """

    def __init__(self, fetcher: Optional[Fetcher] = None, matcher: Optional[Matcher] = None,
                 should_exclude: Optional[ExcludePredicate] = None,
                 logger: Optional[logging.Logger] = None):
        """
        :param fetcher: Retrieval collaborator, defaults to a fresh `ArchiveFetcher` per run.
        :param matcher: Matcher for the expectation patterns, defaults to full-match regex.
        :param should_exclude: Filter collaborator, defaults to a `PatternFilter` with the same
            matcher.
        :param logger: Logger the run observers forward to.
        """
        self.fetcher = fetcher
        self.matcher = matcher if matcher is not None else RegexMatcher()
        self.should_exclude = should_exclude if should_exclude is not None \
            else PatternFilter(self.matcher)
        self.logger = logger if logger is not None else logging.getLogger(__name__)

    def validate(self, resources: Sequence[str], filters: Sequence[str] = (),
                 params: Optional[Mapping[str, ParamValue]] = None) -> DiffValidation:
        """
        Runs a complete validation.

        :param resources: Left and right descriptor, each a comma separated list of references.
        :param filters: Filter patterns, matching entries are excluded from the comparison.
        :param params: Expected patterns under the `expect*` keys and the optional `diffVersion`
            selecting the expectation mode.
        :raises ValidationInputError: If the input is malformed. Raised before any retrieval.
        :raises RetrievalError: If any archive can't be retrieved.
        :return: Result of the validation.
        """
        start_time = time.monotonic()
        params = params or {}

        left_refs, right_refs = split_resources(resources)
        expectations = parse_expectations(params)
        try:
            mode = ExpectationMode.parse(params.get(PARAM_DIFF_VERSION))
        except ValueError as error:
            raise ValidationInputError(
                f'Unknown {PARAM_DIFF_VERSION}: {params.get(PARAM_DIFF_VERSION)}') from error

        # Invalid patterns must fail before anything is downloaded.
        for pattern in clean_patterns(filters):
            self.matcher.compile(pattern)
        for patterns in expectations.values():
            for pattern in patterns:
                self.matcher.compile(pattern)

        if self.fetcher is not None:
            roots = self.fetcher.fetch_all(left_refs + right_refs)
            return self._validate_roots(roots[:len(left_refs)], roots[len(left_refs):], filters,
                                        expectations, mode, start_time)

        with ArchiveFetcher() as fetcher:
            roots = fetcher.fetch_all(left_refs + right_refs)
            return self._validate_roots(roots[:len(left_refs)], roots[len(left_refs):], filters,
                                        expectations, mode, start_time)

    def validate_roots(self, left_roots: Sequence[pl.Path], right_roots: Sequence[pl.Path],
                       filters: Sequence[str] = (),
                       expectations: Optional[Mapping[DiffCategory, Sequence[str]]] = None,
                       mode: ExpectationMode = ExpectationMode.REQUIRED) -> DiffValidation:
        """
        Validates already extracted archive roots, skipping retrieval.

        :param left_roots: Archive roots of the left side.
        :param right_roots: Archive roots of the right side.
        :param filters: Filter patterns.
        :param expectations: Patterns per category.
        :param mode: Expectation mode.
        :return: Result of the validation.
        """
        return self._validate_roots(left_roots, right_roots, filters, expectations or {}, mode,
                                    time.monotonic())

    def _validate_roots(self, left_roots, right_roots, filters, expectations, mode,
                        start_time) -> DiffValidation:
        observer = DiffObserver(self.logger)
        collector = TreeCollector(observer)
        left = collector.collect(left_roots)
        right = collector.collect(right_roots)

        result = classify(left, right, filters, self.should_exclude)
        stats = result.stats()
        observer.info('Classified %d paths: %d added, %d removed, %d changed, %d unchanged,'
                      ' %d filtered', sum(stats.values()), stats[DiffCategory.ADDED],
                      stats[DiffCategory.REMOVED], stats[DiffCategory.CHANGED],
                      stats[DiffCategory.UNCHANGED], len(result.filtered))

        valid, fails = ExpectationChecker(mode, self.matcher).check(result, expectations)
        for failure in fails:
            observer.debug('Expectation failed: %s', failure.describe())

        return DiffValidation(
            valid=valid,
            result=result,
            mode=mode,
            fails=fails,
            warnings=observer.warnings,
            duration=time.monotonic() - start_time,
        )
