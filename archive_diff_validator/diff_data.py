"""
Data classes representing an archive diff and its validation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple


class DiffCategory(Enum):
    """
    Enumeration of the outcome sets a relative path can be classified into. The values are the
    parameter keys under which the expectations for a category are supplied.
    """

    ADDED = 'expectAdds'
    REMOVED = 'expectRemoves'
    CHANGED = 'expectChanges'
    UNCHANGED = 'expectUnchanges'

    @property
    def param_key(self) -> str:
        """
        :return: Key of the expectation parameter for this category.
        """
        return self.value


class ExpectationMode(Enum):
    """
    Semantics used to check expectation patterns against a diff.

    REQUIRED: every pattern must match at least one entry of its category ("did these expected
    changes happen").
    EXHAUSTIVE: every entry matching a pattern must be in the pattern's category ("is there
    anything matching the patterns outside of what was predicted").
    """

    REQUIRED = 'required'
    EXHAUSTIVE = 'exhaustive'

    @classmethod
    def parse(cls, value: Optional[str]) -> ExpectationMode:
        """
        Parses a mode name or the legacy numeric diff version.

        :param value: 'required', 'exhaustive', '1', '2' or None for the default.
        :raises ValueError: If the value does not name a mode.
        :return: The selected mode.
        """
        if value is None or not value.strip():
            return cls.REQUIRED

        value = value.strip().lower()
        aliases = {'1': cls.REQUIRED, '2': cls.EXHAUSTIVE}
        if value in aliases:
            return aliases[value]
        return cls(value)


@dataclass(frozen=True)
class FileEntry:
    """
    A file or directory of an extracted archive. This is a plain value, it does not hold on to any
    filesystem handle.
    """
    relpath: str
    abspath: str
    is_dir: bool
    size: Optional[int] = None

    @classmethod
    def directory(cls, relpath: str, abspath: str) -> FileEntry:
        return cls(relpath, abspath, True, None)

    @classmethod
    def file(cls, relpath: str, abspath: str, size: int) -> FileEntry:
        return cls(relpath, abspath, False, size)


SideTree = Dict[str, FileEntry]


@dataclass(frozen=True)
class DiffResult:
    """
    Four-way partition of the relative paths of two side trees. All mappings are keyed by relative
    path and read-only. `left` and `right` are the trees after filtering, which the partition was
    computed from. `source_left` and `source_right` are the trees before filtering, they are None if
    nothing was filtered beforehand.
    """
    added: Mapping[str, FileEntry]
    removed: Mapping[str, FileEntry]
    changed: Mapping[str, Tuple[FileEntry, FileEntry]]
    unchanged: Mapping[str, FileEntry]
    filtered: Tuple[FileEntry, ...] = ()
    left: Mapping[str, FileEntry] = field(default_factory=lambda: MappingProxyType({}))
    right: Mapping[str, FileEntry] = field(default_factory=lambda: MappingProxyType({}))
    source_left: Optional[Mapping[str, FileEntry]] = None
    source_right: Optional[Mapping[str, FileEntry]] = None

    def sources(self) -> Tuple[Mapping[str, FileEntry], Mapping[str, FileEntry]]:
        """
        :return: Left and right tree as collected, i.e. including the filtered entries.
        """
        return (self.left if self.source_left is None else self.source_left,
                self.right if self.source_right is None else self.source_right)

    def keys(self, category: DiffCategory) -> List[str]:
        """
        :param category: Outcome set to query.
        :return: Sorted relative paths classified into the given category.
        """
        return sorted(self._mapping(category).keys())

    def entries(self, category: DiffCategory) -> List[FileEntry]:
        """
        Lists the entries classified into a category. For changed paths both the left and the right
        entry are returned, for unchanged paths the right entry.

        :param category: Outcome set to query.
        :return: Entries sorted by relative path.
        """
        if category == DiffCategory.CHANGED:
            return [entry for key in self.keys(category) for entry in self.changed[key]]
        mapping = self._mapping(category)
        return [mapping[key] for key in self.keys(category)]

    def members(self, category: DiffCategory) -> List[FileEntry]:
        """
        Entries that belong to a category from either side of the comparison. Unlike `entries()`
        this includes the left counterparts of unchanged paths.

        :param category: Outcome set to query.
        :return: Member entries in no particular order.
        """
        if category == DiffCategory.UNCHANGED:
            return [tree[key] for key in self.unchanged for tree in (self.left, self.right)]
        return self.entries(category)

    def stats(self) -> Dict[DiffCategory, int]:
        """
        Computes the number of relative paths per category.
        :return: Dict mapping `DiffCategory` to the corresponding path counts.
        """
        return {category: len(self._mapping(category)) for category in DiffCategory}

    def category_of(self, relpath: str) -> Optional[DiffCategory]:
        """
        :param relpath: Relative path to look up.
        :return: Category of the path or None if it was filtered or is unknown.
        """
        for category in DiffCategory:
            if relpath in self._mapping(category):
                return category
        return None

    def _mapping(self, category: DiffCategory) -> Mapping:
        return {
            DiffCategory.ADDED: self.added,
            DiffCategory.REMOVED: self.removed,
            DiffCategory.CHANGED: self.changed,
            DiffCategory.UNCHANGED: self.unchanged,
        }[category]


@dataclass(frozen=True)
class ExpectationFailure:
    """
    A single violated expectation. `entry` is the offending entry, or None if the pattern did not
    match anything. `target` is the string the pattern was expected to match.
    """
    category: DiffCategory
    pattern: str
    entry: Optional[FileEntry] = None
    target: Optional[str] = None

    def describe(self) -> str:
        """
        :return: Single line human-readable description of the failure.
        """
        if self.entry is None:
            return f'{self.category.param_key}: pattern "{self.pattern}" matched nothing'
        return (f'{self.category.param_key}: {self.target or self.entry.abspath} matches'
                f' "{self.pattern}" but is not {self.category.name.lower()}')


@dataclass(frozen=True)
class CollectorWarning:
    """
    Non-fatal issue observed while collecting or classifying the trees.
    """
    message: str
    relpath: Optional[str] = None
    source: Optional[str] = None


@dataclass(frozen=True)
class DiffValidation:
    """
    Outcome of a validation run as it is handed back to the caller.
    """
    valid: bool
    result: DiffResult
    mode: ExpectationMode
    fails: List[ExpectationFailure] = field(default_factory=list)
    warnings: List[CollectorWarning] = field(default_factory=list)
    duration: float = 0.0
