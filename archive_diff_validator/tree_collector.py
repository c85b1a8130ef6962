"""
Collection of the normalized file listing of one side of the comparison.
"""

from __future__ import annotations

import os
import pathlib as pl
from typing import Iterable, Iterator, Optional, Union

from archive_diff_validator.diff_data import FileEntry, SideTree
from archive_diff_validator.observer import DiffObserver

PathLike = Union[str, os.PathLike]


def normalize_relpath(root: PathLike, path: PathLike) -> str:
    """
    Computes the comparison key of a path below an archive root. The root prefix and the leading
    separator are removed, then the first remaining segment (the top-level directory of the
    archive, e.g. `jboss-6.0.0.Final`) is removed as well. Paths without a separator after the first
    segment are returned unchanged. The key always uses `/` as separator.

    :param root: Archive root directory.
    :param path: Path of an entry below the root.
    :return: Normalized relative path.
    """
    relpath = os.fspath(path)[len(os.fspath(root)):]
    relpath = relpath.replace(os.sep, '/').lstrip('/')
    _, sep, rest = relpath.partition('/')
    return rest if sep else relpath


def walk_root(root: pl.Path, observer: Optional[DiffObserver] = None) -> Iterator[FileEntry]:
    """
    Enumerates all files and directories below an archive root. The top-level directories of the
    archive are skipped since their names are normalized away. Symbolic links are sized by their
    target. A link whose target can't be read is sized as the link itself and reported to the
    observer.

    :param root: Archive root directory.
    :param observer: Receives the broken link warnings.
    :return: Entries in no particular order.
    """
    for current, dirs, files in os.walk(root):
        top_level = pl.Path(current) == root
        for dir_name in dirs:
            if top_level:
                continue
            dir_path = os.path.join(current, dir_name)
            yield FileEntry.directory(normalize_relpath(root, dir_path), os.path.abspath(dir_path))

        for file_name in files:
            file_path = os.path.join(current, file_name)
            relpath = normalize_relpath(root, file_path)
            try:
                size = os.path.getsize(file_path)
            except OSError:
                if not os.path.islink(file_path):
                    raise
                size = os.lstat(file_path).st_size
                if observer is not None:
                    observer.warn(f'Broken symbolic link {relpath} -> {os.readlink(file_path)}',
                                  relpath=relpath, source=str(root))
            yield FileEntry.file(relpath, os.path.abspath(file_path), size)


class TreeCollector:
    """
    Builds the side tree of one side from any number of archive roots.
    """

    def __init__(self, observer: Optional[DiffObserver] = None):
        """
        :param observer: Receives the duplicate path and broken link warnings.
        """
        self.observer = observer if observer is not None else DiffObserver()

    def collect(self, roots: Iterable[PathLike]) -> SideTree:
        """
        Merges the listings of all roots into one side tree. If two roots contain the same relative
        path, the entry of the root observed last wins and a warning is emitted.

        :param roots: Archive roots in order.
        :raises FileNotFoundError: If one of the roots does not exist.
        :return: Mapping from relative path to entry.
        """
        tree: SideTree = {}
        for root in roots:
            # Canonical root with links and relative parts resolved.
            root = pl.Path(root).absolute().resolve(strict=True)
            for entry in walk_root(root, self.observer):
                if entry.relpath in tree:
                    self.observer.warn(f'Duplicate relative path {entry.relpath}, '
                                       f'replacing {tree[entry.relpath].abspath}',
                                       relpath=entry.relpath, source=str(root))
                tree[entry.relpath] = entry
        return tree
