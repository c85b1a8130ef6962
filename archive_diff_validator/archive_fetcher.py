"""
Default retrieval collaborator. Downloads archive references if necessary and extracts them into
temporary archive roots.
"""
from __future__ import annotations

import logging
import os
import pathlib as pl
import shutil
import tarfile
import tempfile
import urllib.error
import urllib.parse
import urllib.request
import zipfile
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from archive_diff_validator.errors import ArchiveFormatError, RetrievalError

logger = logging.getLogger(__name__)


def ensure_within(target: pl.Path, member_name: str) -> pl.Path:
    """
    Resolves the destination of an archive member and checks that it stays inside the target.

    :param target: Extraction directory.
    :param member_name: Name of the member as stored in the archive.
    :raises ArchiveFormatError: If the member would be written outside of the target.
    :return: Destination path of the member.
    """
    destination = (target / member_name).resolve()
    if destination != target and target not in destination.parents:
        raise ArchiveFormatError(member_name, 'Archive member escapes the extraction directory.')
    return destination


class ArchiveFormatHandler(ABC):
    """
    Base class for all archive handlers.
    """

    @abstractmethod
    def check_file(self, path: pl.Path) -> bool:
        """
        Checks if the given path can be processed by this handler.

        :param path: Input path
        :return: True, if the path is a valid archive for this handler.
        """
        raise NotImplementedError()

    @abstractmethod
    def extract(self, path: pl.Path, target: pl.Path) -> None:
        """
        Extracts the complete archive into the target directory.

        :param path: Input path
        :param target: Existing, empty directory.
        :raises ArchiveFormatError: If the input is not supported by this handler.
        """
        raise NotImplementedError()


class ZipArchiveHandler(ArchiveFormatHandler):
    """
    Handler for zip-based archives.
    """

    def check_file(self, path: pl.Path) -> bool:
        return path.is_file() and zipfile.is_zipfile(path)

    def extract(self, path: pl.Path, target: pl.Path) -> None:
        if not self.check_file(path):
            raise ArchiveFormatError(str(path), 'Not a zip file.')

        with zipfile.ZipFile(path, "r") as archive:
            for info in archive.infolist():
                ensure_within(target, info.filename)
            archive.extractall(target)


class TarArchiveHandler(ArchiveFormatHandler):
    """
    Handler for tar-based archives, including various compressed variants thereof.
    """

    def check_file(self, path: pl.Path) -> bool:
        return path.is_file() and tarfile.is_tarfile(path)

    def extract(self, path: pl.Path, target: pl.Path) -> None:
        if not self.check_file(path):
            raise ArchiveFormatError(str(path), 'Not a tar file.')

        with tarfile.open(path, mode='r') as archive:
            members = archive.getmembers()
            for member in members:
                ensure_within(target, member.name)
                if member.issym():
                    ensure_within(target, os.path.join(os.path.dirname(member.name),
                                                       member.linkname))
                elif member.islnk():
                    ensure_within(target, member.linkname)
            if hasattr(tarfile, 'data_filter'):
                archive.extractall(target, members=members, filter='data')
            else:
                archive.extractall(target, members=members)


# Errors raised by the archive libraries for corrupt or unsupported archives. RuntimeError includes
# the NotImplementedError of unsupported zip compression methods.
EXTRACTION_ERRORS = (OSError, RuntimeError, EOFError, zipfile.BadZipFile, tarfile.TarError)

try:
    import py7zr
    from py7zr.exceptions import Bad7zFile, UnsupportedCompressionMethodError

    EXTRACTION_ERRORS += (Bad7zFile, UnsupportedCompressionMethodError)


    class SevenZipArchiveHandler(ArchiveFormatHandler):
        """
        Handler for 7zip-based archives.
        """

        def check_file(self, path: pl.Path) -> bool:
            return path.is_file() and py7zr.is_7zfile(path)

        def extract(self, path: pl.Path, target: pl.Path) -> None:
            if not self.check_file(path):
                raise ArchiveFormatError(str(path), 'Not a 7z file.')

            with py7zr.SevenZipFile(path, "r") as archive:
                for name in archive.getnames():
                    ensure_within(target, name)
                archive.extractall(path=target)

except ImportError:
    py7zr = None


class DispatchingArchiveHandler(ArchiveFormatHandler):
    """
    Handler that dispatches to the first supported handler in a collection of other handlers.
    """

    def __init__(self):
        self._format_handlers = [
            ZipArchiveHandler(),
            TarArchiveHandler(),
        ]
        if py7zr is not None:
            self._format_handlers.append(
                SevenZipArchiveHandler()
            )

    def _get_handler_for_file(self, path: pl.Path) -> ArchiveFormatHandler:
        """
        Checks the added handlers one-by-one in order for compatibility with the given archive. The
        first matching handler is returned.

        :param path: Input archive path.
        :return: First matching handler.
        :throws ArchiveFormatError: If no suitable handler is found.
        """
        for handler in self._format_handlers:
            if handler.check_file(path):
                return handler

        raise ArchiveFormatError(
            str(path), 'Could not find handler that supports the given archive type.')

    def check_file(self, path: pl.Path) -> bool:
        try:
            handler = self._get_handler_for_file(path)
            return handler is not None
        except ArchiveFormatError:
            return False

    def extract(self, path: pl.Path, target: pl.Path) -> None:
        handler = self._get_handler_for_file(path)
        handler.extract(path, target)


class ArchiveFetcher:
    """
    Turns archive references into local archive roots. A reference is a local directory (used in
    place), a local archive file or a `http(s)://` or `file://` URL of an archive. All temporary
    files are owned by the fetcher and removed by `close()`.
    """

    url_schemes = ('http', 'https', 'file')

    def __init__(self, work_dir: Optional[pl.Path] = None, max_workers: Optional[int] = None,
                 timeout: float = 300.0):
        """
        :param work_dir: Directory for downloads and extracted archives. A temporary directory is
            created if omitted.
        :param max_workers: Number of parallel retrievals in `fetch_all()`.
        :param timeout: Socket timeout in seconds for downloads.
        """
        self._own_work_dir = work_dir is None
        self.work_dir = pl.Path(tempfile.mkdtemp(prefix='archive-diff-')) if work_dir is None \
            else pl.Path(work_dir)
        self.max_workers = max_workers
        self.timeout = timeout
        self._format_handler = DispatchingArchiveHandler()

    def __enter__(self) -> ArchiveFetcher:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """
        Removes the working directory if it was created by this fetcher.
        """
        if self._own_work_dir:
            shutil.rmtree(self.work_dir, ignore_errors=True)

    def fetch(self, reference: str) -> pl.Path:
        """
        Retrieves and extracts a single archive reference.

        :param reference: Archive reference.
        :raises RetrievalError: If the archive can't be downloaded or extracted.
        :return: Directory containing the fully extracted archive.
        """
        reference = reference.strip()
        if not reference:
            raise RetrievalError(reference, 'Empty archive reference.')

        logger.info('Retrieving %s', reference)
        is_url = urllib.parse.urlparse(reference).scheme in self.url_schemes
        if not is_url:
            archive_path = pl.Path(reference).absolute()
            if archive_path.is_dir():
                return archive_path.resolve()
            if not archive_path.exists():
                raise RetrievalError(reference, 'File not found.')

        target = pl.Path(tempfile.mkdtemp(prefix='root-', dir=self.work_dir))
        if is_url:
            archive_path = self._download(reference, target)

        extract_dir = target / 'extracted'
        extract_dir.mkdir()
        try:
            self._format_handler.extract(archive_path, extract_dir.resolve())
        except EXTRACTION_ERRORS as error:
            raise RetrievalError(reference, f'Extraction failed: {error}') from error

        logger.info('Extracted %s to %s', reference, extract_dir)
        return extract_dir.resolve()

    def fetch_all(self, references: Sequence[str]) -> List[pl.Path]:
        """
        Retrieves all references in parallel. The first failure aborts the whole retrieval, pending
        references are not retrieved anymore.

        :param references: Archive references.
        :raises RetrievalError: If any of the references fails.
        :return: Archive roots in the order of the references.
        """
        if not references:
            return []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self.fetch, reference) for reference in references]
            try:
                return [future.result() for future in futures]
            except Exception:
                for future in futures:
                    future.cancel()
                raise

    def _download(self, url: str, target: pl.Path) -> pl.Path:
        name = os.path.basename(urllib.parse.urlparse(url).path) or 'archive'
        destination = target / name
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as response, \
                    open(destination, 'wb') as writer:
                shutil.copyfileobj(response, writer)
        except (urllib.error.URLError, OSError) as error:
            raise RetrievalError(url, f'Download failed: {error}') from error
        return destination
