import importlib.util
import io
import pathlib as pl
import tarfile
import tempfile
import time
import unittest
import zipfile
from unittest import TestCase, mock

from archive_diff_validator.archive_fetcher import ArchiveFetcher, DispatchingArchiveHandler, \
    TarArchiveHandler, ZipArchiveHandler
from archive_diff_validator.errors import ArchiveFormatError, RetrievalError

ARCHIVE_FILES = {
    'simple_archive/file_in_root.txt': b'root file',
    'simple_archive/dir_in_archive/file_in_dir.txt': b'file in dir',
}


def make_zip(path: pl.Path, files=None):
    with zipfile.ZipFile(path, 'w') as archive:
        archive.writestr('simple_archive/', b'')
        archive.writestr('simple_archive/dir_in_archive/', b'')
        for name, content in (files or ARCHIVE_FILES).items():
            archive.writestr(name, content)
    return path


def make_tar(path: pl.Path, mode='w'):
    with tarfile.open(path, mode) as archive:
        for name, content in ARCHIVE_FILES.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            archive.addfile(info, io.BytesIO(content))
    return path


class RecordingFetcher(ArchiveFetcher):
    """
    Fetcher that records the references it started to retrieve. The reference 'broken' fails, all
    others take a while.
    """

    def __init__(self):
        super().__init__(max_workers=1)
        self.started = []

    def fetch(self, reference: str) -> pl.Path:
        self.started.append(reference)
        if reference == 'broken':
            raise RetrievalError(reference, 'File not found.')
        time.sleep(0.2)
        return pl.Path(reference)


class TestArchiveFetcher(TestCase):
    """
    Tests retrieval and extraction of archive references.
    """

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = pl.Path(self._tmp.name).resolve()
        self.fetcher = ArchiveFetcher(work_dir=self.tmp / 'work')
        (self.tmp / 'work').mkdir()

    def tearDown(self):
        self.fetcher.close()
        self._tmp.cleanup()

    def check_extracted(self, root: pl.Path):
        """
        Checks that the test archive was fully extracted into root.
        :param root: Directory returned by the fetcher.
        """
        self.assertTrue(root.is_dir())
        for name, content in ARCHIVE_FILES.items():
            self.assertEqual(content, (root / name).read_bytes())

    def test_fetch_zip(self):
        self.check_extracted(self.fetcher.fetch(str(make_zip(self.tmp / 'simple_archive.zip'))))

    def test_fetch_tar(self):
        self.check_extracted(self.fetcher.fetch(str(make_tar(self.tmp / 'simple_archive.tar'))))

    def test_fetch_tgz(self):
        archive = make_tar(self.tmp / 'simple_archive.tgz', 'w:gz')
        self.check_extracted(self.fetcher.fetch(str(archive)))

    def test_fetch_txz(self):
        archive = make_tar(self.tmp / 'simple_archive.tar.xz', 'w:xz')
        self.check_extracted(self.fetcher.fetch(str(archive)))

    def test_fetch_file_url(self):
        archive = make_zip(self.tmp / 'simple_archive.zip')
        self.check_extracted(self.fetcher.fetch(archive.as_uri()))

    def test_fetch_directory_in_place(self):
        directory = self.tmp / 'extracted'
        directory.mkdir()

        self.assertEqual(directory, self.fetcher.fetch(str(directory)))

    def test_fetch_missing_file(self):
        with self.assertRaises(RetrievalError):
            self.fetcher.fetch(str(self.tmp / 'missing.zip'))

    def test_fetch_missing_url(self):
        with self.assertRaises(RetrievalError):
            self.fetcher.fetch((self.tmp / 'missing.zip').as_uri())

    def test_fetch_unsupported_format(self):
        text_file = self.tmp / 'notes.txt'
        text_file.write_text('not an archive')

        with self.assertRaises(ArchiveFormatError):
            self.fetcher.fetch(str(text_file))

    def test_fetch_empty_reference(self):
        with self.assertRaises(RetrievalError):
            self.fetcher.fetch('  ')

    def test_zip_member_outside_target(self):
        archive = make_zip(self.tmp / 'evil.zip', {'../evil.txt': b'evil'})

        with self.assertRaises(ArchiveFormatError):
            self.fetcher.fetch(str(archive))
        self.assertFalse((self.tmp / 'work' / 'evil.txt').exists())

    def test_fetch_all_keeps_order(self):
        first = self.tmp / 'first'
        second = self.tmp / 'second'
        first.mkdir()
        second.mkdir()
        archive = make_zip(self.tmp / 'simple_archive.zip')

        roots = self.fetcher.fetch_all([str(second), str(archive), str(first)])

        self.assertEqual(second, roots[0])
        self.check_extracted(roots[1])
        self.assertEqual(first, roots[2])

    def test_fetch_all_fails_on_any_error(self):
        first = self.tmp / 'first'
        first.mkdir()

        with self.assertRaises(RetrievalError):
            self.fetcher.fetch_all([str(first), str(self.tmp / 'missing.zip')])

    def test_fetch_all_cancels_pending_references(self):
        """
        References that were not started yet are skipped after the first failure.
        """
        with RecordingFetcher() as fetcher:
            with self.assertRaises(RetrievalError):
                fetcher.fetch_all(['broken', 'first', 'second', 'third'])

        self.assertEqual('broken', fetcher.started[0])
        self.assertNotIn('third', fetcher.started)
        self.assertLessEqual(len(fetcher.started), 2)

    def test_extraction_runtime_error(self):
        """
        Library errors like the one for encrypted zip members are reported as retrieval errors.
        """
        archive = make_zip(self.tmp / 'simple_archive.zip')
        error = RuntimeError('File is encrypted, password required for extraction')

        with mock.patch.object(DispatchingArchiveHandler, 'extract', side_effect=error):
            with self.assertRaises(RetrievalError) as context:
                self.fetcher.fetch(str(archive))
        self.assertIs(error, context.exception.__cause__)

    def test_extraction_unsupported_compression(self):
        archive = make_zip(self.tmp / 'simple_archive.zip')
        error = NotImplementedError('That compression method is not supported')

        with mock.patch.object(DispatchingArchiveHandler, 'extract', side_effect=error):
            with self.assertRaises(RetrievalError):
                self.fetcher.fetch(str(archive))

    def test_close_removes_own_work_dir(self):
        with ArchiveFetcher() as fetcher:
            root = fetcher.fetch(str(make_zip(self.tmp / 'simple_archive.zip')))
            self.assertTrue(root.exists())
        self.assertFalse(fetcher.work_dir.exists())

    def test_close_keeps_given_work_dir(self):
        self.fetcher.close()
        self.assertTrue((self.tmp / 'work').exists())


class TestArchiveHandler(TestCase):
    """
    Tests the format detection of the handlers.
    """

    def test_check_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            tmp = pl.Path(tmp)
            zip_path = make_zip(tmp / 'a.zip')
            tar_path = make_tar(tmp / 'a.tar')

            self.assertTrue(ZipArchiveHandler().check_file(zip_path))
            self.assertFalse(ZipArchiveHandler().check_file(tar_path))
            self.assertTrue(TarArchiveHandler().check_file(tar_path))
            self.assertFalse(TarArchiveHandler().check_file(tmp))

    @unittest.skipIf(importlib.util.find_spec('py7zr') is None,
                     'py7zr is not installed, 7z support is disabled.')
    def test_7z_handler(self):
        import py7zr
        from archive_diff_validator.archive_fetcher import SevenZipArchiveHandler

        with tempfile.TemporaryDirectory() as tmp:
            tmp = pl.Path(tmp).resolve()
            for name, content in ARCHIVE_FILES.items():
                path = tmp / 'src' / name
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(content)
            archive_path = tmp / 'simple_archive.7z'
            with py7zr.SevenZipFile(archive_path, 'w') as archive:
                archive.writeall(tmp / 'src' / 'simple_archive', 'simple_archive')

            target = tmp / 'out'
            target.mkdir()
            SevenZipArchiveHandler().extract(archive_path, target)

            for name, content in ARCHIVE_FILES.items():
                self.assertEqual(content, (target / name).read_bytes())


if __name__ == '__main__':
    unittest.main()
