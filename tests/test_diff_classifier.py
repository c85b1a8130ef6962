"""
Test cases for the classification of side trees.
"""
import unittest
from unittest import TestCase

from archive_diff_validator.diff_classifier import classify, is_unchanged, partition
from archive_diff_validator.diff_data import DiffCategory, FileEntry
from archive_diff_validator.filters import PatternFilter
from archive_diff_validator.matching import GlobMatcher


def file_entry(side, relpath, size):
    return FileEntry.file(relpath, f'/{side}/product/{relpath}', size)


def dir_entry(side, relpath):
    return FileEntry.directory(relpath, f'/{side}/product/{relpath}')


def tree(*entries):
    return {entry.relpath: entry for entry in entries}


def example_trees():
    left = tree(
        file_entry('left', 'a.txt', 10),
        dir_entry('left', 'b'),
        file_entry('left', 'c.txt', 5),
    )
    right = tree(
        file_entry('right', 'a.txt', 10),
        dir_entry('right', 'b'),
        file_entry('right', 'c.txt', 7),
        file_entry('right', 'd.txt', 1),
    )
    return left, right


class TestPartition(TestCase):
    """
    Tests the four-way partition.
    """

    def test_partition_example(self):
        """
        Simple diff with all categories but removed.
        """
        left, right = example_trees()
        result = partition(left, right)

        self.assertEqual([], result.keys(DiffCategory.REMOVED))
        self.assertEqual(['d.txt'], result.keys(DiffCategory.ADDED))
        self.assertEqual(['a.txt', 'b'], result.keys(DiffCategory.UNCHANGED))
        self.assertEqual(['c.txt'], result.keys(DiffCategory.CHANGED))

    def test_partition_stores_entries(self):
        """
        Unchanged paths keep the right entry, changed paths both entries.
        """
        left, right = example_trees()
        result = partition(left, right)

        self.assertIs(right['a.txt'], result.unchanged['a.txt'])
        self.assertEqual((left['c.txt'], right['c.txt']), result.changed['c.txt'])
        self.assertIs(right['d.txt'], result.added['d.txt'])

    def test_partition_is_exhaustive(self):
        """
        Every path ends up in exactly one category.
        """
        left, right = example_trees()
        left['only_left'] = file_entry('left', 'only_left', 3)
        result = partition(left, right)

        all_keys = []
        for category in DiffCategory:
            all_keys += result.keys(category)
        self.assertEqual(len(all_keys), len(set(all_keys)))
        self.assertEqual(set(left) | set(right), set(all_keys))

    def test_partition_symmetry(self):
        """
        Swapping the sides swaps added and removed and keeps the rest.
        """
        left, right = example_trees()
        left['only_left'] = file_entry('left', 'only_left', 3)
        forward = partition(left, right)
        backward = partition(right, left)

        self.assertEqual(forward.keys(DiffCategory.ADDED), backward.keys(DiffCategory.REMOVED))
        self.assertEqual(forward.keys(DiffCategory.REMOVED), backward.keys(DiffCategory.ADDED))
        self.assertEqual(forward.keys(DiffCategory.CHANGED), backward.keys(DiffCategory.CHANGED))
        self.assertEqual(forward.keys(DiffCategory.UNCHANGED),
                         backward.keys(DiffCategory.UNCHANGED))

    def test_partition_dir_to_file(self):
        """
        A directory that became a file is changed, in both directions.
        """
        left = tree(dir_entry('left', 'root'))
        right = tree(file_entry('right', 'root', 0))

        self.assertEqual(['root'], partition(left, right).keys(DiffCategory.CHANGED))
        self.assertEqual(['root'], partition(right, left).keys(DiffCategory.CHANGED))

    def test_partition_empty(self):
        result = partition({}, {})
        self.assertEqual({category: 0 for category in DiffCategory}, result.stats())

    def test_is_unchanged(self):
        """
        Size is the only content signal for files.
        """
        self.assertTrue(is_unchanged(dir_entry('left', 'x'), dir_entry('right', 'x')))
        self.assertTrue(is_unchanged(file_entry('left', 'x', 4), file_entry('right', 'x', 4)))
        self.assertFalse(is_unchanged(file_entry('left', 'x', 4), file_entry('right', 'x', 5)))
        self.assertFalse(is_unchanged(dir_entry('left', 'x'), file_entry('right', 'x', 0)))
        self.assertFalse(is_unchanged(file_entry('left', 'x', 0), dir_entry('right', 'x')))

    def test_category_of(self):
        left, right = example_trees()
        result = partition(left, right)

        self.assertEqual(DiffCategory.ADDED, result.category_of('d.txt'))
        self.assertEqual(DiffCategory.CHANGED, result.category_of('c.txt'))
        self.assertIsNone(result.category_of('missing'))

    def test_result_is_frozen(self):
        left, right = example_trees()
        result = partition(left, right)

        with self.assertRaises(AttributeError):
            result.added = {}

    def test_result_mappings_are_read_only(self):
        left, right = example_trees()
        result = partition(left, right)

        with self.assertRaises(TypeError):
            result.added['e.txt'] = right['d.txt']
        with self.assertRaises(TypeError):
            del result.left['a.txt']
        with self.assertRaises(AttributeError):
            result.filtered.append(right['d.txt'])

    def test_result_does_not_share_input(self):
        left, right = example_trees()
        result = partition(left, right)
        del left['a.txt']

        self.assertIn('a.txt', result.left)


class TestClassify(TestCase):
    """
    Tests filtering in front of the partition.
    """

    def test_classify_without_filters(self):
        left, right = example_trees()
        result = classify(left, right)

        self.assertEqual((), result.filtered)
        self.assertEqual(['c.txt'], result.keys(DiffCategory.CHANGED))

    def test_classify_filters_both_sides(self):
        """
        A filtered path takes part in no category.
        """
        left, right = example_trees()
        result = classify(left, right, [r'.*/c\.txt'])

        self.assertEqual((left['c.txt'], right['c.txt']), result.filtered)
        self.assertIsNone(result.category_of('c.txt'))
        self.assertNotIn('c.txt', result.left)
        self.assertNotIn('c.txt', result.right)
        self.assertIn('c.txt', result.source_left)
        self.assertIn('c.txt', result.source_right)
        self.assertEqual(['a.txt', 'b'], result.keys(DiffCategory.UNCHANGED))

    def test_classify_filters_relative_path(self):
        left, right = example_trees()
        result = classify(left, right, ['d\\.txt'])

        self.assertEqual((right['d.txt'],), result.filtered)
        self.assertEqual([], result.keys(DiffCategory.ADDED))

    def test_classify_does_not_modify_input(self):
        left, right = example_trees()
        classify(left, right, ['.*'])

        self.assertEqual(3, len(left))
        self.assertEqual(4, len(right))

    def test_classify_custom_filter(self):
        """
        The filter collaborator can be replaced.
        """
        left, right = example_trees()
        calls = []

        def exclude_directories(entry, filters):
            calls.append((entry.relpath, tuple(filters)))
            return entry.is_dir

        result = classify(left, right, ['config'], exclude_directories)

        self.assertEqual(7, len(calls))
        self.assertTrue(all(filters == ('config',) for _, filters in calls))
        self.assertEqual((left['b'], right['b']), result.filtered)

    def test_classify_glob_filter(self):
        left, right = example_trees()
        result = classify(left, right, ['*.txt'], PatternFilter(GlobMatcher()))

        self.assertEqual(['b'], result.keys(DiffCategory.UNCHANGED))
        self.assertEqual(5, len(result.filtered))

    def test_classify_ignores_empty_filters(self):
        left, right = example_trees()
        result = classify(left, right, ['', '   '])

        self.assertEqual((), result.filtered)


if __name__ == '__main__':
    unittest.main()
