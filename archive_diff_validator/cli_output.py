"""
Helper to display a DiffValidation on the command line.
"""

from archive_diff_validator.diff_data import DiffCategory, DiffValidation


class DiffPrinter:
    """
    Utility to print validation results.
    """

    def __init__(self, suppress_common_lines=False, quiet=False, output=None):
        """
        :param suppress_common_lines: True to only print paths that differ.
        :param quiet: True to print a one line summary, and only if the validation failed.
        :param output: Output stream to write to, defaults to the current standard output.
        """
        self.suppress_common_lines = suppress_common_lines
        self.quiet = quiet
        self.output = output

        self._category_to_name = {
            DiffCategory.ADDED: 'Added',
            DiffCategory.REMOVED: 'Removed',
            DiffCategory.CHANGED: 'Changed',
            DiffCategory.UNCHANGED: 'Unchanged',
        }
        self._category_to_symbol = {
            DiffCategory.ADDED: '>',
            DiffCategory.REMOVED: '<',
            DiffCategory.CHANGED: '|',
            DiffCategory.UNCHANGED: ' ',
        }
        self._divider = '*' * 80

    def line(self, *args):
        """
        Prints a line to the configured output stream.
        :param args: line contents
        """
        print(*args, file=self.output)

    def print_validation(self, validation: DiffValidation):
        """
        Prints the classification, the failures and a summary.
        :param validation: Validation result to print.
        """
        stats = validation.result.stats()

        if self.quiet:
            if not validation.valid:
                self.line(f'Invalid:'
                          f' a={stats[DiffCategory.ADDED]}'
                          f' r={stats[DiffCategory.REMOVED]}'
                          f' c={stats[DiffCategory.CHANGED]}'
                          f' u={stats[DiffCategory.UNCHANGED]}'
                          f' fails={len(validation.fails)}')
            return

        self.line(self._divider)
        self.print_line_diff(validation)
        self.line(self._divider)

        if validation.warnings:
            self.line('Warnings:')
            for warning in validation.warnings:
                self.line('  ' + warning.message)
            self.line(self._divider)

        if validation.fails:
            self.line(f'Failed expectations ({validation.mode.value}):')
            for failure in validation.fails:
                self.line('  ' + failure.describe())
            self.line(self._divider)

        width = max(len(str(count)) for count in list(stats.values()) + [1])
        for category in DiffCategory:
            self.line(f'{self._category_to_name[category] + ":":11s} {stats[category]:{width}d}')
        self.line(f'{"Filtered:":11s} {len(validation.result.filtered):{width}d}')
        self.line(self._divider)
        self.line(f'Result: {"VALID" if validation.valid else "INVALID"}'
                  f' ({validation.duration:.3f}s)')

    def print_line_diff(self, validation: DiffValidation):
        """
        Prints one line per relative path in path order.
        :param validation: Validation result to print.
        """
        result = validation.result
        relpaths = sorted(result.left.keys() | result.right.keys())
        if not relpaths:
            return

        longest_path = max(len(relpath) for relpath in relpaths)
        record_template = f'{{rel_path:{longest_path}s}} {{symbol:s}} {{name:s}}'
        for relpath in relpaths:
            category = result.category_of(relpath)
            if self.suppress_common_lines and category == DiffCategory.UNCHANGED:
                continue
            self.line(record_template.format(
                rel_path=relpath,
                symbol=self._category_to_symbol[category],
                name=self._category_to_name[category]))


def print_validation(validation: DiffValidation, *, suppress_common_lines=False,
                     quiet=False) -> None:
    """
    Prints the validation result in a human-readable format to the standard output.

    :param validation: validation result
    """
    printer = DiffPrinter(suppress_common_lines=suppress_common_lines, quiet=quiet)
    printer.print_validation(validation)
