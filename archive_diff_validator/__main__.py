"""
Command-line interface to the archive-diff-validator module.
"""

import argparse
import pathlib as pl
import sys

from archive_diff_validator.cli_output import print_validation
from archive_diff_validator.config import IniConfig, ValidationSettings
from archive_diff_validator.diff_data import DiffCategory
from archive_diff_validator.errors import ArchiveValidationError
from archive_diff_validator.logging_config import setup_logging
from archive_diff_validator.matching import MATCHERS, get_matcher
from archive_diff_validator.validator import ArchiveDiffValidator, PARAM_DIFF_VERSION

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """
    :return: Parser of the command line arguments.
    """
    parser = argparse.ArgumentParser(
        'archive-diff-validator',
        description='''Diffs two sets of archives and validates the differences.''')
    parser.add_argument('left',
                        nargs='?',
                        metavar='LEFT',
                        help='Baseline archives, comma separated. Paths, directories or URLs.')
    parser.add_argument('right',
                        nargs='?',
                        metavar='RIGHT',
                        help='Candidate archives, comma separated. Same count as LEFT.')
    parser.add_argument('--config',
                        type=pl.Path,
                        help='INI file describing the run. Command line values take precedence.')
    parser.add_argument('--filter',
                        action='append',
                        default=[],
                        metavar='PATTERN',
                        help='Excludes entries whose absolute or relative path matches.')
    for category, option in ((DiffCategory.ADDED, '--expect-adds'),
                             (DiffCategory.REMOVED, '--expect-removes'),
                             (DiffCategory.CHANGED, '--expect-changes'),
                             (DiffCategory.UNCHANGED, '--expect-unchanges')):
        parser.add_argument(option,
                            dest=category.param_key,
                            action='append',
                            default=[],
                            metavar='PATTERN',
                            help=f'Expected pattern for {category.name.lower()} entries.')
    parser.add_argument('--mode',
                        choices=['required', 'exhaustive'],
                        help='How the expectations are checked. Defaults to required.')
    parser.add_argument('--matcher',
                        choices=sorted(MATCHERS),
                        help='Pattern syntax of filters and expectations. Defaults to regex.')
    parser.add_argument('--suppress-common',
                        action='store_true',
                        help='Only prints the file paths that differ.')
    parser.add_argument('--quiet', '-q',
                        action='store_true',
                        help='Only print something if the validation fails.')
    parser.add_argument('--log-level',
                        default=None,
                        help='Log level, e.g. INFO or DEBUG. Defaults to $LOG_LEVEL or WARNING.')
    return parser


def load_settings(args: argparse.Namespace) -> ValidationSettings:
    """
    Combines the INI file, if any, with the command line arguments.
    """
    settings = IniConfig(args.config).load_settings() if args.config else ValidationSettings()

    params = {}
    for category in DiffCategory:
        patterns = getattr(args, category.param_key)
        if patterns:
            params[category.param_key] = patterns
    if args.mode:
        params[PARAM_DIFF_VERSION] = args.mode

    return settings.merged(left=args.left, right=args.right, filters=args.filter, params=params,
                           matcher=args.matcher)


def main(argv=None) -> int:
    """
    Main method that handles the command line interface of archive-diff-validator
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        settings = load_settings(args)
        validator = ArchiveDiffValidator(matcher=get_matcher(settings.matcher))
        validation = validator.validate(settings.resources, settings.filters, settings.params)
    except ArchiveValidationError as error:
        print(f'Error: {error}', file=sys.stderr)
        return EXIT_ERROR

    print_validation(validation, suppress_common_lines=args.suppress_common, quiet=args.quiet)
    return EXIT_VALID if validation.valid else EXIT_INVALID


if __name__ == '__main__':
    sys.exit(main())
