"""
Archive diff validator
"""

from .__version__ import (
    __author__,
    __author_email__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __url__,
    __version__,
)

from .errors import (
    ArchiveValidationError,
    ValidationInputError,
    RetrievalError,
    ArchiveFormatError,
)

from .diff_data import (
    DiffCategory,
    ExpectationMode,
    FileEntry,
    SideTree,
    DiffResult,
    ExpectationFailure,
    CollectorWarning,
    DiffValidation,
)

from .matching import (
    Matcher,
    RegexMatcher,
    GlobMatcher,
    LiteralMatcher,
    get_matcher,
)

from .observer import DiffObserver

from .tree_collector import (
    TreeCollector,
    normalize_relpath,
)

from .filters import PatternFilter

from .diff_classifier import (
    ExpectationChecker,
    apply_filters,
    classify,
    is_unchanged,
    partition,
)

from .archive_fetcher import (
    ArchiveFetcher,
    DispatchingArchiveHandler,
)

from .validator import (
    ArchiveDiffValidator,
    PARAM_EXPECT_ADDS,
    PARAM_EXPECT_REMOVES,
    PARAM_EXPECT_CHANGES,
    PARAM_EXPECT_UNCHANGES,
    PARAM_DIFF_VERSION,
)

from .cli_output import (
    print_validation,
    DiffPrinter,
)
