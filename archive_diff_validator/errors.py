"""
Exceptions raised while validating archive diffs.
"""


class ArchiveValidationError(Exception):
    """
    Base class of all errors raised by this package.
    """


class ValidationInputError(ArchiveValidationError, ValueError):
    """
    Raised if the resources, filters or parameters of a validation run are malformed. This is always
    raised before any archive is retrieved.
    """


class RetrievalError(ArchiveValidationError):
    """
    Raised if an archive reference could not be downloaded or extracted. A retrieval error aborts
    the whole run.
    """

    def __init__(self, reference: str, message: str):
        super().__init__(f'{reference}: {message}')
        self.reference = reference


class ArchiveFormatError(RetrievalError):
    """
    Raised by the archive handlers if the input file format is not supported.
    """
