"""
Exceptions raised at phase boundaries of a conversion run.
"""


class MboxSplitError(Exception):
    """Base class for errors that abort a phase."""


class InputValidationError(MboxSplitError):
    """The archive path or output directory is unusable."""


class ArchiveReadError(MboxSplitError):
    """The archive could not be read or decoded."""


class ArchiveRewriteError(MboxSplitError):
    """The archive could not be replaced with its regenerated content."""
