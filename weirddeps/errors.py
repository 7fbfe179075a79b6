"""Error types raised by the weirddeps pipeline."""


class WeirdDepsError(Exception):
    """Base class for pipeline errors."""


class ParseError(WeirdDepsError):
    """An index line or manifest could not be parsed."""


class IndexReadError(WeirdDepsError):
    """Reading the index failed; the whole batch is aborted."""


class IndexSyncError(WeirdDepsError):
    """Cloning or pulling the index mirror failed."""


class FetchError(WeirdDepsError):
    """Downloading or unpacking a crate archive failed."""


class ArchiveFormatError(WeirdDepsError):
    """A crate archive held no manifest entry."""
