"""Error hierarchy for the book tagging pipeline."""


class BookTagError(RuntimeError):
    """Base class for all pipeline errors."""


class ExtractionError(BookTagError):
    """Raised when the library export is empty or cannot be parsed."""


class MissingCredentialError(BookTagError):
    """Raised when a hosted provider has no API key configured."""


class TaggingError(BookTagError):
    """Raised when a single provider call fails for one book."""


class EmptyBatchError(BookTagError):
    """Raised when enrichment is requested for an empty book list."""


class PersistenceError(BookTagError):
    """Raised when the store cannot be opened or a bulk insert is rolled back."""
