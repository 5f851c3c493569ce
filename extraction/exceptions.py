"""Custom exception hierarchy for the extraction core."""


class ExtractionError(Exception):
    """Base exception for extraction errors."""


class ConfigError(ExtractionError):
    """Raised when configuration is invalid or incomplete."""


class MatchContractError(ExtractionError, ValueError):
    """Raised when matching inputs violate a caller precondition."""


class MatchIndexError(MatchContractError, IndexError):
    """Raised when a match references a record outside the supplied lists."""


class MatchCancelled(ExtractionError):
    """Raised when a cooperative matching run observes its cancellation token."""


class BatchFormatError(ExtractionError):
    """Raised when a batch result line cannot be decoded."""
