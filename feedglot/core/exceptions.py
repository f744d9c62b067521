"""Custom exception hierarchy for Feedglot."""


class FeedglotError(Exception):
    """Base exception for all Feedglot errors."""

    def __init__(self, message: str = "An error occurred in Feedglot"):
        self.message = message
        super().__init__(self.message)


class TranslationAborted(FeedglotError):
    """Operation was cancelled through its CancellationToken.

    Raised for superseded batches and navigation-driven cancellation.
    Callers treat it as a silent, normal termination.
    """

    def __init__(self, message: str = "Translation aborted"):
        super().__init__(message)


class NetworkError(FeedglotError):
    """Base exception for network-related errors."""

    def __init__(self, message: str = "A network error occurred"):
        super().__init__(message)


class APIConnectionError(NetworkError):
    """Translation API is not reachable."""

    def __init__(self, message: str = "Cannot connect to the translation API"):
        super().__init__(message)


class APITimeoutError(NetworkError):
    """Translation API request timed out."""

    def __init__(self, message: str = "Translation API request timed out"):
        super().__init__(message)


class TranslationRequestError(NetworkError):
    """Translation API answered with a non-success status."""

    def __init__(self, status_code: int, message: str = "Translation request failed"):
        self.status_code = status_code
        super().__init__(f"{message} (HTTP {status_code})")


class TranslationError(FeedglotError):
    """Base exception for translation-related errors."""

    def __init__(self, message: str = "A translation error occurred"):
        super().__init__(message)


class TranslationStreamError(TranslationError):
    """Result stream was interrupted or ended with malformed data."""

    def __init__(self, message: str = "Translation stream failed"):
        super().__init__(message)


class BatchTooLargeError(TranslationError):
    """Batch exceeds the number of articles the API accepts."""

    def __init__(self, message: str = "Too many articles in batch"):
        super().__init__(message)


class DataError(FeedglotError):
    """Base exception for data-related errors."""

    def __init__(self, message: str = "A data error occurred"):
        super().__init__(message)


class ConfigError(DataError):
    """Configuration is invalid or missing."""

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message)
