"""Custom exception hierarchy for LogScribe."""


class LogScribeError(Exception):
    """Base exception for all LogScribe errors."""

    def __init__(self, message: str = "An error occurred in LogScribe"):
        self.message = message
        super().__init__(self.message)


class NetworkError(LogScribeError):
    """Base exception for network-related errors."""

    def __init__(self, message: str = "A network error occurred"):
        super().__init__(message)


class TransportError(NetworkError):
    """Outbound translation call failed (connection, timeout, HTTP status)."""

    def __init__(self, message: str = "Translation request failed"):
        super().__init__(message)


class RedditFetchError(NetworkError):
    """Error fetching data from Reddit."""

    def __init__(self, message: str = "Failed to fetch data from Reddit"):
        super().__init__(message)


class RateLimitError(RedditFetchError):
    """HTTP 429 - Rate limit exceeded."""

    def __init__(self, message: str = "Reddit API rate limit exceeded"):
        super().__init__(message)


class PostNotFoundError(RedditFetchError):
    """HTTP 404 - Post or subreddit does not exist."""

    def __init__(self, message: str = "Post not found"):
        super().__init__(message)


class SubredditPrivateError(RedditFetchError):
    """HTTP 403 - Subreddit is private or restricted."""

    def __init__(self, message: str = "Subreddit is private or restricted"):
        super().__init__(message)


class TranslationError(LogScribeError):
    """Base exception for translation-related errors."""

    def __init__(self, message: str = "A translation error occurred"):
        super().__init__(message)


class MalformedResponseError(TranslationError):
    """Translation response is not valid JSON or has the wrong shape."""

    def __init__(self, message: str = "Malformed translation response"):
        super().__init__(message)


class DataError(LogScribeError):
    """Base exception for data-related errors."""

    def __init__(self, message: str = "A data error occurred"):
        super().__init__(message)


class DatabaseError(DataError):
    """Database operation failed."""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message)


class ConfigError(DataError):
    """Configuration is invalid or missing."""

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message)


class CacheCorruptionError(DataError):
    """Stored cache entry could not be decoded."""

    def __init__(self, message: str = "Cache entry is corrupted"):
        super().__init__(message)
