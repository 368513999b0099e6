"""Abstract base class for Reddit data access."""

from abc import ABC, abstractmethod

from logscribe.core.types import PostDTO, CommentDTO


class RedditAdapter(ABC):
    """Abstract interface for fetching a single discussion record."""

    @abstractmethod
    async def fetch_post(
        self,
        subreddit: str,
        post_id: str,
    ) -> tuple[PostDTO, list[CommentDTO]]:
        """Fetch a post and its full comment tree.

        Args:
            subreddit: Subreddit name (without r/ prefix)
            post_id: Reddit post ID (e.g., "8xwlg")

        Returns:
            (post, comments) with comments in display order

        Raises:
            RedditFetchError: General fetch failure
            RateLimitError: 429 Too Many Requests
            PostNotFoundError: 404 Not Found
            SubredditPrivateError: 403 Forbidden
        """
        ...
