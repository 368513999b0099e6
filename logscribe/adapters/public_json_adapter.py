"""Reddit public JSON endpoint adapter with shared rate limiting."""

import asyncio
import logging
from typing import Optional

import requests

from logscribe.adapters.reddit_adapter import RedditAdapter
from logscribe.core.exceptions import (
    RedditFetchError,
    RateLimitError,
    PostNotFoundError,
    SubredditPrivateError,
)
from logscribe.core.rate_limiter import RateLimiter
from logscribe.core.types import PostDTO, CommentDTO


logger = logging.getLogger("logscribe")

# App version for User-Agent
_APP_VERSION = "1.0.0"


class PublicJSONAdapter(RedditAdapter):
    """Fetches one thread through the unauthenticated `.json` endpoint.

    Every attempt waits on the shared RateLimiter first. 429 responses and
    connection failures are retried up to `max_retries` times with
    exponential backoff (limiter interval * 2^attempt). With `mock_mode`
    no network request is made.
    """

    BASE_URL = "https://www.reddit.com"
    REQUEST_TIMEOUT = 30

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        max_retries: int = 3,
        mock_mode: bool = False,
    ):
        self._mock_mode = mock_mode
        self._rate_limiter = rate_limiter or RateLimiter()
        self._max_retries = max_retries
        self._session = requests.Session()
        self._session.headers.update({
            "User-Agent": f"cli:logscribe:v{_APP_VERSION} (thread reader)",
            "Accept": "application/json",
        })

    async def fetch_post(
        self,
        subreddit: str,
        post_id: str,
    ) -> tuple[PostDTO, list[CommentDTO]]:
        if self._mock_mode:
            logger.debug(f"Mock mode: serving canned thread for {post_id}")
            return _mock_thread(subreddit, post_id)

        url = f"{self.BASE_URL}/r/{subreddit}/comments/{post_id}/.json"
        data = await self._fetch_json(url, {"raw_json": 1})

        # [post listing, comment listing]
        if not isinstance(data, list) or len(data) < 2:
            raise RedditFetchError("Unexpected comment response format")

        post = self._parse_post(data[0], subreddit, post_id)
        comments = [
            c for c in (
                self._parse_comment(child)
                for child in data[1].get("data", {}).get("children", [])
            )
            if c is not None
        ]

        logger.info(f"Fetched post {post.id} with {len(comments)} top-level comments")
        return post, comments

    async def _fetch_json(self, url: str, params: dict) -> dict | list:
        last_error = None

        for attempt in range(self._max_retries + 1):
            await self._rate_limiter.acquire()
            can_retry = attempt < self._max_retries

            try:
                response = await asyncio.to_thread(
                    self._session.get, url, params=params, timeout=self.REQUEST_TIMEOUT
                )
            except requests.RequestException as e:
                last_error = e
                if not can_retry:
                    break
                backoff = self._backoff_time(attempt)
                logger.warning(f"Request failed: {e}. Retrying in {backoff}s")
                await asyncio.sleep(backoff)
                continue

            if response.status_code == 429:
                if not can_retry:
                    raise RateLimitError("Rate limit exceeded after max retries")
                backoff = self._backoff_time(attempt)
                logger.warning(f"Rate limited (429). Backoff: {backoff}s (attempt {attempt + 1})")
                await asyncio.sleep(backoff)
                continue

            return self._decode(response, url)

        raise RedditFetchError(f"Failed to fetch data: {last_error}")

    @staticmethod
    def _decode(response: requests.Response, url: str) -> dict | list:
        status = response.status_code
        if status == 404:
            raise PostNotFoundError(f"Not found: {url}")
        if status == 403:
            raise SubredditPrivateError(f"Forbidden: {url}")
        if status != 200:
            raise RedditFetchError(f"HTTP {status} from {url}")

        # An HTML body means the request was served a bot-check page
        content_type = response.headers.get("Content-Type", "")
        if "json" not in content_type and "text/html" in content_type:
            raise RedditFetchError("Reddit returned HTML instead of JSON")

        try:
            return response.json()
        except ValueError as e:
            raise RedditFetchError(f"Invalid JSON from Reddit: {e}")

    def _backoff_time(self, attempt: int) -> float:
        return self._rate_limiter.interval * (2 ** attempt)

    @staticmethod
    def _parse_post(listing: dict, subreddit: str, post_id: str) -> PostDTO:
        try:
            d = listing["data"]["children"][0]["data"]
        except (KeyError, IndexError, TypeError):
            raise RedditFetchError("Post listing is missing post data")

        return PostDTO(
            id=d.get("id", post_id),
            title=d.get("title", ""),
            selftext=d.get("selftext") or "",
            author=d.get("author", "[deleted]"),
            score=d.get("score", 0),
            created_utc=d.get("created_utc", 0.0),
            num_comments=d.get("num_comments", 0),
            subreddit=d.get("subreddit", subreddit),
            permalink=d.get("permalink", ""),
        )

    @staticmethod
    def _parse_comment(item: dict) -> Optional[CommentDTO]:
        """Convert a t1 listing child, recursing into its replies.

        "more" stubs and other kinds return None.
        """
        if item.get("kind") != "t1":
            return None

        d = item["data"]
        replies = d.get("replies")
        children = []
        # "" when there are no replies, a Listing dict otherwise
        if isinstance(replies, dict):
            for child in replies.get("data", {}).get("children", []):
                parsed = PublicJSONAdapter._parse_comment(child)
                if parsed:
                    children.append(parsed)

        return CommentDTO(
            id=d["id"],
            author=d.get("author", "[deleted]"),
            body=d.get("body", ""),
            score=d.get("score", 0),
            children=children,
        )


def _mock_thread(subreddit: str, post_id: str) -> tuple[PostDTO, list[CommentDTO]]:
    """Canned thread for offline runs."""
    post = PostDTO(
        id=post_id,
        title=f"[Mock] What is your favourite standard library module? (r/{subreddit})",
        selftext="Mine is itertools.\nTell me yours and why.",
        author="mock_op",
        score=128,
        created_utc=1700000000.0,
        num_comments=4,
        subreddit=subreddit,
        permalink=f"/r/{subreddit}/comments/{post_id}/mock_thread/",
    )
    comments = [
        CommentDTO(
            id="m1",
            author="mock_reader",
            body="pathlib, because string paths were painful.",
            score=40,
            children=[
                CommentDTO(id="m2", author="mock_op", body="Fair point, pathlib is great.", score=12),
            ],
        ),
        CommentDTO(id="m3", author="mock_lurker", body="collections.deque for queues.", score=25),
        CommentDTO(id="m4", author="[deleted]", body="[removed]", score=0),
    ]
    return post, comments
