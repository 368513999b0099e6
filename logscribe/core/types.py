"""Data Transfer Objects for LogScribe."""

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

ProgressStage = Literal["title", "selftext", "comment"]


@dataclass(frozen=True)
class PostDTO:
    """Reddit post data transfer object."""

    id: str                          # Reddit post ID (e.g., "8xwlg")
    title: str
    selftext: str = ""               # body (empty for link posts)
    author: str = "[deleted]"
    score: int = 0                   # approximate (fuzzed by Reddit)
    created_utc: float = 0.0
    num_comments: int = 0
    subreddit: str = ""
    permalink: str = ""


@dataclass(frozen=True)
class CommentDTO:
    """Reddit comment data transfer object."""

    id: str
    author: str = "[deleted]"
    body: str = ""                   # Raw markdown
    score: int = 0
    children: list['CommentDTO'] = field(default_factory=list)


@dataclass
class TranslatedCommentDTO:
    """Translated comment. Mirrors CommentDTO with translated body."""

    author: str
    body: str
    replies: list['TranslatedCommentDTO'] = field(default_factory=list)


@dataclass
class TranslatedPostDTO:
    """Translated post. Comments are always a truncation of the source tree."""

    title: str
    selftext: str
    comments: list[TranslatedCommentDTO] = field(default_factory=list)


@dataclass
class TranslationProgress:
    """Partial result emitted while a translation pass is running."""

    translated: TranslatedPostDTO
    stage: ProgressStage
    comment_index: Optional[int] = None   # comment stage only
    total: Optional[int] = None           # comment stage only
    provider: Optional[str] = None        # name of the strategy that produced it


@dataclass
class CacheEntry:
    """Cached payload with its creation time (epoch seconds)."""

    data: Any
    timestamp: float

    def is_valid(self, now: float, duration_sec: float) -> bool:
        return now - self.timestamp <= duration_sec
