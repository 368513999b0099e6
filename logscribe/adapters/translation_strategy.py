"""Abstract base class for translation strategies."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from logscribe.core.types import CommentDTO, PostDTO, TranslatedPostDTO, TranslationProgress

ProgressCallback = Callable[[TranslationProgress], None]
UsageCallback = Callable[[int], None]


class TranslationStrategy(ABC):
    """Abstract interface for translating a post and its comment tree.

    Strategies that can report partial results set `supports_streaming`
    and override translate_post_stream().
    """

    name: str = ""
    supports_streaming: bool = False

    @abstractmethod
    async def translate_post(
        self, post: PostDTO, comments: list[CommentDTO]
    ) -> TranslatedPostDTO:
        """Translate a post and a truncated view of its comments.

        Raises:
            TransportError: Outbound call failed
            MalformedResponseError: Response could not be parsed
        """
        ...

    async def translate_post_stream(
        self,
        post: PostDTO,
        comments: list[CommentDTO],
        on_progress: ProgressCallback,
    ) -> TranslatedPostDTO:
        """Translate while reporting TranslationProgress events.

        Only strategies with `supports_streaming = True` override this; callers
        must check the flag first, so this default is never reached in normal use.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support streaming")

    @abstractmethod
    async def translate_titles(self, titles: list[str]) -> list[str]:
        """Translate a batch of titles, preserving order and count."""
        ...


def report_usage(on_usage: Optional[UsageCallback], tokens: Optional[int]) -> None:
    if on_usage is not None and tokens:
        on_usage(tokens)
