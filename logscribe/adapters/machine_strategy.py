"""Machine translation strategy: Google endpoint, then proxy, then original text."""

import asyncio
import logging
from typing import Optional

import requests

from logscribe.adapters.translation_strategy import ProgressCallback, TranslationStrategy
from logscribe.core.comment_tree import MAX_TOP_LEVEL_COMMENTS, copy_translated
from logscribe.core.exceptions import MalformedResponseError, TransportError
from logscribe.core.types import (
    CommentDTO,
    PostDTO,
    TranslatedCommentDTO,
    TranslatedPostDTO,
    TranslationProgress,
)

logger = logging.getLogger("logscribe")

GOOGLE_URL = "https://translate.googleapis.com/translate_a/single"
PROXY_URL = "https://fanyi.sisyphean.top/single"

SELFTEXT_MAX_LENGTH = 5000
COMMENT_MAX_LENGTH = 3000


class MachineChainStrategy(TranslationStrategy):
    """Translates one text unit at a time through a fallback chain.

    Chain: Google translate_a endpoint -> sisyphean proxy -> original text.
    translate_text() therefore never raises. Only the first
    MAX_TOP_LEVEL_COMMENTS top-level comments are translated and replies
    are dropped.
    """

    name = "machine"
    supports_streaming = True

    def __init__(self, target_lang: str = "zh-CN", google_timeout: int = 5, proxy_timeout: int = 10):
        self._target_lang = target_lang
        self._google_timeout = google_timeout
        self._proxy_timeout = proxy_timeout

    @property
    def target_lang(self) -> str:
        return self._target_lang

    async def translate_post(
        self, post: PostDTO, comments: list[CommentDTO]
    ) -> TranslatedPostDTO:
        title, selftext = await asyncio.gather(
            self.translate_text(post.title),
            self.translate_text(post.selftext, SELFTEXT_MAX_LENGTH),
        )

        translated_comments = []
        for c in comments[:MAX_TOP_LEVEL_COMMENTS]:
            body = await self.translate_text(c.body, COMMENT_MAX_LENGTH)
            translated_comments.append(TranslatedCommentDTO(author=c.author, body=body))

        return TranslatedPostDTO(
            title=title or post.title,
            selftext=selftext or post.selftext,
            comments=translated_comments,
        )

    async def translate_post_stream(
        self,
        post: PostDTO,
        comments: list[CommentDTO],
        on_progress: ProgressCallback,
    ) -> TranslatedPostDTO:
        selected = comments[:MAX_TOP_LEVEL_COMMENTS]
        total = len(selected)
        result = TranslatedPostDTO(
            title=post.title,
            selftext=post.selftext,
            comments=[TranslatedCommentDTO(author=c.author, body=c.body) for c in selected],
        )

        result.title = await self.translate_text(post.title) or post.title
        on_progress(TranslationProgress(translated=copy_translated(result), stage="title", provider=self.name))

        result.selftext = await self.translate_text(post.selftext, SELFTEXT_MAX_LENGTH) or post.selftext
        on_progress(TranslationProgress(translated=copy_translated(result), stage="selftext", provider=self.name))

        for i, c in enumerate(selected):
            result.comments[i].body = await self.translate_text(c.body, COMMENT_MAX_LENGTH)
            on_progress(TranslationProgress(
                translated=copy_translated(result),
                stage="comment",
                provider=self.name,
                comment_index=i,
                total=total,
            ))

        return result

    async def translate_titles(self, titles: list[str]) -> list[str]:
        translated = await asyncio.gather(*(self.translate_text(t) for t in titles))
        return [t or original for t, original in zip(translated, titles)]

    async def translate_text(self, text: str, max_length: Optional[int] = None) -> str:
        """Translate one unit. Empty input gives "", total failure gives the input."""
        if not text or not text.strip():
            return ""
        if max_length and len(text) > max_length:
            text = text[:max_length] + "..."

        try:
            return await self._translate_google(text)
        except Exception as e:
            logger.debug(f"Google translate failed, trying proxy: {e}")

        try:
            return await self._translate_proxy(text)
        except Exception as e:
            logger.warning(f"All machine translation endpoints failed, keeping original: {e}")

        return text

    async def _translate_google(self, text: str) -> str:
        params = {
            "client": "gtx",
            "sl": "auto",
            "tl": self._target_lang,
            "dt": "t",
            "ie": "UTF-8",
            "dj": "1",
            "q": text,
        }
        data = await self._get_json(GOOGLE_URL, params, self._google_timeout)

        sentences = data.get("sentences") if isinstance(data, dict) else None
        if not isinstance(sentences, list):
            raise MalformedResponseError("Google response has no 'sentences' list")
        return "".join(
            s.get("trans", "") for s in sentences if isinstance(s, dict)
        )

    async def _translate_proxy(self, text: str) -> str:
        params = {
            "client": "gtx",
            "sl": "auto",
            "tl": self._target_lang.replace("-", "_"),
            "dt": "t",
            "q": text.replace("\r\n", " ").replace("\n", " "),
        }
        data = await self._get_json(PROXY_URL, params, self._proxy_timeout)

        translation = data.get("translation") if isinstance(data, dict) else None
        if not isinstance(translation, str) or not translation:
            raise MalformedResponseError("Proxy response has no 'translation'")
        return translation

    @staticmethod
    async def _get_json(url: str, params: dict, timeout: int):
        try:
            response = await asyncio.to_thread(requests.get, url, params=params, timeout=timeout)
        except requests.Timeout:
            raise TransportError(f"Request timed out after {timeout}s: {url}")
        except requests.RequestException as e:
            raise TransportError(f"Request failed: {e}")

        if response.status_code != 200:
            raise TransportError(f"HTTP {response.status_code} from {url}")

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Invalid JSON from {url}: {e}")
