"""Content pipeline: cache lookup, fast-path render, background translation."""

import asyncio
import itertools
import logging
from typing import Callable

from logscribe.adapters.reddit_adapter import RedditAdapter
from logscribe.core.cache_store import CacheStore
from logscribe.core.types import CommentDTO, PostDTO, TranslationProgress
from logscribe.services.log_renderer import LogRenderer
from logscribe.services.translation_orchestrator import TranslationOrchestrator

logger = logging.getLogger("logscribe")

ChangeListener = Callable[[str], None]


class ContentPipeline:
    """Produces the display text for a post and keeps it up to date.

    Flow for provide_content():
    1. Return the cached render if present
    2. Fetch the post (fetch errors become an in-band error document)
    3. Start a background streaming translation
    4. Return an untranslated fast-path render immediately

    Every progress event of the background pass re-renders the document,
    writes it to the cache and notifies listeners with the post id.

    Each background pass gets a unique generation token, recorded per cache
    key while the pass is in flight. A pass only writes while its token is
    still the current one for its key; starting a newer pass, refresh() and
    clear_cache() replace or drop the token, so an older pass cannot
    overwrite a newer result. Tokens are removed when their pass finishes.
    """

    def __init__(
        self,
        client: RedditAdapter,
        translator: TranslationOrchestrator,
        cache: CacheStore,
        renderer: LogRenderer,
    ):
        self._client = client
        self._translator = translator
        self._cache = cache
        self._renderer = renderer
        self._listeners: list[ChangeListener] = []
        self._generations: dict[str, int] = {}
        self._next_generation = itertools.count(1)
        self._background: set[asyncio.Task] = set()

    @staticmethod
    def cache_key(post_id: str) -> str:
        return f"trans:{post_id}"

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def provide_content(self, subreddit: str, post_id: str) -> str:
        key = self.cache_key(post_id)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return cached

        try:
            post, comments = await self._client.fetch_post(subreddit, post_id)
        except Exception as e:
            logger.error(f"Failed to fetch post {post_id}: {e}")
            return self._renderer.render_error(e)

        self._start_background_translation(post, comments)

        translated = self._translator.translate_fast(post, comments)
        return self._renderer.render(post, translated, f"{self._translator.provider_name} (Fast)")

    async def translate_titles(self, titles: list[str]) -> list[str]:
        return await self._translator.translate_titles(titles)

    def refresh(self, post_id: str) -> None:
        """Drop the cached render and discard any in-flight result for it."""
        key = self.cache_key(post_id)
        self._cache.delete(key)
        self._generations.pop(key, None)
        self._notify(post_id)

    def clear_cache(self) -> int:
        """Wipe every cached render and discard all in-flight results."""
        self._generations.clear()
        return self._cache.clear()

    def update_config(self, provider: str, api_key: str, model_name: str, word_wrap_width: int) -> None:
        self._translator.update_config(provider, api_key, model_name)
        self._renderer.update_config(word_wrap_width)

    async def wait_for_background(self) -> None:
        """Wait until all background translations have finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    @property
    def background_count(self) -> int:
        return len(self._background)

    @property
    def in_flight_keys(self) -> list[str]:
        """Cache keys with a background pass whose results are still wanted."""
        return list(self._generations)

    def _start_background_translation(self, post: PostDTO, comments: list[CommentDTO]) -> None:
        key = self.cache_key(post.id)
        generation = next(self._next_generation)
        self._generations[key] = generation
        task = asyncio.get_running_loop().create_task(
            self._translate_in_background(key, generation, post, comments)
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _translate_in_background(
        self,
        key: str,
        generation: int,
        post: PostDTO,
        comments: list[CommentDTO],
    ) -> None:
        def on_progress(progress: TranslationProgress) -> None:
            if self._generations.get(key) != generation:
                logger.debug(f"Discarding stale translation progress for {key}")
                return
            provider = progress.provider or self._translator.provider_name
            content = self._renderer.render(post, progress.translated, provider)
            self._cache.set(key, content)
            self._notify(post.id)

        try:
            await self._translator.translate_stream(post, comments, on_progress)
            logger.info(f"Background translation finished for post {post.id}")
        except Exception as e:
            logger.error(f"Background translation failed for post {post.id}: {e}")
        finally:
            if self._generations.get(key) == generation:
                del self._generations[key]

    def _notify(self, post_id: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(post_id)
            except Exception as e:
                logger.error(f"Content change listener failed: {e}")
