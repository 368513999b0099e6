"""Translation orchestrator: strategy selection and machine-translation fallback."""

import logging
from typing import Optional

from logscribe.adapters.ai_strategy import AI_STRATEGIES
from logscribe.adapters.machine_strategy import MachineChainStrategy
from logscribe.adapters.translation_strategy import ProgressCallback, TranslationStrategy
from logscribe.core.comment_tree import mirror_post
from logscribe.core.token_usage import TokenUsageCounter
from logscribe.core.types import CommentDTO, PostDTO, TranslatedPostDTO

logger = logging.getLogger("logscribe")


class TranslationOrchestrator:
    """Owns the active translation strategy and guarantees a fallback.

    Responsibilities:
    - Select an AI strategy when the provider is recognized and has an API key
    - Keep a MachineChainStrategy ready as the fallback target
    - Forward reported token usage to the owned TokenUsageCounter
    - Provide an untranslated fast-path copy for immediate display
    """

    def __init__(
        self,
        usage: Optional[TokenUsageCounter] = None,
        target_lang: str = "zh-CN",
        machine: Optional[MachineChainStrategy] = None,
    ):
        self._usage = usage or TokenUsageCounter()
        self._target_lang = target_lang
        self._machine = machine or MachineChainStrategy(target_lang=target_lang)
        self._active: TranslationStrategy = self._machine
        self._streaming = self._machine.supports_streaming

    @property
    def usage(self) -> TokenUsageCounter:
        return self._usage

    @property
    def machine(self) -> MachineChainStrategy:
        return self._machine

    @property
    def active(self) -> TranslationStrategy:
        return self._active

    @property
    def provider_name(self) -> str:
        return self._active.name

    def update_config(self, provider: str, api_key: str, model_name: str) -> None:
        """Select the active strategy from provider settings.

        Unknown providers and AI providers without an API key fall back to
        the machine strategy.
        """
        strategy_cls = AI_STRATEGIES.get(provider)
        if strategy_cls is not None and api_key:
            strategy = strategy_cls(
                api_key=api_key,
                model_name=model_name,
                target_lang=self._target_lang,
                on_usage=self.report_usage,
            )
        else:
            if provider in AI_STRATEGIES:
                logger.warning(f"No API key configured for {provider}, using machine translation")
            strategy = self._machine
        self.set_strategy(strategy)

    def set_strategy(self, strategy: TranslationStrategy) -> None:
        self._active = strategy
        self._streaming = bool(getattr(strategy, "supports_streaming", False))
        logger.info(f"Translation provider: {strategy.name} (streaming: {self._streaming})")

    def report_usage(self, tokens: int) -> None:
        self._usage.add_usage(tokens)

    async def translate(
        self, post: PostDTO, comments: list[CommentDTO]
    ) -> TranslatedPostDTO:
        """Translate with the active strategy, falling back to machine translation."""
        try:
            return await self._active.translate_post(post, comments)
        except Exception as e:
            if self._active is self._machine:
                raise
            logger.error(f"{self._active.name} translation failed: {e}. Switching to machine translation")
            return await self._machine.translate_post(post, comments)

    async def translate_stream(
        self,
        post: PostDTO,
        comments: list[CommentDTO],
        on_progress: ProgressCallback,
    ) -> TranslatedPostDTO:
        """Translate with progress events, falling back to machine streaming."""
        if not self._streaming:
            return await self._machine.translate_post_stream(post, comments, on_progress)

        try:
            return await self._active.translate_post_stream(post, comments, on_progress)
        except Exception as e:
            if self._active is self._machine:
                raise
            logger.error(f"{self._active.name} stream translation failed: {e}. Switching to machine translation")
            return await self._machine.translate_post_stream(post, comments, on_progress)

    async def translate_titles(self, titles: list[str]) -> list[str]:
        """Best-effort title translation. Never raises."""
        if not titles:
            return []
        try:
            return await self._active.translate_titles(titles)
        except Exception as e:
            logger.warning(f"{self._active.name} title translation failed: {e}")
        try:
            return await self._machine.translate_titles(titles)
        except Exception as e:
            logger.warning(f"Machine title translation failed: {e}")
            return list(titles)

    def translate_fast(
        self, post: PostDTO, comments: list[CommentDTO]
    ) -> TranslatedPostDTO:
        """Untranslated placeholder preserving the full comment tree."""
        return mirror_post(post, comments)
