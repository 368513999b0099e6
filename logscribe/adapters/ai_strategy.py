"""LLM-backed translation strategies that exchange strict JSON."""

import asyncio
import json
import logging
import re
from abc import abstractmethod
from typing import Any, Optional

import requests

from logscribe.adapters.translation_strategy import (
    ProgressCallback,
    TranslationStrategy,
    UsageCallback,
    report_usage,
)
from logscribe.core.comment_tree import (
    clamp_to_source,
    parse_translated_post,
    simplify_comments,
)
from logscribe.core.exceptions import MalformedResponseError, TransportError
from logscribe.core.types import CommentDTO, PostDTO, TranslatedPostDTO, TranslationProgress

logger = logging.getLogger("logscribe")

_CODE_FENCE = re.compile(r"^```(?:json)?\s*\n?|\n?```\s*$")

# Language names used in prompts; unknown codes are passed through as-is.
LANGUAGE_NAMES = {
    "zh-CN": "Simplified Chinese",
    "zh-TW": "Traditional Chinese",
    "ko": "Korean",
    "ja": "Japanese",
    "en": "English",
}

POST_TIMEOUT = 60
STREAM_TIMEOUT = 120
TITLES_TIMEOUT = 30


def clean_response_content(content: str) -> str:
    """Strip a Markdown code fence wrapped around the whole JSON payload.

    Fences inside the payload (e.g. code blocks in translated comments) are kept.
    """
    return _CODE_FENCE.sub("", content.strip()).strip()


class AIJsonStrategy(TranslationStrategy):
    """Base for providers that translate a whole post in one JSON round trip.

    Subclasses supply the endpoint, headers, request body and response
    accessors. There is no mid-call streaming: translate_post_stream()
    makes the same single call and emits one completion event.
    """

    base_url: str = ""
    supports_streaming = True

    def __init__(
        self,
        api_key: str,
        model_name: str,
        target_lang: str = "zh-CN",
        on_usage: Optional[UsageCallback] = None,
    ):
        self._api_key = api_key
        self._model_name = model_name
        self._target_lang = target_lang
        self._on_usage = on_usage

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def language_name(self) -> str:
        return LANGUAGE_NAMES.get(self._target_lang, self._target_lang)

    def build_translation_prompt(self, post: PostDTO, comments: list[CommentDTO]) -> str:
        payload = {
            "title": post.title,
            "selftext": post.selftext,
            "comments": simplify_comments(comments),
        }
        return (
            f"Translate the following Reddit post into {self.language_name}. "
            f"Keep the casual, conversational tone.\n"
            f"Return ONLY a JSON object in this format:\n"
            f"{{\n"
            f'  "title": "translated title",\n'
            f'  "selftext": "translated body",\n'
            f'  "comments": [\n'
            f'    {{"author": "original author name", "body": "translated comment", "replies": [...]}}\n'
            f"  ]\n"
            f"}}\n"
            f"Keep the comment order and nesting exactly as given. "
            f"Do not wrap the JSON in Markdown code fences.\n"
            f"\n"
            f"Source:\n"
            f"{json.dumps(payload, ensure_ascii=False)}"
        )

    def build_titles_prompt(self, titles: list[str]) -> str:
        return (
            f"Translate the following Reddit titles into {self.language_name}.\n"
            f"Return a JSON object with a 'titles' key containing the array of strings, "
            f"in the same order and with the same count.\n"
            f'Example: {{"titles": ["Title 1", "Title 2"]}}\n'
            f"\n"
            f"Titles: {json.dumps(titles, ensure_ascii=False)}"
        )

    @abstractmethod
    def build_headers(self) -> dict[str, str]:
        ...

    @abstractmethod
    def build_request_body(self, prompt: str) -> dict:
        ...

    @abstractmethod
    def extract_usage(self, response_data: Any) -> Optional[int]:
        ...

    @abstractmethod
    def extract_content(self, response_data: Any) -> str:
        ...

    def request_url(self) -> str:
        return self.base_url

    async def call_api(self, prompt: str, timeout: int = POST_TIMEOUT) -> Any:
        """POST the prompt and return the decoded JSON response body.

        Raises:
            TransportError: Connection failure, timeout or non-200 status
            MalformedResponseError: Body is not JSON
        """
        try:
            response = await asyncio.to_thread(
                requests.post,
                self.request_url(),
                json=self.build_request_body(prompt),
                headers=self.build_headers(),
                timeout=timeout,
            )
        except requests.Timeout:
            raise TransportError(f"{self.name} request timed out after {timeout}s")
        except requests.RequestException as e:
            raise TransportError(f"{self.name} request failed: {e}")

        if response.status_code != 200:
            raise TransportError(f"{self.name} API error ({response.status_code}): {response.text[:200]}")

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{self.name} returned invalid JSON: {e}")

    async def translate_post(
        self, post: PostDTO, comments: list[CommentDTO]
    ) -> TranslatedPostDTO:
        prompt = self.build_translation_prompt(post, comments)
        logger.info(f"Translating post {post.id} with {self.name} ({self._model_name})")
        data = await self.call_api(prompt, POST_TIMEOUT)
        report_usage(self._on_usage, self.extract_usage(data))
        return self._parse_post(data, comments)

    async def translate_post_stream(
        self,
        post: PostDTO,
        comments: list[CommentDTO],
        on_progress: ProgressCallback,
    ) -> TranslatedPostDTO:
        prompt = self.build_translation_prompt(post, comments)
        logger.info(f"Translating post {post.id} with {self.name} ({self._model_name}, stream)")
        data = await self.call_api(prompt, STREAM_TIMEOUT)
        report_usage(self._on_usage, self.extract_usage(data))
        translated = self._parse_post(data, comments)

        count = len(translated.comments)
        on_progress(TranslationProgress(
            translated=translated,
            stage="comment",
            provider=self.name,
            comment_index=count,
            total=count,
        ))
        return translated

    async def translate_titles(self, titles: list[str]) -> list[str]:
        if not titles:
            return []

        data = await self.call_api(self.build_titles_prompt(titles), TITLES_TIMEOUT)
        report_usage(self._on_usage, self.extract_usage(data))

        try:
            result = json.loads(clean_response_content(self.extract_content(data)))
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"{self.name} titles response is not JSON: {e}")

        translated = result.get("titles") if isinstance(result, dict) else None
        if (
            not isinstance(translated, list)
            or len(translated) != len(titles)
            or not all(isinstance(t, str) for t in translated)
        ):
            logger.warning(f"{self.name} returned mismatched titles, keeping originals")
            return list(titles)
        return translated

    def _parse_post(self, data: Any, comments: list[CommentDTO]) -> TranslatedPostDTO:
        content = clean_response_content(self.extract_content(data))
        try:
            raw = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"{self.name} JSON parse failed: {e}")
            raise MalformedResponseError(f"{self.name} response is not valid JSON: {e}")

        translated = parse_translated_post(raw)
        translated.comments = clamp_to_source(translated.comments, comments)
        return translated


class _ChatCompletionsStrategy(AIJsonStrategy):
    """OpenAI-compatible chat/completions response handling."""

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def extract_usage(self, response_data: Any) -> Optional[int]:
        try:
            return response_data["usage"]["total_tokens"]
        except (KeyError, TypeError):
            return None

    def extract_content(self, response_data: Any) -> str:
        try:
            content = response_data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise MalformedResponseError(f"{self.name} response has no message content")
        return content or "{}"


class DeepSeekStrategy(_ChatCompletionsStrategy):
    name = "deepseek"
    base_url = "https://api.deepseek.com/chat/completions"

    def build_request_body(self, prompt: str) -> dict:
        return {
            "model": self._model_name,
            "messages": [
                {"role": "system", "content": "You are a helpful assistant. Please output JSON."},
                {"role": "user", "content": prompt},
            ],
            "response_format": {"type": "json_object"},
        }


class OpenRouterStrategy(_ChatCompletionsStrategy):
    name = "openrouter"
    base_url = "https://openrouter.ai/api/v1/chat/completions"

    def build_request_body(self, prompt: str) -> dict:
        return {
            "model": self._model_name,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {"type": "json_object"},
        }


class GeminiStrategy(AIJsonStrategy):
    name = "gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta/models"

    def request_url(self) -> str:
        return f"{self.base_url}/{self._model_name}:generateContent"

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self._api_key,
        }

    def build_request_body(self, prompt: str) -> dict:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }

    def extract_usage(self, response_data: Any) -> Optional[int]:
        try:
            return response_data["usageMetadata"]["totalTokenCount"]
        except (KeyError, TypeError):
            return None

    def extract_content(self, response_data: Any) -> str:
        try:
            parts = response_data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            raise MalformedResponseError("gemini response has no candidates")
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict)) or "{}"


AI_STRATEGIES: dict[str, type[AIJsonStrategy]] = {
    DeepSeekStrategy.name: DeepSeekStrategy,
    OpenRouterStrategy.name: OpenRouterStrategy,
    GeminiStrategy.name: GeminiStrategy,
}
