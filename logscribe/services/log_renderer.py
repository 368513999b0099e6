"""Fixed-width log-style rendering of a translated post and its comment tree."""

import time
from datetime import datetime, timezone
from typing import Optional

from logscribe.core.types import PostDTO, TranslatedCommentDTO, TranslatedPostDTO

HEAVY_RULE = "=" * 80
LIGHT_RULE = "-" * 80

ROOT_INDENT = " " * 7
BRANCH_MIDDLE = "├── "
BRANCH_LAST = "└── "
CONTINUE_BAR = "│   "
CONTINUE_BLANK = "    "

WRAP_BREAK_RATIO = 0.7


def word_wrap(text: str, width: int) -> list[str]:
    """Wrap text to `width` characters.

    Paragraphs are split on newlines. A line breaks at the last space at or
    before `width` if that space sits beyond 70% of the width; otherwise it
    hard-breaks at `width` (needed for scripts without spaces such as CJK).
    Blank lines are dropped.
    """
    lines: list[str] = []
    if not text:
        return lines

    for para in text.split("\n"):
        if not para.strip():
            continue

        remaining = para
        while width > 0 and len(remaining) > width:
            split_index = width
            space_index = remaining.rfind(" ", 0, width + 1)
            if space_index > width * WRAP_BREAK_RATIO:
                split_index = space_index

            lines.append(remaining[:split_index])
            remaining = remaining[split_index:].strip()

        if remaining:
            lines.append(remaining)

    return [line for line in lines if line.strip()]


class LogRenderer:
    """Deterministic text builder for the log view.

    The output format (rules, labels, indentation characters) is stable
    byte for byte; cached documents are compared as plain strings.
    """

    def __init__(self, word_wrap_width: int = 80):
        self._word_wrap_width = word_wrap_width

    @property
    def word_wrap_width(self) -> int:
        return self._word_wrap_width

    def update_config(self, word_wrap_width: int) -> None:
        self._word_wrap_width = word_wrap_width

    def render(
        self,
        original: PostDTO,
        translated: TranslatedPostDTO,
        provider_name: Optional[str] = None,
    ) -> str:
        timestamp = self.format_timestamp(original.created_utc)
        provider_info = f" | SOURCE: {provider_name.upper()}" if provider_name else ""

        parts = [
            f"{HEAVY_RULE}\n"
            f"[SYSTEM LOG] {timestamp} | PID: {original.id}{provider_info}\n"
            f"{HEAVY_RULE}\n"
            f"\n"
            f"[INFO] AUTHOR: {original.author} | SCORE: {original.score} | COMMENTS: {original.num_comments}\n"
            f"[TITLE] {translated.title}\n"
            f"\n"
            f"[CONTENT]\n"
            f"{translated.selftext or '[NO CONTENT]'}\n"
            f"\n"
            f"{HEAVY_RULE}\n"
            f"[TRACE LOG] COMMENTS\n"
            f"{HEAVY_RULE}\n"
        ]

        if translated.comments:
            parts.append(self.format_comments(translated.comments))

        parts.append(
            f"\n"
            f"{LIGHT_RULE}\n"
            f"[DEBUG] COMMENTS LOADED | END OF LOG\n"
            f"{LIGHT_RULE}\n"
        )
        return "".join(parts)

    def render_error(self, error: BaseException, now: Optional[float] = None) -> str:
        """In-band failure document, so the display surface always gets text."""
        millis = int((time.time() if now is None else now) * 1000)
        return (
            f"[ERROR] 0x0001 DECODE FAILURE | TIMESTAMP: {millis}\n"
            f"[TRACE] MODULE: ContentDecoder | STATUS: FAILED\n"
            f"[DETAILS] {type(error).__name__}: {error}\n"
        )

    def format_comments(
        self,
        comments: list[TranslatedCommentDTO],
        parent_id: str = "",
        indent: str = "",
    ) -> str:
        output = []

        for i, c in enumerate(comments):
            idx = i + 1
            current_id = f"{parent_id}.{idx}" if parent_id else f"{idx:03d}"
            is_last = i == len(comments) - 1

            if not parent_id:
                header = f"[#{current_id}] {c.author}"
                body_indent = ROOT_INDENT
            else:
                branch = BRANCH_LAST if is_last else BRANCH_MIDDLE
                header = f"{indent}{branch}[#{current_id}] {c.author}"
                body_indent = indent + (CONTINUE_BLANK if is_last else CONTINUE_BAR)

            output.append(f"{header}\n")
            for line in word_wrap(c.body, self._word_wrap_width):
                output.append(f"{body_indent}{line}\n")

            if c.replies:
                output.append(self.format_comments(c.replies, current_id, body_indent))

            if not parent_id:
                output.append("\n")

        return "".join(output)

    @staticmethod
    def format_timestamp(created_utc: float) -> str:
        return datetime.fromtimestamp(created_utc, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
