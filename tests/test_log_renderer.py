"""Tests for LogRenderer and word_wrap."""

import pytest

from conftest import make_post
from logscribe.core.exceptions import PostNotFoundError
from logscribe.core.types import TranslatedCommentDTO, TranslatedPostDTO
from logscribe.services.log_renderer import (
    HEAVY_RULE,
    LIGHT_RULE,
    LogRenderer,
    word_wrap,
)


def _comment(author, body, replies=None):
    return TranslatedCommentDTO(author=author, body=body, replies=replies or [])


class TestWordWrap:
    @pytest.mark.parametrize("text, width, expected", [
        ("aaaaaaaaaabbbbbbbbbb", 10, ["aaaaaaaaaa", "bbbbbbbbbb"]),
        ("the quick brown fox jumps", 10, ["the quick", "brown fox", "jumps"]),
        ("short", 10, ["short"]),
        ("", 10, []),
        ("one\n\n\ntwo", 10, ["one", "two"]),
        ("ab cdefghijklmno", 10, ["ab cdefghi", "jklmno"]),
        ("中文没有空格的句子很长很长", 5, ["中文没有空", "格的句子很", "长很长"]),
    ])
    def test_wrap(self, text, width, expected):
        assert word_wrap(text, width) == expected

    def test_lines_never_exceed_width(self):
        text = "lorem ipsum dolor sit amet consectetur adipiscing elit " * 5
        assert all(len(line) <= 20 for line in word_wrap(text, 20))


class TestRender:
    def _render(self, comments=None, selftext="正文", provider="deepseek"):
        post = make_post(post_id="p1", author="op", score=7, num_comments=3, created_utc=0.0)
        translated = TranslatedPostDTO(title="标题", selftext=selftext, comments=comments or [])
        return LogRenderer(word_wrap_width=80).render(post, translated, provider)

    def test_header_block(self):
        lines = self._render().split("\n")
        assert lines[0] == HEAVY_RULE
        assert lines[1] == "[SYSTEM LOG] 1970-01-01 00:00:00 UTC | PID: p1 | SOURCE: DEEPSEEK"
        assert lines[2] == HEAVY_RULE
        assert lines[3] == ""
        assert lines[4] == "[INFO] AUTHOR: op | SCORE: 7 | COMMENTS: 3"
        assert lines[5] == "[TITLE] 标题"
        assert lines[7] == "[CONTENT]"
        assert lines[8] == "正文"

    def test_no_provider_omits_source(self):
        post = make_post(post_id="p1", created_utc=0.0)
        text = LogRenderer().render(post, TranslatedPostDTO(title="t", selftext="s"))
        assert text.split("\n")[1] == "[SYSTEM LOG] 1970-01-01 00:00:00 UTC | PID: p1"

    def test_empty_body_placeholder(self):
        assert "[CONTENT]\n[NO CONTENT]\n" in self._render(selftext="")

    def test_footer(self):
        text = self._render()
        assert text.endswith(
            f"\n{LIGHT_RULE}\n[DEBUG] COMMENTS LOADED | END OF LOG\n{LIGHT_RULE}\n"
        )
        assert f"{HEAVY_RULE}\n[TRACE LOG] COMMENTS\n{HEAVY_RULE}\n" in text

    def test_deterministic(self):
        comments = [_comment("a", "x", [_comment("b", "y")])]
        assert self._render(comments) == self._render(comments)


class TestFormatComments:
    def test_root_numbering_and_indent(self):
        renderer = LogRenderer()
        text = renderer.format_comments([_comment("alice", "hello"), _comment("bob", "world")])
        assert text == (
            "[#001] alice\n"
            "       hello\n"
            "\n"
            "[#002] bob\n"
            "       world\n"
            "\n"
        )

    def test_nested_branches(self):
        tree = [
            _comment("alice", "root", [
                _comment("bob", "first reply", [_comment("dave", "deep")]),
                _comment("carol", "last reply"),
            ]),
        ]
        text = LogRenderer().format_comments(tree)
        assert text == (
            "[#001] alice\n"
            "       root\n"
            "       ├── [#001.1] bob\n"
            "       │   first reply\n"
            "       │   └── [#001.1.1] dave\n"
            "       │       deep\n"
            "       └── [#001.2] carol\n"
            "           last reply\n"
            "\n"
        )

    def test_reply_block_between_roots(self):
        tree = [
            _comment("a", "x"),
            _comment("b", "y", [_comment("c", "r1"), _comment("d", "r2")]),
            _comment("e", "z"),
        ]
        text = LogRenderer().format_comments(tree)
        assert text == (
            "[#001] a\n"
            "       x\n"
            "\n"
            "[#002] b\n"
            "       y\n"
            "       ├── [#002.1] c\n"
            "       │   r1\n"
            "       └── [#002.2] d\n"
            "           r2\n"
            "\n"
            "[#003] e\n"
            "       z\n"
            "\n"
        )

    def test_body_wrapped_with_indent(self):
        renderer = LogRenderer(word_wrap_width=10)
        text = renderer.format_comments([_comment("a", "the quick brown fox jumps")])
        assert text == (
            "[#001] a\n"
            "       the quick\n"
            "       brown fox\n"
            "       jumps\n"
            "\n"
        )

    def test_update_config_changes_width(self):
        renderer = LogRenderer(word_wrap_width=80)
        renderer.update_config(10)
        assert renderer.word_wrap_width == 10


class TestRenderError:
    def test_error_document(self):
        text = LogRenderer().render_error(PostNotFoundError("Not found: x"), now=1700000000.5)
        assert text == (
            "[ERROR] 0x0001 DECODE FAILURE | TIMESTAMP: 1700000000500\n"
            "[TRACE] MODULE: ContentDecoder | STATUS: FAILED\n"
            "[DETAILS] PostNotFoundError: Not found: x\n"
        )
