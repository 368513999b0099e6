"""Tests for the command-line entry point."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from logscribe.main import build_parser, run


def _pipeline(background=0):
    pipeline = MagicMock()
    pipeline.provide_content = AsyncMock(side_effect=["fast doc", "final doc"])
    pipeline.wait_for_background = AsyncMock()
    pipeline.translate_titles = AsyncMock(return_value=["一", "二"])
    pipeline.clear_cache.return_value = 3
    pipeline.background_count = background
    return pipeline


class TestParser:
    def test_read_command(self):
        args = build_parser().parse_args(["read", "python", "abc123", "--fast-only"])
        assert args.command == "read"
        assert args.subreddit == "python"
        assert args.post_id == "abc123"
        assert args.fast_only is True

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestRun:
    @pytest.mark.asyncio
    async def test_read_waits_and_prints_final(self, capsys):
        pipeline = _pipeline(background=1)
        args = build_parser().parse_args(["read", "python", "abc123"])

        assert await run(args, pipeline) == 0

        pipeline.wait_for_background.assert_awaited_once()
        assert capsys.readouterr().out == "fast doc\nfinal doc\n"

    @pytest.mark.asyncio
    async def test_read_fast_only(self, capsys):
        pipeline = _pipeline(background=1)
        args = build_parser().parse_args(["read", "python", "abc123", "--fast-only"])

        await run(args, pipeline)

        pipeline.wait_for_background.assert_not_awaited()
        assert capsys.readouterr().out == "fast doc\n"

    @pytest.mark.asyncio
    async def test_titles(self, capsys):
        args = build_parser().parse_args(["titles", "one", "two"])
        await run(args, _pipeline())
        assert capsys.readouterr().out == "一\n二\n"

    @pytest.mark.asyncio
    async def test_clear_cache(self, capsys):
        args = build_parser().parse_args(["clear-cache"])
        await run(args, _pipeline())
        assert capsys.readouterr().out == "Cleared 3 cached entries\n"
