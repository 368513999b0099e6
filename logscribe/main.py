"""LogScribe command-line entry point."""

import argparse
import asyncio
import sys

from logscribe.core.config_manager import ConfigManager
from logscribe.core.logger import get_logger, setup_logger
from logscribe.core.database import DatabaseManager
from logscribe.core.cache_store import CacheStore
from logscribe.core.rate_limiter import RateLimiter
from logscribe.core.token_usage import TokenUsageCounter
from logscribe.adapters.public_json_adapter import PublicJSONAdapter
from logscribe.services.content_pipeline import ContentPipeline
from logscribe.services.log_renderer import LogRenderer
from logscribe.services.translation_orchestrator import TranslationOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="logscribe", description="Read Reddit threads as translated logs.")
    sub = parser.add_subparsers(dest="command", required=True)

    read = sub.add_parser("read", help="Render a post and its comments")
    read.add_argument("subreddit")
    read.add_argument("post_id")
    read.add_argument("--fast-only", action="store_true", help="Print the untranslated render and exit")

    titles = sub.add_parser("titles", help="Translate post titles")
    titles.add_argument("titles", nargs="+")

    sub.add_parser("clear-cache", help="Remove all cached renders")
    return parser


def build_pipeline(config: ConfigManager, db: DatabaseManager) -> ContentPipeline:
    """Wire adapters and services from configuration."""
    logger = get_logger()

    usage = TokenUsageCounter()
    usage.subscribe(lambda total: logger.info(f"Token usage: {total}"))

    translator = TranslationOrchestrator(
        usage=usage,
        target_lang=config.get("translation.target_lang", "zh-CN"),
    )
    translator.update_config(*config.get_translation_settings())

    cache = CacheStore(db, duration_minutes=config.get("cache.duration_minutes", 30))
    renderer = LogRenderer(word_wrap_width=config.get("display.word_wrap_width", 80))
    client = PublicJSONAdapter(
        rate_limiter=RateLimiter(),
        max_retries=config.get("reddit.max_retries", 3),
        mock_mode=config.get("reddit.mock_mode", False),
    )
    return ContentPipeline(client, translator, cache, renderer)


async def run(args: argparse.Namespace, pipeline: ContentPipeline) -> int:
    if args.command == "read":
        print(await pipeline.provide_content(args.subreddit, args.post_id))
        if args.fast_only or pipeline.background_count == 0:
            return 0
        await pipeline.wait_for_background()
        print(await pipeline.provide_content(args.subreddit, args.post_id))
        return 0

    if args.command == "titles":
        for title in await pipeline.translate_titles(args.titles):
            print(title)
        return 0

    if args.command == "clear-cache":
        print(f"Cleared {pipeline.clear_cache()} cached entries")
        return 0

    return 1


def main(argv=None):
    """Main entry point for LogScribe.

    Startup sequence:
    1. ConfigManager init (loads or creates settings.yaml)
    2. Logger init (reads log_level from config)
    3. DatabaseManager init (creates tables if needed)
    4. Adapter and service creation
    5. Command dispatch on a fresh event loop
    """
    args = build_parser().parse_args(argv)

    config = ConfigManager()

    log_level = config.get("app.log_level", "INFO")
    mask_logs = config.get("security.mask_logs", True)
    logger = setup_logger(log_level=log_level, mask_logs=mask_logs)
    logger.info("LogScribe starting...")

    db_path = config.get_db_path()
    db = DatabaseManager(db_path)
    logger.info(f"Database initialized: {db_path}")

    pipeline = build_pipeline(config, db)

    try:
        exit_code = asyncio.run(run(args, pipeline))
    finally:
        db.close()
        logger.info("LogScribe shutting down")

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
