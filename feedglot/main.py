"""Feedglot entry point: translate a list of articles from the command line."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from feedglot.adapters.http_translation_api import HTTPTranslationAPI
from feedglot.core.config_manager import ConfigManager
from feedglot.core.exceptions import FeedglotError
from feedglot.core.logger import setup_logger
from feedglot.core.translation_store import TranslationStore
from feedglot.core.types import BatchArticle
from feedglot.services.translation_coordinator import TranslationCoordinator


def create_coordinator(config: ConfigManager) -> TranslationCoordinator:
    """Wire the transport, store and coordinator from configuration."""
    api = HTTPTranslationAPI(
        base_url=config.get("api.base_url", "http://localhost:8080"),
        batch_path=config.get("api.batch_translate_path", "/api/ai/translate/batch"),
        timeout=config.get("api.timeout", 120),
        max_batch_size=config.get("translation.max_batch_size", 100),
    )
    return TranslationCoordinator(api, TranslationStore())


def load_articles(path: Path) -> list[BatchArticle]:
    """Load a JSON array of {"id", "title", "summary"} objects."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return [
        BatchArticle(id=str(item["id"]), title=item.get("title", ""), summary=item.get("summary"))
        for item in data
    ]


async def run(coordinator: TranslationCoordinator, articles: list[BatchArticle],
              language: str) -> None:
    try:
        await coordinator.translate_articles_batch(articles, language)
    finally:
        await coordinator.aclose()

    for article in articles:
        translation = coordinator.store.get_translation(article.id, language)
        title = translation.title if translation and translation.title else article.title
        summary = translation.summary if translation and translation.summary else article.summary
        print(f"[{article.id}] {title}")
        if summary:
            print(f"    {summary}")


def main(argv=None):
    """Main entry point.

    Startup sequence:
    1. ConfigManager init (loads or creates settings.yaml)
    2. Logger init (reads log_level from config)
    3. Coordinator creation (transport + store)
    4. One batch translation, results printed
    """
    parser = argparse.ArgumentParser(description="Translate article titles and summaries.")
    parser.add_argument("articles", type=Path, help="JSON file with [{id, title, summary}]")
    parser.add_argument("--language", help="Target language (default from config)")
    args = parser.parse_args(argv)

    config = ConfigManager()

    logger = setup_logger(
        log_level=config.get("app.log_level", "INFO"),
        mask_logs=config.get("security.mask_logs", True),
    )
    logger.info("Feedglot starting...")

    language = args.language or config.get("translation.target_language", "en")
    coordinator = create_coordinator(config)

    try:
        articles = load_articles(args.articles)
        asyncio.run(run(coordinator, articles, language))
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Cannot read articles from {args.articles}: {e}")
        sys.exit(2)
    except FeedglotError as e:
        logger.error(f"Translation failed: {e}")
        sys.exit(1)

    logger.info("Feedglot shutting down")


if __name__ == "__main__":
    main()
