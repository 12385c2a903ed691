# warm_translation_cache.py
import argparse
import asyncio
import logging
import os
import sys

# Хак для корректной работы импортов
sys.path.append(os.getcwd())

from storefront.clients.catalog import CatalogClient
from storefront.clients.translator import TranslatorClient
from storefront.core.config import settings
from storefront.core.logging_config import setup_logging
from storefront.core.redis import create_redis_client
from storefront.services.localization import LocalizationPipeline
from storefront.services.storage import RedisStorage
from storefront.services.translation_cache import CachedTranslator, TranslationCache

logger = logging.getLogger(__name__)


async def warm_cache(pipeline: LocalizationPipeline, languages: list[str]) -> dict:
    """
    Прогоняет конвейер для каждого неканонического языка, чтобы заполнить
    кеш переводов до прихода покупателей. Возвращает {язык: переведено ли}.
    """
    results = {}
    for index, language in enumerate(languages, start=1):
        print(f"\n[{index}/{len(languages)}] Localizing catalog to '{language}'...")
        result = await pipeline.run(language)
        results[language] = result.translated
        if result.translated:
            print(f"Done. {len(result.items)} products translated.")
        else:
            print(f"Failed: {result.warning}")
    return results


async def main():
    parser = argparse.ArgumentParser(description="Fill the translation cache for all display languages.")
    parser.add_argument("--clear", action="store_true", help="Clear the cache before warming it")
    args = parser.parse_args()

    setup_logging()
    print("--- Translation Cache Warmer ---")

    redis_client = create_redis_client(settings)
    cache = TranslationCache(RedisStorage(redis_client), settings.TRANSLATION_CACHE_KEY)
    if args.clear:
        cache.clear()
    else:
        cache.load_from_storage()

    catalog_client = CatalogClient(
        base_url=settings.CATALOG_API_URL,
        timeout=settings.CATALOG_TIMEOUT_SECONDS,
        default_image_url=settings.DEFAULT_IMAGE_URL,
    )
    translator_client = TranslatorClient(
        api_url=settings.TRANSLATOR_API_URL,
        api_key=settings.TRANSLATOR_API_KEY,
        model=settings.TRANSLATOR_MODEL,
        timeout=settings.TRANSLATOR_TIMEOUT_SECONDS,
    )
    pipeline = LocalizationPipeline(
        catalog=catalog_client,
        translator=CachedTranslator(translator_client, cache),
        canonical_language=settings.CANONICAL_LANGUAGE,
        supported_languages=settings.SUPPORTED_LANGUAGE_LIST,
    )

    languages = [lang for lang in settings.SUPPORTED_LANGUAGE_LIST if lang != settings.CANONICAL_LANGUAGE]
    try:
        await warm_cache(pipeline, languages)
    finally:
        await catalog_client.aclose()
        await translator_client.aclose()
        redis_client.close()

    print(f"\nCache now holds {len(cache)} entries.")


if __name__ == "__main__":
    asyncio.run(main())
