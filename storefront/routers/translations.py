# storefront/routers/translations.py

from fastapi import APIRouter, Depends

from storefront.core import locales
from storefront.dependencies import get_translation_cache
from storefront.services.translation_cache import TranslationCache

router = APIRouter()


@router.get("/translations/cache")
def get_translation_cache_stats(cache: TranslationCache = Depends(get_translation_cache)):
    return cache.stats()


@router.delete("/translations/cache")
def clear_translation_cache(cache: TranslationCache = Depends(get_translation_cache)):
    """Полная очистка кеша переводов (по одной записи кеш не чистится)."""
    cache.clear()
    return {"status": "ok", "message": locales.get_message("SUCCESS_TRANSLATION_CACHE_CLEARED")}
