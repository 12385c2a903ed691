# storefront/dependencies.py

import logging
from typing import AsyncIterator

from fastapi import Depends, Header, Request
from fastapi.concurrency import run_in_threadpool

from storefront.clients.catalog import CatalogClient
from storefront.core.config import settings
from storefront.services.cart import CartSessionLocks, CartStore
from storefront.services.localization import LocalizationPipeline
from storefront.services.storage import KeyValueStorage
from storefront.services.translation_cache import CachedTranslator, TranslationCache

logger = logging.getLogger(__name__)

# Все сервисы создаются в lifespan (main.py) и лежат в app.state.
# Тесты подменяют их через app.dependency_overrides.


def get_storage(request: Request) -> KeyValueStorage:
    return request.app.state.storage


def get_catalog_client(request: Request) -> CatalogClient:
    return request.app.state.catalog_client


def get_translation_cache(request: Request) -> TranslationCache:
    return request.app.state.translation_cache


def get_cached_translator(request: Request) -> CachedTranslator:
    return request.app.state.translator


def get_localization_pipeline(
    catalog: CatalogClient = Depends(get_catalog_client),
    translator: CachedTranslator = Depends(get_cached_translator),
) -> LocalizationPipeline:
    """Конвейер легкий и без состояния между запросами, поэтому создается на каждый запрос."""
    return LocalizationPipeline(
        catalog=catalog,
        translator=translator,
        canonical_language=settings.CANONICAL_LANGUAGE,
        supported_languages=settings.SUPPORTED_LANGUAGE_LIST,
        featured_limit=settings.CATALOG_FEATURED_LIMIT,
    )


def get_cart_locks(request: Request) -> CartSessionLocks:
    return request.app.state.cart_locks


async def get_cart_store(
    session_id: str = Header(..., alias="X-Session-Id", min_length=1, max_length=128),
    storage: KeyValueStorage = Depends(get_storage),
    locks: CartSessionLocks = Depends(get_cart_locks),
) -> AsyncIterator[CartStore]:
    """
    Корзина сессии покупателя. Состояние восстанавливается из хранилища
    на каждом запросе; битый снимок превращается в пустую корзину.
    Блокировка сессии держится до конца запроса: проверка остатка и
    изменение корзины видят одно и то же актуальное состояние.
    """
    storage_key = f"{settings.CART_STORAGE_PREFIX}:{session_id}"
    async with locks.get(storage_key):
        cart = await run_in_threadpool(CartStore, storage, storage_key)
        yield cart
