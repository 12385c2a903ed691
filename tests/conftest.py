# tests/conftest.py
from decimal import Decimal
from typing import List, Optional
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from storefront import dependencies
from storefront.core.exceptions import CatalogUnavailableError, ProductNotFoundError, TranslationServiceError
from storefront.schemas.cart import CartItemCreate
from storefront.schemas.product import CatalogEntry
from storefront.main import app
from storefront.services.storage import MemoryStorage
from storefront.services.translation_cache import CachedTranslator, TranslationCache


def make_entry(product_id: int = 42, **overrides) -> CatalogEntry:
    data = {
        "id": product_id,
        "title": f"Producto {product_id}",
        "slug": f"producto-{product_id}",
        "description": f"Descripción del producto {product_id}",
        "price": Decimal("25.00"),
        "image": f"img-{product_id}",
        "category": 1,
        "stock": 5,
        "status": "published",
    }
    data.update(overrides)
    return CatalogEntry(**data)


def make_cart_item(product_id: int = 42, price: int = 2500, **overrides) -> CartItemCreate:
    data = {
        "id": product_id,
        "title": f"Producto {product_id}",
        "price": price,
        "image": f"https://cdn.test/{product_id}.webp",
        "category": 1,
    }
    data.update(overrides)
    return CartItemCreate(**data)


class FakeCatalog:
    """Подменяет CatalogClient: отдает заранее заданные товары без сети."""

    def __init__(self, products: Optional[List[CatalogEntry]] = None, featured: Optional[List[CatalogEntry]] = None):
        self.products = products or []
        self.featured = featured or []
        self.fail_products = False
        self.fail_featured = False
        self.fetch_products = AsyncMock(side_effect=self._fetch_products)
        self.fetch_featured_products = AsyncMock(side_effect=self._fetch_featured)
        self.fetch_categories = AsyncMock(return_value=[])

    async def _fetch_products(self):
        if self.fail_products:
            raise CatalogUnavailableError("catalog down")
        return list(self.products)

    async def _fetch_featured(self):
        if self.fail_featured:
            raise CatalogUnavailableError("featured down")
        return list(self.featured)

    async def fetch_product(self, product_id: int) -> CatalogEntry:
        if self.fail_products:
            raise CatalogUnavailableError("catalog down")
        for product in self.products:
            if product.id == product_id:
                return product
        raise ProductNotFoundError(product_id)

    def image_url(self, image_ref):
        return f"https://catalog.test/assets/{image_ref}" if image_ref else "/cookies.webp"


class FakeTranslator:
    """Переводчик-заглушка: добавляет префикс языка и считает вызовы."""

    def __init__(self, fail_on: Optional[set] = None):
        self.fail_on = fail_on or set()
        self.calls = []

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls.append((text, source_lang, target_lang))
        if text in self.fail_on:
            raise TranslationServiceError(f"cannot translate {text!r}")
        return f"[{target_lang}] {text}"


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog(products=[make_entry(1), make_entry(2, description=None), make_entry(42)])


@pytest.fixture
def fake_translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def translation_cache(storage) -> TranslationCache:
    return TranslationCache(storage, "translation-cache")


@pytest.fixture
async def client(storage, fake_catalog, fake_translator, translation_cache):
    """HTTP-клиент к приложению с подмененными зависимостями (без Redis и сети)."""
    app.dependency_overrides[dependencies.get_storage] = lambda: storage
    app.dependency_overrides[dependencies.get_catalog_client] = lambda: fake_catalog
    app.dependency_overrides[dependencies.get_translation_cache] = lambda: translation_cache
    app.dependency_overrides[dependencies.get_cached_translator] = (
        lambda: CachedTranslator(fake_translator, translation_cache)
    )
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def session_headers() -> dict:
    return {"X-Session-Id": "session-123"}
