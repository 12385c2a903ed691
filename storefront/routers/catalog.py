# storefront/routers/catalog.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from storefront.clients.catalog import CatalogClient
from storefront.core.config import settings
from storefront.dependencies import get_cart_store, get_catalog_client, get_localization_pipeline
from storefront.schemas.product import CatalogCategory, LocalizationResult, StockAvailability
from storefront.services import stock as stock_service
from storefront.services.cart import CartStore
from storefront.services.localization import LocalizationPipeline

router = APIRouter()


@router.get("/categories", response_model=List[CatalogCategory])
async def get_categories(catalog: CatalogClient = Depends(get_catalog_client)):
    """Список опубликованных категорий каталога."""
    return await catalog.fetch_categories()


@router.get("/products", response_model=LocalizationResult)
async def get_products(
    lang: Optional[str] = Query(None, description="Язык витрины (по умолчанию канонический)"),
    featured: bool = Query(False, description="Только рекомендуемые товары"),
    pipeline: LocalizationPipeline = Depends(get_localization_pipeline),
):
    """
    Товары на запрошенном языке. Если перевод не удался, возвращается
    каталог на каноническом языке с translated=false и предупреждением.
    """
    return await pipeline.run(lang or settings.CANONICAL_LANGUAGE, featured=featured)


@router.get("/products/{product_id}/availability", response_model=StockAvailability)
async def get_product_availability(
    product_id: int,
    catalog: CatalogClient = Depends(get_catalog_client),
    cart: CartStore = Depends(get_cart_store),
):
    """Сколько единиц товара еще можно добавить с учетом корзины текущей сессии."""
    product = await catalog.fetch_product(product_id)
    return stock_service.evaluate(product, cart.state)
