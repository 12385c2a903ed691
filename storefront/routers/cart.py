# storefront/routers/cart.py

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from storefront.clients.catalog import CatalogClient
from storefront.core import locales
from storefront.core.config import settings
from storefront.core.exceptions import TranslationServiceError, UnsupportedLanguageError
from storefront.dependencies import get_cached_translator, get_cart_store, get_catalog_client
from storefront.schemas.cart import CartItemAdd, CartItemCreate, CartItemQuantityUpdate, CartState, CartStatusResponse
from storefront.schemas.product import to_minor_units
from storefront.services import stock as stock_service
from storefront.services.cart import CartStore
from storefront.services.translation_cache import CachedTranslator

logger = logging.getLogger(__name__)

router = APIRouter()


def _reject_not_enough_stock(available: int, language: str | None):
    if available == 0:
        detail = locales.get_message("ERROR_OUT_OF_STOCK", language)
    else:
        detail = locales.get_message("ERROR_NOT_ENOUGH_STOCK", language, available_quantity=available)
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def _add_units(cart: CartStore, item: CartItemCreate, quantity: int) -> CartState:
    for _ in range(quantity):
        cart.add_item(item)
    return cart.state


@router.get("/cart", response_model=CartState)
def get_cart(cart: CartStore = Depends(get_cart_store)):
    """Содержимое корзины текущей сессии."""
    return cart.state


@router.post("/cart/items", response_model=CartStatusResponse)
async def add_cart_item(
    item_data: CartItemAdd,
    cart: CartStore = Depends(get_cart_store),
    catalog: CatalogClient = Depends(get_catalog_client),
    translator: CachedTranslator = Depends(get_cached_translator),
):
    """
    Добавление товара в корзину с проверкой остатка.
    Название фиксируется на языке витрины в момент добавления.
    """
    language = item_data.language or settings.CANONICAL_LANGUAGE
    if language not in settings.SUPPORTED_LANGUAGE_LIST:
        raise UnsupportedLanguageError(language, settings.SUPPORTED_LANGUAGE_LIST)

    product = await catalog.fetch_product(item_data.product_id)

    if not stock_service.can_add_to_cart(product, cart.state, item_data.quantity):
        _reject_not_enough_stock(stock_service.available_stock(product, cart.state), item_data.language)

    title = product.title
    if language != settings.CANONICAL_LANGUAGE:
        try:
            title = await translator.translate(product.title, settings.CANONICAL_LANGUAGE, language)
        except TranslationServiceError:
            logger.warning(f"Could not translate title for product {product.id}. Using original title.")

    new_item = CartItemCreate(
        id=product.id,
        title=title,
        price=to_minor_units(product.price),
        image=catalog.image_url(product.image),
        category=product.category,
    )
    await run_in_threadpool(_add_units, cart, new_item, item_data.quantity)

    return CartStatusResponse(
        message=locales.get_message("SUCCESS_CART_UPDATED", item_data.language),
        cart=cart.state,
    )


@router.put("/cart/items/{product_id}", response_model=CartStatusResponse)
async def update_cart_item(
    product_id: int,
    update: CartItemQuantityUpdate,
    cart: CartStore = Depends(get_cart_store),
    catalog: CatalogClient = Depends(get_catalog_client),
):
    """Установка количества. 0 и меньше удаляют позицию."""
    current = cart.state.get_item(product_id)
    if current is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=locales.get_message("ERROR_ITEM_NOT_IN_CART"),
        )

    if update.quantity > current.quantity:
        product = await catalog.fetch_product(product_id)
        extra = update.quantity - current.quantity
        if not stock_service.can_add_to_cart(product, cart.state, extra):
            _reject_not_enough_stock(stock_service.available_stock(product, cart.state), None)

    await run_in_threadpool(cart.update_quantity, product_id, update.quantity)
    return CartStatusResponse(message=locales.get_message("SUCCESS_CART_UPDATED"), cart=cart.state)


@router.delete("/cart/items/{product_id}", response_model=CartStatusResponse)
def delete_cart_item(product_id: int, cart: CartStore = Depends(get_cart_store)):
    cart.remove_item(product_id)
    return CartStatusResponse(message=locales.get_message("SUCCESS_ITEM_REMOVED_FROM_CART"), cart=cart.state)


@router.delete("/cart", response_model=CartStatusResponse)
def clear_cart(cart: CartStore = Depends(get_cart_store)):
    cart.clear_cart()
    return CartStatusResponse(message=locales.get_message("SUCCESS_CART_CLEARED"), cart=cart.state)
