# storefront/services/stock.py
"""
Расчет доступного остатка с учетом того, что уже лежит в корзине.

Все функции чистые: результат всегда вычисляется заново из снимка каталога
и текущего CartState и нигде не кешируется, поэтому карточка, слайдер и
модальное окно товара всегда видят одно и то же число.
"""

from typing import Optional, Protocol

from storefront.core.config import settings
from storefront.schemas.cart import CartState
from storefront.schemas.product import StockAvailability


class StockedProduct(Protocol):
    id: int
    stock: int


def quantity_in_cart(product_id: int, cart_state: CartState) -> int:
    item = cart_state.get_item(product_id)
    return item.quantity if item else 0


def available_stock(product: StockedProduct, cart_state: CartState) -> int:
    return max(0, product.stock - quantity_in_cart(product.id, cart_state))


def is_out_of_stock(product: StockedProduct, cart_state: CartState) -> bool:
    return available_stock(product, cart_state) == 0


def is_low_stock(
    product: StockedProduct, cart_state: CartState, threshold: Optional[int] = None
) -> bool:
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    return 0 < available_stock(product, cart_state) < threshold


def can_add_to_cart(product: StockedProduct, cart_state: CartState, quantity: int = 1) -> bool:
    """
    Только сообщает, можно ли добавить quantity единиц. Отклонить запрос
    до вызова CartStore.add_item/update_quantity должен вызывающий код.
    """
    return available_stock(product, cart_state) >= quantity


def max_addable(product: StockedProduct, cart_state: CartState, requested: int) -> int:
    """Сколько из запрошенных единиц реально можно добавить (для выбора количества)."""
    return max(0, min(available_stock(product, cart_state), requested))


def evaluate(
    product: StockedProduct, cart_state: CartState, threshold: Optional[int] = None
) -> StockAvailability:
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    in_cart = quantity_in_cart(product.id, cart_state)
    available = max(0, product.stock - in_cart)
    return StockAvailability(
        product_id=product.id,
        stock=product.stock,
        in_cart=in_cart,
        available=available,
        is_out_of_stock=available == 0,
        is_low_stock=0 < available < threshold,
    )
