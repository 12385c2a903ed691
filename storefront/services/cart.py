# storefront/services/cart.py

import asyncio
import json
import logging
import weakref
from typing import Callable, List, Optional

from pydantic import ValidationError

from storefront.core.exceptions import MalformedPersistedStateError, StorageError
from storefront.schemas.cart import CartItem, CartItemCreate, CartState
from storefront.services.storage import KeyValueStorage

logger = logging.getLogger(__name__)

CartListener = Callable[[CartState], None]


def decode_cart_snapshot(raw: str) -> CartState:
    """
    Разбирает сохраненный снимок корзины (JSON-массив позиций).
    Итоги не читаются из снимка, а всегда пересчитываются.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedPersistedStateError("Cart snapshot is not valid JSON") from e

    if not isinstance(payload, list):
        raise MalformedPersistedStateError("Cart snapshot must be a list of items")

    items: List[CartItem] = []
    seen_ids = set()
    for raw_item in payload:
        try:
            item = CartItem.model_validate(raw_item)
        except ValidationError as e:
            raise MalformedPersistedStateError(f"Invalid cart item in snapshot: {raw_item!r}") from e
        if item.id in seen_ids:
            raise MalformedPersistedStateError(f"Duplicate product {item.id} in cart snapshot")
        seen_ids.add(item.id)
        items.append(item)

    return CartState.from_items(items)


def encode_cart_snapshot(state: CartState) -> str:
    return json.dumps([item.model_dump(mode="json") for item in state.items], ensure_ascii=False)


class CartStore:
    """
    Единственный источник правды о содержимом корзины покупателя.

    Все изменения идут через add_item/remove_item/update_quantity/clear_cart.
    Каждый переход синхронно создает новый CartState (с пересчитанными
    total и item_count), атомарно подменяет текущий, сохраняет снимок в
    хранилище и уведомляет подписчиков. Остатки здесь не проверяются:
    это обязанность вызывающей стороны (см. services.stock).
    """

    def __init__(self, storage: KeyValueStorage, storage_key: str):
        self.storage = storage
        self.storage_key = storage_key
        self._listeners: List[CartListener] = []
        self._state = self._restore()

    @property
    def state(self) -> CartState:
        return self._state

    # --- Переходы ---

    def add_item(self, item: CartItemCreate) -> CartState:
        existing = self._state.get_item(item.id)
        if existing:
            new_items = [
                i.model_copy(update={"quantity": i.quantity + 1}) if i.id == item.id else i
                for i in self._state.items
            ]
        else:
            new_items = [*self._state.items, CartItem(**{**item.model_dump(), "quantity": 1})]
        return self._commit(new_items, action="add", product_id=item.id)

    def remove_item(self, product_id: int) -> CartState:
        new_items = [i for i in self._state.items if i.id != product_id]
        return self._commit(new_items, action="remove", product_id=product_id)

    def update_quantity(self, product_id: int, quantity: int) -> CartState:
        if quantity <= 0:
            return self.remove_item(product_id)
        new_items = [
            i.model_copy(update={"quantity": quantity}) if i.id == product_id else i
            for i in self._state.items
        ]
        return self._commit(new_items, action="update", product_id=product_id)

    def clear_cart(self) -> CartState:
        return self._commit([], action="clear")

    # --- Подписка на изменения ---

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Регистрирует обработчик изменений. Возвращает функцию отписки."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Внутреннее ---

    def _commit(self, items, action: str, product_id: Optional[int] = None) -> CartState:
        self._state = CartState.from_items(items)
        logger.debug(
            f"Cart '{self.storage_key}' {action} (product={product_id}): "
            f"{self._state.item_count} items, total={self._state.total}"
        )
        self._persist()
        self._notify()
        return self._state

    def _restore(self) -> CartState:
        try:
            raw = self.storage.get(self.storage_key)
        except StorageError:
            logger.warning(f"Could not read saved cart '{self.storage_key}'. Starting with an empty cart.")
            return CartState()

        if raw is None:
            return CartState()

        try:
            state = decode_cart_snapshot(raw)
        except MalformedPersistedStateError:
            logger.warning(
                f"Saved cart '{self.storage_key}' is malformed. Starting with an empty cart.",
                exc_info=True,
            )
            return CartState()

        logger.info(f"Restored cart '{self.storage_key}' with {len(state.items)} positions.")
        return state

    def _persist(self) -> None:
        try:
            self.storage.set(self.storage_key, encode_cart_snapshot(self._state))
        except StorageError:
            # Состояние в памяти остается авторитетным до конца сессии
            logger.error(f"Failed to persist cart '{self.storage_key}'.", exc_info=True)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.error("Cart listener failed.", exc_info=True)


class CartSessionLocks:
    """
    Блокировки корзин по ключу сессии (в пределах процесса).

    Запрос держит блокировку от восстановления корзины до сохранения
    результата, поэтому параллельные запросы одной сессии применяются
    по очереди и не затирают друг друга. Блокировка живет, пока ее
    кто-то держит или ждет.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, storage_key: str) -> asyncio.Lock:
        lock = self._locks.get(storage_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[storage_key] = lock
        return lock
