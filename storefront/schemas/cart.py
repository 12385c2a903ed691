# storefront/schemas/cart.py
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class CartItemCreate(BaseModel):
    """Данные товара, которые фиксируются в корзине в момент добавления."""
    id: int
    title: str
    price: int = Field(..., ge=0)  # в минорных единицах
    image: str
    category: Optional[int] = None


class CartItem(CartItemCreate):
    quantity: int = Field(..., ge=1)

    model_config = ConfigDict(frozen=True)


class CartState(BaseModel):
    """
    Неизменяемый снимок корзины. total и item_count всегда вычисляются
    из items при создании нового состояния и отдельно не хранятся.
    """
    items: Tuple[CartItem, ...] = ()
    total: int = 0
    item_count: int = 0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_items(cls, items) -> "CartState":
        items = tuple(items)
        total = sum(item.price * item.quantity for item in items)
        item_count = sum(item.quantity for item in items)
        return cls(items=items, total=total, item_count=item_count)

    def get_item(self, product_id: int) -> Optional[CartItem]:
        for item in self.items:
            if item.id == product_id:
                return item
        return None


# --- Схемы HTTP-запросов ---

class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = Field(1, gt=0)
    language: Optional[str] = None


class CartItemQuantityUpdate(BaseModel):
    # Разрешаем 0 и отрицательные значения: они означают удаление позиции
    quantity: int


class CartStatusResponse(BaseModel):
    status: str = "ok"
    message: str
    cart: CartState
