# storefront/schemas/product.py
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.core.config import settings
from storefront.schemas.cart import CartItemCreate

PUBLISHED_STATUSES = ("published", "draft")


def to_minor_units(price: Decimal, exponent: Optional[int] = None) -> int:
    """
    Цена каталога (основные единицы, например 3.50) в целых минорных
    единицах (350). Округление половины вверх применяется только к
    знакам дальше exponent.
    """
    if exponent is None:
        exponent = settings.CURRENCY_MINOR_UNITS
    minor = Decimal(price).scaleb(exponent)
    return int(minor.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CatalogCategory(BaseModel):
    id: int
    name: str
    slug: str
    icon: Optional[str] = None
    status: str = "published"

    model_config = ConfigDict(frozen=True)


class CatalogEntry(BaseModel):
    """
    Снимок товара из удаленного каталога (на каноническом языке).
    Ядро только читает такие снимки и никогда их не изменяет.
    """
    id: int
    title: str
    slug: str = ""
    description: Optional[str] = None
    price: Decimal
    image: Optional[str] = None
    category: Optional[int] = None
    stock: int = Field(0, ge=0)
    status: str = "published"

    model_config = ConfigDict(frozen=True)

    @field_validator("stock", mode="before")
    @classmethod
    def validate_stock(cls, v):
        # Directus отдает null для товаров без учета остатков
        if v is None:
            return 0
        return v

    @property
    def is_published(self) -> bool:
        return self.status in PUBLISHED_STATUSES


class LocalizedEntry(BaseModel):
    """Товар, готовый к показу: title и description на языке витрины."""
    id: int
    title: str
    slug: str = ""
    description: str
    price: Decimal
    image: str
    category: Optional[int] = None
    stock: int = Field(0, ge=0)
    language: str

    model_config = ConfigDict(frozen=True)

    @property
    def price_minor(self) -> int:
        return to_minor_units(self.price)

    def to_cart_item(self) -> CartItemCreate:
        return CartItemCreate(
            id=self.id,
            title=self.title,
            price=self.price_minor,
            image=self.image,
            category=self.category,
        )


class LocalizationResult(BaseModel):
    # Язык, на котором фактически отдан контент
    language: str
    requested_language: str
    items: List[LocalizedEntry]
    # False, если запрошен перевод, но пакет откатился на канонический язык
    translated: bool
    warning: Optional[str] = None
    superseded: bool = False


class StockAvailability(BaseModel):
    product_id: int
    stock: int
    in_cart: int
    available: int
    is_out_of_stock: bool
    is_low_stock: bool
