# storefront/core/locales.py

# Описание-заглушка на каноническом языке для товаров без описания
DEFAULT_DESCRIPTION = "Delicioso producto de nuestra panadería"

# Предупреждение, когда пакет перевода откатился на канонический язык
WARNING_TRANSLATION_FAILED = "Translation failed, showing original content"

MESSAGES = {
    "es": {
        "ERROR_PRODUCT_NOT_FOUND": "Producto no encontrado.",
        "ERROR_OUT_OF_STOCK": "Producto agotado.",
        "ERROR_NOT_ENOUGH_STOCK": "No hay suficiente stock. Disponible: {available_quantity}.",
        "ERROR_ITEM_NOT_IN_CART": "El producto no está en el carrito.",
        "ERROR_CATALOG_UNAVAILABLE": "El catálogo no está disponible. Inténtalo de nuevo.",
        "SUCCESS_CART_UPDATED": "Carrito actualizado.",
        "SUCCESS_ITEM_REMOVED_FROM_CART": "Producto eliminado del carrito.",
        "SUCCESS_CART_CLEARED": "Carrito vaciado.",
        "SUCCESS_TRANSLATION_CACHE_CLEARED": "Caché de traducciones vaciada.",
    },
    "en": {
        "ERROR_PRODUCT_NOT_FOUND": "Product not found.",
        "ERROR_OUT_OF_STOCK": "Product is out of stock.",
        "ERROR_NOT_ENOUGH_STOCK": "Not enough stock. Available: {available_quantity}.",
        "ERROR_ITEM_NOT_IN_CART": "Product is not in the cart.",
        "ERROR_CATALOG_UNAVAILABLE": "Catalog is unavailable. Please try again.",
        "SUCCESS_CART_UPDATED": "Cart updated.",
        "SUCCESS_ITEM_REMOVED_FROM_CART": "Product removed from cart.",
        "SUCCESS_CART_CLEARED": "Cart cleared.",
        "SUCCESS_TRANSLATION_CACHE_CLEARED": "Translation cache cleared.",
    },
}

FALLBACK_LANGUAGE = "es"


def get_message(key: str, language: str | None = None, **kwargs) -> str:
    """
    Возвращает сообщение на запрошенном языке.
    Для неизвестного языка используется канонический (испанский).
    """
    catalogue = MESSAGES.get(language or FALLBACK_LANGUAGE, MESSAGES[FALLBACK_LANGUAGE])
    message = catalogue.get(key) or MESSAGES[FALLBACK_LANGUAGE][key]
    return message.format(**kwargs) if kwargs else message
