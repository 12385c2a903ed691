# storefront/core/exceptions.py


class StorefrontError(Exception):
    """Базовое исключение ядра витрины."""


class TransientNetworkError(StorefrontError):
    """
    Временная сетевая ошибка (нет соединения, неуспешный HTTP-статус,
    битый ответ). Вызывающая сторона может повторить запрос.
    """
    retryable = True


class CatalogUnavailableError(TransientNetworkError):
    """Не удалось получить данные из удаленного каталога."""


class TranslationServiceError(TransientNetworkError):
    """Сервис перевода недоступен или вернул некорректный ответ."""


# Короткое имя, под которым ошибку клиента перевода знают потребители
ServiceError = TranslationServiceError


class StorageError(StorefrontError):
    """Ошибка чтения или записи долговременного хранилища."""


class MalformedPersistedStateError(StorefrontError):
    """Сохраненный снимок корзины или кеша не удалось разобрать."""


class UnsupportedLanguageError(StorefrontError):
    def __init__(self, language: str, supported: list[str]):
        self.language = language
        self.supported = supported
        super().__init__(f"Language '{language}' is not supported. Supported: {', '.join(supported)}")


class ProductNotFoundError(StorefrontError):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found in catalog")
