# storefront/core/config.py

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Источник каталога (Directus)
    CATALOG_API_URL: str = "https://api.thedojolab.com"
    CATALOG_TIMEOUT_SECONDS: float = 20.0
    CATALOG_FEATURED_LIMIT: int = 6
    DEFAULT_IMAGE_URL: str = "/cookies.webp"

    # Сервис перевода (OpenAI-совместимый chat completions, по умолчанию GROQ)
    TRANSLATOR_API_URL: str = "https://api.groq.com/openai/v1/chat/completions"
    TRANSLATOR_API_KEY: str = ""
    TRANSLATOR_MODEL: str = "llama3-70b-8192"
    TRANSLATOR_TIMEOUT_SECONDS: float = 30.0

    # Языки
    CANONICAL_LANGUAGE: str = "es"
    SUPPORTED_LANGUAGES: str = "es,en"

    # Долговременное хранилище
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    CART_STORAGE_PREFIX: str = "storefront-cart"
    TRANSLATION_CACHE_KEY: str = "translation-cache"

    # Остатки
    LOW_STOCK_THRESHOLD: int = 10

    # Цены каталога приходят в основных единицах (3.50), корзина хранит минорные (350)
    CURRENCY_MINOR_UNITS: int = 2

    LOG_LEVEL: str = "INFO"

    FRONTEND_URL: str = "http://localhost:5173"

    @property
    def SUPPORTED_LANGUAGE_LIST(self) -> List[str]:
        languages = [lang.strip() for lang in self.SUPPORTED_LANGUAGES.split(",") if lang.strip()]
        # Канонический язык поддерживается всегда
        if self.CANONICAL_LANGUAGE not in languages:
            languages.insert(0, self.CANONICAL_LANGUAGE)
        return languages

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
