# storefront/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Конфигурация и ядро
from storefront.core.config import settings as config
from storefront.core.exceptions import ProductNotFoundError, TransientNetworkError, UnsupportedLanguageError
from storefront.core.locales import get_message
from storefront.core.logging_config import setup_logging
from storefront.core.redis import create_redis_client

# Клиенты и сервисы
from storefront.clients.catalog import CatalogClient
from storefront.clients.translator import TranslatorClient
from storefront.services.cart import CartSessionLocks
from storefront.services.storage import RedisStorage
from storefront.services.translation_cache import CachedTranslator, TranslationCache

# Роутеры FastAPI
from storefront.routers import cart, catalog, translations

logger = logging.getLogger(__name__)


# --- Обработчики ошибок ядра ---
async def transient_network_error_handler(request: Request, exc: TransientNetworkError):
    logger.warning(f"Transient upstream failure for {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": get_message("ERROR_CATALOG_UNAVAILABLE"), "retryable": exc.retryable},
    )


async def unsupported_language_handler(request: Request, exc: UnsupportedLanguageError):
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "supported_languages": exc.supported},
    )


async def product_not_found_handler(request: Request, exc: ProductNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"detail": get_message("ERROR_PRODUCT_NOT_FOUND")},
    )


# --- Lifespan Manager (запуск и остановка приложения) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application lifespan startup...")

    redis_client = create_redis_client(config)
    storage = RedisStorage(redis_client)

    catalog_client = CatalogClient(
        base_url=config.CATALOG_API_URL,
        timeout=config.CATALOG_TIMEOUT_SECONDS,
        default_image_url=config.DEFAULT_IMAGE_URL,
    )
    translator_client = TranslatorClient(
        api_url=config.TRANSLATOR_API_URL,
        api_key=config.TRANSLATOR_API_KEY,
        model=config.TRANSLATOR_MODEL,
        timeout=config.TRANSLATOR_TIMEOUT_SECONDS,
    )
    if not translator_client.is_configured:
        logger.error("TRANSLATOR_API_KEY is not set. Non-canonical languages will fall back to original content.")

    # Кеш переводов загружается из хранилища один раз при старте
    translation_cache = TranslationCache(storage, storage_key=config.TRANSLATION_CACHE_KEY)
    translation_cache.load_from_storage()

    app.state.storage = storage
    app.state.catalog_client = catalog_client
    app.state.translation_cache = translation_cache
    app.state.translator = CachedTranslator(translator_client, translation_cache)
    logger.info("Storefront services initialized.")

    yield

    logger.info("Application shutting down...")
    await catalog_client.aclose()
    await translator_client.aclose()
    redis_client.close()


# --- Создание FastAPI приложения ---
app = FastAPI(
    title="Storefront Core Service",
    description="Catalog localization, cart and stock reservation for the bakery storefront",
    version="0.1.0",
    lifespan=lifespan,
)

# Блокировки корзин не зависят от внешних сервисов и создаются вместе с приложением
app.state.cart_locks = CartSessionLocks()

origins = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:5173",  # для Vite
    config.FRONTEND_URL,
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Регистрация обработчиков исключений ---
app.add_exception_handler(TransientNetworkError, transient_network_error_handler)
app.add_exception_handler(UnsupportedLanguageError, unsupported_language_handler)
app.add_exception_handler(ProductNotFoundError, product_not_found_handler)

# --- Подключение роутеров FastAPI ---
api_router = APIRouter(prefix="/api/v1")
api_router.include_router(catalog.router, tags=["Catalog"])
api_router.include_router(cart.router, tags=["Cart"])
api_router.include_router(translations.router, tags=["Translations"])

app.include_router(api_router)
