# storefront/clients/catalog.py

import logging
from typing import List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from storefront.core.exceptions import CatalogUnavailableError, ProductNotFoundError
from storefront.schemas.product import PUBLISHED_STATUSES, CatalogCategory, CatalogEntry

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class CatalogClient:
    """
    Асинхронный клиент только для чтения к REST API каталога (Directus).
    Никакого кеширования: только построение URL и разбор ответа.
    """
    def __init__(
        self,
        base_url: str,
        timeout: float = 20.0,
        default_image_url: str = "/cookies.webp",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.default_image_url = default_image_url
        self.async_client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
        )

    async def get(self, endpoint: str, params: dict = None) -> httpx.Response:
        """
        Выполняет GET-запрос. Сетевые и HTTP-ошибки (4xx/5xx) превращаются
        в CatalogUnavailableError, которую вызывающая сторона может повторить.
        """
        try:
            response = await self.async_client.get(endpoint, params=params)
            response.raise_for_status()
            return response
        except httpx.RequestError as e:
            logger.error(f"Network error during GET request to {e.request.url!r}.", exc_info=True)
            raise CatalogUnavailableError(f"Catalog unreachable: {endpoint}") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error during GET request to {e.request.url!r}: {e.response.text}", exc_info=True)
            raise CatalogUnavailableError(
                f"Catalog returned {e.response.status_code} for {endpoint}"
            ) from e

    async def get_data(self, endpoint: str, params: dict = None):
        """Возвращает поле `data` из ответа Directus."""
        response = await self.get(endpoint, params=params)
        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Catalog returned non-JSON body for {endpoint}.")
            raise CatalogUnavailableError(f"Malformed catalog response for {endpoint}") from e
        if not isinstance(payload, dict) or "data" not in payload:
            logger.error(f"Catalog response for {endpoint} has no 'data' field.")
            raise CatalogUnavailableError(f"Malformed catalog response for {endpoint}")
        return payload["data"]

    async def fetch_products(self) -> List[CatalogEntry]:
        logger.info("Fetching all products from catalog...")
        data = await self.get_data(
            "/items/products",
            params={"filter[status][_in]": ",".join(PUBLISHED_STATUSES)},
        )
        products = _parse_records(data, CatalogEntry, "product")
        logger.info(f"Fetched {len(products)} products.")
        return products

    async def fetch_featured_products(self) -> List[CatalogEntry]:
        """
        Получает подборку "featured_products" и раскрывает ее в товары.
        Берутся только записи, у которых и сама подборка, и товар опубликованы
        (или в черновике).
        """
        logger.info("Fetching featured products from catalog...")
        data = await self.get_data("/items/featured_products", params={"fields": "*,product.*"})
        if not isinstance(data, list):
            raise CatalogUnavailableError("Malformed featured products response")

        product_records = []
        for item in data:
            if not isinstance(item, dict):
                continue
            product = item.get("product")
            if (
                item.get("status") in PUBLISHED_STATUSES
                and isinstance(product, dict)
                and product.get("status") in PUBLISHED_STATUSES
            ):
                product_records.append(product)

        products = _parse_records(product_records, CatalogEntry, "featured product")
        logger.info(f"Fetched {len(products)} featured products.")
        return products

    async def fetch_product(self, product_id: int) -> CatalogEntry:
        try:
            data = await self.get_data(f"/items/products/{product_id}")
        except CatalogUnavailableError as e:
            cause = e.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code in (403, 404):
                # Directus отвечает 403 на несуществующие записи
                raise ProductNotFoundError(product_id) from e
            raise

        try:
            product = CatalogEntry.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Invalid product record for ID {product_id}.", exc_info=True)
            raise CatalogUnavailableError(f"Malformed product record {product_id}") from e
        if not product.is_published:
            raise ProductNotFoundError(product_id)
        return product

    async def fetch_categories(self) -> List[CatalogCategory]:
        logger.info("Fetching categories from catalog...")
        data = await self.get_data("/items/category", params={"filter[status][_eq]": "published"})
        return _parse_records(data, CatalogCategory, "category")

    def image_url(self, image_ref: Optional[str]) -> str:
        """
        Полные URL (например, S3) возвращаются как есть, идентификаторы
        ассетов Directus превращаются в /assets/{id}.
        """
        if not image_ref:
            return self.default_image_url
        if image_ref.startswith(("http://", "https://")):
            return image_ref
        return f"{self.base_url}/assets/{image_ref}"

    async def aclose(self):
        await self.async_client.aclose()


def _parse_records(data, model: Type[ModelType], kind: str) -> List[ModelType]:
    if not isinstance(data, list):
        logger.warning(f"Received invalid {kind} list from catalog. Returning empty list.")
        return []
    parsed = []
    for record in data:
        try:
            parsed.append(model.model_validate(record))
        except ValidationError:
            record_id = record.get("id") if isinstance(record, dict) else None
            logger.warning(f"Skipping {kind} due to validation error for ID {record_id}", exc_info=True)
    return parsed
