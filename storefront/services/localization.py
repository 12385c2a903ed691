# storefront/services/localization.py

import asyncio
import logging
from typing import Callable, List, Optional, Protocol, Sequence

from storefront.core import locales
from storefront.core.exceptions import (
    CatalogUnavailableError,
    TranslationServiceError,
    UnsupportedLanguageError,
)
from storefront.schemas.product import CatalogEntry, LocalizationResult, LocalizedEntry

logger = logging.getLogger(__name__)

ResultListener = Callable[[LocalizationResult], None]


class CatalogSource(Protocol):
    async def fetch_products(self) -> List[CatalogEntry]: ...

    async def fetch_featured_products(self) -> List[CatalogEntry]: ...

    def image_url(self, image_ref: Optional[str]) -> str: ...


class Translator(Protocol):
    async def translate(self, text: str, source_lang: str, target_lang: str) -> str: ...


class LocalizationPipeline:
    """
    Превращает записи каталога в записи для показа на запрошенном языке.

    Каждый run() начинается с загрузки каталога заново; результат не
    кешируется (кешируются только отдельные переводы в TranslationCache).
    Если во время выполнения пришел более новый run(), результат старого
    помечается superseded и подписчикам не доставляется.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        translator: Translator,
        canonical_language: str = "es",
        supported_languages: Sequence[str] = ("es", "en"),
        default_description: str = locales.DEFAULT_DESCRIPTION,
        featured_limit: int = 6,
    ):
        self.catalog = catalog
        self.translator = translator
        self.canonical_language = canonical_language
        self.supported_languages = list(supported_languages)
        self.default_description = default_description
        self.featured_limit = featured_limit
        self._generation = 0
        self._listeners: List[ResultListener] = []

    def subscribe(self, listener: ResultListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def run(self, language: str, featured: bool = False) -> LocalizationResult:
        if language not in self.supported_languages:
            raise UnsupportedLanguageError(language, self.supported_languages)

        self._generation += 1
        generation = self._generation

        entries = await self._fetch_entries(featured)
        logger.info(f"Localizing {len(entries)} products for language: {language}")

        if language == self.canonical_language:
            result = LocalizationResult(
                language=language,
                requested_language=language,
                items=self._canonical_entries(entries),
                translated=False,
            )
        else:
            result = await self._translate_batch(entries, language)

        if generation != self._generation:
            logger.info(f"Discarding superseded localization run for '{language}'.")
            return result.model_copy(update={"superseded": True})

        self._publish(result)
        return result

    # --- Шаги ---

    async def _fetch_entries(self, featured: bool) -> List[CatalogEntry]:
        if not featured:
            return await self.catalog.fetch_products()

        try:
            entries = await self.catalog.fetch_featured_products()
        except CatalogUnavailableError:
            logger.warning("Featured products failed, fetching all products.", exc_info=True)
            entries = []
        if entries:
            return entries

        logger.info(f"No featured products found, using first {self.featured_limit} products.")
        all_entries = await self.catalog.fetch_products()
        return all_entries[: self.featured_limit]

    async def _translate_batch(self, entries: List[CatalogEntry], language: str) -> LocalizationResult:
        """
        Заголовки и описания всех товаров переводятся одновременно.
        Если хотя бы один перевод не удался, весь пакет откатывается на
        канонический язык: смешанный каталог не показываем.
        """
        source = self.canonical_language
        jobs = []
        for entry in entries:
            jobs.append(self.translator.translate(entry.title, source, language))
            jobs.append(self.translator.translate(self._description(entry), source, language))

        results = await asyncio.gather(*jobs, return_exceptions=True)

        failures = [r for r in results if isinstance(r, BaseException)]
        unexpected = [r for r in failures if not isinstance(r, TranslationServiceError)]
        if unexpected:
            raise unexpected[0]

        if failures:
            logger.warning(
                f"{len(failures)} of {len(jobs)} translations to '{language}' failed. "
                f"Falling back to '{source}' for the whole batch.",
                exc_info=failures[0],
            )
            return LocalizationResult(
                language=source,
                requested_language=language,
                items=self._canonical_entries(entries),
                translated=False,
                warning=locales.WARNING_TRANSLATION_FAILED,
            )

        localized = []
        for index, entry in enumerate(entries):
            title, description = results[2 * index], results[2 * index + 1]
            localized.append(self._to_localized(entry, language, title, description))

        logger.info(f"All {len(entries)} products translated to '{language}'.")
        return LocalizationResult(
            language=language, requested_language=language, items=localized, translated=True
        )

    def _canonical_entries(self, entries: List[CatalogEntry]) -> List[LocalizedEntry]:
        return [
            self._to_localized(entry, self.canonical_language, entry.title, self._description(entry))
            for entry in entries
        ]

    def _description(self, entry: CatalogEntry) -> str:
        return entry.description or self.default_description

    def _to_localized(self, entry: CatalogEntry, language: str, title: str, description: str) -> LocalizedEntry:
        return LocalizedEntry(
            id=entry.id,
            title=title,
            slug=entry.slug,
            description=description,
            price=entry.price,
            image=self.catalog.image_url(entry.image),
            category=entry.category,
            stock=entry.stock,
            language=language,
        )

    def _publish(self, result: LocalizationResult) -> None:
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception:
                logger.error("Localization listener failed.", exc_info=True)
