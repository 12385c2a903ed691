# storefront/services/translation_cache.py

import asyncio
import json
import logging
import threading
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from storefront.core.exceptions import MalformedPersistedStateError, StorageError
from storefront.services.storage import KeyValueStorage

logger = logging.getLogger(__name__)

# (исходный текст, язык оригинала, язык перевода)
CacheKey = Tuple[str, str, str]
CacheListener = Callable[[CacheKey, str], None]


class Translator(Protocol):
    async def translate(self, text: str, source_lang: str, target_lang: str) -> str: ...


def encode_cache_field(key: CacheKey) -> str:
    """Поле хеша в хранилище: JSON-массив [text, source, target]."""
    return json.dumps(list(key), ensure_ascii=False)


def decode_cache_hash(fields: Dict[str, str]) -> Dict[CacheKey, str]:
    entries: Dict[CacheKey, str] = {}
    for field, translated in fields.items():
        try:
            parts = json.loads(field)
        except (TypeError, ValueError) as e:
            raise MalformedPersistedStateError(f"Invalid cache field: {field!r}") from e
        if (
            not isinstance(parts, list)
            or len(parts) != 3
            or not all(isinstance(part, str) for part in parts)
            or not isinstance(translated, str)
        ):
            raise MalformedPersistedStateError(f"Invalid cache record: {field!r} -> {translated!r}")
        entries[tuple(parts)] = translated
    return entries


class TranslationCache:
    """
    Мемоизация переводов по точной тройке (text, source, target).
    Никакой нормализации (регистр, пробелы) не выполняется.

    В хранилище кеш лежит хешем: одно поле на перевод, запись через HSETNX.
    Поэтому несколько процессов (воркеры, скрипт прогрева) только добавляют
    записи и никогда не затирают чужие. Удаляется кеш только целиком: clear().
    """

    def __init__(self, storage: KeyValueStorage, storage_key: str):
        self.storage = storage
        self.storage_key = storage_key
        self._entries: Dict[CacheKey, str] = {}
        self._listeners: List[CacheListener] = []
        # put() вызывается из пула потоков
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def get(self, text: str, source_lang: str, target_lang: str) -> Optional[str]:
        return self._entries.get((text, source_lang, target_lang))

    def put(self, text: str, source_lang: str, target_lang: str, translated: str) -> None:
        key = (text, source_lang, target_lang)
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                if existing != translated:
                    logger.warning(f"Ignoring different translation for already cached text {text!r}.")
                return
            stored = self._store(key, translated)
            self._entries[key] = stored

        for listener in list(self._listeners):
            try:
                listener(key, stored)
            except Exception:
                logger.error("Translation cache listener failed.", exc_info=True)

    def load_from_storage(self) -> int:
        """
        Вызывается один раз при старте. Отсутствующий или битый снимок
        дает пустой кеш, исключение наружу не пробрасывается.
        """
        try:
            fields = self.storage.hash_get_all(self.storage_key)
        except StorageError:
            logger.warning("Could not read translation cache snapshot. Starting with an empty cache.")
            return 0

        if not fields:
            logger.info("No saved translation cache found.")
            return 0

        try:
            entries = decode_cache_hash(fields)
        except MalformedPersistedStateError:
            logger.warning("Translation cache snapshot is malformed. Starting with an empty cache.", exc_info=True)
            return 0

        with self._lock:
            for key, translated in entries.items():
                self._entries.setdefault(key, translated)
        logger.info(f"Loaded translation cache: {len(self._entries)} entries.")
        return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            try:
                self.storage.delete(self.storage_key)
            except StorageError:
                logger.error("Failed to clear translation cache snapshot.", exc_info=True)
        logger.info("Translation cache cleared.")

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def stats(self) -> dict:
        return {"entries": len(self._entries)}

    def _store(self, key: CacheKey, translated: str) -> str:
        """
        Записывает перевод в хранилище, если его там еще нет. Возвращает
        значение, которое в итоге лежит в хранилище (чужое, если другой
        процесс успел раньше).
        """
        field = encode_cache_field(key)
        try:
            if self.storage.hash_set_if_absent(self.storage_key, field, translated):
                return translated
            stored = self.storage.hash_get(self.storage_key, field)
        except StorageError:
            logger.error("Failed to persist translation cache entry.", exc_info=True)
            return translated

        if stored is None:
            return translated
        if stored != translated:
            logger.info(f"Translation for {key[0]!r} was already stored by another process. Using it.")
        return stored


class CachedTranslator:
    """
    Переводчик с кешем: сначала TranslationCache, затем сеть.
    Одинаковые запросы, пришедшие одновременно, ждут один и тот же вызов.
    Успешный перевод записывается в кеш до того, как будет возвращен.
    """

    def __init__(self, client: Translator, cache: TranslationCache):
        self.client = client
        self.cache = cache
        self._in_flight: Dict[CacheKey, asyncio.Future] = {}

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        cached = self.cache.get(text, source_lang, target_lang)
        if cached is not None:
            logger.debug(f"Translation cache hit for {text!r}.")
            return cached

        key = (text, source_lang, target_lang)
        pending = self._in_flight.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        future = asyncio.ensure_future(self._fetch(text, source_lang, target_lang))
        self._in_flight[key] = future
        future.add_done_callback(lambda _: self._in_flight.pop(key, None))
        return await asyncio.shield(future)

    async def _fetch(self, text: str, source_lang: str, target_lang: str) -> str:
        translated = await self.client.translate(text, source_lang, target_lang)
        # Запись в Redis блокирующая, поэтому уходит в отдельный поток
        await asyncio.to_thread(self.cache.put, text, source_lang, target_lang, translated)
        return self.cache.get(text, source_lang, target_lang) or translated
