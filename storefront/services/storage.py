# storefront/services/storage.py

import logging
from typing import Dict, Optional, Protocol

import redis

from storefront.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """
    Долговременное хранилище "строковый ключ -> JSON-строка".
    Переживает перезагрузку страницы/процесса в рамках одной сессии покупателя.
    """

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    # Хеш "ключ -> {поле: значение}" для записей, которые только добавляются

    def hash_get(self, key: str, field: str) -> Optional[str]: ...

    def hash_get_all(self, key: str) -> Dict[str, str]: ...

    def hash_set_if_absent(self, key: str, field: str, value: str) -> bool: ...


class RedisStorage:
    """Хранилище поверх Redis. Любая ошибка Redis превращается в StorageError."""

    def __init__(self, client: redis.Redis):
        self.client = client

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            logger.error(f"Redis error while reading key '{key}'.", exc_info=True)
            raise StorageError(f"Failed to read '{key}'") from e

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except redis.RedisError as e:
            logger.error(f"Redis error while writing key '{key}'.", exc_info=True)
            raise StorageError(f"Failed to write '{key}'") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            logger.error(f"Redis error while deleting key '{key}'.", exc_info=True)
            raise StorageError(f"Failed to delete '{key}'") from e

    def hash_get(self, key: str, field: str) -> Optional[str]:
        try:
            return self.client.hget(key, field)
        except redis.RedisError as e:
            logger.error(f"Redis error while reading field of '{key}'.", exc_info=True)
            raise StorageError(f"Failed to read field of '{key}'") from e

    def hash_get_all(self, key: str) -> Dict[str, str]:
        try:
            return self.client.hgetall(key)
        except redis.RedisError as e:
            logger.error(f"Redis error while reading hash '{key}'.", exc_info=True)
            raise StorageError(f"Failed to read '{key}'") from e

    def hash_set_if_absent(self, key: str, field: str, value: str) -> bool:
        """HSETNX: True, если поле записано; False, если оно уже было."""
        try:
            return bool(self.client.hsetnx(key, field, value))
        except redis.RedisError as e:
            logger.error(f"Redis error while writing field of '{key}'.", exc_info=True)
            raise StorageError(f"Failed to write field of '{key}'") from e


class MemoryStorage:
    """Хранилище в памяти процесса (тесты и запуск без Redis)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self.hashes: Dict[str, Dict[str, str]] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.hashes.pop(key, None)

    def hash_get(self, key: str, field: str) -> Optional[str]:
        return self.hashes.get(key, {}).get(field)

    def hash_get_all(self, key: str) -> Dict[str, str]:
        return dict(self.hashes.get(key, {}))

    def hash_set_if_absent(self, key: str, field: str, value: str) -> bool:
        fields = self.hashes.setdefault(key, {})
        if field in fields:
            return False
        fields[field] = value
        return True
