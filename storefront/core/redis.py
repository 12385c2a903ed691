# storefront/core/redis.py
import redis

from storefront.core.config import Settings


def create_redis_client(config: Settings) -> redis.Redis:
    """
    Создает синхронный клиент Redis для долговременного хранилища.
    Операции корзины синхронны, поэтому здесь не используется redis.asyncio.
    decode_responses=True автоматически декодирует ответы из байтов в строки.
    """
    return redis.Redis.from_url(config.REDIS_URL, decode_responses=True)
