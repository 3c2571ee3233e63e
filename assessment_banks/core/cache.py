import json
import logging
from typing import Any, Callable, Iterable, Optional

import redis
from assessment_banks.core.config import settings

logger = logging.getLogger(__name__)

redis_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)

def cache_key(parts: Iterable[Any]) -> str:
    return "/".join(str(p) for p in parts)

def cache_fetch(parts: Iterable[Any], compute: Callable[[], Any], ttl: Optional[int] = None, client=None) -> Any:
    """Return the JSON value cached under ``parts``, computing and storing it on a miss."""
    client = client or redis_client
    key = cache_key(parts)
    raw = client.get(key)
    if raw is not None:
        return json.loads(raw)
    value = compute()
    client.set(key, json.dumps(value), ex=ttl or settings.CACHE_TTL)
    logger.debug("cache miss for %s", key)
    return value
