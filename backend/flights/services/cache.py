import hashlib
import json

from django.conf import settings
from django.core.cache import caches


def stable_key(payload) -> str:
    """Stable digest for request payloads."""
    try:
        raw = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    except TypeError:
        raw = str(payload)
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


class TTLCache:
    """Namespaced get/set with a fixed time-to-live over a Django cache backend.

    Services take one of these as a constructor argument; pass a private
    backend (e.g. a ``LocMemCache``) to keep tests isolated.
    """

    def __init__(self, prefix: str, ttl: int, backend=None, alias: str = "default"):
        self.prefix = prefix
        self.ttl = ttl
        self._backend = backend
        self._alias = alias

    @property
    def backend(self):
        return self._backend if self._backend is not None else caches[self._alias]

    def _key(self, key) -> str:
        return f"{self.prefix}:{key}"

    def get(self, key, default=None):
        return self.backend.get(self._key(key), default)

    def set(self, key, value, ttl: int | None = None):
        self.backend.set(self._key(key), value, timeout=ttl or self.ttl)

    def delete(self, key):
        self.backend.delete(self._key(key))


def search_cache(backend=None) -> TTLCache:
    return TTLCache("flights:search", settings.SEARCH_CACHE_TTL, backend)


def price_check_cache(backend=None) -> TTLCache:
    return TTLCache("flights:price-check", settings.PRICE_CHECK_CACHE_TTL, backend)


def exchange_rate_cache(backend=None) -> TTLCache:
    return TTLCache("flights:fx", settings.EXCHANGE_RATES_TTL, backend)


def airports_cache(backend=None) -> TTLCache:
    return TTLCache("places:airports", 60 * 60 * 24, backend)
