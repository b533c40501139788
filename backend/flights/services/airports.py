from __future__ import annotations

import logging

import requests
from django.conf import settings

from flights.services.cache import airports_cache

logger = logging.getLogger(__name__)

DATASET_CACHE_KEY = "dataset"
UNAVAILABLE_CACHE_KEY = "dataset:unavailable"
UNAVAILABLE_TTL = 60 * 5
SEARCH_FIELDS = ("iata", "icao", "city", "name", "country")


def _normalize_result(item: dict) -> dict | None:
    code = item.get("iata") or item.get("iataCode") or item.get("icao") or item.get("icaoCode")
    city = item.get("city")
    country = item.get("country")
    airport_name = item.get("name") or item.get("airportName")

    if not code and not city and not airport_name:
        return None

    label = " - ".join(part for part in (city, airport_name, country) if part)
    if code:
        label = f"{label} ({code})" if label else code

    return {
        "code": code,
        "label": label,
        "city": city,
        "country": country,
        "airportName": airport_name,
    }


class AirportDirectory:
    """Airport names for search enrichment and the autocomplete endpoint.

    The dataset is fetched from ``AIRPORTS_DATA_URL`` once a day and kept in
    the airports cache; the code index is built per instance.
    """

    def __init__(self, cache=None, data_url: str | None = None, timeout: int = 15):
        self.cache = cache or airports_cache()
        self.data_url = data_url or settings.AIRPORTS_DATA_URL
        self.timeout = timeout
        self._index: dict | None = None

    def load(self) -> list[dict]:
        cached = self.cache.get(DATASET_CACHE_KEY)
        if isinstance(cached, list):
            return cached

        response = requests.get(self.data_url, timeout=self.timeout)
        response.raise_for_status()
        payload = response.json()

        airports = []
        if isinstance(payload, dict):
            airports = [value for value in payload.values() if isinstance(value, dict)]
        elif isinstance(payload, list):
            airports = [item for item in payload if isinstance(item, dict)]

        self.cache.set(DATASET_CACHE_KEY, airports)
        return airports

    def _build_index(self) -> dict:
        if self.cache.get(UNAVAILABLE_CACHE_KEY):
            return {}
        try:
            dataset = self.load()
        except (requests.RequestException, OSError, ValueError):
            logger.warning("Airport dataset unavailable, using bare codes.", exc_info=True)
            self.cache.set(UNAVAILABLE_CACHE_KEY, True, ttl=UNAVAILABLE_TTL)
            return {}

        index = {}
        for item in dataset:
            code = str(item.get("iata") or "").strip().upper()
            if len(code) == 3 and code not in index:
                index[code] = {
                    "name": item.get("name") or item.get("airportName"),
                    "city": item.get("city"),
                    "country": item.get("country"),
                }
        return index

    def lookup(self, code: str) -> dict | None:
        if self._index is None:
            self._index = self._build_index()
        return self._index.get(str(code or "").strip().upper())

    def search(self, query: str, limit: int = 8) -> list[dict]:
        """Substring match on code, city, name or country. Dataset errors propagate."""
        query_lower = query.lower()
        results = []
        for item in self.load():
            if any(query_lower in str(item.get(field) or "").lower() for field in SEARCH_FIELDS):
                normalized = _normalize_result(item)
                if normalized:
                    results.append(normalized)
                if len(results) >= limit:
                    break
        return results
