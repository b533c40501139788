import logging
from concurrent.futures import ThreadPoolExecutor

from django.conf import settings

from flights.providers import get_flight_provider
from flights.providers.base import ProviderError, ProviderUnknownError
from flights.services.airports import AirportDirectory
from flights.services.cache import search_cache, stable_key
from flights.services.currency import CurrencyConverter
from flights.services.normalize import normalize_search_response
from flights.services.rules import apply_business_rules, cheapest_price_per_person

logger = logging.getLogger(__name__)


def run_search(params, provider=None, airports=None, converter=None, cache=None):
    """Provider call, normalization and business rules for one validated search."""
    cache = cache or search_cache()
    cache_key = stable_key(params)
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    provider = provider or get_flight_provider()
    raw = provider.search_flights(params)

    airports = airports or AirportDirectory()
    data = normalize_search_response(
        raw,
        airport_lookup=airports.lookup,
        default_currency=getattr(settings, "DEFAULT_CURRENCY", "GBP"),
    )

    if params.get("currency") and converter is None:
        converter = CurrencyConverter()
    result = apply_business_rules(data, params, converter=converter, sort_by=params.get("sort"))

    logger.info(
        "Flight search completed",
        extra={
            "route": f"{params.get('origin')}-{params.get('destination')}",
            "received": len(data["flights"]),
            "returned": len(result["flights"]),
        },
    )
    cache.set(cache_key, result)
    return result


def _failed(item, error):
    return {
        "key": item.get("key"),
        "type": item.get("type"),
        "minPrice": None,
        "success": False,
        "error": error,
    }


def search_batch(items, search=run_search, max_workers=None):
    """Run independent searches side by side; one failure never sinks the rest.

    Items carry ``key``, ``type`` and validated ``params``; an item that
    arrives with an ``error`` instead is reported as failed without a search.
    """
    if not items:
        return []

    def settle(item):
        if item.get("error"):
            return _failed(item, item["error"])
        try:
            response = search(item["params"])
        except ProviderError as exc:
            logger.warning("Batch search item failed", extra={"key": item.get("key"), "error_type": exc.error_type})
            return _failed(item, exc.user_message)
        except Exception as exc:
            logger.exception("Unexpected error in batch search item %s", item.get("key"))
            return _failed(item, ProviderUnknownError.from_exception(exc).message)

        return {
            "key": item.get("key"),
            "type": item.get("type"),
            "minPrice": cheapest_price_per_person(response["flights"]),
            "success": True,
            "response": response,
        }

    workers = max_workers or getattr(settings, "FLIGHTS_BATCH_WORKERS", 6)
    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as pool:
        return list(pool.map(settle, items))
