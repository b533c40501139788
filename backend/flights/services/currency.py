import logging

import requests
from django.conf import settings

from flights.services.cache import exchange_rate_cache
from flights.services.parsers import round_half_up

logger = logging.getLogger(__name__)

# USD-based fallback rates used when the live feed is unreachable.
STATIC_RATES = {
    "USD": 1.0,
    "GBP": 0.79,
    "EUR": 0.92,
    "INR": 83.12,
    "AED": 3.67,
    "SAR": 3.75,
    "CAD": 1.36,
    "AUD": 1.53,
    "JPY": 149.50,
    "CNY": 7.24,
}

RATES_CACHE_KEY = "rates:USD"
# Static rates are kept briefly so a dead feed is not retried per conversion.
FALLBACK_RATES_TTL = 60 * 5


class CurrencyConverter:
    def __init__(self, cache=None, rates_url=None, timeout=10):
        self.cache = cache or exchange_rate_cache()
        self.rates_url = rates_url or settings.EXCHANGE_RATES_URL
        self.timeout = timeout

    def _fetch_rates(self):
        response = requests.get(self.rates_url, timeout=self.timeout)
        response.raise_for_status()
        rates = response.json().get("rates")
        if not isinstance(rates, dict) or not rates:
            raise ValueError("Exchange rate payload has no rates.")
        return {str(code).upper(): float(rate) for code, rate in rates.items()}

    def get_rates(self):
        cached = self.cache.get(RATES_CACHE_KEY)
        if isinstance(cached, dict) and cached:
            return cached

        try:
            rates = self._fetch_rates()
        except (requests.RequestException, ValueError, TypeError):
            logger.warning("Live exchange rates unavailable, using static table.", exc_info=True)
            rates = dict(STATIC_RATES)
            self.cache.set(RATES_CACHE_KEY, rates, ttl=FALLBACK_RATES_TTL)
            return rates

        self.cache.set(RATES_CACHE_KEY, rates)
        logger.info("Fetched live exchange rates", extra={"currencies": len(rates)})
        return rates

    def convert(self, amount, from_currency, to_currency, rates=None):
        source = (from_currency or "").upper()
        target = (to_currency or "").upper()
        if not source or not target or source == target:
            return round_half_up(amount)

        rates = rates or self.get_rates()
        from_rate = rates.get(source)
        to_rate = rates.get(target)
        if not from_rate or not to_rate:
            logger.warning("Missing exchange rate", extra={"from": source, "to": target})
            return round_half_up(amount)

        return round_half_up(amount / from_rate * to_rate)

