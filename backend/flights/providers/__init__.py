from django.conf import settings

from flights.providers.base import ProviderError
from flights.providers.vyspa import VyspaProvider


def get_flight_provider():
    """Return the configured flight provider instance."""

    raw_name = getattr(settings, "FLIGHTS_PROVIDER", None) or "vyspa"
    provider_name = str(raw_name).strip().lower()

    aliases = {
        "vyspa": "vyspa",
        "vyspa-v4": "vyspa",
    }

    provider_name = aliases.get(provider_name, provider_name)

    if provider_name == "vyspa":
        return VyspaProvider()

    raise ProviderError(f"Unknown flights provider: {provider_name}", status_code=500)
