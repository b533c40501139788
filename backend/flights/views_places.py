import requests
from django.core.cache import cache
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from flights.services.airports import AirportDirectory


@require_GET
def places_autocomplete(request):
    query = (request.GET.get("q") or "").strip()
    if len(query) < 2:
        return JsonResponse({"query": query, "results": []})

    raw_limit = request.GET.get("limit")
    try:
        limit = int(raw_limit) if raw_limit is not None else 8
    except (TypeError, ValueError):
        limit = 8
    limit = max(1, min(limit, 12))

    cache_key = f"places:airports:{query.lower()}:{limit}"
    cached = cache.get(cache_key)
    if cached is not None:
        return JsonResponse({"query": query, "results": cached})

    try:
        results = AirportDirectory().search(query, limit)
    except (requests.RequestException, OSError, ValueError):
        return JsonResponse(
            {"query": query, "results": [], "error": "Autocomplete dataset error."},
            status=502,
        )

    cache.set(cache_key, results, 60 * 60)
    return JsonResponse({"query": query, "results": results})
