import logging
import math

from flights.services.parsers import round_half_up

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("price", "duration", "best")


def _is_valid_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value) and value >= 0


def journey_minutes(flight):
    segments = flight.get("segments") or [s for s in (flight.get("outbound"), flight.get("inbound")) if s]
    return sum(s.get("totalJourneyMinutes") or 0 for s in segments)


def total_passengers(params):
    params = params or {}
    count = sum(int(params.get(k) or 0) for k in ("adults", "children", "infants"))
    return max(1, count)


def filter_direct_only(flights):
    return [
        f
        for f in flights
        if f["outbound"]["stops"] == 0 and (not f.get("inbound") or f["inbound"]["stops"] == 0)
    ]


def _flight_key(flight):
    outbound = flight["outbound"]
    key = [flight["airline"]["code"], outbound["departureTime"], outbound["arrivalTime"]]
    inbound = flight.get("inbound")
    if inbound:
        key.extend([inbound["departureTime"], inbound["arrivalTime"]])
    key.append(flight["price"])
    return tuple(key)


def remove_duplicates(flights):
    seen = set()
    unique = []
    for flight in flights:
        key = _flight_key(flight)
        if key not in seen:
            seen.add(key)
            unique.append(flight)
    return unique


def drop_invalid(flights):
    valid = []
    for flight in flights:
        segments = flight.get("segments") or [flight["outbound"]]
        minutes_ok = all(_is_valid_number(s.get("durationMinutes")) for s in segments)
        if _is_valid_number(flight.get("price")) and _is_valid_number(flight.get("pricePerPerson")) and minutes_ok:
            valid.append(flight)
        else:
            logger.warning("Dropping flight with invalid price or duration", extra={"flight_id": flight.get("id")})
    return valid


def apply_price_per_person(flights, params):
    if not any((params or {}).get(k) for k in ("adults", "children", "infants")):
        # Keep the per-person figure derived from the fare breakdown.
        return flights
    passengers = total_passengers(params)
    return [
        {**f, "pricePerPerson": round_half_up(f["price"] / passengers), "passengers": passengers}
        if _is_valid_number(f.get("price"))
        else f
        for f in flights
    ]


def convert_currencies(flights, converter, target_currency):
    if not target_currency or converter is None:
        return flights

    target = target_currency.upper()
    rates = None
    converted = []
    for flight in flights:
        source = (flight.get("currency") or target).upper()
        if source == target:
            converted.append(flight)
            continue
        if rates is None:
            rates = converter.get_rates()
        converted.append(
            {
                **flight,
                "price": converter.convert(flight["price"], source, target, rates=rates),
                "pricePerPerson": converter.convert(flight["pricePerPerson"], source, target, rates=rates),
                "currency": target,
                "originalPrice": flight["price"],
                "originalCurrency": source,
            }
        )
    return converted


def best_value_scores(flights):
    """Min-max scaled price and journey time, equally weighted. Lower is better."""
    if not flights:
        return {}
    prices = [f["price"] for f in flights]
    durations = [journey_minutes(f) for f in flights]

    def scale(value, low, high):
        return 0.0 if high == low else (value - low) / (high - low)

    low_p, high_p = min(prices), max(prices)
    low_d, high_d = min(durations), max(durations)
    return {
        id(f): 0.5 * scale(p, low_p, high_p) + 0.5 * scale(d, low_d, high_d)
        for f, p, d in zip(flights, prices, durations)
    }


def sort_flights(flights, sort_by="price"):
    if sort_by == "duration":
        return sorted(flights, key=lambda f: (journey_minutes(f), f["price"]))
    if sort_by == "best":
        scores = best_value_scores(flights)
        return sorted(flights, key=lambda f: (scores[id(f)], f["price"]))
    return sorted(flights, key=lambda f: (f["price"], journey_minutes(f)))


def _bump_facet(facets, code, name, price):
    facet = facets.get(code)
    if facet is None:
        facets[code] = {"code": code, "name": name, "count": 1, "minPrice": price}
    else:
        facet["count"] += 1
        facet["minPrice"] = min(facet["minPrice"], price)


def derive_filters(flights):
    airlines = {}
    departures = {}
    arrivals = {}
    min_price = None
    max_price = None

    for flight in flights:
        price = flight["price"]
        min_price = price if min_price is None else min(min_price, price)
        max_price = price if max_price is None else max(max_price, price)

        _bump_facet(airlines, flight["airline"]["code"], flight["airline"]["name"], price)
        outbound = flight["outbound"]
        _bump_facet(departures, outbound["departureAirport"]["code"], outbound["departureAirport"]["name"], price)
        _bump_facet(arrivals, outbound["arrivalAirport"]["code"], outbound["arrivalAirport"]["name"], price)

    return {
        "airlines": list(airlines.values()),
        "departureAirports": list(departures.values()),
        "arrivalAirports": list(arrivals.values()),
        "minPrice": math.floor(min_price) if min_price is not None else 0,
        "maxPrice": math.ceil(max_price) if max_price is not None else 0,
    }


def cheapest_price_per_person(flights):
    prices = [f["pricePerPerson"] for f in flights if _is_valid_number(f.get("pricePerPerson"))]
    return round(min(prices)) if prices else None


def apply_business_rules(data, params, converter=None, target_currency=None, sort_by=None):
    """Filter, convert, price and order a normalized search response.

    ``data`` is the output of ``normalize_search_response``; the returned dict
    has the same shape with filters recomputed from the final flight list.
    """
    params = params or {}
    flights = list(data.get("flights") or [])

    if params.get("directOnly"):
        flights = filter_direct_only(flights)

    flights = remove_duplicates(flights)
    flights = apply_price_per_person(flights, params)
    flights = drop_invalid(flights)
    flights = convert_currencies(flights, converter, target_currency or params.get("currency"))
    flights = sort_flights(flights, sort_by or params.get("sort") or "price")

    return {
        "flights": flights,
        "filters": derive_filters(flights),
        "requestId": data.get("requestId"),
    }
