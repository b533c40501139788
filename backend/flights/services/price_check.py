"""Fare re-validation: turn a price-check payload into ranked fare-brand options."""
import logging
import re

from django.conf import settings

from flights.providers.base import (
    ProviderAPIError,
    ProviderError,
    ProviderUnknownError,
    ProviderValidationError,
)
from flights.services.cache import price_check_cache, stable_key
from flights.services.parsers import parse_int_safe, parse_price, round_half_up
from flights.services.reference import cabin_class_name, refundable_status

logger = logging.getLogger(__name__)

PIECES_RE = re.compile(r"(?<!\d)([1-3])p", re.IGNORECASE)
LEADING_PIECES_RE = re.compile(r"^(\d+)\s*p", re.IGNORECASE)
WEIGHT_RE = re.compile(r"(\d+)\s*K(?:G)?\b", re.IGNORECASE)
CARRIER_SENTINEL_RE = re.compile(r"^[A-Z0-9]{2}\*{3}", re.IGNORECASE)
CABIN_ONLY_SENTINELS = {"SK***", "NIL", "NO BAGGAGE", "0PC"}

DEFAULT_BAGGAGE = "1 Cabin bag"
CABIN_ONLY = "1 Cabin bag only"


def _checked_bags(count):
    return "1 Checked bag" if count == 1 else f"{count} Checked bags"


def describe_baggage(code):
    """Human text for a vendor baggage code such as "SK***", "SK***2p" or "1p"."""
    text = (code or "").strip() if isinstance(code, str) else ""
    if not text:
        return DEFAULT_BAGGAGE

    pieces = PIECES_RE.search(text)
    if pieces:
        return _checked_bags(int(pieces.group(1)))

    if text.endswith("***") or text.upper() in CABIN_ONLY_SENTINELS:
        return CABIN_ONLY

    weight = WEIGHT_RE.search(text.split("***")[-1])
    if weight and int(weight.group(1)) > 0:
        return f"{int(weight.group(1))}kg checked baggage"

    leading = LEADING_PIECES_RE.match(text)
    if leading:
        count = int(leading.group(1))
        return CABIN_ONLY if count == 0 else _checked_bags(count)

    return DEFAULT_BAGGAGE


def _as_list(value):
    if isinstance(value, dict):
        keys = sorted(value, key=lambda k: (0, int(k)) if str(k).isdigit() else (1, str(k)))
        value = [value[k] for k in keys]
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _baggage_text(baggage_txt):
    if isinstance(baggage_txt, list):
        return str(baggage_txt[0]) if baggage_txt else ""
    if isinstance(baggage_txt, dict) and baggage_txt:
        first_route = baggage_txt[next(iter(baggage_txt))]
        if isinstance(first_route, dict):
            return str(first_route.get("ADT") or "")
        return str(first_route or "")
    if isinstance(baggage_txt, str):
        return baggage_txt
    return ""


def transform_price_option(option, index, currency):
    total_fare = option.get("Total_Fare") if isinstance(option.get("Total_Fare"), dict) else {}
    brand_info = _as_list(option.get("BrandInfo"))
    pricing = _as_list(option.get("pricingArr"))
    first_brand = brand_info[0] if brand_info else {}
    first_pax = pricing[0] if pricing else {}

    total = parse_price(total_fare.get("total"), 0.0)
    base = parse_price(total_fare.get("base"), 0.0)
    taxes = parse_price(total_fare.get("tax"), 0.0)

    pax_count = sum(parse_int_safe(p.get("passengers"), 0) for p in pricing) or 1

    cabin_code = str(first_pax.get("CabinClass") or first_brand.get("cabinCode") or "Y")
    brand_name = str(total_fare.get("Name") or first_brand.get("BrandName") or "").strip()
    display = brand_name or first_brand.get("CabinName") or cabin_class_name(cabin_code)
    booking_code = first_pax.get("BookingCode") or option.get("BookingCode") or total_fare.get("BookingCode") or ""

    breakdown = [
        {
            "type": p.get("paxtype") or "ADT",
            "count": parse_int_safe(p.get("passengers"), 1),
            "basePrice": parse_price(p.get("base"), 0.0),
            "totalPrice": parse_price(p.get("total"), 0.0),
            "taxesPerPerson": parse_price(p.get("tax"), 0.0),
        }
        for p in pricing
    ]
    if not breakdown:
        breakdown = [{"type": "ADT", "count": 1, "basePrice": base, "totalPrice": total, "taxesPerPerson": taxes}]

    baggage_info = _baggage_text(option.get("baggageTxt"))

    return {
        "id": f"fare_{index + 1}",
        "cabinClass": cabin_code,
        "cabinClassDisplay": display,
        "bookingCode": str(booking_code),
        "totalPrice": total,
        "pricePerPerson": round_half_up(total / pax_count),
        "currency": currency,
        "baseFare": base,
        "taxes": taxes,
        "markup": parse_price(total_fare.get("markup"), 0.0),
        "commission": parse_price(total_fare.get("comm"), 0.0),
        "atolFee": parse_price(total_fare.get("Atol_fee"), 0.0),
        "passengerBreakdown": breakdown,
        "baggage": {
            "description": describe_baggage(baggage_info),
            "details": baggage_info if baggage_info and not CARRIER_SENTINEL_RE.match(baggage_info) else None,
        },
        "brandInfo": brand_info,
        "optionalServices": _as_list(total_fare.get("OptionalService")),
        "isUpgrade": False,
        "priceDifference": None,
    }


def flag_upgrades(options):
    """Sort cheapest first and mark every dearer option as an upgrade over it."""
    ranked = sorted(options, key=lambda o: o["totalPrice"])
    if not ranked:
        return ranked
    base_price = ranked[0]["totalPrice"]
    flagged = []
    for idx, option in enumerate(ranked):
        is_upgrade = idx > 0 and option["totalPrice"] > base_price
        flagged.append(
            {
                **option,
                "isUpgrade": is_upgrade,
                "priceDifference": round_half_up(option["totalPrice"] - base_price) if is_upgrade else None,
            }
        )
    return flagged


def extract_upgrade_options(price_data, currency):
    options = [transform_price_option(opt, idx, currency) for idx, opt in enumerate(_as_list(price_data))]
    return flag_upgrades(options)


def _fallback_option(flight_result, currency):
    total = parse_price(flight_result.get("total_fare"), 0.0)
    base = parse_price(flight_result.get("base_fare"), 0.0)
    tax = parse_price(flight_result.get("tax"), 0.0)
    return {
        "id": str(flight_result.get("id") or "fallback"),
        "cabinClass": "Y",
        "cabinClassDisplay": "Economy",
        "bookingCode": "",
        "totalPrice": total,
        "pricePerPerson": total,
        "currency": currency,
        "baseFare": base,
        "taxes": tax,
        "markup": parse_price(flight_result.get("markupAmt"), 0.0),
        "commission": parse_price(flight_result.get("CommissionAmount"), 0.0),
        "atolFee": 0.0,
        "passengerBreakdown": [{"type": "ADT", "count": 1, "basePrice": base, "totalPrice": total, "taxesPerPerson": tax}],
        "baggage": {"description": "Check airline policy", "details": None},
        "brandInfo": [],
        "optionalServices": [],
        "isUpgrade": False,
        "priceDifference": None,
    }


def _included(services, tag):
    for service in services:
        if service.get("Tag") == tag:
            return service.get("Chargeable") == "Included in the brand"
    return False


def _segment_details(segment):
    flight = segment.get("FlightPswFlightnew") if isinstance(segment.get("FlightPswFlightnew"), dict) else {}
    link = segment.get("Link") if isinstance(segment.get("Link"), dict) else {}
    return {
        "segmentNumber": parse_int_safe(flight.get("segment"), 1),
        "flights": [
            {
                "airline": flight.get("airline_code") or "",
                "flightNumber": str(flight.get("flight_number") or ""),
                "departureAirport": flight.get("departure_airport") or "",
                "arrivalAirport": flight.get("arrival_airport") or "",
                "departureDate": flight.get("departure_date") or "",
                "departureTime": str(flight.get("departure_time") or ""),
                "arrivalDate": flight.get("arrival_date") or "",
                "arrivalTime": str(flight.get("arrival_time") or ""),
                "duration": str(flight.get("travel_time") or ""),
                "cabinClass": link.get("CabinClass") or "Y",
                "aircraft": str(flight.get("aircraft_type") or ""),
                "baggage": link.get("Baggage") or "",
                "fareBasis": link.get("FareBasis") or "",
                "terminal": {
                    "departure": flight.get("departure_terminal") or None,
                    "arrival": flight.get("arrival_terminal") or None,
                },
            }
        ],
    }


def _flight_details(flight_result, flight_segments, optional_services):
    details = {
        "id": str(flight_result.get("id") or ""),
        "origin": flight_result.get("Origin") or "",
        "destination": flight_result.get("Destination") or "",
        "validatingCarrier": flight_result.get("validating_carrier") or "",
        "lastTicketDate": flight_result.get("last_ticket_date") or "",
        "changeable": _included(optional_services, "Rebooking"),
        "seatSelectionFree": _included(optional_services, "Basic Seat"),
        "availableSeats": flight_result.get("avlSeats") or "Limited",
        "segments": [_segment_details(s) for s in flight_segments],
    }
    details.update(refundable_status(flight_result.get("refundable")))
    return details


def _dig(data, *keys):
    for key in keys:
        if not isinstance(data, dict):
            return {}
        data = data.get(key)
    return data if isinstance(data, dict) else {}


def transform_price_check_response(raw):
    if not isinstance(raw, dict):
        raise ProviderAPIError(
            "Price check payload is not an object.",
            user_message="Unable to process pricing data. Please try again.",
        )

    pc = raw["priceCheck"] if isinstance(raw.get("priceCheck"), dict) else raw
    flight_data = _dig(pc, "flight_data")
    flight_result = _dig(flight_data, "result", "FlightPswResult")
    price_data = _as_list(pc.get("price_data"))

    if not flight_result and not price_data:
        raise ProviderAPIError(
            "Incomplete price check data.",
            user_message="Unable to load fare details. Please try again.",
            details={"keys": sorted(str(k) for k in pc)},
        )

    currency = str(flight_result.get("iso_currency_code") or getattr(settings, "DEFAULT_CURRENCY", "GBP")).upper()
    options = extract_upgrade_options(price_data, currency)

    if flight_result and (not options or all(o["totalPrice"] <= 0 for o in options)):
        logger.warning("Price check returned no usable options, falling back to flight total.")
        options = [_fallback_option(flight_result, currency)]

    first_total_fare = _dig(price_data[0], "Total_Fare") if price_data else {}
    optional_services = _as_list(first_total_fare.get("OptionalService"))
    flight_segments = _as_list(flight_data.get("flights"))

    return {
        "success": True,
        "flightDetails": _flight_details(flight_result, flight_segments, optional_services),
        "priceOptions": options,
        "sessionInfo": {
            "sessionId": str(pc.get("sessionId") or ""),
            "pscRequestId": str(pc.get("psc_request_id") or ""),
            "pswResultId": str(pc.get("psw_result_id") or ""),
        },
    }


def is_valid_segment_id(value):
    text = str(value).strip() if value is not None else ""
    return text.isdigit() and int(text) > 0


def check_price(provider, segment_result_id=None, flight_key=None, cache=None):
    """Price-check a search result, reusing a recent answer for the same segment."""
    flight_key = str(flight_key).strip() if flight_key not in (None, "undefined", "null") else ""
    if not flight_key and not is_valid_segment_id(segment_result_id):
        raise ProviderValidationError(
            "Invalid segment result ID and no flight key provided.",
            user_message="Unable to check price. Please try searching again.",
            details={"segmentResultId": segment_result_id},
        )

    cache = cache or price_check_cache()
    cache_key = f"key:{stable_key(flight_key)}" if flight_key else str(segment_result_id).strip()
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    raw = provider.price_check(segment_result_id=segment_result_id, flight_key=flight_key or None)
    try:
        result = transform_price_check_response(raw)
    except ProviderError:
        raise
    except (TypeError, ValueError, KeyError, AttributeError, ArithmeticError) as exc:
        logger.exception("Price check transformation failed.")
        raise ProviderUnknownError.from_exception(exc, segmentId=segment_result_id)

    cache.set(cache_key, result)
    return result
