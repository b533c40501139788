import logging
import re
from datetime import datetime

from flights.services.parsers import (
    convert_date_format,
    format_duration,
    format_time,
    is_valid_airport_code,
    minutes_between,
    parse_int_safe,
    parse_price,
    parse_price_breakdown,
    round_half_up,
)
from flights.services.reference import (
    aircraft_name,
    cabin_class_name,
    has_checked_baggage,
    meals_flag,
    refundable_flag,
)
from flights.services.rules import derive_filters
from flights.services.vendor import VendorResult, VendorSearchResponse, VendorSegment

logger = logging.getLogger(__name__)

# Gaps longer than this between legs are stopovers, not connections.
MULTI_CITY_GAP_MINUTES = 24 * 60

FLIGHT_KEY_RE = re.compile(r"flight=([^&\"]+)")

DAY_NAMES = ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]
MONTH_NAMES = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]


class InvalidRecord(ValueError):
    """A search result is missing data the UI cannot do without."""


def format_display_date(value):
    try:
        parsed = datetime.strptime(convert_date_format(value), "%Y-%m-%d")
    except (TypeError, ValueError):
        return value or ""
    return f"{DAY_NAMES[parsed.weekday()]}, {parsed.day} {MONTH_NAMES[parsed.month - 1]} {parsed.strftime('%y')}"


def _layover_minutes(current, nxt):
    return minutes_between(
        current.arrival_date or current.departure_date,
        current.arrival_time,
        nxt.departure_date,
        nxt.departure_time,
    )


def _segment_from_legs(legs):
    flying = sum(parse_int_safe(leg.travel_time, 0) for leg in legs)
    return VendorSegment(
        route=f"{legs[0].departure_airport}{legs[-1].arrival_airport}",
        flying_time=flying,
        stops=max(0, len(legs) - 1),
        legs=tuple(legs),
    )


def split_long_layovers(segments):
    """Break segments apart where consecutive legs are more than a day apart."""
    normalized = []
    for segment in segments:
        legs = list(segment.legs)
        if len(legs) <= 1:
            normalized.append(segment)
            continue

        groups = [[legs[0]]]
        for current, nxt in zip(legs, legs[1:]):
            if _layover_minutes(current, nxt) > MULTI_CITY_GAP_MINUTES:
                groups.append([nxt])
            else:
                groups[-1].append(nxt)

        if len(groups) == 1:
            normalized.append(segment)
        else:
            normalized.extend(_segment_from_legs(group) for group in groups)
    return normalized


def _airport(code, airport_lookup):
    info = airport_lookup(code) if airport_lookup else None
    info = info or {}
    return {
        "code": code,
        "name": info.get("name") or code,
        "city": info.get("city") or code,
        "country": info.get("country"),
    }


def _stop_details(legs):
    stops = max(0, len(legs) - 1)
    if stops == 0:
        return "Direct"
    if stops == 1:
        return f"1 stop via {legs[0].arrival_airport}"
    return f"{stops} stops"


def _check_leg(leg, result_id):
    if not (is_valid_airport_code(leg.departure_airport) and is_valid_airport_code(leg.arrival_airport)):
        raise InvalidRecord(f"{result_id}: leg without valid airports")
    if not format_time(leg.departure_time) or not format_time(leg.arrival_time):
        raise InvalidRecord(f"{result_id}: leg without departure/arrival time")


def _individual_flight(leg):
    leg_minutes = parse_int_safe(leg.travel_time, 0)
    return {
        "departureAirport": leg.departure_airport,
        "arrivalAirport": leg.arrival_airport,
        "departureTime": format_time(leg.departure_time),
        "arrivalTime": format_time(leg.arrival_time),
        "departureDate": leg.departure_date,
        "arrivalDate": leg.arrival_date,
        "duration": format_duration(leg_minutes) if leg_minutes else "",
        "durationMinutes": leg_minutes,
        "flightNumber": leg.flight_number or None,
        "carrierCode": leg.airline_code,
        "airlineName": leg.airline_name or leg.airline_code,
        "cabinClass": leg.cabin_class,
        "aircraftType": aircraft_name(leg.aircraft_type) or None,
        "meals": meals_flag(leg.meal_code) if leg.meal_code else None,
    }


def normalize_segment(segment, airport_lookup=None, result_id=""):
    legs = list(segment.legs)
    if not legs:
        raise InvalidRecord(f"{result_id}: segment without flights")
    for leg in legs:
        _check_leg(leg, result_id)

    first, last = legs[0], legs[-1]

    stops = max(0, len(legs) - 1)
    reported_stops = parse_int_safe(segment.stops, None)
    if reported_stops is not None and reported_stops != stops:
        logger.debug(
            "Upstream stop count disagrees with leg count",
            extra={"result_id": result_id, "reported": reported_stops, "computed": stops},
        )

    layovers = []
    layover_total = 0
    for current, nxt in zip(legs, legs[1:]):
        minutes = _layover_minutes(current, nxt)
        if minutes <= 0:
            logger.warning(
                "Non-positive layover clamped to zero",
                extra={"result_id": result_id, "via": current.arrival_airport, "minutes": minutes},
            )
            minutes = 0
        layover_total += minutes
        layovers.append(
            {
                "viaAirport": current.arrival_airport,
                "duration": format_duration(minutes),
                "durationMinutes": minutes,
            }
        )

    flying = sum(parse_int_safe(leg.travel_time, 0) for leg in legs)
    if flying <= 0:
        flying = max(0, parse_int_safe(segment.flying_time, 0))

    meal_flags = [meals_flag(leg.meal_code) for leg in legs if leg.meal_code]
    meal_flags = [flag for flag in meal_flags if flag is not None]

    distance = first.distance
    distance_text = f"{distance} mi" if distance is not None and str(distance).strip() != "" else None

    return {
        "departureTime": format_time(first.departure_time),
        "arrivalTime": format_time(last.arrival_time),
        "departureAirport": _airport(first.departure_airport, airport_lookup),
        "arrivalAirport": _airport(last.arrival_airport, airport_lookup),
        "date": format_display_date(first.departure_date),
        "arrivalDate": format_display_date(last.arrival_date) if last.arrival_date else None,
        "duration": format_duration(flying),
        "durationMinutes": flying,
        "totalJourneyTime": format_duration(flying + layover_total),
        "totalJourneyMinutes": flying + layover_total,
        "stops": stops,
        "stopDetails": _stop_details(legs),
        "layovers": layovers,
        "individualFlights": [_individual_flight(leg) for leg in legs],
        "carrierCode": first.airline_code,
        "flightNumber": first.flight_number or None,
        "cabinClass": first.cabin_class,
        "cabinClassDisplay": cabin_class_name(first.cabin_class),
        "aircraftType": aircraft_name(first.aircraft_type) or None,
        "distance": distance_text,
        "departureTerminal": first.departure_terminal or None,
        "arrivalTerminal": last.arrival_terminal or None,
        "meals": any(meal_flags) if meal_flags else None,
        "baggage": first.baggage or None,
    }


def _total_price(result):
    total = parse_price(result.total, 0.0)
    if total > 0:
        return total

    fare_total = parse_price(result.total_fare, 0.0)
    pax_total = sum(parse_price(p.get("total_fare"), 0.0) for p in result.pax_breakdown)
    breakdown_total = sum(parse_price(b.get("total"), 0.0) for b in result.breakdown)
    return round_half_up(fare_total or pax_total or breakdown_total)


def _passenger_count(result, first_leg):
    if result.pax_breakdown:
        count = sum(parse_int_safe(p.get("pax_count"), 0) for p in result.pax_breakdown)
    elif result.breakdown:
        count = sum(parse_int_safe(b.get("total_pax"), 0) for b in result.breakdown)
    else:
        count = sum(entry["count"] for entry in parse_price_breakdown(first_leg.breakdown))
    return max(1, count)


def _baggage_value(result, first_leg):
    for pax in result.pax_breakdown:
        allowance = pax.get("baggage")
        if isinstance(allowance, list) and allowance:
            return str(allowance[0])
        if isinstance(allowance, str) and allowance:
            return allowance
    return first_leg.baggage or result.baggage or None


def _trip_type(segment_count):
    if segment_count <= 1:
        return "one-way"
    if segment_count == 2:
        return "round-trip"
    return "multi-city"


def extract_flight_key(deep_link):
    if not deep_link:
        return None
    match = FLIGHT_KEY_RE.search(deep_link)
    return match.group(1) if match else None


def normalize_result(raw_result, airport_lookup=None, default_currency="GBP"):
    result = VendorResult.from_payload(raw_result)
    segments = split_long_layovers(result.segments)
    if not segments or not segments[0].legs:
        raise InvalidRecord(f"{result.result_id}: no outbound segment")

    total_price = _total_price(result)
    if total_price <= 0:
        raise InvalidRecord(f"{result.result_id}: no usable price")

    first_leg = segments[0].legs[0]
    passengers = _passenger_count(result, first_leg)
    all_segments = [normalize_segment(s, airport_lookup, result.result_id) for s in segments]
    baggage = _baggage_value(result, first_leg)

    return {
        "id": result.result_id,
        "airline": {
            "name": first_leg.airline_name or first_leg.airline_code,
            "code": first_leg.airline_code,
            "logo": f"/airlines/{first_leg.airline_code.lower()}.png",
        },
        "outbound": all_segments[0],
        "inbound": all_segments[1] if len(all_segments) > 1 else None,
        "segments": all_segments,
        "tripType": _trip_type(len(all_segments)),
        "price": total_price,
        "pricePerPerson": round_half_up(total_price / passengers),
        "passengers": passengers,
        "currency": result.currency_code or default_currency,
        "webRef": result.result_id.split("-")[0],
        "baggage": baggage,
        "hasBaggage": has_checked_baggage(baggage, first_leg.baggage_quantity),
        "refundable": refundable_flag(first_leg.refundable),
        "refundableText": first_leg.refundable_text or None,
        "segmentResultId": result.result_id,
        "flightKey": extract_flight_key(result.deep_link),
        "moduleId": result.module_id or None,
    }


def normalize_search_response(raw, airport_lookup=None, default_currency="GBP"):
    response = VendorSearchResponse.from_payload(raw)

    flights = []
    for record in response.results:
        try:
            flights.append(normalize_result(record, airport_lookup, default_currency))
        except InvalidRecord as exc:
            logger.warning("Dropping search result", extra={"reason": str(exc)})
        except (TypeError, ValueError, KeyError, AttributeError):
            logger.exception("Unexpected error transforming result %s", record.get("Result_id"))

    return {
        "flights": flights,
        "filters": derive_filters(flights),
        "requestId": response.request_id or None,
    }
