from django.conf import settings
from rest_framework import serializers

from flights.services.parsers import (
    convert_date_format,
    is_valid_airport_code,
    is_valid_date_format,
    normalize_airport_code,
)
from flights.services.rules import SORT_OPTIONS

CABIN_CHOICES = ["ECONOMY", "PREMIUM_ECONOMY", "BUSINESS", "FIRST"]
TRIP_TYPES = ["one-way", "round-trip", "multi-city"]

# Search-form cabin numbers used by the booking site links.
WIRE_CABINS = {"1": "ECONOMY", "2": "PREMIUM_ECONOMY", "3": "BUSINESS", "4": "FIRST"}

MAX_EXTRA_LEGS = 5


def _airport_code(value, label):
    code = normalize_airport_code(value)
    if not is_valid_airport_code(code):
        raise serializers.ValidationError(f"{label} airport code must be 3 letters (e.g., LHR).")
    return code


def from_wire_form(data):
    """Map the booking-site query form (origin1, destinationid, fr, ...) to the structured form."""
    errors = {}

    depart = data.get("fr")
    if not is_valid_date_format(depart):
        errors["fr"] = ["Departure date must be in DD/MM/YYYY format."]

    one_way = str(data.get("ow", "0"))
    if one_way not in ("0", "1"):
        errors["ow"] = ["Trip type must be 0 (round trip) or 1 (one way)."]

    direct = str(data.get("dir", "0"))
    if direct not in ("0", "1"):
        errors["dir"] = ["Direct flight option must be 0 (any) or 1 (direct only)."]

    return_date = data.get("to") if one_way == "0" else None
    if return_date and not is_valid_date_format(return_date):
        errors["to"] = ["Return date must be in DD/MM/YYYY format."]

    if errors:
        raise serializers.ValidationError(errors)

    structured = {
        "origin": data.get("origin1"),
        "destination": data.get("destinationid"),
        "departDate": convert_date_format(depart),
        "returnDate": convert_date_format(return_date) if return_date else None,
        "adults": data.get("adt1"),
        "children": data.get("chd1") or 0,
        "infants": data.get("inf1") or 0,
        "cabin": WIRE_CABINS.get(str(data.get("cl") or "1"), "ECONOMY"),
        "tripType": "round-trip" if return_date else "one-way",
        "directOnly": direct == "1",
    }
    for optional in ("currency", "sort"):
        if data.get(optional):
            structured[optional] = data.get(optional)
    return structured


class SearchLegSerializer(serializers.Serializer):
    origin = serializers.CharField(max_length=8)
    destination = serializers.CharField(max_length=8)
    departDate = serializers.DateField()
    cabin = serializers.ChoiceField(choices=CABIN_CHOICES, required=False)

    def validate_origin(self, value):
        return _airport_code(value, "Origin")

    def validate_destination(self, value):
        return _airport_code(value, "Destination")


class FlightSearchSerializer(serializers.Serializer):
    origin = serializers.CharField(max_length=8)
    destination = serializers.CharField(max_length=8)
    departDate = serializers.DateField()
    returnDate = serializers.DateField(required=False, allow_null=True)
    adults = serializers.IntegerField(default=1)
    children = serializers.IntegerField(min_value=0, default=0)
    infants = serializers.IntegerField(min_value=0, default=0)
    cabin = serializers.ChoiceField(choices=CABIN_CHOICES, default="ECONOMY")
    tripType = serializers.ChoiceField(choices=TRIP_TYPES, required=False)
    directOnly = serializers.BooleanField(default=False)
    legs = SearchLegSerializer(many=True, required=False)
    sort = serializers.ChoiceField(choices=SORT_OPTIONS, required=False, allow_null=True)

    # Optional: display currency; prices are converted when it differs from the fare currency
    currency = serializers.CharField(required=False, allow_null=True, min_length=3, max_length=3)

    def to_internal_value(self, data):
        if hasattr(data, "get") and data.get("origin1") is not None:
            data = from_wire_form(data)
        return super().to_internal_value(data)

    def validate_origin(self, value):
        return _airport_code(value, "Origin")

    def validate_destination(self, value):
        return _airport_code(value, "Destination")

    def _validate_passengers(self, attrs):
        limits = getattr(settings, "PASSENGER_LIMITS", {})
        adults, children, infants = attrs["adults"], attrs["children"], attrs["infants"]

        errors = {}
        if adults < limits.get("min_adults", 1):
            errors["adults"] = f"At least {limits.get('min_adults', 1)} adult is required."
        elif adults > limits.get("max_adults", 9):
            errors["adults"] = f"Maximum {limits.get('max_adults', 9)} adults allowed."
        if children > limits.get("max_children", 9):
            errors["children"] = f"Maximum {limits.get('max_children', 9)} children allowed."
        if infants > limits.get("max_infants", 9):
            errors["infants"] = f"Maximum {limits.get('max_infants', 9)} infants allowed."
        elif infants > adults:
            errors["infants"] = "Number of infants cannot exceed number of adults."
        if not errors and adults + children + infants > limits.get("max_total", 9):
            errors["non_field_errors"] = [f"Maximum {limits.get('max_total', 9)} total passengers allowed."]
        if errors:
            raise serializers.ValidationError(errors)

    def _validate_legs(self, attrs):
        legs = attrs.get("legs") or []
        if not legs:
            raise serializers.ValidationError({"legs": "Multi-city searches need at least one more leg."})
        if len(legs) > MAX_EXTRA_LEGS:
            raise serializers.ValidationError({"legs": f"At most {MAX_EXTRA_LEGS + 1} flights per multi-city search."})

        previous = attrs["departDate"]
        for leg in legs:
            if leg["origin"] == leg["destination"]:
                raise serializers.ValidationError({"legs": "Each leg needs different origin and destination."})
            if leg["departDate"] < previous:
                raise serializers.ValidationError({"legs": "Leg dates must not go back in time."})
            previous = leg["departDate"]

    def validate(self, attrs):
        origin = attrs["origin"]
        destination = attrs["destination"]

        currency = attrs.get("currency")
        if currency is not None:
            currency = currency.strip().upper() if isinstance(currency, str) else None
            attrs["currency"] = currency or None

        if origin == destination:
            raise serializers.ValidationError({"destination": "Destination must be different from origin."})

        trip_type = attrs.get("tripType") or ("round-trip" if attrs.get("returnDate") else "one-way")
        attrs["tripType"] = trip_type

        if trip_type == "round-trip":
            return_date = attrs.get("returnDate")
            if not return_date:
                raise serializers.ValidationError({"returnDate": "Return date is required for round trips."})
            if return_date < attrs["departDate"]:
                raise serializers.ValidationError({"returnDate": "Return date must be on or after depart date."})
        else:
            attrs["returnDate"] = None

        if trip_type == "multi-city":
            self._validate_legs(attrs)
        else:
            attrs["legs"] = []

        self._validate_passengers(attrs)
        return attrs


def search_params(validated):
    """Plain, JSON-friendly search params for providers and cache keys."""
    return {
        **validated,
        "departDate": validated["departDate"].isoformat(),
        "returnDate": validated["returnDate"].isoformat() if validated.get("returnDate") else None,
        "legs": [{**leg, "departDate": leg["departDate"].isoformat()} for leg in validated.get("legs") or []],
    }


class BatchSearchItemSerializer(serializers.Serializer):
    key = serializers.CharField()
    type = serializers.CharField(required=False, allow_blank=True, default="")
    params = serializers.DictField()


class BatchSearchSerializer(serializers.Serializer):
    items = BatchSearchItemSerializer(many=True, allow_empty=False)

    def validate_items(self, value):
        limit = getattr(settings, "FLIGHTS_BATCH_MAX_ITEMS", 20)
        if len(value) > limit:
            raise serializers.ValidationError(f"At most {limit} searches per batch.")
        return value


class PriceCheckSerializer(serializers.Serializer):
    segmentResultId = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    flightKey = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        segment = (attrs.get("segmentResultId") or "").strip()
        flight_key = (attrs.get("flightKey") or "").strip()
        if not segment and not flight_key:
            raise serializers.ValidationError("Either segmentResultId or flightKey is required.")
        return {"segmentResultId": segment or None, "flightKey": flight_key or None}
