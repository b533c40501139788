"""Typed views over the raw availability payload.

The upstream API mixes key casings between versions (``Flying_time`` vs
``FlyingTime``, ``Currency_code`` vs ``currency_code``) and sends numbers as
strings or ints interchangeably. These DTOs pick the first usable key and
default everything else, so the transformer never touches raw dicts.
"""
from dataclasses import dataclass, field
from typing import Any


def _first(data: dict, *keys, default=None):
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return default


def _dicts(value) -> list:
    if isinstance(value, dict):
        # Some endpoints send lists as {"0": {...}, "1": {...}}.
        keys = sorted(value, key=lambda k: (0, int(k)) if str(k).isdigit() else (1, str(k)))
        value = [value[k] for k in keys]
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _text(value) -> str:
    return "" if value is None else str(value).strip()


@dataclass(frozen=True)
class VendorLeg:
    airline_code: str = ""
    airline_name: str = ""
    flight_number: str = ""
    departure_airport: str = ""
    arrival_airport: str = ""
    departure_date: str = ""
    departure_time: Any = None
    arrival_date: str = ""
    arrival_time: Any = None
    cabin_class: str = ""
    travel_time: Any = None
    distance: Any = None
    aircraft_type: str = ""
    departure_terminal: str = ""
    arrival_terminal: str = ""
    refundable: Any = None
    refundable_text: str = ""
    baggage: str = ""
    baggage_quantity: str = ""
    baggage_unit: str = ""
    meal_code: str = ""
    breakdown: str = ""

    @classmethod
    def from_payload(cls, data: dict) -> "VendorLeg":
        return cls(
            airline_code=_text(_first(data, "airline_code", "carrier_code")).upper(),
            airline_name=_text(data.get("airline_name")),
            flight_number=_text(data.get("flight_number")),
            departure_airport=_text(data.get("departure_airport")).upper(),
            arrival_airport=_text(data.get("arrival_airport")).upper(),
            departure_date=_text(data.get("departure_date")),
            departure_time=data.get("departure_time"),
            arrival_date=_text(data.get("arrival_date")),
            arrival_time=data.get("arrival_time"),
            cabin_class=_text(_first(data, "cabin_class", "class_name")),
            travel_time=data.get("travel_time"),
            distance=data.get("distance"),
            aircraft_type=_text(data.get("aircraft_type")),
            departure_terminal=_text(data.get("departure_terminal")),
            arrival_terminal=_text(data.get("arrival_terminal")),
            refundable=data.get("refundable"),
            refundable_text=_text(data.get("refundable_text")),
            baggage=_text(_first(data, "baggage", "Baggage")),
            baggage_quantity=_text(data.get("BaggageQuantity")),
            baggage_unit=_text(data.get("BaggageUnit")),
            meal_code=_text(_first(data, "meal_code", "meals", "Meal")),
            breakdown=_text(data.get("Bdown")),
        )


@dataclass(frozen=True)
class VendorSegment:
    route: str = ""
    flying_time: Any = None
    stops: Any = None
    legs: tuple = ()

    @classmethod
    def from_payload(cls, data: dict) -> "VendorSegment":
        return cls(
            route=_text(data.get("Route")),
            flying_time=_first(data, "Flying_time", "FlyingTime"),
            stops=data.get("Stops"),
            legs=tuple(VendorLeg.from_payload(f) for f in _dicts(data.get("Flights"))),
        )


@dataclass(frozen=True)
class VendorResult:
    result_id: str = ""
    module_id: str = ""
    total: Any = None
    total_fare: Any = None
    currency_code: str = ""
    deep_link: str = ""
    baggage: str = ""
    breakdown: list = field(default_factory=list)
    pax_breakdown: list = field(default_factory=list)
    segments: tuple = ()

    @classmethod
    def from_payload(cls, data: dict) -> "VendorResult":
        module_id = _first(data, "Module_id", "module_id")
        return cls(
            result_id=_text(data.get("Result_id")),
            module_id="" if module_id is None else str(module_id),
            total=data.get("Total"),
            total_fare=_first(data, "Total_fare", "TotalFare"),
            currency_code=_text(_first(data, "Currency_code", "currency_code")).upper(),
            deep_link=_text(data.get("Deep_link")),
            baggage=_text(data.get("Baggage")),
            breakdown=_dicts(data.get("Breakdown")),
            pax_breakdown=_dicts(data.get("Pax_breakdown")),
            segments=tuple(VendorSegment.from_payload(s) for s in _dicts(data.get("Segments"))),
        )


@dataclass(frozen=True)
class VendorSearchResponse:
    request_id: str = ""
    error: str = ""
    results: list = field(default_factory=list)

    @classmethod
    def from_payload(cls, data) -> "VendorSearchResponse":
        if isinstance(data, list) and data:
            data = data[0]
        if not isinstance(data, dict):
            return cls()
        request_id = data.get("Request_id")
        return cls(
            request_id="" if request_id is None else str(request_id),
            error=_text(data.get("error")),
            results=_dicts(data.get("Results")),
        )
