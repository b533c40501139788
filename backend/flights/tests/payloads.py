"""Builders for upstream payloads used across the test modules."""


def leg(dep, arr, dep_time, arr_time, date="2025-12-01", arr_date=None, travel_time=None, **extra):
    data = {
        "airline_code": "BA",
        "airline_name": "British Airways",
        "flight_number": "117",
        "departure_airport": dep,
        "arrival_airport": arr,
        "departure_date": date,
        "arrival_date": arr_date or date,
        "departure_time": dep_time,
        "arrival_time": arr_time,
        "travel_time": travel_time,
        "cabin_class": "M",
        "aircraft_type": "388",
        "refundable": "2",
        "baggage": "2p",
    }
    data.update(extra)
    return data


def segment(*legs, stops=None):
    data = {"Flights": list(legs)}
    if stops is not None:
        data["Stops"] = stops
    return data


def result(result_id="101-1", total="450.00", segments=None, currency="GBP", **extra):
    data = {
        "Result_id": result_id,
        "Total": total,
        "Currency_code": currency,
        "Deep_link": f"https://book.example.test/view?flight=KEY{result_id}&src=meta",
        "Segments": segments
        if segments is not None
        else [segment(leg("LHR", "JFK", "0900", "1200", travel_time=480), stops="0")],
    }
    data.update(extra)
    return data


def search_payload(*results, request_id="REQ-1"):
    return {"Request_id": request_id, "Results": list(results)}


def price_check_payload(price_data=None, flight_result=None, optional_services=None):
    flight_result = flight_result or {
        "id": "555",
        "Origin": "LHR",
        "Destination": "JFK",
        "validating_carrier": "BA",
        "last_ticket_date": "2025-11-20",
        "refundable": "1",
        "avlSeats": "4",
        "iso_currency_code": "gbp",
        "total_fare": "350.00",
        "base_fare": "200.00",
        "tax": "150.00",
    }
    if price_data is None:
        price_data = [
            {
                "Total_Fare": {
                    "Name": "Economy Basic",
                    "base": "200.00",
                    "tax": "150.00",
                    "total": "350.00",
                    "OptionalService": optional_services or [],
                },
                "pricingArr": [
                    {"passengers": "1", "paxtype": "ADT", "base": "200.00", "tax": "150.00", "total": "350.00", "CabinClass": "M", "BookingCode": "O"}
                ],
                "baggageTxt": ["SK***"],
            },
            {
                "Total_Fare": {"Name": "Economy Flex", "base": "300.00", "tax": "150.00", "total": "450.00"},
                "pricingArr": [
                    {"passengers": "1", "paxtype": "ADT", "base": "300.00", "tax": "150.00", "total": "450.00", "CabinClass": "M", "BookingCode": "Y"}
                ],
                "baggageTxt": ["SK***2p"],
            },
        ]
    return {
        "success": True,
        "message": "OK",
        "priceCheck": {
            "flight_data": {
                "result": {"FlightPswResult": flight_result},
                "flights": [
                    {
                        "FlightPswFlightnew": {
                            "segment": "1",
                            "airline_code": "BA",
                            "flight_number": "117",
                            "departure_airport": "LHR",
                            "arrival_airport": "JFK",
                            "departure_date": "2025-12-01",
                            "departure_time": "0900",
                            "arrival_date": "2025-12-01",
                            "arrival_time": "1200",
                            "travel_time": "480",
                            "aircraft_type": "388",
                        },
                        "Link": {"CabinClass": "M", "Baggage": "2p", "FareBasis": "OLOWGB"},
                    }
                ],
            },
            "price_data": price_data,
            "sessionId": "sess-1",
            "psc_request_id": "900",
            "psw_result_id": "555",
        },
    }
