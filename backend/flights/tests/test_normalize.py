from django.test import SimpleTestCase

from flights.services.normalize import (
    extract_flight_key,
    format_display_date,
    normalize_result,
    normalize_search_response,
)
from flights.tests.payloads import leg, result, search_payload, segment

AIRPORTS = {"LHR": {"name": "Heathrow", "city": "London", "country": "GB"}}


class NormalizeResultTests(SimpleTestCase):
    def test_stops_come_from_leg_count_not_upstream(self):
        raw = result(
            segments=[
                segment(
                    leg("LHR", "DUB", "0800", "0900", travel_time=60),
                    leg("DUB", "JFK", "1100", "1400", travel_time=480),
                    stops="0",
                )
            ]
        )

        flight = normalize_result(raw)
        outbound = flight["outbound"]

        self.assertEqual(outbound["stops"], 1)
        self.assertEqual(outbound["stopDetails"], "1 stop via DUB")
        self.assertEqual(len(outbound["individualFlights"]), 2)
        self.assertEqual(outbound["layovers"][0]["viaAirport"], "DUB")
        self.assertEqual(outbound["layovers"][0]["durationMinutes"], 120)
        self.assertEqual(outbound["layovers"][0]["duration"], "2h")
        self.assertEqual(outbound["duration"], "9h")
        self.assertEqual(outbound["totalJourneyMinutes"], 660)
        self.assertEqual(outbound["totalJourneyTime"], "11h")

    def test_direct_flight_fields(self):
        flight = normalize_result(result(), airport_lookup=AIRPORTS.get)

        self.assertEqual(flight["id"], "101-1")
        self.assertEqual(flight["price"], 450.0)
        self.assertEqual(flight["pricePerPerson"], 450.0)
        self.assertEqual(flight["currency"], "GBP")
        self.assertEqual(flight["tripType"], "one-way")
        self.assertIsNone(flight["inbound"])
        self.assertEqual(flight["airline"]["code"], "BA")
        self.assertEqual(flight["flightKey"], "KEY101-1")
        self.assertFalse(flight["refundable"])

        outbound = flight["outbound"]
        self.assertEqual(outbound["stops"], 0)
        self.assertEqual(outbound["stopDetails"], "Direct")
        self.assertEqual(outbound["departureTime"], "09:00")
        self.assertEqual(outbound["arrivalTime"], "12:00")
        self.assertEqual(outbound["date"], "MON, 1 DEC 25")
        self.assertEqual(outbound["departureAirport"]["name"], "Heathrow")
        self.assertEqual(outbound["departureAirport"]["city"], "London")
        self.assertEqual(outbound["arrivalAirport"]["name"], "JFK")

    def test_round_trip_has_inbound(self):
        raw = result(
            segments=[
                segment(leg("LHR", "JFK", "0900", "1200", travel_time=480)),
                segment(leg("JFK", "LHR", "1800", "0600", date="2025-12-10", arr_date="2025-12-11", travel_time=420)),
            ]
        )

        flight = normalize_result(raw)

        self.assertEqual(flight["tripType"], "round-trip")
        self.assertEqual(flight["inbound"]["departureAirport"]["code"], "JFK")
        self.assertEqual(flight["inbound"]["durationMinutes"], 420)

    def test_price_falls_back_to_total_fare(self):
        raw = result(total=None, Total_fare="199.99")
        self.assertEqual(normalize_result(raw)["price"], 199.99)

    def test_passenger_count_from_pax_breakdown(self):
        raw = result(total="600.00", Pax_breakdown=[{"pax_count": "2"}, {"pax_count": "1"}])

        flight = normalize_result(raw)

        self.assertEqual(flight["passengers"], 3)
        self.assertEqual(flight["pricePerPerson"], 200.0)

    def test_long_gap_splits_into_separate_segments(self):
        raw = result(
            segments=[
                segment(
                    leg("LHR", "DXB", "0900", "1900", travel_time=420),
                    leg("DXB", "SIN", "1000", "2100", date="2025-12-05", travel_time=480),
                )
            ]
        )

        flight = normalize_result(raw)

        self.assertEqual(len(flight["segments"]), 2)
        self.assertEqual(flight["outbound"]["stops"], 0)
        self.assertEqual(flight["segments"][1]["departureAirport"]["code"], "DXB")

    def test_negative_layover_is_clamped(self):
        raw = result(
            segments=[
                segment(
                    leg("LHR", "DUB", "1000", "1200", arr_date="2025-12-02", travel_time=60),
                    leg("DUB", "JFK", "1300", "1600", travel_time=480),
                )
            ]
        )

        with self.assertLogs("flights.services.normalize", level="WARNING"):
            flight = normalize_result(raw)

        self.assertEqual(flight["outbound"]["layovers"][0]["durationMinutes"], 0)
        self.assertEqual(flight["outbound"]["stops"], 1)


class NormalizeSearchResponseTests(SimpleTestCase):
    def test_bad_records_are_dropped(self):
        broken = result(result_id="bad", segments=[segment(leg("", "JFK", "0900", "1200"))])
        free = result(result_id="free", total="0")
        good = result(result_id="good")

        with self.assertLogs("flights.services.normalize", level="WARNING") as logs:
            data = normalize_search_response(search_payload(broken, free, good))

        self.assertEqual([f["id"] for f in data["flights"]], ["good"])
        self.assertEqual(len(logs.records), 2)
        self.assertEqual(data["requestId"], "REQ-1")
        self.assertEqual(data["filters"]["minPrice"], 450)

    def test_empty_payload(self):
        data = normalize_search_response({})

        self.assertEqual(data["flights"], [])
        self.assertEqual(data["filters"]["airlines"], [])
        self.assertEqual(data["filters"]["maxPrice"], 0)
        self.assertIsNone(data["requestId"])

    def test_numeric_keyed_results(self):
        payload = {"Results": {"1": result(result_id="b"), "0": result(result_id="a")}}
        data = normalize_search_response(payload)
        self.assertEqual([f["id"] for f in data["flights"]], ["a", "b"])


class HelperTests(SimpleTestCase):
    def test_extract_flight_key(self):
        self.assertEqual(extract_flight_key("https://x.test/?flight=ABC123&foo=1"), "ABC123")
        self.assertIsNone(extract_flight_key("https://x.test/?other=1"))
        self.assertIsNone(extract_flight_key(""))

    def test_format_display_date(self):
        self.assertEqual(format_display_date("2025-12-01"), "MON, 1 DEC 25")
        self.assertEqual(format_display_date("01/12/2025"), "MON, 1 DEC 25")
        self.assertEqual(format_display_date("soon"), "soon")
