from unittest.mock import Mock, patch

import requests
from django.test import SimpleTestCase, override_settings

from flights.providers import get_flight_provider
from flights.providers.base import (
    ProviderAPIError,
    ProviderError,
    ProviderNetworkError,
    ProviderTimeoutError,
    ProviderValidationError,
    RouteNotServedError,
)
from flights.providers.vyspa import VyspaProvider, build_search_body
from flights.tests.payloads import price_check_payload, search_payload

SEARCH_PARAMS = {
    "origin": "LHR",
    "destination": "JFK",
    "departDate": "2025-12-01",
    "returnDate": "2025-12-10",
    "adults": 2,
    "children": 0,
    "infants": 0,
    "cabin": "ECONOMY",
    "tripType": "round-trip",
    "directOnly": False,
    "legs": [],
}


def fake_response(payload=None, status_code=200, text="", reason="OK"):
    response = Mock(status_code=status_code, text=text, reason=reason)
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def make_provider():
    return VyspaProvider(api_url="https://api.example.test/", username="user", password="secret", timeout=5)


class BuildSearchBodyTests(SimpleTestCase):
    @override_settings(DEFAULT_CHILD_AGE="9", VYSPA_SEARCH_VERSION="2")
    def test_round_trip_body(self):
        (body,) = build_search_body({**SEARCH_PARAMS, "children": 2, "cabin": "BUSINESS", "directOnly": True})

        self.assertEqual(body["version"], "2")
        self.assertEqual(body["departure_airport"], "LHR")
        self.assertEqual(body["departure_date"], "2025-12-01")
        self.assertEqual(body["return_date"], "2025-12-10")
        self.assertEqual(body["adults"], "2")
        self.assertEqual(body["children"], "2")
        self.assertEqual(body["child_ages"], ["9", "9"])
        self.assertEqual(body["direct_flight_only"], "1")
        self.assertEqual(body["cabin_class"], "C")

    def test_one_way_drops_return_date(self):
        (body,) = build_search_body({**SEARCH_PARAMS, "tripType": "one-way"})
        self.assertEqual(body["return_date"], "")

    def test_multi_city_legs(self):
        params = {
            **SEARCH_PARAMS,
            "tripType": "multi-city",
            "returnDate": None,
            "legs": [
                {"origin": "JFK", "destination": "LAX", "departDate": "2025-12-05", "cabin": "FIRST"},
                {"origin": "LAX", "destination": "LHR", "departDate": "2025-12-09"},
            ],
        }

        (body,) = build_search_body(params)

        self.assertEqual(body["departure2_airport"], "JFK")
        self.assertEqual(body["arrival2_airport"], "LAX")
        self.assertEqual(body["cabin2_class"], "F")
        self.assertEqual(body["departure3_date"], "2025-12-09")
        self.assertEqual(body["cabin3_class"], "M")
        self.assertNotIn("departure4_airport", body)


@override_settings(VYSPA_API_VERSION="1")
class VyspaSearchTests(SimpleTestCase):
    @patch("flights.providers.vyspa.requests.post")
    def test_search_posts_with_auth_and_version(self, mock_post):
        mock_post.return_value = fake_response(search_payload())

        payload = make_provider().search_flights(SEARCH_PARAMS)

        self.assertEqual(payload["Request_id"], "REQ-1")
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "https://api.example.test/rest/v4/flights_availability_search/")
        self.assertEqual(kwargs["auth"], ("user", "secret"))
        self.assertEqual(kwargs["headers"]["Api-Version"], "1")
        self.assertEqual(kwargs["timeout"], 5)
        self.assertEqual(kwargs["json"][0]["arrival_airport"], "JFK")

    @patch("flights.providers.vyspa.requests.post")
    def test_timeout(self, mock_post):
        mock_post.side_effect = requests.Timeout("slow")

        with self.assertRaises(ProviderTimeoutError) as ctx:
            make_provider().search_flights(SEARCH_PARAMS)

        self.assertEqual(ctx.exception.status_code, 504)
        self.assertEqual(ctx.exception.to_dict()["type"], "TIMEOUT_ERROR")

    @patch("flights.providers.vyspa.requests.post")
    def test_connection_failure(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("refused")

        with self.assertLogs("flights.providers.vyspa", level="ERROR"):
            with self.assertRaises(ProviderNetworkError):
                make_provider().search_flights(SEARCH_PARAMS)

    @patch("flights.providers.vyspa.requests.post")
    def test_http_error_keeps_status_and_excerpt(self, mock_post):
        mock_post.return_value = fake_response(status_code=503, text="x" * 800, reason="Service Unavailable")

        with self.assertRaises(ProviderAPIError) as ctx:
            make_provider().search_flights(SEARCH_PARAMS)

        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(ctx.exception.details["status"], 503)
        self.assertEqual(len(ctx.exception.details["body"]), 503)

    @patch("flights.providers.vyspa.requests.post")
    def test_invalid_json(self, mock_post):
        mock_post.return_value = fake_response(ValueError("no json"), text="<html>")

        with self.assertRaises(ProviderAPIError) as ctx:
            make_provider().search_flights(SEARCH_PARAMS)

        self.assertEqual(ctx.exception.status_code, 502)

    @patch("flights.providers.vyspa.requests.post")
    def test_module_not_found(self, mock_post):
        mock_post.return_value = fake_response({"error": "Module Not Found: LHR-XYZ"})

        with self.assertRaises(RouteNotServedError) as ctx:
            make_provider().search_flights(SEARCH_PARAMS)

        error = ctx.exception.to_dict()
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(error["type"], "MODULE_NOT_FOUND")
        self.assertEqual(error["details"], {"route": "LHR-JFK"})

    @patch("flights.providers.vyspa.requests.post")
    def test_other_upstream_error(self, mock_post):
        mock_post.return_value = fake_response({"error": "Invalid date"})

        with self.assertRaises(ProviderAPIError) as ctx:
            make_provider().search_flights(SEARCH_PARAMS)

        self.assertNotIsInstance(ctx.exception, RouteNotServedError)

    @override_settings(VYSPA_API_URL="", VYSPA_USERNAME="", VYSPA_PASSWORD="")
    @patch("flights.providers.vyspa.requests.post")
    def test_missing_configuration(self, mock_post):
        with self.assertRaises(ProviderAPIError) as ctx:
            VyspaProvider().search_flights(SEARCH_PARAMS)

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertIn("VYSPA_API_URL", ctx.exception.details["missing"])
        mock_post.assert_not_called()


class VyspaPriceCheckTests(SimpleTestCase):
    @patch("flights.providers.vyspa.requests.post")
    def test_price_check_by_segment(self, mock_post):
        mock_post.return_value = fake_response(price_check_payload())

        payload = make_provider().price_check(segment_result_id="555")

        self.assertTrue(payload["success"])
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "https://api.example.test/rest/v4/price_check/")
        self.assertEqual(kwargs["json"], [{"segment_psw_result1": 555}])

    @patch("flights.providers.vyspa.requests.post")
    def test_flight_key_resolves_through_flight_view(self, mock_post):
        mock_post.side_effect = [
            fake_response({"psw_result_id": "777"}, status_code=500, reason="Internal Server Error"),
            fake_response(price_check_payload()),
        ]
        provider = VyspaProvider(
            api_url="https://api.example.test",
            flightview_url="https://view.example.test",
            username="user",
            password="secret",
        )

        provider.price_check(flight_key="KEY123")

        first, second = mock_post.call_args_list
        self.assertEqual(first.args[0], "https://view.example.test/rest/v4/FlightView/")
        self.assertEqual(first.kwargs["json"], [{"key": "KEY123"}])
        self.assertEqual(second.kwargs["json"], [{"segment_psw_result1": 777}])

    @patch("flights.providers.vyspa.requests.post")
    def test_flight_view_without_result_id(self, mock_post):
        mock_post.return_value = fake_response({"message": "expired"}, status_code=404, reason="Not Found")

        with self.assertRaises(ProviderAPIError) as ctx:
            make_provider().price_check(flight_key="KEY123")

        self.assertEqual(ctx.exception.status_code, 404)

    @patch("flights.providers.vyspa.requests.post")
    def test_unsuccessful_price_check(self, mock_post):
        mock_post.return_value = fake_response({"success": False, "message": "Fare expired"})

        with self.assertRaises(ProviderAPIError) as ctx:
            make_provider().price_check(segment_result_id="555")

        self.assertEqual(ctx.exception.details, {"message": "Fare expired"})

    @patch("flights.providers.vyspa.requests.post")
    def test_non_numeric_segment(self, mock_post):
        with self.assertRaises(ProviderValidationError):
            make_provider().price_check(segment_result_id="abc")
        mock_post.assert_not_called()


class ProviderFactoryTests(SimpleTestCase):
    @override_settings(FLIGHTS_PROVIDER="Vyspa")
    def test_vyspa_is_default(self):
        self.assertIsInstance(get_flight_provider(), VyspaProvider)

    @override_settings(FLIGHTS_PROVIDER="nope")
    def test_unknown_provider(self):
        with self.assertRaises(ProviderError) as ctx:
            get_flight_provider()
        self.assertEqual(ctx.exception.status_code, 500)
