import logging

import requests
from django.conf import settings

from flights.providers.base import (
    FlightProvider,
    ProviderAPIError,
    ProviderNetworkError,
    ProviderTimeoutError,
    ProviderValidationError,
    RouteNotServedError,
    body_excerpt,
)
from flights.services.parsers import convert_date_format, generate_child_ages
from flights.services.reference import search_cabin_code

logger = logging.getLogger(__name__)

SEARCH_PATH = "/rest/v4/flights_availability_search/"
PRICE_CHECK_PATH = "/rest/v4/price_check/"
FLIGHT_VIEW_PATH = "/rest/v4/FlightView/"

# Legs 2..6 of a multi-city search go into departureN_* / arrivalN_* fields.
MAX_LEGS = 6


def _base_url(value):
    return (value or "").rstrip("/")


def build_search_body(params: dict) -> list:
    """Availability-search request body for normalized search params."""
    children = int(params.get("children") or 0)
    cabin = search_cabin_code(params.get("cabin"))
    return_date = params.get("returnDate") if params.get("tripType") != "one-way" else None

    body = {
        "version": str(getattr(settings, "VYSPA_SEARCH_VERSION", "2")),
        "departure_airport": params["origin"].upper(),
        "arrival_airport": params["destination"].upper(),
        "departure_date": convert_date_format(params["departDate"]),
        "return_date": convert_date_format(return_date) if return_date else "",
        "adults": str(params.get("adults") or 1),
        "children": str(children),
        "child_ages": generate_child_ages(children),
        "infants": str(params.get("infants") or 0),
        "direct_flight_only": "1" if params.get("directOnly") else "0",
        "cabin_class": cabin,
    }

    if params.get("tripType") == "multi-city":
        for number, leg in enumerate((params.get("legs") or [])[: MAX_LEGS - 1], start=2):
            body[f"departure{number}_airport"] = leg["origin"].upper()
            body[f"arrival{number}_airport"] = leg["destination"].upper()
            body[f"departure{number}_date"] = convert_date_format(leg["departDate"])
            body[f"cabin{number}_class"] = search_cabin_code(leg.get("cabin") or params.get("cabin"))

    return [body]


class VyspaProvider(FlightProvider):
    def __init__(self, api_url=None, flightview_url=None, username=None, password=None, timeout=None):
        self.api_url = _base_url(api_url or getattr(settings, "VYSPA_API_URL", ""))
        self.flightview_url = _base_url(flightview_url or getattr(settings, "VYSPA_FLIGHTVIEW_URL", "") or self.api_url)
        self.username = username or getattr(settings, "VYSPA_USERNAME", "")
        self.password = password or getattr(settings, "VYSPA_PASSWORD", "")
        self.api_version = str(getattr(settings, "VYSPA_API_VERSION", "1"))
        self.timeout = timeout or getattr(settings, "FLIGHTS_REQUEST_TIMEOUT", 30)

    def _check_config(self):
        missing = [
            name
            for name, value in (
                ("VYSPA_API_URL", self.api_url),
                ("VYSPA_USERNAME", self.username),
                ("VYSPA_PASSWORD", self.password),
            )
            if not value
        ]
        if missing:
            raise ProviderAPIError(
                f"Configuration error: missing {', '.join(missing)}",
                status_code=500,
                details={"missing": missing},
                user_message="Service configuration error. Please contact support.",
            )

    def _post(self, url: str, body):
        try:
            return requests.post(
                url,
                json=body,
                auth=(self.username, self.password),
                headers={"Accept": "application/json", "Api-Version": self.api_version},
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.warning("Vyspa request timed out", extra={"url": url, "timeout": self.timeout})
            raise ProviderTimeoutError(
                f"Request timed out after {self.timeout} seconds",
                details={"timeout": self.timeout},
            )
        except requests.RequestException as exc:
            logger.exception("Vyspa request failed.")
            raise ProviderNetworkError(f"Network error: {exc}", details={"error": str(exc)})

    def _post_json(self, url: str, body, user_message=None):
        response = self._post(url, body)

        if response.status_code >= 400:
            logger.warning(
                "Vyspa error response",
                extra={"status_code": response.status_code, "url": url},
            )
            raise ProviderAPIError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                details={"status": response.status_code, "body": body_excerpt(response.text)},
                user_message=user_message,
            )

        try:
            return response.json()
        except ValueError:
            raise ProviderAPIError(
                "Vyspa response was not valid JSON.",
                details={"body": body_excerpt(response.text)},
                user_message=user_message,
            )

    def search_flights(self, params: dict) -> dict:
        self._check_config()
        body = build_search_body(params)
        logger.info(
            "Vyspa availability search",
            extra={"route": f"{body[0]['departure_airport']}-{body[0]['arrival_airport']}"},
        )

        payload = self._post_json(self.api_url + SEARCH_PATH, body)
        if isinstance(payload, list):
            payload = payload[0] if payload and isinstance(payload[0], dict) else {}
        if not isinstance(payload, dict):
            raise ProviderAPIError("Vyspa search response was not an object.")

        error = payload.get("error")
        if error:
            error = str(error)
            if "Module Not Found" in error:
                route = f"{params['origin']}-{params['destination']}"
                raise RouteNotServedError(
                    error,
                    details={"route": route},
                    user_message=(
                        f"No flights available for the route {params['origin']} → {params['destination']}. "
                        "This route may not be served by our flight providers."
                    ),
                )
            raise ProviderAPIError(
                error,
                details={"error": error},
                user_message="An error occurred while searching for flights. Please try again.",
            )

        logger.info("Vyspa search returned", extra={"results": len(payload.get("Results") or [])})
        return payload

    def resolve_flight_key(self, flight_key: str) -> str:
        """Exchange a deep-link flight key for a price-checkable segment id."""
        response = self._post(self.flightview_url + FLIGHT_VIEW_PATH, [{"key": flight_key}])
        try:
            payload = response.json()
        except ValueError:
            payload = None

        # FlightView reports the result id even when it answers with a 500.
        result_id = payload.get("psw_result_id") if isinstance(payload, dict) else None
        if result_id:
            return str(result_id)

        raise ProviderAPIError(
            f"FlightView did not return a result id (HTTP {response.status_code})",
            status_code=response.status_code if response.status_code >= 400 else None,
            details={"status": response.status_code, "body": body_excerpt(response.text)},
            user_message="Unable to retrieve flight details. Please try again or search for flights.",
        )

    def price_check(self, segment_result_id=None, flight_key=None) -> dict:
        self._check_config()
        if flight_key:
            segment_result_id = self.resolve_flight_key(flight_key)

        segment = str(segment_result_id or "").strip()
        if not segment.isdigit():
            raise ProviderValidationError(
                "Invalid segment result ID",
                details={"segmentResultId": segment_result_id},
                user_message="Unable to check price. Please try searching again.",
            )

        logger.info("Vyspa price check", extra={"segment_id": segment})
        payload = self._post_json(
            self.api_url + PRICE_CHECK_PATH,
            [{"segment_psw_result1": int(segment)}],
            user_message="Unable to check price. Please try again.",
        )

        if not isinstance(payload, dict) or not payload.get("success") or not payload.get("priceCheck"):
            raise ProviderAPIError(
                "Invalid API response: missing success or priceCheck",
                details={"message": payload.get("message") if isinstance(payload, dict) else None},
                user_message="Unable to verify pricing. Please try again.",
            )
        return payload
