import logging

from rest_framework.response import Response
from rest_framework.views import APIView

from flights.providers import get_flight_provider
from flights.providers.base import ProviderError
from flights.serializers import (
    BatchSearchSerializer,
    FlightSearchSerializer,
    PriceCheckSerializer,
    search_params,
)
from flights.services.price_check import check_price
from flights.services.search import run_search, search_batch

logger = logging.getLogger(__name__)


def _error_response(exc: ProviderError):
    return Response(exc.to_dict(), status=exc.status_code)


def _flatten_errors(errors):
    messages = []
    for field, problems in errors.items():
        for problem in problems if isinstance(problems, list) else [problems]:
            messages.append(str(problem) if field == "non_field_errors" else f"{field}: {problem}")
    return messages


class HealthView(APIView):
    def get(self, request):
        return Response({"status": "ok"})


class FlightSearchView(APIView):
    def post(self, request):
        serializer = FlightSearchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = run_search(search_params(serializer.validated_data))
        except ProviderError as exc:
            return _error_response(exc)
        return Response(result)


class FlightSearchBatchView(APIView):
    def post(self, request):
        serializer = BatchSearchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        items = []
        for item in serializer.validated_data["items"]:
            item_serializer = FlightSearchSerializer(data=item["params"])
            if item_serializer.is_valid():
                items.append({**item, "params": search_params(item_serializer.validated_data)})
            else:
                error = "Invalid parameters: " + ", ".join(_flatten_errors(item_serializer.errors))
                items.append({**item, "error": error})

        results = search_batch(items)
        logger.info(
            "Batch search completed",
            extra={"items": len(results), "failed": sum(1 for r in results if not r["success"])},
        )
        return Response({"results": results})


class PriceCheckView(APIView):
    def post(self, request):
        serializer = PriceCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            provider = get_flight_provider()
            result = check_price(
                provider,
                segment_result_id=serializer.validated_data["segmentResultId"],
                flight_key=serializer.validated_data["flightKey"],
            )
        except ProviderError as exc:
            logger.warning("Price check failed", extra={"error_type": exc.error_type})
            return _error_response(exc)
        return Response(result)
