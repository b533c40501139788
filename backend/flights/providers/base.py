import traceback


class ProviderError(Exception):
    error_type = "UNKNOWN_ERROR"
    default_status = 500
    default_user_message = "An unexpected error occurred. Please try again."

    def __init__(self, message, status_code=None, details=None, user_message=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status
        self.details = details or {}
        self.user_message = user_message or self.default_user_message

    def to_dict(self):
        return {
            "type": self.error_type,
            "message": self.message,
            "userMessage": self.user_message,
            "details": self.details,
        }


class ProviderValidationError(ProviderError):
    error_type = "VALIDATION_ERROR"
    default_status = 400
    default_user_message = "Please check your search parameters and try again."


class ProviderAPIError(ProviderError):
    error_type = "API_ERROR"
    default_status = 502
    default_user_message = "Flight search service is currently unavailable. Please try again later."


class RouteNotServedError(ProviderAPIError):
    error_type = "MODULE_NOT_FOUND"
    default_status = 404
    default_user_message = "No flights available for this route. Please try a different destination."


class ProviderTimeoutError(ProviderError):
    error_type = "TIMEOUT_ERROR"
    default_status = 504
    default_user_message = "The search is taking longer than expected. Please try again."


class ProviderNetworkError(ProviderError):
    error_type = "NETWORK_ERROR"
    default_status = 502
    default_user_message = "Unable to connect to flight search service. Please try again."


class ProviderUnknownError(ProviderError):
    default_user_message = "Unable to verify pricing. The fare may have expired. Please search again."

    @classmethod
    def from_exception(cls, exc, **extra):
        details = {
            "errorName": type(exc).__name__,
            "errorMessage": str(exc),
            "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        }
        details.update(extra)
        return cls(str(exc) or "Unknown error occurred", details=details)


def body_excerpt(text, limit=500):
    """Trim a raw upstream body for diagnostics."""
    if not text:
        return ""
    return text if len(text) <= limit else text[:limit] + "..."


class FlightProvider:
    def search_flights(self, params):
        """
        Returns the raw availability payload for normalized search params.
        """
        raise NotImplementedError

    def price_check(self, segment_result_id=None, flight_key=None):
        """
        Returns the raw price-check payload for a previously searched result.
        """
        raise NotImplementedError
