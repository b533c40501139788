from django.urls import path

from flights.views import FlightSearchBatchView, FlightSearchView, HealthView, PriceCheckView
from flights.views_places import places_autocomplete

urlpatterns = [
    path("health", HealthView.as_view(), name="health"),
    path("flights/search", FlightSearchView.as_view(), name="flight-search"),
    path("flights/search-batch", FlightSearchBatchView.as_view(), name="flight-search-batch"),
    path("flights/price-check", PriceCheckView.as_view(), name="flight-price-check"),
    path("places/autocomplete", places_autocomplete, name="places-autocomplete"),
]
