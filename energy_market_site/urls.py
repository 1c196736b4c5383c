from django.urls import include, path

urlpatterns = [
    path("api/market/", include("energy_market.urls")),
]
