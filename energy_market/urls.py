from django.urls import path
from . import views

urlpatterns = [
    path("producers/", views.ProducerRegistrationView.as_view(), name="register-producer"),
    path("producers/<str:producer>/", views.ProducerInfoView.as_view(), name="producer-info"),
    path("producers/<str:producer>/price/", views.EnergyPriceView.as_view(), name="set-energy-price"),
    path("producers/<str:producer>/rating/", views.ProducerRatingView.as_view(), name="producer-rating"),
    path("consumers/", views.ConsumerRegistrationView.as_view(), name="register-consumer"),
    path("consumers/<str:consumer>/", views.ConsumerInfoView.as_view(), name="consumer-info"),
    path(
        "consumers/<str:consumer>/purchases/<str:producer>/",
        views.PurchaseInfoView.as_view(),
        name="purchase-info",
    ),
    path("purchases/", views.PurchaseView.as_view(), name="buy-energy"),
    path("ratings/", views.RatingView.as_view(), name="rate-producer"),
    path("refunds/", views.RefundView.as_view(), name="request-refund"),
    path("withdrawals/", views.WithdrawalView.as_view(), name="withdraw-revenue"),
]
