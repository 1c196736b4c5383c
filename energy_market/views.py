"""
API Layer — Energy Marketplace Endpoints (Django REST Framework)

This module exposes the ledger operations over HTTP so a harness or UI can
drive the ledger and inspect results.

Design intent:

Each view is a thin controller. Its responsibilities are limited to:

- Reading the caller principal from the X-Principal header
- Coercing body fields to integers
- Delegating to the EnergyLedger use case
- Translating LedgerError rejections into tagged {"err": code} responses

No business rules are implemented here. Sign, zero and range checks belong
to the ledger, which reports them with their stable numeric codes.

Response shape mirrors the ledger's result values:

- success:   {"ok": <value>}
- rejection: {"err": <code>, "error": <name>, "detail": <message>}
"""

import re

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from energy_market.application.ledger import get_ledger
from energy_market.domain.exceptions import (
    AlreadyRegistered,
    LedgerError,
    NoPurchaseHistory,
    NotOwner,
    NotRegistered,
)

PRINCIPAL_HEADER = "X-Principal"

INTEGER_PATTERN = re.compile(r"-?[0-9]+")

REJECTION_STATUS = {
    NotOwner: status.HTTP_403_FORBIDDEN,
    NotRegistered: status.HTTP_404_NOT_FOUND,
    AlreadyRegistered: status.HTTP_409_CONFLICT,
}


class BadRequest(Exception):
    pass


def rejection_response(exc, overrides=None):
    statuses = {**REJECTION_STATUS, **(overrides or {})}
    return Response(
        {"err": exc.code, "error": exc.name, "detail": str(exc)},
        status=statuses.get(type(exc), status.HTTP_422_UNPROCESSABLE_ENTITY),
    )


class LedgerView(APIView):
    """Shared plumbing: caller identity, field coercion and error mapping."""

    required_fields = ()
    rejection_overrides = None

    def caller(self, request):
        principal = (request.headers.get(PRINCIPAL_HEADER) or "").strip()
        if not principal:
            raise BadRequest(f"{PRINCIPAL_HEADER} header is required.")
        return principal

    def int_fields(self, request):
        missing = [name for name in self.required_fields if request.data.get(name) in (None, "")]
        if missing:
            raise BadRequest(f"{', '.join(self.required_fields)} are required.")

        values = []
        for name in self.required_fields:
            value = request.data.get(name)
            if isinstance(value, str) and INTEGER_PATTERN.fullmatch(value.strip()):
                value = int(value)
            # JSON floats and booleans must not be truncated into units.
            if not isinstance(value, int) or isinstance(value, bool):
                raise BadRequest(f"{', '.join(self.required_fields)} must be integers.")
            values.append(value)
        return values

    def run(self, operation, *args):
        try:
            result = operation(*args)
        except LedgerError as exc:
            return rejection_response(exc, self.rejection_overrides)
        return Response({"ok": result}, status=status.HTTP_200_OK)

    def handle_exception(self, exc):
        if isinstance(exc, BadRequest):
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return super().handle_exception(exc)


class ProducerRegistrationView(LedgerView):
    """POST /api/market/producers/"""

    required_fields = ("energy_amount", "price")

    def post(self, request):
        caller = self.caller(request)
        energy_amount, price = self.int_fields(request)
        return self.run(get_ledger().register_producer, caller, energy_amount, price)


class ConsumerRegistrationView(LedgerView):
    """POST /api/market/consumers/"""

    def post(self, request):
        return self.run(get_ledger().register_consumer, self.caller(request))


class TradeView(LedgerView):
    """Base for consumer operations against a producer named in the body."""

    required_fields = ("units",)
    operation_name = None

    def post(self, request):
        caller = self.caller(request)
        producer = str(request.data.get("producer") or "").strip()
        if not producer:
            raise BadRequest("producer is required.")

        (quantity,) = self.int_fields(request)

        operation = getattr(get_ledger(), self.operation_name)
        return self.run(operation, caller, producer, quantity)


class PurchaseView(TradeView):
    """POST /api/market/purchases/"""

    operation_name = "buy_energy"


class RatingView(TradeView):
    """POST /api/market/ratings/"""

    required_fields = ("stars",)
    operation_name = "rate_producer"


class RefundView(TradeView):
    """POST /api/market/refunds/"""

    operation_name = "request_refund"


class EnergyPriceView(LedgerView):
    """POST /api/market/producers/<producer>/price/ — owner only."""

    required_fields = ("price",)

    def post(self, request, producer):
        caller = self.caller(request)
        (price,) = self.int_fields(request)
        return self.run(get_ledger().set_energy_price, caller, producer, price)


class WithdrawalView(LedgerView):
    """POST /api/market/withdrawals/"""

    def post(self, request):
        return self.run(get_ledger().withdraw_revenue, self.caller(request))


class ProducerInfoView(LedgerView):
    def get(self, request, producer):
        return self.run(get_ledger().get_producer_info, producer)


class ProducerRatingView(LedgerView):
    def get(self, request, producer):
        return self.run(get_ledger().get_producer_rating, producer)


class ConsumerInfoView(LedgerView):
    def get(self, request, consumer):
        return self.run(get_ledger().get_consumer_info, consumer)


class PurchaseInfoView(LedgerView):
    rejection_overrides = {NoPurchaseHistory: status.HTTP_404_NOT_FOUND}

    def get(self, request, consumer, producer):
        return self.run(get_ledger().get_purchase_info, consumer, producer)
