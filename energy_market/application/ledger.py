"""
Application Use Cases — Energy Marketplace Ledger

This module is the ledger state machine. Producers list energy at a unit
price, consumers buy units, producers accrue revenue and ratings, and
consumers may hand units back for a refund.

Core guarantees provided by every operation:

- Atomicity: each operation runs inside a single transaction.atomic() block,
  and every rule is checked before the first write, so a rejected operation
  leaves all tables exactly as they were.
- Row-level locking: rows that are about to change are read with
  select_for_update(), so balances are never computed from a stale read.
- Race-condition safety: counters move through F() expressions evaluated by
  the database.
- Explicit domain signaling: every rejection is a LedgerError subclass
  carrying a stable numeric code.

Refunds are priced at the producer's current unit price, not the price paid
at purchase time. If the owner changes the price between a purchase and its
refund, the refunded amount differs from what was paid. This matches the
behavior existing clients rely on and is kept deliberately.
"""

import logging

from django.db import transaction
from django.db.models import F

from energy_market import conf
from energy_market.domain.exceptions import (
    AlreadyRegistered,
    InsufficientRevenue,
    InsufficientSupply,
    InvalidAmount,
    InvalidRating,
    NoPurchaseHistory,
    NotOwner,
    NotRegistered,
    RefundExceedsPurchase,
)
from energy_market.models import Consumer, Producer, PurchaseRecord

logger = logging.getLogger(__name__)

MIN_STARS = 1
MAX_STARS = 5

# Largest value a PositiveBigIntegerField holds on every supported backend.
UINT_MAX = 2 ** 63 - 1


def _is_uint(value):
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= UINT_MAX
    )


def _require_uint(field, value):
    if not _is_uint(value):
        logger.warning("Rejected %s=%r: not an unsigned integer", field, value)
        raise InvalidAmount(field, value)


def _require_fits(field, value):
    """Rejects a computed balance the column cannot store."""
    if value > UINT_MAX:
        logger.warning("Rejected %s=%s: exceeds %s", field, value, UINT_MAX)
        raise InvalidAmount(field, value)


class EnergyLedger:
    """
    Guarded state transitions over the producer, consumer and purchase tables.

    The owner principal is fixed at construction and is the only caller
    allowed to run set_energy_price.
    """

    def __init__(self, owner):
        if not owner:
            raise ValueError("owner must be a non-empty principal")
        self.owner = owner

    # -- registration --------------------------------------------------

    def register_producer(self, caller, energy_amount, price):
        with transaction.atomic():
            if Producer.objects.filter(principal=caller).exists():
                logger.warning("Producer already registered: principal=%s", caller)
                raise AlreadyRegistered(caller, "producer")

            _require_uint("energy_amount", energy_amount)
            _require_uint("price", price)

            if price == 0:
                logger.warning("Producer registration with zero price: principal=%s", caller)
                raise InvalidAmount("price", price)

            Producer.objects.create(
                principal=caller,
                energy_available=energy_amount,
                energy_price=price,
            )

        logger.info(
            "Producer registered: principal=%s energy=%s price=%s",
            caller, energy_amount, price,
        )
        return True

    def register_consumer(self, caller):
        with transaction.atomic():
            if Consumer.objects.filter(principal=caller).exists():
                logger.warning("Consumer already registered: principal=%s", caller)
                raise AlreadyRegistered(caller, "consumer")

            Consumer.objects.create(principal=caller)

        logger.info("Consumer registered: principal=%s", caller)
        return True

    # -- trading -------------------------------------------------------

    def buy_energy(self, caller, producer, units):
        """
        Moves units from a producer's listing to the caller.

        The caller pays units * energy_price, which accrues to the producer's
        pending revenue and to the pair's refundable purchase record.
        """
        with transaction.atomic():
            consumer_row = self._lock_consumer(caller)
            producer_row = self._lock_producer(producer)

            _require_uint("units", units)
            if units == 0:
                logger.warning("Zero-unit purchase: consumer=%s producer=%s", caller, producer)
                raise InvalidAmount("units", units)

            if units > producer_row.energy_available:
                logger.warning(
                    "Insufficient supply: producer=%s requested=%s available=%s",
                    producer, units, producer_row.energy_available,
                )
                raise InsufficientSupply(producer, units, producer_row.energy_available)

            cost = units * producer_row.energy_price
            record = (
                PurchaseRecord.objects
                .select_for_update()
                .filter(consumer=consumer_row, producer=producer_row)
                .first()
            )

            _require_fits("cost", cost)
            _require_fits("pending_revenue", producer_row.pending_revenue + cost)
            _require_fits("energy_consumed", consumer_row.energy_consumed + units)
            _require_fits("total_spent", consumer_row.total_spent + cost)
            if record is not None:
                _require_fits("units_bought", record.units_bought + units)
                _require_fits("amount_paid", record.amount_paid + cost)

            Producer.objects.filter(pk=producer_row.pk).update(
                energy_available=F("energy_available") - units,
                pending_revenue=F("pending_revenue") + cost,
            )
            Consumer.objects.filter(pk=consumer_row.pk).update(
                energy_consumed=F("energy_consumed") + units,
                total_spent=F("total_spent") + cost,
            )

            if record is None:
                record = PurchaseRecord.objects.create(consumer=consumer_row, producer=producer_row)
            PurchaseRecord.objects.filter(pk=record.pk).update(
                units_bought=F("units_bought") + units,
                amount_paid=F("amount_paid") + cost,
            )

        logger.info(
            "Energy purchased: consumer=%s producer=%s units=%s cost=%s",
            caller, producer, units, cost,
        )
        return True

    def rate_producer(self, caller, producer, stars):
        with transaction.atomic():
            has_history = PurchaseRecord.objects.filter(
                consumer_id=caller,
                producer_id=producer,
                units_bought__gt=0,
            ).exists()
            if not has_history:
                logger.warning(
                    "Rating without purchase history: consumer=%s producer=%s",
                    caller, producer,
                )
                raise NoPurchaseHistory(caller, producer)

            if not _is_uint(stars) or not MIN_STARS <= stars <= MAX_STARS:
                logger.warning(
                    "Invalid rating: consumer=%s producer=%s stars=%r",
                    caller, producer, stars,
                )
                raise InvalidRating(stars)

            producer_row = Producer.objects.select_for_update().get(pk=producer)
            _require_fits("rating_sum", producer_row.rating_sum + stars)
            _require_fits("rating_count", producer_row.rating_count + 1)

            Producer.objects.filter(pk=producer).update(
                rating_sum=F("rating_sum") + stars,
                rating_count=F("rating_count") + 1,
            )

        logger.info("Producer rated: consumer=%s producer=%s stars=%s", caller, producer, stars)
        return True

    def request_refund(self, caller, producer, units):
        """
        Hands units back to a producer at the producer's current price.

        The record's amount_paid and the consumer's total_spent never go
        below zero, even when a price increase makes the refund larger than
        what was originally paid.
        """
        with transaction.atomic():
            try:
                record = (
                    PurchaseRecord.objects
                    .select_for_update()
                    .get(consumer_id=caller, producer_id=producer)
                )
            except PurchaseRecord.DoesNotExist:
                logger.warning(
                    "Refund without purchase record: consumer=%s producer=%s units=%s",
                    caller, producer, units,
                )
                raise RefundExceedsPurchase(caller, producer, units, 0)

            _require_uint("units", units)
            if record.units_bought < units:
                logger.warning(
                    "Refund exceeds purchase: consumer=%s producer=%s requested=%s outstanding=%s",
                    caller, producer, units, record.units_bought,
                )
                raise RefundExceedsPurchase(caller, producer, units, record.units_bought)

            producer_row = Producer.objects.select_for_update().get(pk=producer)
            consumer_row = Consumer.objects.select_for_update().get(pk=caller)
            refund_amount = units * producer_row.energy_price

            if producer_row.pending_revenue < refund_amount:
                logger.warning(
                    "Insufficient revenue for refund: producer=%s refund=%s pending=%s",
                    producer, refund_amount, producer_row.pending_revenue,
                )
                raise InsufficientRevenue(producer, refund_amount, producer_row.pending_revenue)

            _require_fits("energy_available", producer_row.energy_available + units)

            PurchaseRecord.objects.filter(pk=record.pk).update(
                units_bought=F("units_bought") - units,
                amount_paid=max(record.amount_paid - refund_amount, 0),
            )
            Producer.objects.filter(pk=producer_row.pk).update(
                energy_available=F("energy_available") + units,
                pending_revenue=F("pending_revenue") - refund_amount,
            )
            Consumer.objects.filter(pk=consumer_row.pk).update(
                energy_consumed=F("energy_consumed") - units,
                total_spent=max(consumer_row.total_spent - refund_amount, 0),
            )

        logger.info(
            "Refund issued: consumer=%s producer=%s units=%s amount=%s",
            caller, producer, units, refund_amount,
        )
        return True

    # -- admin and producer operations ---------------------------------

    def set_energy_price(self, caller, producer, new_price):
        with transaction.atomic():
            if caller != self.owner:
                logger.warning("Price change by non-owner: caller=%s producer=%s", caller, producer)
                raise NotOwner(caller)

            producer_row = self._lock_producer(producer)

            _require_uint("price", new_price)
            if new_price == 0:
                logger.warning("Zero price rejected: producer=%s", producer)
                raise InvalidAmount("price", new_price)

            old_price = producer_row.energy_price
            Producer.objects.filter(pk=producer_row.pk).update(energy_price=new_price)

        logger.info("Energy price changed: producer=%s old=%s new=%s", producer, old_price, new_price)
        return True

    def withdraw_revenue(self, caller):
        """Zeroes the caller's pending revenue and returns the amount withdrawn."""
        with transaction.atomic():
            producer_row = self._lock_producer(caller)
            amount = producer_row.pending_revenue
            if amount:
                Producer.objects.filter(pk=producer_row.pk).update(pending_revenue=0)

        logger.info("Revenue withdrawn: producer=%s amount=%s", caller, amount)
        return amount

    # -- read-only getters ---------------------------------------------

    def get_producer_info(self, producer):
        row = self._get_producer(producer)
        return {
            "energy_available": row.energy_available,
            "energy_price": row.energy_price,
        }

    def get_producer_rating(self, producer):
        row = self._get_producer(producer)
        return {
            "rating_sum": row.rating_sum,
            "rating_count": row.rating_count,
        }

    def get_pending_revenue(self, producer):
        return {"pending_revenue": self._get_producer(producer).pending_revenue}

    def get_consumer_info(self, consumer):
        try:
            row = Consumer.objects.get(pk=consumer)
        except Consumer.DoesNotExist:
            raise NotRegistered(consumer, "consumer")
        return {
            "energy_consumed": row.energy_consumed,
            "total_spent": row.total_spent,
        }

    def get_purchase_info(self, consumer, producer):
        try:
            record = PurchaseRecord.objects.get(consumer_id=consumer, producer_id=producer)
        except PurchaseRecord.DoesNotExist:
            raise NoPurchaseHistory(consumer, producer)
        return {
            "units_bought": record.units_bought,
            "amount_paid": record.amount_paid,
        }

    # -- helpers -------------------------------------------------------

    def _get_producer(self, producer):
        try:
            return Producer.objects.get(pk=producer)
        except Producer.DoesNotExist:
            raise NotRegistered(producer, "producer")

    def _lock_producer(self, producer):
        try:
            return Producer.objects.select_for_update().get(pk=producer)
        except Producer.DoesNotExist:
            logger.warning("Unknown producer: principal=%s", producer)
            raise NotRegistered(producer, "producer")

    def _lock_consumer(self, consumer):
        try:
            return Consumer.objects.select_for_update().get(pk=consumer)
        except Consumer.DoesNotExist:
            logger.warning("Unknown consumer: principal=%s", consumer)
            raise NotRegistered(consumer, "consumer")


def get_ledger():
    """Builds a ledger owned by the principal configured in ENERGY_MARKET['OWNER']."""
    return EnergyLedger(owner=conf.get_owner())
