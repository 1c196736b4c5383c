"""
Persistence Models — Energy Marketplace Ledger (Django ORM)

This module defines the tables owned by the energy marketplace ledger.

Design intent:

The rows are plain balance holders. Every rule about how they may change
lives in the application layer (energy_market.application.ledger); nothing
outside that layer writes to these tables.

Key decisions:

- Producers and consumers are keyed by their principal identity, so a
  principal can hold at most one row per role.
- PurchaseRecord is keyed by the (consumer, producer) pair through a
  UNIQUE constraint. It tracks the outstanding refundable quantity and
  amount for that pair, not a history of individual purchases.
- Ratings are stored only as an aggregate on the producer row.
- All quantities are unsigned; PositiveBigIntegerField makes the database
  refuse a negative balance even if a bug slips past the ledger checks.
"""

from django.db import models

PRINCIPAL_MAX_LENGTH = 128


class Producer(models.Model):
    """
    A principal selling energy at a fixed unit price.

    pending_revenue accrues on every sale and is zeroed by a withdrawal.
    """

    principal = models.CharField(max_length=PRINCIPAL_MAX_LENGTH, primary_key=True)

    energy_available = models.PositiveBigIntegerField()
    energy_price = models.PositiveBigIntegerField()
    pending_revenue = models.PositiveBigIntegerField(default=0)

    rating_sum = models.PositiveBigIntegerField(default=0)
    rating_count = models.PositiveBigIntegerField(default=0)

    def __str__(self):
        return f"Producer {self.principal} - {self.energy_available} @ {self.energy_price}"


class Consumer(models.Model):
    """A principal buying energy. Both counters are cumulative, net of refunds."""

    principal = models.CharField(max_length=PRINCIPAL_MAX_LENGTH, primary_key=True)

    energy_consumed = models.PositiveBigIntegerField(default=0)
    total_spent = models.PositiveBigIntegerField(default=0)

    def __str__(self):
        return f"Consumer {self.principal} - Consumed: {self.energy_consumed}"


class PurchaseRecord(models.Model):
    """
    Outstanding refundable units and amount for one consumer/producer pair.

    Created on the first purchase between the pair, updated by later
    purchases and refunds, never deleted.
    """

    consumer = models.ForeignKey(
        Consumer,
        on_delete=models.CASCADE,
        related_name="purchases",
    )
    producer = models.ForeignKey(
        Producer,
        on_delete=models.CASCADE,
        related_name="sales",
    )

    units_bought = models.PositiveBigIntegerField(default=0)
    amount_paid = models.PositiveBigIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["consumer", "producer"],
                name="unique_purchase_per_pair",
            ),
        ]

    def __str__(self):
        return f"Purchase {self.consumer_id} <- {self.producer_id}: {self.units_bought}"
