from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from energy_market.models import Consumer, Producer, PurchaseRecord

OWNER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
PRODUCER = "ST1SJ3DTE5DN7X54YDH5D64R3BCB6A2AG2ZQ8YPD5"
CONSUMER = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"


@override_settings(ENERGY_MARKET={"OWNER": OWNER})
class MarketEndpointTest(TestCase):
    """
    Drives the ledger through /api/market/ and checks both the tagged
    {"ok"} / {"err"} payloads and the rows left behind.
    """

    def setUp(self):
        self.client = APIClient()

    def post(self, path, caller, payload=None):
        return self.client.post(
            f"/api/market/{path}",
            payload or {},
            format="json",
            HTTP_X_PRINCIPAL=caller,
        )

    def register_market(self):
        self.post("producers/", PRODUCER, {"energy_amount": 1000, "price": 10})
        self.post("consumers/", CONSUMER)

    def test_register_producer_and_read_info(self):
        response = self.post("producers/", PRODUCER, {"energy_amount": 1000, "price": 10})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"ok": True})

        response = self.client.get(f"/api/market/producers/{PRODUCER}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"ok": {"energy_available": 1000, "energy_price": 10}})

    def test_duplicate_registration_returns_conflict(self):
        self.post("producers/", PRODUCER, {"energy_amount": 1000, "price": 10})
        response = self.post("producers/", PRODUCER, {"energy_amount": 5, "price": 1})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["err"], 101)
        self.assertEqual(response.data["error"], "AlreadyRegistered")
        self.assertEqual(Producer.objects.get(pk=PRODUCER).energy_available, 1000)

    def test_end_to_end_purchase_and_withdrawal(self):
        self.register_market()

        response = self.post("purchases/", CONSUMER, {"producer": PRODUCER, "units": 100})
        self.assertEqual(response.status_code, 200)

        response = self.client.get(f"/api/market/consumers/{CONSUMER}/")
        self.assertEqual(response.data, {"ok": {"energy_consumed": 100, "total_spent": 1000}})

        response = self.client.get(f"/api/market/consumers/{CONSUMER}/purchases/{PRODUCER}/")
        self.assertEqual(response.data, {"ok": {"units_bought": 100, "amount_paid": 1000}})

        response = self.post("withdrawals/", PRODUCER)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"ok": 1000})

        response = self.post("withdrawals/", PRODUCER)
        self.assertEqual(response.data, {"ok": 0})

    def test_insufficient_supply_is_unprocessable(self):
        self.register_market()

        response = self.post("purchases/", CONSUMER, {"producer": PRODUCER, "units": 5000})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["err"], 103)
        self.assertFalse(PurchaseRecord.objects.exists())

    def test_rating_without_purchase_returns_107(self):
        self.register_market()

        response = self.post("ratings/", CONSUMER, {"producer": PRODUCER, "stars": 5})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["err"], 107)

    def test_rating_after_purchase(self):
        self.register_market()
        self.post("purchases/", CONSUMER, {"producer": PRODUCER, "units": 10})

        response = self.post("ratings/", CONSUMER, {"producer": PRODUCER, "stars": 4})
        self.assertEqual(response.data, {"ok": True})

        response = self.client.get(f"/api/market/producers/{PRODUCER}/rating/")
        self.assertEqual(response.data, {"ok": {"rating_sum": 4, "rating_count": 1}})

    def test_refund_exceeding_purchase_returns_108(self):
        self.register_market()
        self.post("purchases/", CONSUMER, {"producer": PRODUCER, "units": 10})

        response = self.post("refunds/", CONSUMER, {"producer": PRODUCER, "units": 11})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["err"], 108)
        self.assertEqual(Consumer.objects.get(pk=CONSUMER).energy_consumed, 10)

    def test_refund_restores_listing(self):
        self.register_market()
        self.post("purchases/", CONSUMER, {"producer": PRODUCER, "units": 100})

        response = self.post("refunds/", CONSUMER, {"producer": PRODUCER, "units": 100})

        self.assertEqual(response.data, {"ok": True})
        producer = Producer.objects.get(pk=PRODUCER)
        self.assertEqual(producer.energy_available, 1000)
        self.assertEqual(producer.pending_revenue, 0)

    def test_only_owner_sets_price(self):
        self.register_market()

        response = self.post(f"producers/{PRODUCER}/price/", PRODUCER, {"price": 50})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["err"], 100)

        response = self.post(f"producers/{PRODUCER}/price/", OWNER, {"price": 50})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Producer.objects.get(pk=PRODUCER).energy_price, 50)

    def test_unknown_producer_is_not_found(self):
        response = self.client.get(f"/api/market/producers/{PRODUCER}/")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["err"], 102)

    def test_unknown_purchase_pair_is_not_found(self):
        self.register_market()

        response = self.client.get(f"/api/market/consumers/{CONSUMER}/purchases/{PRODUCER}/")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["err"], 107)

    def test_zero_units_is_rejected_by_ledger(self):
        self.register_market()

        response = self.post("purchases/", CONSUMER, {"producer": PRODUCER, "units": 0})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["err"], 105)

    def test_missing_principal_header_returns_400(self):
        response = self.client.post("/api/market/consumers/", {}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertFalse(Consumer.objects.exists())

    def test_missing_fields_returns_400(self):
        response = self.post("producers/", PRODUCER, {"energy_amount": 1000})

        self.assertEqual(response.status_code, 400)

    def test_non_integer_fields_return_400(self):
        self.register_market()

        response = self.post("purchases/", CONSUMER, {"producer": PRODUCER, "units": "lots"})

        self.assertEqual(response.status_code, 400)

    def test_fractional_and_boolean_units_return_400(self):
        self.register_market()

        for units in [2.9, True, False, [3], "2.9"]:
            with self.subTest(units=units):
                response = self.post("purchases/", CONSUMER, {"producer": PRODUCER, "units": units})
                self.assertEqual(response.status_code, 400)

        self.assertEqual(Consumer.objects.get(pk=CONSUMER).energy_consumed, 0)
        self.assertFalse(PurchaseRecord.objects.exists())

    def test_integer_strings_are_accepted(self):
        self.register_market()

        response = self.post("purchases/", CONSUMER, {"producer": PRODUCER, "units": "5"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(Consumer.objects.get(pk=CONSUMER).energy_consumed, 5)

    def test_values_beyond_column_range_are_rejected_by_ledger(self):
        response = self.post("producers/", PRODUCER, {"energy_amount": 2 ** 70, "price": 10})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["err"], 105)
        self.assertFalse(Producer.objects.exists())

    def test_missing_producer_returns_400(self):
        self.register_market()

        response = self.post("purchases/", CONSUMER, {"units": 10})

        self.assertEqual(response.status_code, 400)
