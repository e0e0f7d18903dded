from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings

from ..exceptions import SequenceAllocationError
from ..models import Client, Company, Sale
from ..services import create_sale, next_number


@override_settings(TRADE_CORE_SEQUENCE_RETRY_DELAY=0)
class NumberAllocationTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co", slug="test-co")
        self.first = create_sale(
            self.company, client_name="Acme", total_amount=Decimal("10.00"))

    def test_next_number_is_scoped_to_company_and_kind(self):
        other = Company.objects.create(name="Other", slug="other")
        self.assertEqual(next_number(Sale, self.company, "order"), 2)
        self.assertEqual(next_number(Sale, self.company, "direct"), 1)
        self.assertEqual(next_number(Sale, other, "order"), 1)

    def test_collision_is_retried_with_a_fresh_number(self):
        # first read races with the existing sale #1
        with mock.patch(
            "trade_core.services.numbering.next_number", side_effect=[1, 2]
        ) as patched:
            sale = create_sale(
                self.company, client_name="Acme",
                total_amount=Decimal("20.00"))
        self.assertEqual(patched.call_count, 2)
        self.assertEqual(sale.number, 2)
        self.assertEqual(Sale.objects.count(), 2)

    @override_settings(TRADE_CORE_SEQUENCE_MAX_ATTEMPTS=3)
    def test_gives_up_after_max_attempts(self):
        with mock.patch(
            "trade_core.services.numbering.next_number", return_value=1
        ):
            with self.assertRaises(SequenceAllocationError) as ctx:
                create_sale(
                    self.company, client_name="Acme",
                    total_amount=Decimal("20.00"))
        self.assertEqual(ctx.exception.attempts, 3)

        # nothing from the failed sale is left behind
        self.assertEqual(Sale.objects.count(), 1)
        client = Client.objects.get(name="Acme")
        self.assertEqual(client.sales_count, 1)
        self.assertEqual(client.total_purchases, Decimal("10.00"))
