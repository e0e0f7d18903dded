from decimal import Decimal

from django.test import TestCase

from ..exceptions import CreditLimitExceeded
from ..models import Client, Company, Sale
from ..services import can_extend_credit, create_sale, update_sale


class CreditCheckTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co", slug="test-co")
        self.client_obj = Client.objects.create(
            company=self.company,
            name="Acme",
            credit_limit=Decimal("1000.00"),
            current_credit=Decimal("800.00"),
        )

    def test_within_limit_is_allowed(self):
        check = can_extend_credit(self.client_obj, Decimal("200.00"))
        self.assertTrue(check.allowed)
        self.assertIsNone(check.reason)
        self.assertEqual(check.available, Decimal("200.00"))

    def test_over_limit_reports_available_credit(self):
        check = can_extend_credit(self.client_obj, Decimal("300.00"))
        self.assertFalse(check.allowed)
        self.assertEqual(check.available, Decimal("200.00"))
        self.assertIn("Available credit: 200", check.reason)

    def test_zero_limit_is_unlimited(self):
        self.client_obj.credit_limit = Decimal("0")
        check = can_extend_credit(self.client_obj, Decimal("1000000"))
        self.assertTrue(check.allowed)
        self.assertIsNone(check.available)
        self.assertIsNone(self.client_obj.available_credit)

    def test_blocked_client_is_refused(self):
        self.client_obj.credit_status = "blocked"
        check = can_extend_credit(self.client_obj, Decimal("1.00"))
        self.assertFalse(check.allowed)
        self.assertEqual(check.available, Decimal("0"))

    def test_negative_amount_is_refused(self):
        self.assertFalse(
            can_extend_credit(self.client_obj, Decimal("-1")).allowed)

    def test_credit_sale_over_limit_raises(self):
        with self.assertRaises(CreditLimitExceeded) as ctx:
            create_sale(
                self.company,
                client=self.client_obj,
                total_amount=Decimal("300.00"),
            )
        self.assertEqual(ctx.exception.available, Decimal("200.00"))
        self.assertFalse(Sale.objects.exists())
        self.client_obj.refresh_from_db()
        self.assertEqual(self.client_obj.sales_count, 0)

    def test_only_the_unpaid_part_counts(self):
        sale = create_sale(
            self.company,
            client=self.client_obj,
            total_amount=Decimal("300.00"),
            amount_paid=Decimal("150.00"),
        )
        self.assertEqual(sale.payment_status, "partial")

    def test_cash_sale_skips_credit_check(self):
        sale = create_sale(
            self.company,
            client=self.client_obj,
            payment_type="cash",
            total_amount=Decimal("5000.00"),
        )
        self.assertEqual(sale.payment_status, "paid")


class CreditStatusTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co", slug="test-co")

    def test_status_follows_reconciled_balance(self):
        client = Client.objects.create(
            company=self.company, name="Acme", credit_limit=Decimal("1000"))
        create_sale(self.company, client=client, total_amount=Decimal("850"))
        client.refresh_from_db()
        self.assertEqual(client.current_credit, Decimal("850.00"))
        self.assertEqual(client.credit_status, "warning")
        self.assertEqual(client.available_credit, Decimal("150.00"))

    def test_blocked_survives_reconciliation(self):
        client = Client.objects.create(
            company=self.company, name="Acme", credit_status="blocked")
        # zero limit: unlimited, so the sale goes through
        create_sale(self.company, client=client, total_amount=Decimal("100"))
        client.refresh_from_db()
        self.assertEqual(client.credit_status, "blocked")


class CreditOnCorrectionTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co", slug="test-co")
        self.client_obj = Client.objects.create(
            company=self.company, name="Acme", credit_limit=Decimal("1000"))
        self.sale = create_sale(
            self.company, client=self.client_obj,
            total_amount=Decimal("900.00"))

    def test_raising_total_past_limit_is_refused(self):
        with self.assertRaises(CreditLimitExceeded) as ctx:
            update_sale(self.sale, total_amount=Decimal("5000.00"))
        self.assertEqual(ctx.exception.available, Decimal("100.00"))

        self.sale.refresh_from_db()
        self.assertEqual(self.sale.total_amount, Decimal("900.00"))
        self.client_obj.refresh_from_db()
        self.assertEqual(self.client_obj.current_credit, Decimal("900.00"))
        self.assertEqual(self.client_obj.total_purchases, Decimal("900.00"))

    def test_raise_within_limit_and_reductions_go_through(self):
        update_sale(self.sale, total_amount=Decimal("1000.00"))
        self.client_obj.refresh_from_db()
        self.assertEqual(self.client_obj.current_credit, Decimal("1000.00"))

        # lowering never needs credit
        update_sale(self.sale, total_amount=Decimal("400.00"))
        self.client_obj.refresh_from_db()
        self.assertEqual(self.client_obj.current_credit, Decimal("400.00"))

    def test_cash_sale_correction_skips_check(self):
        cash = create_sale(
            self.company, client=self.client_obj, payment_type="cash",
            total_amount=Decimal("50.00"))
        cash = update_sale(cash, total_amount=Decimal("5000.00"))
        self.assertEqual(cash.total_amount, Decimal("5000.00"))
