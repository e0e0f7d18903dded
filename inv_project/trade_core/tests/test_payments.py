import datetime
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from ..models import Client, Company, Payment, Supplier
from ..services import (create_purchase, create_sale, delete_payment,
                        record_counterparty_payment, record_payment)


class CounterpartyPaymentTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co", slug="test-co")
        self.today = timezone.localdate()
        self.older = create_sale(
            self.company,
            client_name="Acme",
            total_amount=Decimal("1000.00"),
            date=self.today - datetime.timedelta(days=20),
        )
        self.newer = create_sale(
            self.company, client_name="Acme", total_amount=Decimal("500.00"))
        self.client_obj = Client.objects.get(name="Acme")

    def test_allocates_oldest_first(self):
        allocation = record_counterparty_payment(
            self.client_obj, Decimal("1200.00"))

        self.assertEqual(len(allocation.payments), 2)
        self.assertEqual(allocation.applied, Decimal("1200.00"))
        self.assertEqual(allocation.overpaid, Decimal("0"))

        self.older.refresh_from_db()
        self.newer.refresh_from_db()
        self.assertEqual(self.older.payment_status, "paid")
        self.assertEqual(self.newer.payment_status, "partial")
        self.assertEqual(self.newer.amount_due, Decimal("300.00"))

        self.client_obj.refresh_from_db()
        self.assertEqual(self.client_obj.current_credit, Decimal("300.00"))
        self.assertEqual(self.client_obj.last_payment_amount,
                         Decimal("1200.00"))
        self.assertEqual(self.client_obj.last_payment_date, self.today)

    def test_remainder_is_kept_as_overpaid(self):
        allocation = record_counterparty_payment(
            self.client_obj, Decimal("1800.00"), payment_method="bank_transfer")

        self.assertEqual(allocation.applied, Decimal("1500.00"))
        self.assertEqual(allocation.overpaid, Decimal("300.00"))
        self.client_obj.refresh_from_db()
        self.assertEqual(self.client_obj.overpaid_amount, Decimal("300.00"))
        self.assertEqual(self.client_obj.current_credit, Decimal("0.00"))
        self.assertEqual(
            Payment.objects.filter(sale__client=self.client_obj).count(), 2)

    def test_supplier_payment(self):
        supplier = Supplier.objects.create(company=self.company, name="Metro")
        create_purchase(self.company, supplier=supplier,
                        total_amount=Decimal("400.00"))
        allocation = record_counterparty_payment(supplier, Decimal("400.00"))
        self.assertEqual(allocation.applied, Decimal("400.00"))
        supplier.refresh_from_db()
        self.assertEqual(supplier.current_payable, Decimal("0.00"))
        self.assertEqual(allocation.payments[0].party_type, "supplier")


class DeletePaymentTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co", slug="test-co")
        self.sale = create_sale(
            self.company, client_name="Acme", total_amount=Decimal("1000.00"))

    def test_delete_payment_restores_balance(self):
        first = record_payment(
            self.sale, Decimal("400.00"),
            payment_date=timezone.localdate() - datetime.timedelta(days=3))
        second = record_payment(self.sale, Decimal("100.00"))

        record = delete_payment(second)
        self.assertEqual(record.amount_paid, Decimal("400.00"))
        self.assertEqual(record.payment_status, "partial")
        self.assertEqual(record.last_payment_date, first.payment_date)

        client = Client.objects.get(pk=self.sale.client_id)
        self.assertEqual(client.current_credit, Decimal("600.00"))
        self.assertEqual(client.last_payment_amount, Decimal("400.00"))
        self.assertFalse(Payment.objects.filter(pk=second.pk).exists())

    def test_amount_paid_never_goes_negative(self):
        payment = record_payment(self.sale, Decimal("400.00"))
        # amount_paid drifted below the payment on record
        type(self.sale).objects.filter(pk=self.sale.pk).update(
            amount_paid=Decimal("100.00"))

        record = delete_payment(payment)
        self.assertEqual(record.amount_paid, Decimal("0.00"))
        self.assertEqual(record.payment_status, "pending")
        self.assertIsNone(record.last_payment_date)
