import datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from ..models import AuditLog, Client, Company, Payment, Sale, Supplier
from ..services import (create_purchase, create_sale, delete_purchase,
                        delete_sale, record_payment, update_sale)


class SaleLifecycleTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co", slug="test-co")
        self.today = timezone.localdate()

    def test_new_client_is_created_and_seeded_from_first_sale(self):
        sale = create_sale(
            self.company,
            client_name="  Acme Builders ",
            client_phone="9800000001",
            total_amount=Decimal("5000.00"),
        )

        client = Client.objects.get(company=self.company, name="Acme Builders")
        self.assertEqual(sale.client_id, client.pk)
        self.assertEqual(sale.client_name, "Acme Builders")
        self.assertEqual(client.phone, "9800000001")
        self.assertEqual(client.total_purchases, Decimal("5000.00"))
        self.assertEqual(client.total_revenue, Decimal("5000.00"))
        self.assertEqual(client.sales_count, 1)
        self.assertEqual(client.last_purchase_date, self.today)
        self.assertEqual(client.current_credit, Decimal("5000.00"))

    def test_pending_partial_paid(self):
        sale = create_sale(
            self.company, client_name="Acme", total_amount=Decimal("5000.00"))
        self.assertEqual(sale.number, 1)
        self.assertEqual(sale.payment_status, "pending")
        self.assertEqual(sale.amount_due, Decimal("5000.00"))

        record_payment(sale, Decimal("2000.00"), payment_method="upi")
        sale.refresh_from_db()
        self.assertEqual(sale.amount_paid, Decimal("2000.00"))
        self.assertEqual(sale.amount_due, Decimal("3000.00"))
        self.assertEqual(sale.payment_status, "partial")
        client = Client.objects.get(pk=sale.client_id)
        self.assertEqual(client.current_credit, Decimal("3000.00"))
        self.assertEqual(client.last_payment_amount, Decimal("2000.00"))

        record_payment(sale, Decimal("3000.00"))
        sale.refresh_from_db()
        self.assertEqual(sale.amount_due, Decimal("0.00"))
        self.assertEqual(sale.payment_status, "paid")
        self.assertEqual(len(sale.payment_history), 2)
        client.refresh_from_db()
        self.assertEqual(client.current_credit, Decimal("0.00"))

    def test_payment_larger_than_amount_due_is_rejected(self):
        sale = create_sale(
            self.company, client_name="Acme", total_amount=Decimal("100.00"))
        with self.assertRaises(ValidationError):
            record_payment(sale, Decimal("150.00"))
        with self.assertRaises(ValidationError):
            record_payment(sale, Decimal("0"))
        self.assertFalse(Payment.objects.exists())

    def test_cash_direct_sale_is_paid_at_creation(self):
        sale = create_sale(
            self.company,
            client_name="Walk-in",
            kind="direct",
            payment_type="cash",
            total_amount=Decimal("450.00"),
        )
        self.assertEqual(sale.amount_paid, Decimal("450.00"))
        self.assertEqual(sale.payment_status, "paid")
        self.assertEqual(str(sale), "DS-1 (Walk-in)")

        # stays settled whatever the stored amount_paid says
        sale.amount_paid = Decimal("0")
        sale.save()
        self.assertEqual(sale.payment_status, "paid")

    def test_numbers_are_sequential_per_kind(self):
        first = create_sale(
            self.company, client_name="A", total_amount=Decimal("10"))
        second = create_sale(
            self.company, client_name="A", total_amount=Decimal("10"))
        direct = create_sale(
            self.company, client_name="A", kind="direct",
            total_amount=Decimal("10"))
        self.assertEqual((first.number, second.number, direct.number),
                         (1, 2, 1))

    def test_amount_paid_cannot_exceed_total(self):
        with self.assertRaises(ValidationError):
            create_sale(
                self.company,
                client_name="Acme",
                total_amount=Decimal("100"),
                amount_paid=Decimal("150"),
            )
        self.assertFalse(Client.objects.exists())

    def test_existing_client_counters_and_backfill(self):
        create_sale(self.company, client_name="Acme",
                    total_amount=Decimal("1000.00"))
        earlier = self.today - datetime.timedelta(days=10)
        create_sale(
            self.company,
            client_name="Acme",
            client_email="ACME@Example.com",
            total_amount=Decimal("500.00"),
            date=earlier,
        )
        client = Client.objects.get(name="Acme")
        self.assertEqual(client.sales_count, 2)
        self.assertEqual(client.total_purchases, Decimal("1500.00"))
        # an older sale does not move last_purchase_date back
        self.assertEqual(client.last_purchase_date, self.today)
        self.assertEqual(client.email, "acme@example.com")

    def test_update_sale_moves_counters_by_the_difference(self):
        sale = create_sale(
            self.company, client_name="Acme", total_amount=Decimal("1000.00"))
        record_payment(sale, Decimal("400.00"))

        update_sale(sale, total_amount=Decimal("1200.00"))
        sale.refresh_from_db()
        client = Client.objects.get(pk=sale.client_id)
        self.assertEqual(sale.amount_due, Decimal("800.00"))
        self.assertEqual(client.total_purchases, Decimal("1200.00"))
        self.assertEqual(client.current_credit, Decimal("800.00"))

        with self.assertRaises(ValidationError):
            update_sale(sale, total_amount=Decimal("300.00"))

    def test_update_sale_can_clear_due_date_and_notes(self):
        sale = create_sale(
            self.company,
            client_name="Acme",
            total_amount=Decimal("100.00"),
            due_date=self.today + datetime.timedelta(days=7),
            notes="call before delivery",
        )

        # omitted fields are left alone
        sale = update_sale(sale, notes="rush")
        self.assertEqual(sale.due_date, self.today + datetime.timedelta(days=7))
        self.assertEqual(sale.notes, "rush")

        update_sale(sale, due_date=None, notes="")
        sale.refresh_from_db()
        self.assertIsNone(sale.due_date)
        self.assertEqual(sale.notes, "")
        self.assertEqual(sale.total_amount, Decimal("100.00"))

    def test_audit_entries_are_written(self):
        sale = create_sale(
            self.company, client_name="Acme", total_amount=Decimal("100.00"))
        record_payment(sale, Decimal("40.00"))
        actions = list(
            AuditLog.objects.for_company(self.company)
            .order_by("pk")
            .values_list("action", "object_type")
        )
        self.assertEqual(actions, [("create", "Sale"), ("payment", "Payment")])


class DeleteRollbackTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co", slug="test-co")
        self.sales = [
            create_sale(self.company, client_name="Acme",
                        total_amount=Decimal("5000.00"))
            for _ in range(3)
        ]
        self.client_obj = Client.objects.get(name="Acme")

    def test_delete_rolls_back_client_counters(self):
        self.assertEqual(self.client_obj.sales_count, 3)
        self.assertEqual(self.client_obj.total_purchases, Decimal("15000.00"))

        client = delete_sale(self.sales[0])
        self.assertEqual(client.sales_count, 2)
        self.assertEqual(client.total_purchases, Decimal("10000.00"))
        self.assertEqual(client.total_revenue, Decimal("10000.00"))
        self.assertEqual(client.current_credit, Decimal("10000.00"))
        self.assertFalse(Sale.objects.filter(pk=self.sales[0].pk).exists())

    def test_delete_removes_payments(self):
        record_payment(self.sales[0], Decimal("1000.00"))
        delete_sale(self.sales[0])
        self.assertFalse(Payment.objects.exists())

    def test_delete_rereads_last_payment(self):
        earlier = timezone.localdate() - datetime.timedelta(days=5)
        record_payment(self.sales[1], Decimal("300.00"), payment_date=earlier)
        record_payment(self.sales[0], Decimal("50.00"))
        self.client_obj.refresh_from_db()
        self.assertEqual(self.client_obj.last_payment_amount, Decimal("50.00"))

        client = delete_sale(self.sales[0])
        self.assertEqual(client.last_payment_date, earlier)
        self.assertEqual(client.last_payment_amount, Decimal("300.00"))

        delete_sale(self.sales[1])
        self.client_obj.refresh_from_db()
        self.assertIsNone(self.client_obj.last_payment_date)
        self.assertEqual(self.client_obj.last_payment_amount, Decimal("0.00"))

    def test_counters_never_go_below_zero(self):
        Client.objects.filter(pk=self.client_obj.pk).update(
            total_purchases=Decimal("1000.00"),
            total_revenue=Decimal("1000.00"),
            sales_count=0,
        )
        client = delete_sale(self.sales[0])
        self.assertEqual(client.total_purchases, Decimal("0.00"))
        self.assertEqual(client.total_revenue, Decimal("0.00"))
        self.assertEqual(client.sales_count, 0)

    def test_delete_is_audited_with_the_old_id(self):
        pk = self.sales[1].pk
        delete_sale(self.sales[1])
        entry = AuditLog.objects.filter(action="delete").get()
        self.assertEqual(entry.object_id, str(pk))
        self.assertEqual(entry.changes["total_amount"], "5000.00")


class PurchaseLifecycleTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co", slug="test-co")
        self.supplier = Supplier.objects.create(
            company=self.company, name="Metro Steel")

    def test_purchase_updates_supplier_payable(self):
        purchase = create_purchase(
            self.company,
            supplier=self.supplier,
            total_amount=Decimal("3000.00"),
            bill_number="MS-1001",
        )
        self.assertEqual(purchase.number, 1)
        self.supplier.refresh_from_db()
        self.assertEqual(self.supplier.current_payable, Decimal("3000.00"))
        self.assertEqual(self.supplier.purchase_count, 1)
        self.assertEqual(self.supplier.total_purchases, Decimal("3000.00"))

        record_payment(purchase, Decimal("1000.00"), payment_method="cheque")
        self.supplier.refresh_from_db()
        self.assertEqual(self.supplier.current_payable, Decimal("2000.00"))

        supplier = delete_purchase(purchase)
        self.assertEqual(supplier.purchase_count, 0)
        self.assertEqual(supplier.total_purchases, Decimal("0.00"))
        self.assertEqual(supplier.current_payable, Decimal("0.00"))
        self.assertIsNone(supplier.last_payment_date)
        self.assertEqual(supplier.last_payment_amount, Decimal("0.00"))

    def test_supplier_from_other_company_is_rejected(self):
        other = Company.objects.create(name="Other", slug="other")
        with self.assertRaises(ValidationError):
            create_purchase(other, supplier=self.supplier,
                            total_amount=Decimal("10"))
