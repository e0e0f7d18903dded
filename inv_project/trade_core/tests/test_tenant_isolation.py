from decimal import Decimal
from unittest import mock

from django.test import TestCase, TransactionTestCase

from ..models import (AuditLog, Client, Company, EntityMembership, Payment,
                      Sale, StockItem, User, Warehouse)
from ..services import (company_data_stats, create_sale, delete_company_data,
                        record_payment)


class TenantIsolationManagerTests(TestCase):
    def setUp(self):
        self.company_a = Company.objects.create(name="Company A", slug="com-a")
        self.company_b = Company.objects.create(name="Company B", slug="com-b")

        # one sale per company
        self.sale_a = create_sale(
            self.company_a, client_name="Acme", total_amount=Decimal("200.00"))
        self.sale_b = create_sale(
            self.company_b, client_name="Acme", total_amount=Decimal("100.00"))

    def test_for_company_returns_only_that_company_objects(self):
        self.assertListEqual(
            list(
                Sale.objects.for_company(self.company_a)
                .order_by("id")
                .values_list("pk", flat=True)
            ),
            [self.sale_a.pk],
        )
        # same client name lives independently in each tenant
        self.assertEqual(Client.objects.for_company(self.company_b).count(), 1)

    def test_get_other_company_object_raises_does_not_exist(self):
        with self.assertRaises(Sale.DoesNotExist):
            Sale.objects.for_company(self.company_a).get(pk=self.sale_b.pk)

    def test_numbers_restart_per_company(self):
        self.assertEqual(self.sale_a.number, 1)
        self.assertEqual(self.sale_b.number, 1)


class DeleteCompanyDataTests(TransactionTestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Doomed", slug="doomed")
        self.keep = Company.objects.create(name="Keeper", slug="keeper")
        self.user = User.objects.create_user(username="alice", password="pw")
        EntityMembership.objects.create(
            user=self.user, company=self.company, role="owner")

        sale = create_sale(
            self.company, client_name="Acme", total_amount=Decimal("500.00"))
        record_payment(sale, Decimal("100.00"))
        warehouse = Warehouse.objects.create(company=self.company, name="Main")
        StockItem.objects.create(
            company=self.company, warehouse=warehouse, name="Rod")
        self.kept_sale = create_sale(
            self.keep, client_name="Acme", total_amount=Decimal("50.00"))

    def test_stats_count_owned_rows(self):
        stats = company_data_stats(self.company)
        self.assertEqual(stats["sales"], 1)
        self.assertEqual(stats["payments"], 1)
        self.assertEqual(stats["clients"], 1)
        self.assertEqual(stats["memberships"], 1)

    def test_deletes_everything_the_company_owns(self):
        stats = delete_company_data(self.company)
        self.assertEqual(stats["sales"], 1)

        self.assertFalse(Company.objects.filter(pk=self.company.pk).exists())
        self.assertFalse(Sale.objects.filter(company_id=self.company.pk).exists())
        self.assertFalse(Payment.objects.exists())
        self.assertFalse(
            AuditLog.objects.filter(company_id=self.company.pk).exists())
        self.assertEqual(Warehouse.objects.count(), 0)

        # other tenant and the user survive
        self.assertTrue(Sale.objects.filter(pk=self.kept_sale.pk).exists())
        self.user.refresh_from_db()
        self.assertIsNone(self.user.default_company)

    def test_failure_rolls_everything_back(self):
        with mock.patch.object(
            Company, "delete", side_effect=RuntimeError("boom")
        ):
            with self.assertRaises(RuntimeError):
                delete_company_data(self.company)

        self.assertTrue(Company.objects.filter(pk=self.company.pk).exists())
        self.assertEqual(Sale.objects.for_company(self.company).count(), 1)
        self.assertEqual(Payment.objects.for_company(self.company).count(), 1)
        self.assertEqual(
            EntityMembership.objects.for_company(self.company).count(), 1)


class MembershipSignalTests(TestCase):
    def test_first_membership_becomes_default_company(self):
        first = Company.objects.create(name="First", slug="first")
        second = Company.objects.create(name="Second", slug="second")
        user = User.objects.create_user(username="bob", password="pw")

        EntityMembership.objects.create(user=user, company=first, role="staff")
        EntityMembership.objects.create(user=user, company=second)
        user.refresh_from_db()
        self.assertEqual(user.default_company, first)
