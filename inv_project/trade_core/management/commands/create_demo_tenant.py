import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from django.utils.text import slugify

from trade_core.models import (Company, EntityMembership, StockItem, Supplier,
                               Warehouse)
from trade_core.services import (create_purchase, create_sale,
                                 record_payment)

User = get_user_model()


class Command(BaseCommand):
    help = (
        "Create a demo tenant (company), user, and sample sales, purchases "
        "and stock for testing."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--company-name",
            default="Demo Company",
            help="Name of the demo company to create.",
        )
        parser.add_argument(
            "--username", default="demo", help="Username for the demo user."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo user."
        )

    @staticmethod
    def unique_slug_for_company(name, max_tries=100):
        # "Test Ltd" -> "test-ltd", then "test-ltd-1", "test-ltd-2", ...
        base = slugify(name) or "company"
        slug = base
        i = 1
        while Company.objects.filter(slug=slug).exists():
            slug = f"{base}-{i}"
            i += 1
            if i > max_tries:
                raise RuntimeError("Couldn't generate unique slug")
        return slug

    @transaction.atomic
    def handle(self, *args, **options):
        company_name = options["company_name"]
        username = options["username"]
        password = options["password"]
        today = timezone.localdate()

        # 1. Company
        company = Company.objects.create(
            name=company_name,
            slug=self.unique_slug_for_company(company_name),
        )
        self.stdout.write(self.style.SUCCESS(f"Created company: {company}"))

        # 2. User + membership
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com"},
        )
        if created:
            user.set_password(password)
            user.save()
        EntityMembership.objects.create(user=user, company=company, role="owner")
        if company.owner_id is None:
            company.owner = user
            company.save(update_fields=["owner"])
        self.stdout.write(
            self.style.SUCCESS(f"Created user: {user.username} (pw={password})")
        )

        # 3. Stock
        warehouse = Warehouse.objects.create(company=company, name="Main")
        StockItem.objects.create(
            company=company, warehouse=warehouse, name="Steel rod",
            sku="ROD-01", quantity=Decimal("120"),
            selling_price=Decimal("45.00"), cost_price=Decimal("38.00"),
        )
        StockItem.objects.create(
            company=company, warehouse=warehouse, name="Cement bag",
            sku="CEM-01", quantity=Decimal("6"),
            selling_price=Decimal("380.00"), cost_price=Decimal("340.00"),
        )
        self.stdout.write(self.style.SUCCESS("Created warehouse and stock"))

        # 4. Sales: one partly paid credit order, one overdue, one cash
        sale = create_sale(
            company, client_name="Acme Builders", client_phone="9800000001",
            total_amount=Decimal("5000.00"),
            due_date=today + datetime.timedelta(days=30), user=user,
        )
        record_payment(sale, Decimal("2000.00"), payment_method="upi",
                       user=user)
        create_sale(
            company, client_name="Acme Builders",
            total_amount=Decimal("1200.00"),
            date=today - datetime.timedelta(days=45),
            due_date=today - datetime.timedelta(days=15), user=user,
        )
        create_sale(
            company, client_name="Walk-in", kind="direct",
            payment_type="cash", total_amount=Decimal("450.00"), user=user,
        )
        self.stdout.write(self.style.SUCCESS("Created sales and a payment"))

        # 5. Purchase on credit
        supplier = Supplier.objects.create(
            company=company, name="Metro Steel", payment_terms="Net 30")
        create_purchase(
            company, supplier=supplier, total_amount=Decimal("3000.00"),
            bill_number="MS-1001",
            due_date=today + datetime.timedelta(days=30), user=user,
        )
        self.stdout.write(self.style.SUCCESS("Created purchase"))
        self.stdout.write(self.style.SUCCESS("Demo tenant setup complete!"))
