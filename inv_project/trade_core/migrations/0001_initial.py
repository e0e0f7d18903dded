import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models

import trade_core.managers


PAYMENT_METHODS = [
    ("cash", "Cash"),
    ("card", "Card"),
    ("upi", "UPI"),
    ("bank_transfer", "Bank Transfer"),
    ("cheque", "Cheque"),
]
KIND_CHOICES = [("order", "Order"), ("direct", "Direct")]
PAYMENT_TYPE_CHOICES = [("cash", "Cash"), ("credit", "Credit")]
PAYMENT_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("partial", "Partial"),
    ("paid", "Paid"),
]


def money(**kwargs):
    kwargs.setdefault("max_digits", 18)
    kwargs.setdefault("decimal_places", 2)
    return models.DecimalField(**kwargs)


def transaction_fields():
    """Columns shared by Sale and Purchase."""
    return [
        ("id", models.BigAutoField(
            auto_created=True, primary_key=True, serialize=False,
            verbose_name="ID")),
        ("kind", models.CharField(
            choices=KIND_CHOICES, default="order", max_length=10)),
        ("number", models.PositiveIntegerField()),
        ("payment_type", models.CharField(
            choices=PAYMENT_TYPE_CHOICES, default="credit", max_length=10)),
        ("payment_method", models.CharField(
            choices=PAYMENT_METHODS, default="cash", max_length=20)),
        ("date", models.DateField(default=django.utils.timezone.localdate)),
        ("due_date", models.DateField(blank=True, null=True)),
        ("total_amount", money()),
        ("amount_paid", money(default=Decimal("0.00"))),
        ("amount_due", money(default=Decimal("0.00"))),
        ("payment_status", models.CharField(
            choices=PAYMENT_STATUS_CHOICES, default="pending",
            max_length=10)),
        ("is_overdue", models.BooleanField(default=False)),
        ("last_payment_date", models.DateField(blank=True, null=True)),
        ("notes", models.TextField(blank=True, default="")),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("company", models.ForeignKey(
            on_delete=django.db.models.deletion.CASCADE,
            to="trade_core.company")),
        ("created_by", models.ForeignKey(
            blank=True, null=True,
            on_delete=django.db.models.deletion.SET_NULL,
            related_name="+", to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Company",
            fields=[
                ("id", models.BigAutoField(
                    auto_created=True, primary_key=True, serialize=False,
                    verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("currency_code", models.CharField(
                    default="INR", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"verbose_name_plural": "companies"},
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(
                    auto_created=True, primary_key=True, serialize=False,
                    verbose_name="ID")),
                ("password", models.CharField(
                    max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(
                    blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(
                    default=False,
                    help_text="Designates that this user has all permissions "
                    "without explicitly assigning them.",
                    verbose_name="superuser status")),
                ("username", models.CharField(
                    error_messages={
                        "unique": "A user with that username already exists."
                    },
                    help_text="Required. 150 characters or fewer. Letters, "
                    "digits and @/./+/-/_ only.",
                    max_length=150, unique=True,
                    validators=[
                        django.contrib.auth.validators.UnicodeUsernameValidator()
                    ],
                    verbose_name="username")),
                ("first_name", models.CharField(
                    blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(
                    blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(
                    blank=True, max_length=254,
                    verbose_name="email address")),
                ("is_staff", models.BooleanField(
                    default=False,
                    help_text="Designates whether the user can log into "
                    "this admin site.",
                    verbose_name="staff status")),
                ("is_active", models.BooleanField(
                    default=True,
                    help_text="Designates whether this user should be "
                    "treated as active. Unselect this instead of deleting "
                    "accounts.",
                    verbose_name="active")),
                ("date_joined", models.DateTimeField(
                    default=django.utils.timezone.now,
                    verbose_name="date joined")),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("default_company", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="default_users", to="trade_core.company")),
                ("groups", models.ManyToManyField(
                    blank=True,
                    help_text="The groups this user belongs to. A user will "
                    "get all permissions granted to each of their groups.",
                    related_name="user_set", related_query_name="user",
                    to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(
                    blank=True,
                    help_text="Specific permissions for this user.",
                    related_name="user_set", related_query_name="user",
                    to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "indexes": [
                    models.Index(
                        fields=["default_company"],
                        name="user_default_company_idx"),
                ],
            },
            managers=[
                ("objects", trade_core.managers.TenantUserManager()),
            ],
        ),
        migrations.AddField(
            model_name="company",
            name="owner",
            field=models.ForeignKey(
                blank=True, null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="owned_companies", to=settings.AUTH_USER_MODEL),
        ),
        migrations.CreateModel(
            name="EntityMembership",
            fields=[
                ("id", models.BigAutoField(
                    auto_created=True, primary_key=True, serialize=False,
                    verbose_name="ID")),
                ("role", models.CharField(
                    choices=[
                        ("owner", "Owner"),
                        ("admin", "Admin"),
                        ("staff", "Staff"),
                        ("viewer", "Viewer"),
                    ],
                    default="viewer", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="memberships", to="trade_core.company")),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="memberships",
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(
                        fields=["company", "user"],
                        name="member_company_user_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user", "company"),
                        name="uq_user_company_membership"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Client",
            fields=[
                ("id", models.BigAutoField(
                    auto_created=True, primary_key=True, serialize=False,
                    verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("phone", models.CharField(
                    blank=True, default="", max_length=32)),
                ("email", models.EmailField(
                    blank=True, default="", max_length=254)),
                ("address", models.TextField(blank=True, default="")),
                ("gst_number", models.CharField(
                    blank=True, default="", max_length=32)),
                ("notes", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("opening_balance", money(default=Decimal("0.00"))),
                ("total_purchases", money(default=Decimal("0.00"))),
                ("total_revenue", money(default=Decimal("0.00"))),
                ("sales_count", models.PositiveIntegerField(default=0)),
                ("last_purchase_date", models.DateField(
                    blank=True, null=True)),
                ("credit_limit", money(default=Decimal("0.00"))),
                ("current_credit", money(default=Decimal("0.00"))),
                ("overdue_amount", money(default=Decimal("0.00"))),
                ("credit_status", models.CharField(
                    choices=[
                        ("good", "Good"),
                        ("warning", "Warning"),
                        ("exceeded", "Exceeded"),
                        ("blocked", "Blocked"),
                    ],
                    default="good", max_length=10)),
                ("last_payment_date", models.DateField(
                    blank=True, null=True)),
                ("last_payment_amount", money(default=Decimal("0.00"))),
                ("overpaid_amount", money(default=Decimal("0.00"))),
                ("last_reconciled_at", models.DateTimeField(
                    blank=True, null=True)),
                ("balance_version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    to="trade_core.company")),
            ],
            options={
                "indexes": [
                    models.Index(
                        fields=["company", "is_active"],
                        name="client_company_active_idx"),
                    models.Index(
                        fields=["company", "total_revenue"],
                        name="client_company_revenue_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "name"),
                        name="uq_company_client_name"),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("credit_limit__gte", 0),
                            ("current_credit__gte", 0),
                            ("overdue_amount__gte", 0),
                        ),
                        name="client_non_negative_credit"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.BigAutoField(
                    auto_created=True, primary_key=True, serialize=False,
                    verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("contact_person", models.CharField(
                    blank=True, default="", max_length=200)),
                ("phone", models.CharField(
                    blank=True, default="", max_length=32)),
                ("email", models.EmailField(
                    blank=True, default="", max_length=254)),
                ("address", models.TextField(blank=True, default="")),
                ("gst_number", models.CharField(
                    blank=True, default="", max_length=32)),
                ("pan_number", models.CharField(
                    blank=True, default="", max_length=32)),
                ("payment_terms", models.CharField(
                    blank=True, default="", max_length=100)),
                ("notes", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("opening_balance", money(default=Decimal("0.00"))),
                ("total_purchases", money(default=Decimal("0.00"))),
                ("purchase_count", models.PositiveIntegerField(default=0)),
                ("last_purchase_date", models.DateField(
                    blank=True, null=True)),
                ("current_payable", money(default=Decimal("0.00"))),
                ("overdue_payable", money(default=Decimal("0.00"))),
                ("last_payment_date", models.DateField(
                    blank=True, null=True)),
                ("last_payment_amount", money(default=Decimal("0.00"))),
                ("overpaid_amount", money(default=Decimal("0.00"))),
                ("last_reconciled_at", models.DateTimeField(
                    blank=True, null=True)),
                ("balance_version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    to="trade_core.company")),
            ],
            options={
                "indexes": [
                    models.Index(
                        fields=["company", "is_active"],
                        name="supp_company_active_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "name"),
                        name="uq_company_supplier_name"),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("current_payable__gte", 0),
                            ("overdue_payable__gte", 0),
                        ),
                        name="supplier_non_negative_payable"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Sale",
            fields=transaction_fields() + [
                ("client_name", models.CharField(
                    blank=True, default="", max_length=200)),
                ("client_phone", models.CharField(
                    blank=True, default="", max_length=32)),
                ("client_email", models.EmailField(
                    blank=True, default="", max_length=254)),
                ("client", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="sales", to="trade_core.client")),
            ],
            options={
                "ordering": ["-date", "-pk"],
                "indexes": [
                    models.Index(
                        fields=["company", "date"],
                        name="sale_company_date_idx"),
                    models.Index(
                        fields=["company", "client"],
                        name="sale_company_client_idx"),
                    models.Index(
                        fields=["company", "payment_status"],
                        name="sale_company_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "kind", "number"),
                        name="uq_sale_company_kind_number"),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("total_amount__gte", 0),
                            ("amount_paid__gte", 0),
                        ),
                        name="sale_non_negative_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Purchase",
            fields=transaction_fields() + [
                ("supplier_name", models.CharField(
                    blank=True, default="", max_length=200)),
                ("bill_number", models.CharField(
                    blank=True, default="", max_length=64)),
                ("supplier", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="purchases", to="trade_core.supplier")),
            ],
            options={
                "ordering": ["-date", "-pk"],
                "indexes": [
                    models.Index(
                        fields=["company", "date"],
                        name="purch_company_date_idx"),
                    models.Index(
                        fields=["company", "supplier"],
                        name="purch_company_supplier_idx"),
                    models.Index(
                        fields=["company", "payment_status"],
                        name="purch_company_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "kind", "number"),
                        name="uq_purchase_company_kind_number"),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("total_amount__gte", 0),
                            ("amount_paid__gte", 0),
                        ),
                        name="purchase_non_negative_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(
                    auto_created=True, primary_key=True, serialize=False,
                    verbose_name="ID")),
                ("transaction_type", models.CharField(
                    choices=[("sale", "Sale"), ("purchase", "Purchase")],
                    max_length=10)),
                ("party_type", models.CharField(
                    choices=[("client", "Client"), ("supplier", "Supplier")],
                    max_length=10)),
                ("amount", money()),
                ("payment_method", models.CharField(
                    choices=PAYMENT_METHODS, default="cash", max_length=20)),
                ("payment_date", models.DateField(
                    default=django.utils.timezone.localdate)),
                ("reference_number", models.CharField(
                    blank=True, default="", max_length=100)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    to="trade_core.company")),
                ("sale", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="payments", to="trade_core.sale")),
                ("purchase", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="payments", to="trade_core.purchase")),
                ("recorded_by", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["payment_date", "pk"],
                "indexes": [
                    models.Index(
                        fields=["company", "payment_date"],
                        name="pay_company_date_idx"),
                    models.Index(
                        fields=["company", "transaction_type"],
                        name="pay_company_type_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="payment_amount_positive"),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("purchase__isnull", True),
                                ("sale__isnull", False),
                            ),
                            models.Q(
                                ("purchase__isnull", False),
                                ("sale__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="payment_single_target"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Warehouse",
            fields=[
                ("id", models.BigAutoField(
                    auto_created=True, primary_key=True, serialize=False,
                    verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("location", models.CharField(
                    blank=True, default="", max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    to="trade_core.company")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "name"),
                        name="uq_company_warehouse_name"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockItem",
            fields=[
                ("id", models.BigAutoField(
                    auto_created=True, primary_key=True, serialize=False,
                    verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("sku", models.CharField(
                    blank=True, max_length=80, null=True)),
                ("unit", models.CharField(
                    blank=True, default="pcs", max_length=20)),
                ("quantity", models.DecimalField(
                    decimal_places=3, default=Decimal("0"), max_digits=14)),
                ("cost_price", money(default=Decimal("0.00"))),
                ("selling_price", money(default=Decimal("0.00"))),
                ("low_stock_threshold", models.DecimalField(
                    decimal_places=3, default=Decimal("10"), max_digits=14)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    to="trade_core.company")),
                ("warehouse", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="items", to="trade_core.warehouse")),
            ],
            options={
                "indexes": [
                    models.Index(
                        fields=["company", "name"],
                        name="stock_company_name_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "sku"),
                        name="uq_company_stockitem_sku"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(
                    auto_created=True, primary_key=True, serialize=False,
                    verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    to="trade_core.company")),
                ("user", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at", "-pk"],
                "indexes": [
                    models.Index(
                        fields=["company", "user"],
                        name="audit_company_user_idx"),
                    models.Index(
                        fields=["company", "created_at"],
                        name="audit_company_created_idx"),
                ],
            },
        ),
    ]
