from django.contrib.auth.base_user import BaseUserManager
from django.db import models

UNPAID_STATUSES = ("pending", "partial")


# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a company
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_company(self, company):
        return self.filter(company=company)

    def active(self, company):
        return self.filter(
            company=company,  # enforce tenant scoping
            is_active=True,  # only fetch active records
        )


class TenantManager(models.Manager):
    # every model using TenantManager can call:
    # Client.objects.for_company(request.company)
    def get_queryset(self):
        return TenantQuerySet(self.model, using=self._db)

    def for_company(self, company):
        return self.get_queryset().for_company(company)

    def active(self, company):
        return self.get_queryset().active(company)


# -----------------------------------------
# Sales / purchases: payment-state filters
# -----------------------------------------
class TransactionQuerySet(TenantQuerySet):
    def unpaid(self):
        """Records that still carry a balance (pending or partial)."""
        return self.filter(payment_status__in=UNPAID_STATUSES)

    def outstanding(self):
        """
        Unpaid records that count towards receivables/payables.
        Order records always count; direct records only when sold on credit.
        """
        return self.unpaid().filter(
            models.Q(kind="order")
            | models.Q(kind="direct", payment_type="credit")
        )

    def overdue_at(self, today):
        # Evaluated against `today`, not the stored is_overdue flag
        return self.unpaid().filter(
            due_date__isnull=False,
            due_date__lte=today,
            amount_due__gt=0,
        )

    def oldest_first(self):
        return self.order_by("date", "pk")


class TransactionManager(TenantManager):
    def get_queryset(self):
        return TransactionQuerySet(self.model, using=self._db)

    def unpaid(self):
        return self.get_queryset().unpaid()

    def outstanding(self):
        return self.get_queryset().outstanding()


# -----------------------------------------
# Custom user manager
# -----------------------------------------
class TenantUserManager(BaseUserManager):
    """Enforce rules around how users are created"""

    use_in_migrations = True  # Allow Django to serialize this manager

    def for_company(self, company):
        # Users are scoped through their memberships, not a company FK
        return self.get_queryset().filter(memberships__company=company)

    # Shared logic for both create_user() & create_superuser()
    def _create_user(self, username, email, password, **extra_fields):
        if not username:
            raise ValueError("The given username must be set")
        email = self.normalize_email(email)
        user = self.model(username=username, email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(username, email, password, **extra_fields)

    # Used by Django when running `createsuperuser`
    def create_superuser(
        self, username, email=None, password=None, **extra_fields
    ):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        if (
            extra_fields.get("is_staff") is not True
            or extra_fields.get("is_superuser") is not True
        ):
            raise ValueError(
                "Superuser must have is_staff=True and is_superuser=True")
        return self._create_user(username, email, password, **extra_fields)
