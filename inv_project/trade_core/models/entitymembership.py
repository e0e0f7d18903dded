from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager, TenantUserManager


# ---------- Tenant / Company ----------
class Company(models.Model):
    """Tenant / Organization"""

    # Display name, shown on statements and in the admin
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True  # commands look companies up by it
    )

    # Creator or admin of company
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,  # optional field
        on_delete=models.SET_NULL,
        # if user is deleted, company record stays, owner is set to NULL
        related_name="owned_companies",
    )

    # All sales, purchases and balances of a tenant share one currency
    currency_code = models.CharField(max_length=10, default="INR")

    # Store timestamp when the record is first created
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "companies"

    def __str__(self):
        return self.name


# ---------- Custom User ----------
class User(AbstractUser):  # keeps every AbstractUser field, adds a few
    """
    Add: 'AUTH_USER_MODEL = "trade_core.User"' to settings.py
    before the very first migrate.
    """

    # The company used when the session has not picked one
    default_company = models.ForeignKey(
        "Company",
        # Nullable, user might exist before joining any company
        null=True,
        blank=True,
        on_delete=models.SET_NULL,  # company deleted: keep the user,
        # just clear their default company
        related_name="default_users",
    )

    # Optional contact number, can be left empty in forms
    phone = models.CharField(max_length=32, blank=True)

    # create_user / create_superuser plus for_company scoping
    objects = TenantUserManager()

    class Meta:
        # the middleware falls back to it on every request
        indexes = [
            models.Index(
                fields=["default_company"], name="user_default_company_idx"
            )
        ]

    def __str__(self):
        # Fall back to username if no name is set
        return self.get_full_name() or self.username


# ---------- EntityMembership ----------
class EntityMembership(models.Model):  # join model between User and Company

    # Admin / forms show a dropdown with these
    ROLE_CHOICES = [
        ("owner", "Owner"),  # full control, can delete the company
        ("admin", "Admin"),  # can manage settings & users, delete payments
        ("staff", "Staff"),  # records sales, purchases and payments
        ("viewer", "Viewer"),  # read-only access
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        # If user is deleted, their memberships go too
        on_delete=models.CASCADE,
        related_name="memberships",  # every company a user belongs to
    )
    # Deleting a company removes its memberships
    company = models.ForeignKey(
        "Company", on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default="viewer",  # safest default, read-only
    )

    # Suspend someone's access without deleting the record
    is_active = models.BooleanField(default=True)
    """
        is_active=False keeps the row (and the audit trail pointing at the
        user) but the middleware and role checks treat it as no membership.
    """

    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # one user can only have one membership per company
        constraints = [
            models.UniqueConstraint(
                fields=["user", "company"], name="uq_user_company_membership"
            ),
        ]
        # almost every lookup filters by company first
        indexes = [
            models.Index(fields=["company", "user"], name="member_company_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.company} ({self.role})"

    # Reversing a payment is reserved for Owner/Admin
    @property
    def can_manage_payments(self):
        return self.is_active and self.role in ("owner", "admin")

    def clean(self):
        """
        If the user has a default_company, the user must hold a membership
        for it. The membership being validated counts.
        """
        if self.user_id and self.user.default_company_id:
            default_company_pk = self.user.default_company_id
            others = self.user.memberships.all()
            if self.pk:
                # updating: leave this record out of the existing ones
                others = others.exclude(pk=self.pk)
            existing_company_ids = set(
                others.values_list("company_id", flat=True))
            # the record being saved may be the one that grants it
            if (
                default_company_pk not in existing_company_ids
                and default_company_pk != self.company_id
            ):
                raise ValidationError(
                    f"Default company {self.user.default_company} "
                    "must be a user's membership."
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
