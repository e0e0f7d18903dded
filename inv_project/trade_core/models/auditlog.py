from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # Who did what to which record, and when

    # Nullable for system-wide events (e.g. a tenant being wiped)
    company = models.ForeignKey(
        Company,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # Nullable for automated actions (Celery task, management command)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # create, update, delete, payment, reconcile, ...
    action = models.CharField(max_length=50)
    object_type = models.CharField(max_length=100)  # "Sale", "Client", ...
    object_id = models.CharField(max_length=100)
    # Before/after details of what changed
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ["-created_at", "-pk"]
        indexes = [
            models.Index(fields=["company", "user"], name="audit_company_user_idx"),
            models.Index(
                fields=["company", "created_at"], name="audit_company_created_idx"
            ),
        ]

    def __str__(self):
        when = self.created_at
        return (
            f"[{when:%Y-%m-%d %H:%M}] {self.user} {self.action} "
            f"{self.object_type}({self.object_id})"
        )

    def clean(self):
        # Staff users act on behalf of a tenant only through a membership;
        # superusers may act on any tenant
        if self.user_id and self.company_id and not self.user.is_superuser:
            if not self.user.memberships.filter(
                company_id=self.company_id, is_active=True
            ).exists():
                raise ValidationError(
                    "AuditLog.user must be a member of AuditLog.company"
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
