from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.translation import gettext_lazy as _

from trade_core.models import Company, EntityMembership, User

from .actions import reconcile_selected, refresh_overdue_selected
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .mixins import TenantAdminMixin


# Company list: the tenants whose books this app keeps
@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    # columns shown in company list view
    list_display = ("id", "name", "slug", "owner", "currency_code", "created_at")
    search_fields = ("name", "slug")  # find a tenant by name or slug
    ordering = ("name",)  # alphabetical by default
    # Reconcile balances / refresh overdue flags of the picked companies
    actions = [reconcile_selected, refresh_overdue_selected]

    def get_queryset(self, request):
        # owner shown in the list, fetch it in the same query
        qs = super().get_queryset(request).select_related("owner")
        if request.user.is_superuser:  # superusers see every tenant
            return qs
        # Non-superusers only see companies they are an active member of
        return qs.filter(
            memberships__user=request.user, memberships__is_active=True
        ).distinct()
        # .distinct() since the join through memberships can repeat a row


# Custom `User` on top of stock `DjangoUserAdmin`
@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    # forms that know about phone / default_company
    add_form = UserAdminCreationForm
    form = UserAdminChangeForm
    model = User

    # fields shown in list
    list_display = (
        "username", "email", "get_full_name", "is_staff", "default_company")
    list_filter = ("is_staff", "is_superuser", "is_active")
    search_fields = ("username", "email", "first_name", "last_name")
    ordering = ("username",)

    # Edit user page
    fieldsets = (
        (None, {"fields": ("username", "password")}),
        (_("Personal info"), {"fields":
                              ("first_name", "last_name", "email", "phone")}),
        # company picked when the session has not chosen one
        (_("Company / Defaults"), {"fields": ("default_company",)}),
        # stock Django grouping from here on
        (
            _("Permissions"),
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                ),
            },
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )

    # Add user page
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                # contact and tenant details right away
                "fields": (
                    "username",
                    "email",
                    "phone",
                    "default_company",
                    "password1",
                    "password2",
                ),
            },
        ),
    )

    # Tenant scoping:
    # limit visible users to those sharing a company with request.user
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:  # superusers see all users
            return qs

        # companies the logged-in user belongs to
        allowed_company_ids = request.user.memberships.values_list(
            "company_id", flat=True
        )
        # User → EntityMembership (related_name="memberships") → company_id
        # a user in several of those companies would show up once per
        # membership without .distinct()
        return qs.filter(
            memberships__company_id__in=allowed_company_ids).distinct()


# Who may record sales / delete payments in which company
@admin.register(EntityMembership)
class EntityMembershipAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("user", "company", "role", "is_active", "created_at")
    list_filter = ("role", "is_active", "company")
    search_fields = ("user__username", "user__email", "company__name")
    readonly_fields = ("created_at",)  # creation date is not editable
    ordering = ("company__name", "user__username")

    def get_queryset(self, request):
        # TenantAdminMixin already narrowed to the current company;
        # fetch company and user in one join
        return super().get_queryset(request).select_related("company", "user")

    def _managed_company_ids(self, request):
        # companies where request.user is an active Owner/Admin
        return set(
            request.user.memberships.filter(
                role__in=("owner", "admin"), is_active=True
            ).values_list("company_id", flat=True)
        )

    # To modify memberships
    def has_change_permission(self, request, obj=None):
        if request.user.is_superuser:
            return True
        managed = self._managed_company_ids(request)
        if obj is None:
            # change list: Owner/Admin of at least one company
            return bool(managed)
        # a single membership: only inside a company you manage
        return obj.company_id in managed

    # To delete memberships, same rule as changing them
    def has_delete_permission(self, request, obj=None):
        return self.has_change_permission(request, obj)

    # To add memberships
    def has_add_permission(self, request):
        if request.user.is_superuser:  # Superusers bypass check
            return True
        # must manage at least one company to invite anyone
        return bool(self._managed_company_ids(request))
