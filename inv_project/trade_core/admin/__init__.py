from .actions import reconcile_selected, refresh_overdue_selected
from .auditlog import AuditLogAdmin
from .counterparty import ClientAdmin, SupplierAdmin
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .inlines import PaymentInline
from .membership import CompanyAdmin, EntityMembershipAdmin, UserAdmin
from .mixins import TenantAdminMixin
from .stock import StockItemAdmin, WarehouseAdmin
from .transaction import PaymentAdmin, PurchaseAdmin, SaleAdmin
