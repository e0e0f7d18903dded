from .audit_helper import log_action, snapshot
from .balances import (reconcile_client_balance, reconcile_company_balances,
                       reconcile_supplier_balance, refresh_overdue_flags)
from .credit import CreditCheck, can_extend_credit
from .dashboard import dashboard_stats, low_stock_items
from .numbering import allocate_number, next_number
from .payment import delete_payment, record_counterparty_payment, record_payment
from .reports import counterparty_statement, summarize_transactions
from .tenant import company_data_stats, delete_company_data
from .transactions import (create_purchase, create_sale, delete_purchase,
                           delete_sale, update_purchase, update_sale)
