from .auditlog import AuditLog
from .client import Client
from .entitymembership import Company, EntityMembership, User
from .payment import Payment
from .purchase import Purchase
from .sale import Sale
from .stock import StockItem, Warehouse
from .supplier import Supplier
from .transaction import TransactionRecord
