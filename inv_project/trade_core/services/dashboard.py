from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum
from django.db.models.functions import Coalesce

from ..calculations import ZERO, as_date, round_currency
from ..models import Client, Purchase, Sale, StockItem, Supplier, Warehouse

STOCK_VALUE = ExpressionWrapper(
    F("quantity") * F("selling_price"),
    output_field=DecimalField(max_digits=32, decimal_places=2),
)


def _sum(queryset, field):
    return queryset.aggregate(total=Coalesce(Sum(field), ZERO))["total"]


def outstanding_total(records):
    """
    Σ amount_due over unpaid order records plus unpaid credit-type direct
    records. Direct cash records never count, whatever their status.
    """
    orders = _sum(records.filter(kind="order").unpaid(), "amount_due")
    direct_credit = _sum(
        records.filter(kind="direct", payment_type="credit").unpaid(),
        "amount_due",
    )
    return orders + direct_credit


def dashboard_stats(company, now=None):
    """
    Read-only tenant totals, recomputed from stored rows on every call.
    Overdue amounts are judged against ``now``.
    """
    today = as_date(now)
    sales = Sale.objects.for_company(company)
    purchases = Purchase.objects.for_company(company)
    items = StockItem.objects.for_company(company)

    client_opening = _sum(Client.objects.for_company(company), "opening_balance")
    supplier_opening = _sum(
        Supplier.objects.for_company(company), "opening_balance")

    stock = items.aggregate(
        total_items=Count("pk"),
        total_quantity=Coalesce(Sum("quantity"), ZERO),
        total_stock_value=Coalesce(Sum(STOCK_VALUE), ZERO),
    )
    revenue = sales.aggregate(
        total_revenue=Coalesce(Sum("total_amount"), ZERO),
        total_sales=Count("pk"),
    )

    return {
        "total_receivables": round_currency(
            outstanding_total(sales) + client_opening),
        "total_payables": round_currency(
            outstanding_total(purchases) + supplier_opening),
        "overdue_receivables": round_currency(
            _sum(sales.outstanding().overdue_at(today), "amount_due")),
        "overdue_payables": round_currency(
            _sum(purchases.outstanding().overdue_at(today), "amount_due")),
        "total_items": stock["total_items"],
        "total_stock_value": round_currency(stock["total_stock_value"]),
        "total_quantity": stock["total_quantity"],
        "warehouse_count": Warehouse.objects.for_company(company).count(),
        "total_revenue": round_currency(revenue["total_revenue"]),
        "total_sales": revenue["total_sales"],
        "low_stock_count": items.filter(
            quantity__lte=F("low_stock_threshold")).count(),
    }


def low_stock_items(company, limit=20):
    return list(
        StockItem.objects.for_company(company)
        .filter(quantity__lte=F("low_stock_threshold"))
        .order_by("quantity", "name")[:limit]
    )
