from django.urls import path

from . import views

app_name = "trade_core"

urlpatterns = [
    # sales
    path("sales/", views.create_sale_view, name="sale-create"),
    path("sales/<int:pk>/update/", views.update_sale_view, name="sale-update"),
    path("sales/<int:pk>/delete/", views.delete_sale_view, name="sale-delete"),
    path("sales/<int:pk>/payments/", views.sale_payment_view,
         name="sale-payment"),
    # purchases
    path("purchases/", views.create_purchase_view, name="purchase-create"),
    path("purchases/<int:pk>/update/", views.update_purchase_view,
         name="purchase-update"),
    path("purchases/<int:pk>/delete/", views.delete_purchase_view,
         name="purchase-delete"),
    path("purchases/<int:pk>/payments/", views.purchase_payment_view,
         name="purchase-payment"),
    # payments
    path("payments/<int:pk>/delete/", views.delete_payment_view,
         name="payment-delete"),
    # clients
    path("clients/<int:pk>/payments/", views.client_payment_view,
         name="client-payment"),
    path("clients/<int:pk>/credit-check/", views.credit_check_view,
         name="client-credit-check"),
    path("clients/<int:pk>/reconcile/", views.reconcile_client_view,
         name="client-reconcile"),
    path("clients/<int:pk>/statement/", views.client_statement_view,
         name="client-statement"),
    # suppliers
    path("suppliers/<int:pk>/payments/", views.supplier_payment_view,
         name="supplier-payment"),
    path("suppliers/<int:pk>/reconcile/", views.reconcile_supplier_view,
         name="supplier-reconcile"),
    path("suppliers/<int:pk>/statement/", views.supplier_statement_view,
         name="supplier-statement"),
    # read models
    path("dashboard/stats/", views.dashboard_stats_view,
         name="dashboard-stats"),
    path("dashboard/low-stock/", views.low_stock_view,
         name="dashboard-low-stock"),
    path("reports/sales/summary/", views.sales_summary_view,
         name="sales-summary"),
    path("reports/purchases/summary/", views.purchases_summary_view,
         name="purchases-summary"),
]
