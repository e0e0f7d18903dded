import json
import logging
from functools import wraps

from django.core.exceptions import ValidationError
from django.db import transaction
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from .exceptions import CreditLimitExceeded, SequenceAllocationError
from .forms import (CounterpartyPaymentForm, CreditCheckForm, PaymentForm,
                    PurchaseForm, SaleForm, TransactionUpdateForm)
from .models import Client, EntityMembership, Payment, Purchase, Sale, Supplier
from .services import (can_extend_credit, counterparty_statement,
                       create_purchase, create_sale, dashboard_stats,
                       delete_payment, delete_purchase, delete_sale,
                       low_stock_items, reconcile_client_balance,
                       reconcile_supplier_balance,
                       record_counterparty_payment, record_payment,
                       summarize_transactions, update_purchase, update_sale)

logger = logging.getLogger(__name__)

WRITE_ROLES = ("owner", "admin", "staff")
MANAGER_ROLES = ("owner", "admin")


# ----------------------------
# Request plumbing
# ----------------------------
def _body(request):
    """JSON body when sent as JSON, form data otherwise."""
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            raise ValidationError("Request body is not valid JSON")
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data
    return request.POST


def _form_errors(form):
    return JsonResponse({"ok": False, "errors": form.errors.get_json_data()},
                        status=400)


def _validation_error(exc):
    if hasattr(exc, "error_dict"):
        errors = exc.message_dict
    else:
        errors = {"__all__": exc.messages}
    return JsonResponse({"ok": False, "errors": errors}, status=400)


def _role(request):
    if request.user.is_superuser:
        return "owner"
    membership = EntityMembership.objects.filter(
        user=request.user, company=request.company, is_active=True
    ).first()
    return membership.role if membership else None


def company_required(roles=None):
    """
    Reject requests without an authenticated user and a current company
    (set by CurrentCompanyMiddleware), or whose role is not in ``roles``.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return JsonResponse(
                    {"ok": False, "error": "Authentication required"},
                    status=401)
            if getattr(request, "company", None) is None:
                return JsonResponse(
                    {"ok": False, "error": "No company selected"}, status=403)
            if roles is not None and _role(request) not in roles:
                return JsonResponse(
                    {"ok": False, "error": "Permission denied"}, status=403)
            return view(request, *args, **kwargs)

        return wrapper

    return decorator


def _run(action):
    """Call a service and translate its failures into JSON responses."""
    try:
        return action()
    except CreditLimitExceeded as e:
        return JsonResponse(
            {
                "ok": False,
                "error": e.check.reason,
                "available": e.available,
            },
            status=400,
        )
    except ValidationError as e:
        return _validation_error(e)
    except SequenceAllocationError as e:
        logger.error("number allocation failed: %s", e)
        return JsonResponse({"ok": False, "error": str(e)}, status=503)


# ----------------------------
# Serialisation
# ----------------------------
def _record_payload(record):
    return {
        "id": record.pk,
        "type": record.transaction_type,
        "kind": record.kind,
        "number": record.number,
        "party_id": record.counterparty.pk,
        "payment_type": record.payment_type,
        "total_amount": record.total_amount,
        "amount_paid": record.amount_paid,
        "amount_due": record.amount_due,
        "payment_status": record.payment_status,
        "due_date": record.due_date,
        "is_overdue": record.is_overdue_at(),
        "payment_history": record.payment_history,
    }


def _client_payload(client):
    return {
        "id": client.pk,
        "name": client.name,
        "current_credit": client.current_credit,
        "overdue_amount": client.overdue_amount,
        "credit_limit": client.credit_limit,
        "credit_status": client.credit_status,
        "overpaid_amount": client.overpaid_amount,
        "balance_version": client.balance_version,
        "last_reconciled_at": client.last_reconciled_at,
    }


def _supplier_payload(supplier):
    return {
        "id": supplier.pk,
        "name": supplier.name,
        "current_payable": supplier.current_payable,
        "overdue_payable": supplier.overdue_payable,
        "overpaid_amount": supplier.overpaid_amount,
        "balance_version": supplier.balance_version,
        "last_reconciled_at": supplier.last_reconciled_at,
    }


# ----------------------------
# Sales / purchases
# ----------------------------
@require_POST
@company_required(WRITE_ROLES)
def create_sale_view(request):
    try:
        form = SaleForm(_body(request))
    except ValidationError as e:
        return _validation_error(e)
    if not form.is_valid():
        return _form_errors(form)
    data = form.cleaned_data

    client = None
    if data.get("client_id"):
        client = get_object_or_404(
            Client, pk=data["client_id"], company=request.company)

    def action():
        sale = create_sale(
            request.company,
            client=client,
            client_name=data.get("client_name"),
            client_phone=data.get("client_phone") or "",
            client_email=data.get("client_email") or "",
            kind=data["kind"],
            payment_type=data["payment_type"],
            payment_method=data["payment_method"],
            total_amount=data["total_amount"],
            amount_paid=data["amount_paid"],
            date=data.get("date"),
            due_date=data.get("due_date"),
            notes=data.get("notes") or "",
            user=request.user,
        )
        return JsonResponse({"ok": True, "sale": _record_payload(sale)},
                            status=201)

    return _run(action)


@require_POST
@company_required(WRITE_ROLES)
def create_purchase_view(request):
    try:
        form = PurchaseForm(_body(request))
    except ValidationError as e:
        return _validation_error(e)
    if not form.is_valid():
        return _form_errors(form)
    data = form.cleaned_data

    supplier = None
    if data.get("supplier_id"):
        supplier = get_object_or_404(
            Supplier, pk=data["supplier_id"], company=request.company)

    def action():
        purchase = create_purchase(
            request.company,
            supplier=supplier,
            supplier_name=data.get("supplier_name"),
            supplier_phone=data.get("supplier_phone") or "",
            supplier_email=data.get("supplier_email") or "",
            bill_number=data.get("bill_number") or "",
            kind=data["kind"],
            payment_type=data["payment_type"],
            payment_method=data["payment_method"],
            total_amount=data["total_amount"],
            amount_paid=data["amount_paid"],
            date=data.get("date"),
            due_date=data.get("due_date"),
            notes=data.get("notes") or "",
            user=request.user,
        )
        return JsonResponse(
            {"ok": True, "purchase": _record_payload(purchase)}, status=201)

    return _run(action)


def _update_view(model, service):
    @require_POST
    @company_required(WRITE_ROLES)
    def view(request, pk):
        record = get_object_or_404(model, pk=pk, company=request.company)
        try:
            form = TransactionUpdateForm(_body(request))
        except ValidationError as e:
            return _validation_error(e)
        if not form.is_valid():
            return _form_errors(form)
        # Only keys present in the body are applied; null or "" clears them
        changes = {name: value for name, value in form.cleaned_data.items()
                   if name in form.data}

        def action():
            updated = service(record, user=request.user, **changes)
            return JsonResponse(
                {"ok": True, "record": _record_payload(updated)})

        return _run(action)

    view.__name__ = f"update_{model._meta.model_name}_view"
    return view


update_sale_view = _update_view(Sale, update_sale)
update_purchase_view = _update_view(Purchase, update_purchase)


@require_POST
@company_required(WRITE_ROLES)
def delete_sale_view(request, pk):
    sale = get_object_or_404(Sale, pk=pk, company=request.company)
    client = delete_sale(sale, user=request.user)
    return JsonResponse({"ok": True, "client": _client_payload(client)})


@require_POST
@company_required(WRITE_ROLES)
def delete_purchase_view(request, pk):
    purchase = get_object_or_404(Purchase, pk=pk, company=request.company)
    supplier = delete_purchase(purchase, user=request.user)
    return JsonResponse({"ok": True, "supplier": _supplier_payload(supplier)})


# ----------------------------
# Payments
# ----------------------------
def _payment_view(model):
    @require_POST
    @company_required(WRITE_ROLES)
    def view(request, pk):
        record = get_object_or_404(model, pk=pk, company=request.company)
        try:
            form = PaymentForm(_body(request))
        except ValidationError as e:
            return _validation_error(e)
        if not form.is_valid():
            return _form_errors(form)
        data = form.cleaned_data

        def action():
            payment = record_payment(
                record,
                data["amount"],
                payment_method=data["payment_method"],
                payment_date=data.get("payment_date"),
                reference_number=data.get("reference_number") or "",
                notes=data.get("notes") or "",
                user=request.user,
            )
            record.refresh_from_db()
            return JsonResponse(
                {
                    "ok": True,
                    "payment_id": payment.pk,
                    "record": _record_payload(record),
                },
                status=201,
            )

        return _run(action)

    view.__name__ = f"{model._meta.model_name}_payment_view"
    return view


sale_payment_view = _payment_view(Sale)
purchase_payment_view = _payment_view(Purchase)


def _counterparty_payment_view(model, payload):
    @require_POST
    @company_required(WRITE_ROLES)
    def view(request, pk):
        party = get_object_or_404(model, pk=pk, company=request.company)
        try:
            form = CounterpartyPaymentForm(_body(request))
        except ValidationError as e:
            return _validation_error(e)
        if not form.is_valid():
            return _form_errors(form)
        data = form.cleaned_data

        def action():
            allocation = record_counterparty_payment(
                party,
                data["amount"],
                payment_method=data["payment_method"],
                payment_date=data.get("payment_date"),
                reference_number=data.get("reference_number") or "",
                notes=data.get("notes") or "",
                user=request.user,
            )
            party.refresh_from_db()
            return JsonResponse(
                {
                    "ok": True,
                    "payments": [p.pk for p in allocation.payments],
                    "applied": allocation.applied,
                    "overpaid": allocation.overpaid,
                    "party": payload(party),
                },
                status=201,
            )

        return _run(action)

    view.__name__ = f"{model._meta.model_name}_payment_view"
    return view


client_payment_view = _counterparty_payment_view(Client, _client_payload)
supplier_payment_view = _counterparty_payment_view(Supplier, _supplier_payload)


@require_POST
@company_required(MANAGER_ROLES)
def delete_payment_view(request, pk):
    payment = get_object_or_404(Payment, pk=pk, company=request.company)
    record = delete_payment(payment, user=request.user)
    return JsonResponse({"ok": True, "record": _record_payload(record)})


# ----------------------------
# Credit / balances
# ----------------------------
@require_GET
@company_required()
def credit_check_view(request, pk):
    client = get_object_or_404(Client, pk=pk, company=request.company)
    form = CreditCheckForm(request.GET)
    if not form.is_valid():
        return _form_errors(form)
    check = can_extend_credit(client, form.cleaned_data["amount"])
    return JsonResponse({
        "allowed": check.allowed,
        "reason": check.reason,
        "available": check.available,
    })


@require_POST
@company_required(WRITE_ROLES)
def reconcile_client_view(request, pk):
    client = get_object_or_404(Client, pk=pk, company=request.company)
    with transaction.atomic():
        client = Client.objects.select_for_update().get(pk=client.pk)
        result = reconcile_client_balance(client)
    return JsonResponse({"ok": True, "changed": result.changed,
                         "client": _client_payload(client)})


@require_POST
@company_required(WRITE_ROLES)
def reconcile_supplier_view(request, pk):
    supplier = get_object_or_404(Supplier, pk=pk, company=request.company)
    with transaction.atomic():
        supplier = Supplier.objects.select_for_update().get(pk=supplier.pk)
        result = reconcile_supplier_balance(supplier)
    return JsonResponse({"ok": True, "changed": result.changed,
                         "supplier": _supplier_payload(supplier)})


@require_GET
@company_required()
def client_statement_view(request, pk):
    client = get_object_or_404(Client, pk=pk, company=request.company)
    return JsonResponse(counterparty_statement(client))


@require_GET
@company_required()
def supplier_statement_view(request, pk):
    supplier = get_object_or_404(Supplier, pk=pk, company=request.company)
    return JsonResponse(counterparty_statement(supplier))


# ----------------------------
# Read models
# ----------------------------
@require_GET
@company_required()
def dashboard_stats_view(request):
    return JsonResponse({"stats": dashboard_stats(request.company)})


@require_GET
@company_required()
def low_stock_view(request):
    items = low_stock_items(request.company)
    return JsonResponse({
        "low_stock_items": [
            {
                "id": item.pk,
                "name": item.name,
                "sku": item.sku,
                "quantity": item.quantity,
                "low_stock_threshold": item.low_stock_threshold,
            }
            for item in items
        ]
    })


@require_GET
@company_required()
def sales_summary_view(request):
    summary = summarize_transactions(Sale.objects.for_company(request.company))
    return JsonResponse({"summary": summary})


@require_GET
@company_required()
def purchases_summary_view(request):
    summary = summarize_transactions(
        Purchase.objects.for_company(request.company))
    return JsonResponse({"summary": summary})
