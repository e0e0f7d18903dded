from decimal import Decimal

from django import forms
from django.core.exceptions import ValidationError

from .models.transaction import KIND_CHOICES, PAYMENT_METHODS, PAYMENT_TYPE_CHOICES

MONEY = {"max_digits": 18, "decimal_places": 2}


class _TransactionForm(forms.Form):
    """Fields shared by the create-sale and create-purchase bodies."""

    kind = forms.ChoiceField(choices=KIND_CHOICES, required=False)
    payment_type = forms.ChoiceField(
        choices=PAYMENT_TYPE_CHOICES, required=False)
    payment_method = forms.ChoiceField(choices=PAYMENT_METHODS, required=False)
    total_amount = forms.DecimalField(min_value=Decimal("0"), **MONEY)
    amount_paid = forms.DecimalField(
        min_value=Decimal("0"), required=False, **MONEY)
    date = forms.DateField(required=False)
    due_date = forms.DateField(required=False)
    notes = forms.CharField(required=False, max_length=2000)

    def clean(self):
        cleaned = super().clean()
        # Blank choices fall back to model defaults
        cleaned["kind"] = cleaned.get("kind") or "order"
        cleaned["payment_type"] = cleaned.get("payment_type") or "credit"
        cleaned["payment_method"] = cleaned.get("payment_method") or "cash"
        if cleaned.get("amount_paid") is None:
            cleaned["amount_paid"] = Decimal("0.00")

        total = cleaned.get("total_amount")
        paid = cleaned["amount_paid"]
        if total is not None and paid > total:
            raise ValidationError("Amount paid cannot exceed total amount")

        date, due_date = cleaned.get("date"), cleaned.get("due_date")
        if date and due_date and due_date < date:
            self.add_error("due_date", "Due date cannot be before the date")
        return cleaned


class SaleForm(_TransactionForm):
    client_id = forms.IntegerField(required=False, min_value=1)
    client_name = forms.CharField(required=False, max_length=200)
    client_phone = forms.CharField(required=False, max_length=32)
    client_email = forms.EmailField(required=False)

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get("client_id") and not (
            cleaned.get("client_name") or ""
        ).strip():
            raise ValidationError("Either client_id or client_name is required")
        return cleaned


class PurchaseForm(_TransactionForm):
    supplier_id = forms.IntegerField(required=False, min_value=1)
    supplier_name = forms.CharField(required=False, max_length=200)
    supplier_phone = forms.CharField(required=False, max_length=32)
    supplier_email = forms.EmailField(required=False)
    bill_number = forms.CharField(required=False, max_length=64)

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get("supplier_id") and not (
            cleaned.get("supplier_name") or ""
        ).strip():
            raise ValidationError(
                "Either supplier_id or supplier_name is required")
        return cleaned


class TransactionUpdateForm(forms.Form):
    total_amount = forms.DecimalField(
        min_value=Decimal("0"), required=False, **MONEY)
    due_date = forms.DateField(required=False)
    notes = forms.CharField(required=False, max_length=2000)


class PaymentForm(forms.Form):
    amount = forms.DecimalField(min_value=Decimal("0.01"), **MONEY)
    payment_method = forms.ChoiceField(choices=PAYMENT_METHODS, required=False)
    payment_date = forms.DateField(required=False)
    reference_number = forms.CharField(required=False, max_length=100)
    notes = forms.CharField(required=False, max_length=2000)

    def clean(self):
        cleaned = super().clean()
        cleaned["payment_method"] = cleaned.get("payment_method") or "cash"
        return cleaned


class CounterpartyPaymentForm(PaymentForm):
    """Same body as PaymentForm; the amount is spread over open records."""


class CreditCheckForm(forms.Form):
    amount = forms.DecimalField(min_value=Decimal("0"), **MONEY)
