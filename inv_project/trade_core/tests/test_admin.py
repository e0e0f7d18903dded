import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from django.contrib import admin
from django.test import RequestFactory
from django.utils import timezone

from trade_core.admin.transaction import SaleAdmin
from trade_core.models import Company, Sale
from trade_core.services import create_sale


@pytest.fixture
def sale(db):
    company = Company.objects.create(name="Company A", slug="com-a")
    return create_sale(
        company,
        client_name="Acme",
        total_amount=Decimal("100.00"),
        due_date=timezone.localdate() + datetime.timedelta(days=5),
        notes="keep dry",
    )


def change_form(sale, **changes):
    cleaned = {"total_amount": sale.total_amount, "due_date": sale.due_date,
               "notes": sale.notes}
    cleaned.update(changes)
    return SimpleNamespace(changed_data=list(changes), cleaned_data=cleaned)


@pytest.mark.django_db
def test_admin_correction_clears_due_date(sale, admin_user):
    request = RequestFactory().post("/")
    request.user = admin_user
    model_admin = SaleAdmin(Sale, admin.site)

    model_admin.save_model(request, sale, change_form(sale, due_date=None),
                           change=True)
    sale.refresh_from_db()
    assert sale.due_date is None
    assert sale.notes == "keep dry"

    model_admin.save_model(request, sale, change_form(sale, notes=""),
                           change=True)
    sale.refresh_from_db()
    assert sale.notes == ""
    assert sale.total_amount == Decimal("100.00")
