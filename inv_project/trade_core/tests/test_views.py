import datetime
import json
from decimal import Decimal

import pytest
from django.test import RequestFactory
from django.urls import reverse
from django.utils import timezone

from trade_core.middleware import SESSION_COMPANY_KEY, CurrentCompanyMiddleware
from trade_core.models import (Client, Company, EntityMembership, Payment,
                               Sale, Supplier)
from trade_core.services import create_purchase, create_sale, record_payment


@pytest.fixture
def company(db):
    return Company.objects.create(name="Company A", slug="com-a")


@pytest.fixture
def other_company(db):
    return Company.objects.create(name="Company B", slug="com-b")


@pytest.fixture
def member(company, django_user_model):
    user = django_user_model.objects.create_user(username="alice", password="pw")
    EntityMembership.objects.create(user=user, company=company, role="staff")
    return user


def post_json(client, url, payload):
    return client.post(url, data=json.dumps(payload),
                       content_type="application/json")


@pytest.mark.django_db
def test_anonymous_request_is_rejected(client):
    response = client.get(reverse("trade_core:dashboard-stats"))
    assert response.status_code == 401


@pytest.mark.django_db
def test_user_without_company_is_forbidden(client, django_user_model):
    user = django_user_model.objects.create_user(username="bob", password="pw")
    client.force_login(user)
    response = client.get(reverse("trade_core:dashboard-stats"))
    assert response.status_code == 403


@pytest.mark.django_db
def test_viewer_cannot_record_sales(client, company, django_user_model):
    viewer = django_user_model.objects.create_user(
        username="vic", password="pw")
    EntityMembership.objects.create(user=viewer, company=company, role="viewer")
    client.force_login(viewer)

    response = post_json(client, reverse("trade_core:sale-create"),
                         {"client_name": "Acme", "total_amount": "100.00"})
    assert response.status_code == 403
    assert not Sale.objects.exists()


@pytest.mark.django_db
def test_create_sale(client, company, member):
    client.force_login(member)
    response = post_json(
        client,
        reverse("trade_core:sale-create"),
        {"client_name": "Acme", "total_amount": "5000.00",
         "amount_paid": "1000.00"},
    )
    assert response.status_code == 201
    data = response.json()["sale"]
    assert data["number"] == 1
    assert data["payment_status"] == "partial"
    assert Decimal(data["amount_due"]) == Decimal("4000.00")

    sale = Sale.objects.get(pk=data["id"])
    assert sale.company == company
    assert sale.created_by == member


@pytest.mark.django_db
def test_create_sale_validation_errors(client, company, member):
    client.force_login(member)
    response = post_json(client, reverse("trade_core:sale-create"),
                         {"total_amount": "100.00"})
    assert response.status_code == 400
    assert response.json()["ok"] is False

    response = post_json(
        client,
        reverse("trade_core:sale-create"),
        {"client_name": "Acme", "total_amount": "100.00",
         "amount_paid": "200.00"},
    )
    assert response.status_code == 400


@pytest.mark.django_db
def test_credit_limit_is_reported(client, company, member):
    Client.objects.create(
        company=company, name="Acme",
        credit_limit=Decimal("1000.00"), current_credit=Decimal("800.00"))
    client.force_login(member)

    response = post_json(client, reverse("trade_core:sale-create"),
                         {"client_name": "Acme", "total_amount": "300.00"})
    assert response.status_code == 400
    assert Decimal(response.json()["available"]) == Decimal("200.00")


@pytest.mark.django_db
def test_credit_check_view(client, company, member):
    acme = Client.objects.create(
        company=company, name="Acme",
        credit_limit=Decimal("1000.00"), current_credit=Decimal("800.00"))
    client.force_login(member)
    url = reverse("trade_core:client-credit-check", args=[acme.pk])

    data = client.get(url, {"amount": "300"}).json()
    assert data["allowed"] is False
    assert Decimal(data["available"]) == Decimal("200.00")

    data = client.get(url, {"amount": "150"}).json()
    assert data["allowed"] is True

    assert client.get(url).status_code == 400


@pytest.mark.django_db
def test_payment_on_other_tenant_record_is_not_found(
    client, company, other_company, member
):
    foreign = create_sale(other_company, client_name="Elsewhere",
                          total_amount=Decimal("100.00"))
    client.force_login(member)

    response = post_json(
        client,
        reverse("trade_core:sale-payment", args=[foreign.pk]),
        {"amount": "50.00"},
    )
    assert response.status_code == 404
    assert not Payment.objects.exists()


@pytest.mark.django_db
def test_sale_payment_and_overpayment(client, company, member):
    sale = create_sale(company, client_name="Acme",
                       total_amount=Decimal("100.00"))
    client.force_login(member)
    url = reverse("trade_core:sale-payment", args=[sale.pk])

    response = post_json(client, url, {"amount": "60.00",
                                       "payment_method": "upi"})
    assert response.status_code == 201
    assert response.json()["record"]["payment_status"] == "partial"

    response = post_json(client, url, {"amount": "60.00"})
    assert response.status_code == 400


@pytest.mark.django_db
def test_only_managers_delete_payments(client, company, member,
                                       django_user_model):
    sale = create_sale(company, client_name="Acme",
                       total_amount=Decimal("100.00"))
    payment = record_payment(sale, Decimal("40.00"))
    url = reverse("trade_core:payment-delete", args=[payment.pk])

    client.force_login(member)
    assert client.post(url).status_code == 403

    owner = django_user_model.objects.create_user(username="olga", password="pw")
    EntityMembership.objects.create(user=owner, company=company, role="owner")
    client.force_login(owner)
    response = client.post(url)
    assert response.status_code == 200
    assert response.json()["record"]["payment_status"] == "pending"


@pytest.mark.django_db
def test_dashboard_stats_view(client, company, other_company, member):
    create_sale(company, client_name="Acme", total_amount=Decimal("1000.00"))
    create_sale(other_company, client_name="Acme",
                total_amount=Decimal("9999.00"))
    client.force_login(member)

    response = client.get(reverse("trade_core:dashboard-stats"))
    assert response.status_code == 200
    stats = response.json()["stats"]
    assert Decimal(stats["total_receivables"]) == Decimal("1000.00")
    assert stats["total_sales"] == 1


@pytest.mark.django_db
def test_session_company_switch(client, company, other_company, member):
    EntityMembership.objects.create(
        user=member, company=other_company, role="staff")
    create_sale(other_company, client_name="Acme",
                total_amount=Decimal("250.00"))
    client.force_login(member)

    session = client.session
    session[SESSION_COMPANY_KEY] = other_company.pk
    session.save()

    stats = client.get(reverse("trade_core:dashboard-stats")).json()["stats"]
    assert Decimal(stats["total_receivables"]) == Decimal("250.00")


@pytest.mark.django_db
def test_middleware_ignores_companies_without_membership(
    company, other_company, member
):
    request = RequestFactory().get("/")
    request.user = member
    request.session = {SESSION_COMPANY_KEY: other_company.pk}
    CurrentCompanyMiddleware(lambda r: None).process_request(request)
    assert request.company is None

    request.session = {}
    CurrentCompanyMiddleware(lambda r: None).process_request(request)
    assert request.company == company


@pytest.mark.django_db
def test_update_view_applies_only_sent_fields(client, company, member):
    due = timezone.localdate() + datetime.timedelta(days=10)
    sale = create_sale(company, client_name="Acme",
                       total_amount=Decimal("100.00"), due_date=due,
                       notes="fragile")
    client.force_login(member)
    url = reverse("trade_core:sale-update", args=[sale.pk])

    response = post_json(client, url, {"total_amount": "150.00"})
    assert response.status_code == 200
    sale.refresh_from_db()
    assert sale.total_amount == Decimal("150.00")
    assert sale.due_date == due
    assert sale.notes == "fragile"

    response = post_json(client, url, {"due_date": None, "notes": ""})
    assert response.status_code == 200
    assert response.json()["record"]["due_date"] is None
    sale.refresh_from_db()
    assert sale.due_date is None
    assert sale.notes == ""
    assert sale.total_amount == Decimal("150.00")


@pytest.mark.django_db
def test_update_view_refuses_credit_over_limit(client, company, member):
    acme = Client.objects.create(company=company, name="Acme",
                                 credit_limit=Decimal("1000.00"))
    sale = create_sale(company, client=acme, total_amount=Decimal("900.00"))
    client.force_login(member)

    response = post_json(client,
                         reverse("trade_core:sale-update", args=[sale.pk]),
                         {"total_amount": "5000.00"})
    assert response.status_code == 400
    assert Decimal(response.json()["available"]) == Decimal("100.00")
    sale.refresh_from_db()
    assert sale.total_amount == Decimal("900.00")


@pytest.mark.django_db
def test_reconcile_views_repair_drifted_balances(client, company, member):
    sale = create_sale(company, client_name="Acme",
                       total_amount=Decimal("800.00"))
    purchase = create_purchase(company, supplier_name="Metro",
                               total_amount=Decimal("300.00"))
    Client.objects.filter(pk=sale.client_id).update(current_credit=Decimal("0"))
    Supplier.objects.filter(pk=purchase.supplier_id).update(
        current_payable=Decimal("0"))
    client.force_login(member)

    response = client.post(
        reverse("trade_core:client-reconcile", args=[sale.client_id]))
    assert response.status_code == 200
    data = response.json()
    assert data["changed"] is True
    assert Decimal(data["client"]["current_credit"]) == Decimal("800.00")

    response = client.post(
        reverse("trade_core:supplier-reconcile", args=[purchase.supplier_id]))
    data = response.json()
    assert data["changed"] is True
    assert Decimal(data["supplier"]["current_payable"]) == Decimal("300.00")

    # nothing left to repair
    response = client.post(
        reverse("trade_core:client-reconcile", args=[sale.client_id]))
    assert response.json()["changed"] is False
