import pytest
from httpx import AsyncClient

from src.orders.models import OrderRead

INVOICES_API_PREFIX = "/api/v1/invoices" # Préfixe de l'API tel que défini dans main.py

@pytest.mark.asyncio
async def test_invoice_order_then_record_payment(test_client: AsyncClient, pending_order: OrderRead):
    """Teste le parcours commande -> facture -> encaissement via l'API."""
    response = await test_client.post(f"{INVOICES_API_PREFIX}/convert-from-order",
                                      json={"order_id": pending_order.id, "notes": "Net 30"})
    assert response.status_code == 201
    invoice = response.json()
    assert invoice["invoice_number"] == "INV-001001"
    assert invoice["status"] == "DRAFT"
    assert invoice["total_amount"] == "158.05"
    assert invoice["balance_due"] == "158.05"
    assert invoice["notes"] == "Net 30"
    assert invoice["created_by"] == 42
    assert len(invoice["items"]) == 2

    response = await test_client.post(f"{INVOICES_API_PREFIX}/convert-from-order", json={"order_id": pending_order.id})
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "IMMUTABLE_STATE"
    assert detail["details"] == {"invoice_id": invoice["id"]}

    response = await test_client.post(
        f"{INVOICES_API_PREFIX}/{invoice['id']}/payments",
        json={"amount": "58.05", "payment_method": "ACH", "reference_number": "ACH-7781"},
    )
    assert response.status_code == 201
    payment = response.json()
    assert payment["applied_amount"] == "58.05"
    assert payment["payment_method"] == "ACH"

    response = await test_client.get(f"{INVOICES_API_PREFIX}/{invoice['id']}")
    assert response.status_code == 200
    assert response.json()["status"] == "PARTIALLY_PAID"
    assert response.json()["balance_due"] == "100.00"

    response = await test_client.get(f"{INVOICES_API_PREFIX}/{invoice['id']}/payments")
    assert response.status_code == 200
    assert [p["reference_number"] for p in response.json()] == ["ACH-7781"]

@pytest.mark.asyncio
async def test_invoice_not_found(test_client: AsyncClient):
    response = await test_client.get(f"{INVOICES_API_PREFIX}/4242")
    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Invoice 4242 not found"

@pytest.mark.asyncio
async def test_unknown_payment_method_is_rejected(test_client: AsyncClient, pending_order: OrderRead):
    response = await test_client.post(f"{INVOICES_API_PREFIX}/convert-from-order", json={"order_id": pending_order.id})
    invoice_id = response.json()["id"]
    response = await test_client.post(
        f"{INVOICES_API_PREFIX}/{invoice_id}/payments",
        json={"amount": "10.00", "payment_method": "BARTER"},
    )
    assert response.status_code == 422
