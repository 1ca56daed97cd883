from typing import List

import pytest
from httpx import AsyncClient

from src.customers.models import Customer
from src.locations.models import Location
from src.products.models import Product

QUOTES_API_PREFIX = "/api/v1/quotes" # Préfixe de l'API tel que défini dans main.py

@pytest.mark.asyncio
async def test_create_then_convert_quote(test_client: AsyncClient, test_customer: Customer,
                                         test_location: Location, test_products: List[Product]):
    """Teste le parcours devis -> commande via l'API."""
    payload = {
        "customer_id": test_customer.id,
        "location_id": test_location.id,
        "items": [{"product_id": test_products[0].id, "quantity": 100}],
        "apply_bulk_discount": True,
        "notes": "Spring restock",
    }
    response = await test_client.post(QUOTES_API_PREFIX, json=payload)
    assert response.status_code == 201
    quote = response.json()
    assert quote["quote_number"] == "Q-001001"
    assert quote["status"] == "DRAFT"
    assert quote["subtotal"] == "950.00"
    assert quote["created_by"] == 42

    response = await test_client.get(f"{QUOTES_API_PREFIX}/{quote['id']}")
    assert response.status_code == 200
    assert response.json()["notes"] == "Spring restock"

    response = await test_client.post(f"{QUOTES_API_PREFIX}/{quote['id']}/convert")
    assert response.status_code == 201
    order = response.json()
    assert order["quote_id"] == quote["id"]
    assert order["total_amount"] == quote["total_amount"]
    assert order["items"][0]["unit_price"] == "9.50"

    response = await test_client.post(f"{QUOTES_API_PREFIX}/{quote['id']}/convert")
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "IMMUTABLE_STATE"
    assert detail["details"] == {"order_id": order["id"]}

@pytest.mark.asyncio
async def test_quote_not_found(test_client: AsyncClient):
    response = await test_client.get(f"{QUOTES_API_PREFIX}/4242")
    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Quote 4242 not found"

@pytest.mark.asyncio
async def test_quote_requires_items(test_client: AsyncClient, test_customer: Customer, test_location: Location):
    response = await test_client.post(
        QUOTES_API_PREFIX,
        json={"customer_id": test_customer.id, "location_id": test_location.id, "items": []},
    )
    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "At least one item is required"
