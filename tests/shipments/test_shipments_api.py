from typing import Dict, List

import pytest
from httpx import AsyncClient

from src.orders.models import OrderRead
from src.products.models import Product

API_PREFIX = "/api/v1" # Préfixe de l'API tel que défini dans main.py


def _shipments_url(order_id: int) -> str:
    return f"{API_PREFIX}/orders/{order_id}/shipments"

@pytest.mark.asyncio
async def test_create_and_list_shipments(test_client: AsyncClient, pending_order: OrderRead,
                                         items_by_product: Dict[int, int], test_products: List[Product]):
    mulch_item = items_by_product[test_products[0].id]
    response = await test_client.post(
        _shipments_url(pending_order.id),
        json={"items": [{"order_item_id": mulch_item, "quantity": 4}],
              "scheduled_date": "2025-12-15T09:00:00-06:00", "carrier": "UPS"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "SCHEDULED"
    assert data["scheduled_date"] == "2025-12-15T15:00:00Z"
    assert data["created_by"] == 42

    response = await test_client.get(_shipments_url(pending_order.id))
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [data["id"]]

    response = await test_client.get(f"{_shipments_url(pending_order.id)}/allocation")
    assert response.status_code == 200
    allocation = {line["order_item_id"]: line for line in response.json()}
    assert allocation[mulch_item]["available"] == 6

@pytest.mark.asyncio
async def test_oversell_returns_available_quantity(test_client: AsyncClient, pending_order: OrderRead,
                                                   items_by_product: Dict[int, int], test_products: List[Product]):
    mulch_item = items_by_product[test_products[0].id]
    first = await test_client.post(
        _shipments_url(pending_order.id), json={"items": [{"order_item_id": mulch_item, "quantity": 5}]}
    )
    assert first.status_code == 201

    response = await test_client.post(
        _shipments_url(pending_order.id), json={"items": [{"order_item_id": mulch_item, "quantity": 7}]}
    )
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "Only 5 available" in detail["message"]
    assert detail["details"]["available"] == 5

@pytest.mark.asyncio
async def test_ambiguous_schedule_date_is_rejected(test_client: AsyncClient, pending_order: OrderRead,
                                                   items_by_product: Dict[int, int], test_products: List[Product]):
    response = await test_client.post(
        _shipments_url(pending_order.id),
        json={"items": [{"order_item_id": items_by_product[test_products[0].id], "quantity": 1}],
              "scheduled_date": "2025-12-15T09:00:00"},
    )
    assert response.status_code == 400
    assert response.json()["detail"]["message"].startswith("Ambiguous date")

@pytest.mark.asyncio
async def test_shipped_shipment_cannot_be_edited_or_deleted(test_client: AsyncClient, pending_order: OrderRead,
                                                            items_by_product: Dict[int, int],
                                                            test_products: List[Product]):
    created = await test_client.post(
        _shipments_url(pending_order.id),
        json={"items": [{"order_item_id": items_by_product[test_products[1].id], "quantity": 2}]},
    )
    shipment_url = f"{_shipments_url(pending_order.id)}/{created.json()['id']}"

    response = await test_client.post(f"{shipment_url}/status", json={"status": "SHIPPED"})
    assert response.status_code == 200
    assert response.json()["status"] == "SHIPPED"

    response = await test_client.put(shipment_url, json={"notes": "leave at gate"})
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "IMMUTABLE_STATE"

    response = await test_client.delete(shipment_url)
    assert response.status_code == 400

@pytest.mark.asyncio
async def test_update_and_delete_shipment(test_client: AsyncClient, pending_order: OrderRead,
                                          items_by_product: Dict[int, int], test_products: List[Product]):
    created = await test_client.post(
        _shipments_url(pending_order.id),
        json={"items": [{"order_item_id": items_by_product[test_products[0].id], "quantity": 1}]},
    )
    shipment_url = f"{_shipments_url(pending_order.id)}/{created.json()['id']}"

    response = await test_client.put(shipment_url, json={"scheduled_date": "2025-12-20", "tracking_number": "1Z999"})
    assert response.status_code == 200
    assert response.json()["scheduled_date"] == "2025-12-20T00:00:00Z"
    assert response.json()["tracking_number"] == "1Z999"

    response = await test_client.delete(shipment_url)
    assert response.status_code == 204

    response = await test_client.delete(shipment_url)
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_schedule_endpoint(test_client: AsyncClient, pending_order: OrderRead,
                                 items_by_product: Dict[int, int], test_products: List[Product]):
    mulch_item = items_by_product[test_products[0].id]
    for date in ("2025-12-15", "2025-12-17"):
        await test_client.post(
            _shipments_url(pending_order.id),
            json={"items": [{"order_item_id": mulch_item, "quantity": 1}], "scheduled_date": date},
        )

    response = await test_client.get(
        f"{API_PREFIX}/shipments/schedule", params={"start": "2025-12-15", "end": "2025-12-16"}
    )
    assert response.status_code == 200
    assert [s["scheduled_date"] for s in response.json()] == ["2025-12-15T00:00:00Z"]

    response = await test_client.get(
        f"{API_PREFIX}/shipments/schedule",
        params={"start": "2025-12-15", "end": "2025-12-17", "location_id": 9999},
    )
    assert response.json() == []

    response = await test_client.get(
        f"{API_PREFIX}/shipments/schedule", params={"start": "2025-12-18", "end": "2025-12-15"}
    )
    assert response.status_code == 400

@pytest.mark.asyncio
async def test_unknown_order_shipments(test_client: AsyncClient):
    response = await test_client.get(_shipments_url(9999))
    assert response.status_code == 404
