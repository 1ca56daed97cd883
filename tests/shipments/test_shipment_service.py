from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.models import AuditLog
from src.core.exceptions import ValidationException
from src.customers.models import Customer
from src.locations.models import Location
from src.orders.config import OrderStatus
from src.orders.exceptions import OrderNotFoundException
from src.orders.models import OrderCreate, OrderLineCreate, OrderRead
from src.orders.service import OrderService
from src.products.models import Product
from src.shipments.config import ShipmentStatus
from src.shipments.exceptions import (
    DuplicateShipmentItemException,
    EmptyShipmentException,
    ForeignOrderItemsException,
    InsufficientAvailableQuantityException,
    InvalidScheduleDateException,
    InvalidShipmentQuantityException,
    InvalidShipmentStatusTransitionException,
    ShipmentImmutableException,
    ShipmentNotFoundException,
    ShipmentOrderClosedException,
)
from src.shipments.models import ShipmentCreate, ShipmentItemCreate, ShipmentRead, ShipmentUpdate
from src.shipments.service import ShipmentService


async def _ship(service: ShipmentService, order_id: int, order_item_id: int, quantity: int,
                scheduled_date: Optional[str] = None) -> ShipmentRead:
    return await service.create_shipment(
        order_id,
        ShipmentCreate(items=[ShipmentItemCreate(order_item_id=order_item_id, quantity=quantity)],
                       scheduled_date=scheduled_date),
    )

# --- Création et prévention de la survente ---

@pytest.mark.asyncio
async def test_create_shipment_with_defaults(shipment_service: ShipmentService, pending_order: OrderRead,
                                             items_by_product: Dict[int, int], test_products: List[Product]):
    mulch_item = items_by_product[test_products[0].id]
    shipment = await _ship(shipment_service, pending_order.id, mulch_item, 4, scheduled_date="2025-12-15")

    assert shipment.order_id == pending_order.id
    assert shipment.status == ShipmentStatus.SCHEDULED
    assert shipment.duration_minutes == 90
    assert shipment.method == "DELIVERY"
    assert shipment.created_by is None
    assert shipment.scheduled_date == datetime(2025, 12, 15, tzinfo=timezone.utc)
    assert [(i.order_item_id, i.quantity) for i in shipment.items] == [(mulch_item, 4)]

@pytest.mark.asyncio
async def test_oversell_is_refused_until_shipment_cancelled(shipment_service: ShipmentService,
                                                            pending_order: OrderRead,
                                                            items_by_product: Dict[int, int],
                                                            test_products: List[Product]):
    """10 commandés, 5 expédiés: 7 refusés avec le reste disponible, 10 acceptés après annulation."""
    mulch_item = items_by_product[test_products[0].id]
    first = await _ship(shipment_service, pending_order.id, mulch_item, 5)

    with pytest.raises(InsufficientAvailableQuantityException) as exc_info:
        await _ship(shipment_service, pending_order.id, mulch_item, 7)
    assert exc_info.value.message == (
        f"Cannot ship 7 units of item {mulch_item}. Only 5 available (10 ordered, 5 already shipped)."
    )
    assert exc_info.value.available == 5

    allocation = {line.order_item_id: line for line in await shipment_service.get_allocation(pending_order.id)}
    assert (allocation[mulch_item].ordered, allocation[mulch_item].shipped, allocation[mulch_item].available) == (10, 5, 5)

    await shipment_service.transition_shipment(pending_order.id, first.id, ShipmentStatus.CANCELLED)
    full = await _ship(shipment_service, pending_order.id, mulch_item, 10)
    assert full.items[0].quantity == 10

    with pytest.raises(InsufficientAvailableQuantityException):
        await _ship(shipment_service, pending_order.id, mulch_item, 1)

@pytest.mark.asyncio
async def test_refused_shipment_writes_nothing(shipment_service: ShipmentService, pending_order: OrderRead,
                                               items_by_product: Dict[int, int], test_products: List[Product]):
    mulch_item = items_by_product[test_products[0].id]
    paver_item = items_by_product[test_products[1].id]
    # Une ligne valide, une ligne en survente: rien n'est créé
    with pytest.raises(InsufficientAvailableQuantityException):
        await shipment_service.create_shipment(
            pending_order.id,
            ShipmentCreate(items=[
                ShipmentItemCreate(order_item_id=mulch_item, quantity=2),
                ShipmentItemCreate(order_item_id=paver_item, quantity=3),
            ]),
        )
    assert await shipment_service.list_order_shipments(pending_order.id) == []

@pytest.mark.asyncio
async def test_create_shipment_rejections(shipment_service: ShipmentService, order_service: OrderService,
                                          pending_order: OrderRead, items_by_product: Dict[int, int],
                                          test_customer: Customer, test_location: Location,
                                          test_products: List[Product]):
    mulch_item = items_by_product[test_products[0].id]

    with pytest.raises(OrderNotFoundException):
        await _ship(shipment_service, 9999, mulch_item, 1)
    with pytest.raises(EmptyShipmentException):
        await shipment_service.create_shipment(pending_order.id, ShipmentCreate(items=[]))
    with pytest.raises(DuplicateShipmentItemException):
        await shipment_service.create_shipment(
            pending_order.id,
            ShipmentCreate(items=[
                ShipmentItemCreate(order_item_id=mulch_item, quantity=1),
                ShipmentItemCreate(order_item_id=mulch_item, quantity=1),
            ]),
        )
    with pytest.raises(InvalidShipmentQuantityException):
        await _ship(shipment_service, pending_order.id, mulch_item, 0)
    with pytest.raises(InvalidScheduleDateException):
        await _ship(shipment_service, pending_order.id, mulch_item, 1, scheduled_date="2025-12-15T09:00:00")
    with pytest.raises(ValidationException):
        await shipment_service.create_shipment(
            pending_order.id,
            ShipmentCreate(items=[ShipmentItemCreate(order_item_id=mulch_item, quantity=1)],
                           status=ShipmentStatus.SHIPPED),
        )

    # Ligne d'une autre commande
    other = await order_service.create_order(
        OrderCreate(customer_id=test_customer.id, location_id=test_location.id,
                    items=[OrderLineCreate(product_id=test_products[2].id, quantity=1)])
    )
    with pytest.raises(ForeignOrderItemsException) as exc_info:
        await _ship(shipment_service, pending_order.id, other.items[0].id, 1)
    assert exc_info.value.order_item_ids == [other.items[0].id]

    await order_service.change_order_status(pending_order.id, OrderStatus.CANCELLED)
    with pytest.raises(ShipmentOrderClosedException):
        await _ship(shipment_service, pending_order.id, mulch_item, 1)

# --- Immutabilité et transitions ---

@pytest.mark.asyncio
async def test_shipped_shipment_is_immutable(shipment_service: ShipmentService, pending_order: OrderRead,
                                             items_by_product: Dict[int, int], test_products: List[Product]):
    mulch_item = items_by_product[test_products[0].id]
    shipment = await _ship(shipment_service, pending_order.id, mulch_item, 3)
    shipped = await shipment_service.transition_shipment(pending_order.id, shipment.id, ShipmentStatus.SHIPPED)
    assert shipped.status == ShipmentStatus.SHIPPED

    with pytest.raises(ShipmentImmutableException) as exc_info:
        await shipment_service.update_shipment(pending_order.id, shipment.id, ShipmentUpdate(carrier="UPS"))
    assert exc_info.value.message == f"Cannot edit shipment {shipment.id}: it is SHIPPED"

    with pytest.raises(ShipmentImmutableException) as exc_info:
        await shipment_service.delete_shipment(pending_order.id, shipment.id)
    assert exc_info.value.message == f"Cannot delete shipment {shipment.id}: it is SHIPPED"

    with pytest.raises(InvalidShipmentStatusTransitionException):
        await shipment_service.transition_shipment(pending_order.id, shipment.id, ShipmentStatus.CANCELLED)

    delivered = await shipment_service.transition_shipment(pending_order.id, shipment.id, ShipmentStatus.DELIVERED)
    assert delivered.status == ShipmentStatus.DELIVERED
    with pytest.raises(ShipmentImmutableException):
        await shipment_service.update_shipment(pending_order.id, shipment.id, ShipmentUpdate(notes="late"))

    # Toujours engagée: le reste disponible n'a pas bougé
    allocation = {line.order_item_id: line for line in await shipment_service.get_allocation(pending_order.id)}
    assert allocation[mulch_item].available == 7

@pytest.mark.asyncio
async def test_update_shipment_metadata(shipment_service: ShipmentService, pending_order: OrderRead,
                                        items_by_product: Dict[int, int], test_products: List[Product]):
    mulch_item = items_by_product[test_products[0].id]
    shipment = await _ship(shipment_service, pending_order.id, mulch_item, 3, scheduled_date="2025-12-15")

    updated = await shipment_service.update_shipment(
        pending_order.id, shipment.id,
        ShipmentUpdate(scheduled_date="2025-12-16T14:30:00-06:00", carrier="FedEx", duration_minutes=None),
    )
    assert updated.scheduled_date == datetime(2025, 12, 16, 20, 30, tzinfo=timezone.utc)
    assert updated.carrier == "FedEx"
    assert updated.duration_minutes == 90
    assert updated.status == ShipmentStatus.SCHEDULED

    pending = await shipment_service.update_shipment(
        pending_order.id, shipment.id, ShipmentUpdate(status=ShipmentStatus.PENDING, scheduled_date=None)
    )
    assert pending.status == ShipmentStatus.PENDING
    assert pending.scheduled_date is None

@pytest.mark.asyncio
async def test_shipment_of_another_order_is_not_found(shipment_service: ShipmentService, order_service: OrderService,
                                                      pending_order: OrderRead, items_by_product: Dict[int, int],
                                                      test_customer: Customer, test_location: Location,
                                                      test_products: List[Product]):
    shipment = await _ship(shipment_service, pending_order.id, items_by_product[test_products[0].id], 1)
    other = await order_service.create_order(
        OrderCreate(customer_id=test_customer.id, location_id=test_location.id,
                    items=[OrderLineCreate(product_id=test_products[2].id, quantity=1)])
    )
    with pytest.raises(ShipmentNotFoundException):
        await shipment_service.get_shipment(other.id, shipment.id)
    with pytest.raises(ShipmentNotFoundException):
        await shipment_service.delete_shipment(other.id, shipment.id)

@pytest.mark.asyncio
async def test_delete_shipment_releases_quantity(shipment_service: ShipmentService, db_session: AsyncSession,
                                                 pending_order: OrderRead, items_by_product: Dict[int, int],
                                                 test_products: List[Product]):
    mulch_item = items_by_product[test_products[0].id]
    shipment = await _ship(shipment_service, pending_order.id, mulch_item, 10)

    await shipment_service.delete_shipment(pending_order.id, shipment.id)
    assert await shipment_service.list_order_shipments(pending_order.id) == []
    again = await _ship(shipment_service, pending_order.id, mulch_item, 10)
    assert again.items[0].quantity == 10

    result = await db_session.execute(
        select(AuditLog.action).where(AuditLog.entity_type == "Shipment").order_by(AuditLog.id)
    )
    assert result.scalars().all() == ["CREATE", "DELETE", "CREATE"]

# --- Planning ---

@pytest.mark.asyncio
async def test_schedule_range_query(shipment_service: ShipmentService, order_service: OrderService,
                                    pending_order: OrderRead, items_by_product: Dict[int, int],
                                    test_customer: Customer, test_location: Location, other_location: Location,
                                    test_products: List[Product]):
    mulch_item = items_by_product[test_products[0].id]
    morning = await _ship(shipment_service, pending_order.id, mulch_item, 1, "2025-12-15T08:00:00Z")
    late = await _ship(shipment_service, pending_order.id, mulch_item, 1, "2025-12-15T23:30:00Z")
    await _ship(shipment_service, pending_order.id, mulch_item, 1, "2025-12-16T00:00:00Z")
    await _ship(shipment_service, pending_order.id, mulch_item, 1)

    dallas_order = await order_service.create_order(
        OrderCreate(customer_id=test_customer.id, location_id=other_location.id,
                    items=[OrderLineCreate(product_id=test_products[1].id, quantity=2)])
    )
    dallas = await _ship(shipment_service, dallas_order.id, dallas_order.items[0].id, 2, "2025-12-15")

    # Une date seule couvre toute la journée UTC
    day = await shipment_service.query_shipments_in_range("2025-12-15", "2025-12-15")
    assert [s.id for s in day] == [dallas.id, morning.id, late.id]

    austin_only = await shipment_service.query_shipments_in_range(
        "2025-12-15", "2025-12-15", location_id=test_location.id
    )
    assert [s.id for s in austin_only] == [morning.id, late.id]

    # 2025-12-15T18:00-06:00 = 2025-12-16T00:00Z, borne incluse
    evening = await shipment_service.query_shipments_in_range(
        "2025-12-15T12:00:00-06:00", "2025-12-15T18:00:00-06:00"
    )
    assert len(evening) == 2
    assert evening[0].id == late.id

@pytest.mark.asyncio
async def test_schedule_range_rejections(shipment_service: ShipmentService):
    with pytest.raises(ValidationException):
        await shipment_service.query_shipments_in_range("2025-12-16", "2025-12-15")
    with pytest.raises(InvalidScheduleDateException):
        await shipment_service.query_shipments_in_range("2025-12-15T08:00", "2025-12-16")
    with pytest.raises(InvalidScheduleDateException):
        await shipment_service.query_shipments_in_range("2025-02-30", "2025-03-01")
