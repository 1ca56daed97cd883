import logging
from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from src.auth.dependencies import CurrentUserDep
from src.core.errors import to_http_exception
from src.shipments.dependencies import ShipmentServiceDep
from src.shipments.models import (
    AllocationLine,
    ShipmentCreate,
    ShipmentRead,
    ShipmentStatusUpdate,
    ShipmentUpdate,
)

logger = logging.getLogger(__name__)

# Expéditions d'une commande
order_shipment_router = APIRouter(
    prefix="/orders/{order_id}/shipments",
    tags=["Shipments"],
)

# Vue planning, tous sites ou un site
schedule_router = APIRouter(
    prefix="/shipments",
    tags=["Shipments"],
)

@order_shipment_router.get("", response_model=List[ShipmentRead])
async def list_order_shipments_endpoint(
    service: ShipmentServiceDep,
    current_user: CurrentUserDep,
    order_id: int,
):
    try:
        return await service.list_order_shipments(order_id)
    except Exception as e:
        raise to_http_exception(e, f"list_shipments order={order_id}")

# Déclarée avant les routes /{shipment_id}
@order_shipment_router.get("/allocation", response_model=List[AllocationLine])
async def get_allocation_endpoint(
    service: ShipmentServiceDep,
    current_user: CurrentUserDep,
    order_id: int,
):
    """Quantités commandées, engagées et restant à expédier par ligne."""
    try:
        return await service.get_allocation(order_id)
    except Exception as e:
        raise to_http_exception(e, f"get_allocation order={order_id}")

@order_shipment_router.post("", response_model=ShipmentRead, status_code=status.HTTP_201_CREATED)
async def create_shipment_endpoint(
    service: ShipmentServiceDep,
    current_user: CurrentUserDep,
    order_id: int,
    data: ShipmentCreate,
):
    try:
        return await service.create_shipment(order_id, data, current_user=current_user)
    except Exception as e:
        raise to_http_exception(e, f"create_shipment order={order_id}")

@order_shipment_router.put("/{shipment_id}", response_model=ShipmentRead)
async def update_shipment_endpoint(
    service: ShipmentServiceDep,
    current_user: CurrentUserDep,
    order_id: int,
    shipment_id: int,
    data: ShipmentUpdate,
):
    """Planification, transporteur, suivi, statut. Refusé pour une expédition SHIPPED ou DELIVERED."""
    try:
        return await service.update_shipment(order_id, shipment_id, data, current_user=current_user)
    except Exception as e:
        raise to_http_exception(e, f"update_shipment order={order_id} shipment={shipment_id}")

@order_shipment_router.post("/{shipment_id}/status", response_model=ShipmentRead)
async def transition_shipment_endpoint(
    service: ShipmentServiceDep,
    current_user: CurrentUserDep,
    order_id: int,
    shipment_id: int,
    data: ShipmentStatusUpdate,
):
    try:
        return await service.transition_shipment(order_id, shipment_id, data.status, current_user=current_user)
    except Exception as e:
        raise to_http_exception(e, f"transition_shipment order={order_id} shipment={shipment_id} -> {data.status.value}")

@order_shipment_router.delete("/{shipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shipment_endpoint(
    service: ShipmentServiceDep,
    current_user: CurrentUserDep,
    order_id: int,
    shipment_id: int,
):
    try:
        await service.delete_shipment(order_id, shipment_id, current_user=current_user)
    except Exception as e:
        raise to_http_exception(e, f"delete_shipment order={order_id} shipment={shipment_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@schedule_router.get("/schedule", response_model=List[ShipmentRead])
async def shipment_schedule_endpoint(
    service: ShipmentServiceDep,
    current_user: CurrentUserDep,
    start: str = Query(..., description="YYYY-MM-DD ou date-heure ISO 8601 avec fuseau"),
    end: str = Query(..., description="YYYY-MM-DD ou date-heure ISO 8601 avec fuseau, incluse"),
    location_id: Optional[int] = Query(default=None),
):
    try:
        return await service.query_shipments_in_range(start, end, location_id)
    except Exception as e:
        raise to_http_exception(e, f"shipment_schedule {start}..{end} location={location_id}")
