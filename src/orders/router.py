import logging

from fastapi import APIRouter, status

from src.auth.dependencies import CurrentUserDep
from src.core.errors import to_http_exception
from src.orders.dependencies import OrderServiceDep
from src.orders.models import OrderCreate, OrderEdit, OrderRead, OrderStatusUpdate

logger = logging.getLogger(__name__)

order_router = APIRouter(
    prefix="/orders",
    tags=["Orders"],
)

@order_router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def create_order_endpoint(
    service: OrderServiceDep,
    current_user: CurrentUserDep,
    order_data: OrderCreate,
):
    """Crée une commande aux prix catalogue courants."""
    try:
        return await service.create_order(order_data, current_user=current_user)
    except Exception as e:
        raise to_http_exception(e, f"create_order user={current_user.user_id}")

@order_router.get("/{order_id}", response_model=OrderRead)
async def get_order_endpoint(
    service: OrderServiceDep,
    current_user: CurrentUserDep,
    order_id: int,
):
    """Détail d'une commande, avec sa version courante."""
    try:
        return await service.get_order(order_id)
    except Exception as e:
        raise to_http_exception(e, f"get_order id={order_id}")

@order_router.patch("/{order_id}", response_model=OrderRead)
async def update_order_endpoint(
    service: OrderServiceDep,
    current_user: CurrentUserDep,
    order_id: int,
    edit: OrderEdit,
):
    """
    Remplace les lignes d'une commande en attente.

    ``expected_version`` doit être la version lue par le client; une version
    périmée renvoie 409 et rien n'est écrit.
    """
    try:
        return await service.update_order(order_id, edit, current_user=current_user)
    except Exception as e:
        raise to_http_exception(e, f"update_order id={order_id} expected_version={edit.expected_version}")

@order_router.post("/{order_id}/status", response_model=OrderRead)
async def change_order_status_endpoint(
    service: OrderServiceDep,
    current_user: CurrentUserDep,
    order_id: int,
    status_update: OrderStatusUpdate,
):
    try:
        return await service.change_order_status(
            order_id,
            status_update.status,
            expected_version=status_update.expected_version,
            current_user=current_user,
        )
    except Exception as e:
        raise to_http_exception(e, f"change_order_status id={order_id} -> {status_update.status.value}")
