"""
Service des expéditions.

``disponible = commandé − Σ quantités des expéditions non annulées`` pour
chaque ligne de commande. La création verrouille les lignes de commande
concernées (``SELECT … FOR UPDATE``) avant de sommer l'engagé et d'insérer:
deux créations concurrentes sur la même ligne sont sérialisées.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.service import AbstractAuditSink
from src.auth.models import CurrentUser
from src.config import settings
from src.core.exceptions import DomainException, ValidationException
from src.orders.config import OrderStatus
from src.orders.exceptions import OrderNotFoundException
from src.orders.interfaces.repositories import AbstractOrderRepository
from src.shipments.config import (
    ENTITY_TYPE_SHIPMENT,
    IMMUTABLE_SHIPMENT_STATUSES,
    INITIAL_SHIPMENT_STATUSES,
    SHIPMENT_STATUS_TRANSITIONS,
    ShipmentStatus,
)
from src.shipments.exceptions import (
    DuplicateShipmentItemException,
    EmptyShipmentException,
    ForeignOrderItemsException,
    InsufficientAvailableQuantityException,
    InvalidShipmentQuantityException,
    InvalidShipmentStatusTransitionException,
    ShipmentConcurrentModificationException,
    ShipmentImmutableException,
    ShipmentNotFoundException,
    ShipmentOrderClosedException,
)
from src.shipments.interfaces.repositories import AbstractShipmentRepository
from src.shipments.models import (
    AllocationLine,
    Shipment,
    ShipmentCreate,
    ShipmentRead,
    ShipmentUpdate,
)
from src.shipments.utils import normalize_range_end, normalize_range_start, parse_schedule_date

logger = logging.getLogger(__name__)

_IMMUTABLE = {s.value for s in IMMUTABLE_SHIPMENT_STATUSES}


def _user_id(current_user: Optional[CurrentUser]) -> Optional[int]:
    return current_user.user_id if current_user is not None else None


class ShipmentService:
    def __init__(self,
                 db: AsyncSession,
                 shipment_repository: AbstractShipmentRepository,
                 order_repository: AbstractOrderRepository,
                 audit_logger: AbstractAuditSink):
        self.db = db
        self.shipment_repository = shipment_repository
        self.order_repository = order_repository
        self.audit_logger = audit_logger

    # --- Lecture ---

    async def _get_owned_shipment(self, order_id: int, shipment_id: int) -> Shipment:
        shipment = await self.shipment_repository.get_by_id(shipment_id)
        # Une expédition d'une autre commande est traitée comme inexistante
        if shipment is None or shipment.order_id != order_id:
            raise ShipmentNotFoundException(shipment_id, order_id)
        return shipment

    async def get_shipment(self, order_id: int, shipment_id: int) -> ShipmentRead:
        return ShipmentRead.model_validate(await self._get_owned_shipment(order_id, shipment_id))

    async def list_order_shipments(self, order_id: int) -> List[ShipmentRead]:
        if await self.order_repository.get_by_id(order_id) is None:
            raise OrderNotFoundException(order_id)
        shipments = await self.shipment_repository.list_by_order(order_id)
        return [ShipmentRead.model_validate(s) for s in shipments]

    async def get_allocation(self, order_id: int) -> List[AllocationLine]:
        """Reste à expédier, ligne par ligne."""
        order = await self.order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        committed = await self.shipment_repository.committed_quantities(item.id for item in order.items)
        return [
            AllocationLine(
                order_item_id=item.id,
                product_id=item.product_id,
                ordered=item.quantity,
                shipped=committed.get(item.id, 0),
                available=item.quantity - committed.get(item.id, 0),
            )
            for item in order.items
        ]

    async def query_shipments_in_range(self, start: str, end: str,
                                       location_id: Optional[int] = None) -> List[ShipmentRead]:
        """Expéditions planifiées entre ``start`` et ``end`` inclus, éventuellement pour un seul site."""
        range_start = normalize_range_start(start)
        range_end = normalize_range_end(end)
        if range_start > range_end:
            raise ValidationException(
                f"Invalid range: start {range_start.isoformat()} is after end {range_end.isoformat()}",
                details={"start": start, "end": end},
            )
        shipments = await self.shipment_repository.list_in_range(range_start, range_end, location_id)
        logger.debug(f"[ShipmentService] {len(shipments)} expédition(s) entre {range_start} et {range_end} (site {location_id}).")
        return [ShipmentRead.model_validate(s) for s in shipments]

    # --- Création ---

    async def create_shipment(self, order_id: int, data: ShipmentCreate,
                              current_user: Optional[CurrentUser] = None) -> ShipmentRead:
        try:
            order = await self.order_repository.get_by_id(order_id)
            if order is None:
                raise OrderNotFoundException(order_id)
            if order.status == OrderStatus.CANCELLED.value:
                raise ShipmentOrderClosedException(order_id, order.status)
            if not data.items:
                raise EmptyShipmentException()
            if data.status not in INITIAL_SHIPMENT_STATUSES:
                raise ValidationException(
                    f"A new shipment must be PENDING or SCHEDULED (got {data.status.value})"
                )

            scheduled_date = parse_schedule_date(data.scheduled_date) if data.scheduled_date else None
            requested = self._validate_requested_items(data)

            # Verrou sur les lignes: l'engagé relu ci-dessous ne peut plus bouger avant le commit
            order_items = {item.id: item for item in await self.order_repository.get_items_for_update(order_id)}
            foreign = [item_id for item_id in requested if item_id not in order_items]
            if foreign:
                raise ForeignOrderItemsException(order_id, foreign)

            committed = await self.shipment_repository.committed_quantities(requested.keys())
            for item_id, quantity in requested.items():
                ordered = order_items[item_id].quantity
                shipped = committed.get(item_id, 0)
                available = ordered - shipped
                if quantity > available:
                    raise InsufficientAvailableQuantityException(item_id, quantity, max(available, 0), ordered, shipped)

            shipment = await self.shipment_repository.create_with_items(
                {
                    "order_id": order_id,
                    "status": data.status.value,
                    "scheduled_date": scheduled_date,
                    "duration_minutes": data.duration_minutes or settings.SHIPMENT_DEFAULT_DURATION_MINUTES,
                    "method": data.method or settings.SHIPMENT_DEFAULT_METHOD,
                    "carrier": data.carrier,
                    "tracking_number": data.tracking_number,
                    "notes": data.notes,
                    "created_by": _user_id(current_user),
                },
                [{"order_item_id": item_id, "quantity": quantity} for item_id, quantity in requested.items()],
            )
            shipment_id = shipment.id
            await self.db.commit()
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[ShipmentService] Création expédition refusée (commande {order_id}): {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        shipment_read = await self.get_shipment(order_id, shipment_id)
        logger.info(f"[ShipmentService] Expédition {shipment_id} créée pour la commande {order_id} ({len(requested)} ligne(s)).")
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_SHIPMENT,
            entity_id=shipment_id,
            action="CREATE",
            user_id=_user_id(current_user),
            changes={"order_id": order_id, "items": [i.model_dump() for i in shipment_read.items]},
        )
        return shipment_read

    @staticmethod
    def _validate_requested_items(data: ShipmentCreate) -> Dict[int, int]:
        requested: Dict[int, int] = {}
        for item in data.items:
            if item.order_item_id in requested:
                raise DuplicateShipmentItemException(item.order_item_id)
            if item.quantity <= 0:
                raise InvalidShipmentQuantityException(item.order_item_id, item.quantity)
            requested[item.order_item_id] = item.quantity
        return requested

    # --- Mise à jour ---

    async def update_shipment(self, order_id: int, shipment_id: int, data: ShipmentUpdate,
                              current_user: Optional[CurrentUser] = None) -> ShipmentRead:
        """Métadonnées uniquement; les quantités d'une expédition ne se modifient pas."""
        try:
            shipment = await self._get_owned_shipment(order_id, shipment_id)
            if shipment.status in _IMMUTABLE:
                raise ShipmentImmutableException(shipment_id, shipment.status, action="edit")

            values: Dict[str, Any] = data.model_dump(exclude_unset=True)
            if "scheduled_date" in values:
                values["scheduled_date"] = (
                    parse_schedule_date(values["scheduled_date"]) if values["scheduled_date"] else None
                )
            if values.get("status") is not None:
                new_status = ShipmentStatus(values["status"])
                if new_status.value != shipment.status:
                    self._check_transition(shipment, new_status)
                values["status"] = new_status.value
            else:
                values.pop("status", None)
            for field in ("duration_minutes", "method"):
                if field in values and values[field] is None:
                    values.pop(field)

            previous_status = shipment.status
            if values:
                matched = await self.shipment_repository.update_if_status(shipment_id, previous_status, values)
                if not matched:
                    raise await self._stale_write_error(order_id, shipment_id, "edit")
            await self.db.commit()
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[ShipmentService] Modification expédition {shipment_id} refusée: {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        shipment_read = await self.get_shipment(order_id, shipment_id)
        if values:
            logger.info(f"[ShipmentService] Expédition {shipment_id} modifiée ({', '.join(sorted(values))}).")
            await self.audit_logger.log_activity(
                entity_type=ENTITY_TYPE_SHIPMENT,
                entity_id=shipment_id,
                action="UPDATE",
                user_id=_user_id(current_user),
                changes=values,
            )
        return shipment_read

    async def transition_shipment(self, order_id: int, shipment_id: int, new_status: ShipmentStatus,
                                  current_user: Optional[CurrentUser] = None) -> ShipmentRead:
        """Changement de statut seul; seule voie pour passer de SHIPPED à DELIVERED."""
        new_status = ShipmentStatus(new_status)
        try:
            shipment = await self._get_owned_shipment(order_id, shipment_id)
            previous_status = shipment.status
            self._check_transition(shipment, new_status)
            matched = await self.shipment_repository.update_if_status(
                shipment_id, previous_status, {"status": new_status.value}
            )
            if not matched:
                raise await self._stale_write_error(order_id, shipment_id, "change")
            await self.db.commit()
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[ShipmentService] Transition expédition {shipment_id} refusée: {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"[ShipmentService] Expédition {shipment_id}: {previous_status} -> {new_status.value}.")
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_SHIPMENT,
            entity_id=shipment_id,
            action="STATUS_CHANGE",
            user_id=_user_id(current_user),
            changes={"status": {"from": previous_status, "to": new_status.value}},
        )
        return await self.get_shipment(order_id, shipment_id)

    @staticmethod
    def _check_transition(shipment: Shipment, new_status: ShipmentStatus) -> None:
        current = ShipmentStatus(shipment.status)
        allowed = SHIPMENT_STATUS_TRANSITIONS[current]
        if new_status not in allowed:
            raise InvalidShipmentStatusTransitionException(
                shipment.id, current.value, new_status.value, [s.value for s in allowed]
            )

    async def _stale_write_error(self, order_id: int, shipment_id: int, action: str) -> DomainException:
        """Le statut a changé entre la lecture et l'écriture: relit pour nommer la cause."""
        await self.db.rollback()
        current = await self.shipment_repository.get_by_id(shipment_id)
        if current is None or current.order_id != order_id:
            return ShipmentNotFoundException(shipment_id, order_id)
        if current.status in _IMMUTABLE:
            return ShipmentImmutableException(shipment_id, current.status, action=action)
        return ShipmentConcurrentModificationException(shipment_id)

    # --- Suppression ---

    async def delete_shipment(self, order_id: int, shipment_id: int,
                              current_user: Optional[CurrentUser] = None) -> None:
        try:
            shipment = await self._get_owned_shipment(order_id, shipment_id)
            if shipment.status in _IMMUTABLE:
                raise ShipmentImmutableException(shipment_id, shipment.status, action="delete")
            deleted = await self.shipment_repository.delete_if_status(shipment_id, shipment.status)
            if not deleted:
                raise await self._stale_write_error(order_id, shipment_id, "delete")
            await self.db.commit()
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[ShipmentService] Suppression expédition {shipment_id} refusée: {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"[ShipmentService] Expédition {shipment_id} supprimée (commande {order_id}).")
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_SHIPMENT,
            entity_id=shipment_id,
            action="DELETE",
            user_id=_user_id(current_user),
            changes={"order_id": order_id},
        )
