# src/shipments/repositories.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.orders.models import Order
from src.shipments.config import ShipmentStatus
from src.shipments.interfaces.repositories import AbstractShipmentRepository
from src.shipments.models import Shipment, ShipmentItem

logger = logging.getLogger(__name__)


class SQLAlchemyShipmentRepository(AbstractShipmentRepository):
    """Implémentation SQLAlchemy du repository des expéditions. Aucun commit: le service décide."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def committed_quantities(self, order_item_ids: Iterable[int]) -> Dict[int, int]:
        ids = set(order_item_ids)
        if not ids:
            return {}
        stmt = (
            select(ShipmentItem.order_item_id, func.sum(ShipmentItem.quantity))
            .join(Shipment, Shipment.id == ShipmentItem.shipment_id)
            .where(
                ShipmentItem.order_item_id.in_(ids),
                Shipment.status != ShipmentStatus.CANCELLED.value,
            )
            .group_by(ShipmentItem.order_item_id)
        )
        result = await self.db.execute(stmt)
        committed = {item_id: 0 for item_id in ids}
        for item_id, total in result.all():
            committed[item_id] = int(total or 0)
        return committed

    async def get_by_id(self, shipment_id: int) -> Optional[Shipment]:
        stmt = (
            select(Shipment)
            .where(Shipment.id == shipment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_by_order(self, order_id: int) -> List[Shipment]:
        stmt = (
            select(Shipment)
            .where(Shipment.order_id == order_id)
            .order_by(Shipment.id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_with_items(self, shipment_data: Dict[str, Any], items_data: List[Dict[str, Any]]) -> Shipment:
        shipment = Shipment(**shipment_data)
        self.db.add(shipment)
        await self.db.flush()  # Pour obtenir l'ID de l'expédition

        for item in items_data:
            self.db.add(ShipmentItem(shipment_id=shipment.id, **item))
        await self.db.flush()
        logger.debug(f"[ShipmentRepository] Shipment ID {shipment.id} staged with {len(items_data)} items.")
        return shipment

    async def update_if_status(self, shipment_id: int, expected_status: str, values: Dict[str, Any]) -> bool:
        stmt = (
            update(Shipment)
            .where(Shipment.id == shipment_id, Shipment.status == expected_status)
            .values(**values, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def delete_if_status(self, shipment_id: int, expected_status: str) -> bool:
        # Lignes d'abord (clé étrangère); l'appelant annule la transaction si False
        await self.db.execute(
            delete(ShipmentItem)
            .where(ShipmentItem.shipment_id == shipment_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(
            delete(Shipment)
            .where(Shipment.id == shipment_id, Shipment.status == expected_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_in_range(self, start: datetime, end: datetime, location_id: Optional[int] = None) -> List[Shipment]:
        stmt = (
            select(Shipment)
            .join(Order, Order.id == Shipment.order_id)
            .where(
                Shipment.scheduled_date.is_not(None),
                Shipment.scheduled_date >= start,
                Shipment.scheduled_date <= end,
            )
            .order_by(Shipment.scheduled_date, Shipment.id)
            .execution_options(populate_existing=True)
        )
        if location_id is not None:
            stmt = stmt.where(Order.location_id == location_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
