# src/orders/repositories.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.orders.interfaces.repositories import AbstractOrderRepository
from src.orders.models import Order, OrderItem
from src.pricing.lines import OrderEditPlan
from src.shipments.models import ShipmentItem

logger = logging.getLogger(__name__)


class SQLAlchemyOrderRepository(AbstractOrderRepository):
    """Implémentation SQLAlchemy du repository des commandes. Aucun commit: le service décide."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        logger.debug(f"[OrderRepository] Getting order by ID: {order_id}")
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            # Les UPDATE conditionnels contournent l'identity map: on relit toujours la base
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        order = result.scalars().first()
        if order is None:
            logger.warning(f"[OrderRepository] Order not found by ID: {order_id}")
        return order

    async def create_order_with_items(
        self,
        order_data: Dict[str, Any],
        items_data: List[Dict[str, Any]]
    ) -> Order:
        logger.debug(f"[OrderRepository] Creating order {order_data.get('order_number')}")
        order = Order(**order_data)
        self.db.add(order)
        await self.db.flush()  # Pour obtenir l'ID de la commande créée

        for item in items_data:
            self.db.add(OrderItem(order_id=order.id, **item))
        await self.db.flush()

        logger.debug(f"[OrderRepository] Order ID {order.id} staged with {len(items_data)} items.")
        return order

    async def apply_versioned_update(
        self,
        order_id: int,
        expected_version: Optional[int],
        values: Dict[str, Any],
        expected_status: Optional[str] = None
    ) -> bool:
        stmt = update(Order).where(Order.id == order_id)
        if expected_version is not None:
            stmt = stmt.where(Order.version == expected_version)
        if expected_status is not None:
            stmt = stmt.where(Order.status == expected_status)
        stmt = (
            stmt.values(
                **values,
                version=Order.version + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        matched = result.rowcount == 1
        logger.debug(
            f"[OrderRepository] Versioned update order {order_id} "
            f"(expected={expected_version}): {'ok' if matched else 'no row matched'}"
        )
        return matched

    async def apply_line_changes(self, order_id: int, plan: OrderEditPlan) -> None:
        for line in plan.kept:
            stored = line.to_storage()
            await self.db.execute(
                update(OrderItem)
                .where(OrderItem.id == line.order_item_id, OrderItem.order_id == order_id)
                .values(quantity=stored["quantity"], subtotal=stored["subtotal"])
                .execution_options(synchronize_session=False)
            )

        if plan.removed_item_ids:
            # Seules des expéditions annulées peuvent encore référencer une ligne retirée
            await self.db.execute(
                delete(ShipmentItem)
                .where(ShipmentItem.order_item_id.in_(plan.removed_item_ids))
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(
                delete(OrderItem)
                .where(OrderItem.id.in_(plan.removed_item_ids), OrderItem.order_id == order_id)
                .execution_options(synchronize_session=False)
            )

        for line in plan.added:
            self.db.add(OrderItem(order_id=order_id, **line.to_storage()))
        await self.db.flush()

    async def get_items_for_update(self, order_id: int) -> List[OrderItem]:
        stmt = (
            select(OrderItem)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
