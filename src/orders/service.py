import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.service import AbstractAuditSink
from src.auth.models import CurrentUser
from src.core.currency import sum_money
from src.core.exceptions import DomainException
from src.customers.repositories import SQLAlchemyCustomerRepository
from src.locations.repositories import SQLAlchemyLocationRepository, effective_tax_rate
from src.numbering.config import EntityType
from src.numbering.service import EntityNumberGenerator
from src.orders.config import (
    EDITABLE_ORDER_STATUSES,
    ENTITY_TYPE_ORDER,
    ORDER_STATUS_TRANSITIONS,
    OrderStatus,
)
from src.orders.exceptions import (
    InvalidOrderStatusTransitionException,
    OrderNotEditableException,
    OrderNotFoundException,
    OrderVersionConflictException,
    ShippedQuantityExceededException,
)
from src.orders.interfaces.repositories import AbstractOrderRepository
from src.orders.models import Order, OrderCreate, OrderEdit, OrderRead
from src.pricing.exceptions import EmptyCartException
from src.pricing.lines import OrderEditPlan, ensure_unique_products, plan_order_edit, price_new_line
from src.pricing.totals import compute_order_totals, resolve_delivery_fee
from src.products.exceptions import ProductNotFoundException
from src.products.repositories import SQLAlchemyProductRepository
from src.shipments.interfaces.repositories import AbstractShipmentRepository

logger = logging.getLogger(__name__)


def _user_id(current_user: Optional[CurrentUser]) -> Optional[int]:
    return current_user.user_id if current_user is not None else None


class OrderService:
    """
    Service applicatif des commandes.

    Chaque opération de mutation s'exécute dans la transaction de la session
    injectée et se termine par un unique commit (ou un rollback complet).
    L'audit est appelé après le commit.
    """

    def __init__(self,
                 db: AsyncSession,
                 order_repository: AbstractOrderRepository,
                 shipment_repository: AbstractShipmentRepository,
                 product_repository: SQLAlchemyProductRepository,
                 customer_repository: SQLAlchemyCustomerRepository,
                 location_repository: SQLAlchemyLocationRepository,
                 number_generator: EntityNumberGenerator,
                 audit_logger: AbstractAuditSink):
        self.db = db
        self.order_repository = order_repository
        self.shipment_repository = shipment_repository
        self.product_repository = product_repository
        self.customer_repository = customer_repository
        self.location_repository = location_repository
        self.number_generator = number_generator
        self.audit_logger = audit_logger

    # --- GET ---

    async def get_order(self, order_id: int) -> OrderRead:
        order = await self.order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        return OrderRead.model_validate(order)

    async def _get_order_or_raise(self, order_id: int) -> Order:
        order = await self.order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    # --- CREATE ---

    async def create_order(self, order_data: OrderCreate, current_user: Optional[CurrentUser] = None) -> OrderRead:
        """Saisie directe d'une commande, tarifée comme un devis (prix catalogue courant)."""
        logger.info(f"[OrderService] Création commande client {order_data.customer_id}, site {order_data.location_id}")
        if not order_data.items:
            raise EmptyCartException()
        ensure_unique_products(order_data.items)

        try:
            customer = await self.customer_repository.get_or_raise(order_data.customer_id)
            location = await self.location_repository.get_or_raise(order_data.location_id)

            products = await self.product_repository.find_active(item.product_id for item in order_data.items)
            missing = [item.product_id for item in order_data.items if item.product_id not in products]
            if missing:
                raise ProductNotFoundException(missing)

            lines = [
                price_new_line(item.product_id, products[item.product_id].base_price, item.quantity, item.discount)
                for item in order_data.items
            ]
            delivery_fee = resolve_delivery_fee(
                bool(order_data.delivery_address), sum_money(line.subtotal for line in lines)
            )
            totals = compute_order_totals(
                lines,
                customer_tax_exempt=customer.tax_exempt,
                tax_rate=effective_tax_rate(location),
                delivery_fee=delivery_fee,
                discount_amount=order_data.discount_amount,
            )

            order_number = await self.number_generator.generate(EntityType.ORDER)
            order = await self.order_repository.create_order_with_items(
                {
                    "order_number": order_number,
                    "customer_id": customer.id,
                    "location_id": location.id,
                    "status": OrderStatus.PENDING.value,
                    "delivery_address": order_data.delivery_address,
                    "created_by": _user_id(current_user),
                    **totals.to_storage(),
                },
                [line.to_storage() for line in lines],
            )
            order_id = order.id
            await self.db.commit()
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[OrderService] Création commande refusée: {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        order_read = await self.get_order(order_id)
        logger.info(f"[OrderService] Commande {order_read.order_number} (ID {order_id}) créée, total {order_read.total_amount}.")
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_ORDER,
            entity_id=order_id,
            action="CREATE",
            user_id=_user_id(current_user),
            changes={"order_number": order_read.order_number, "total_amount": order_read.total_amount},
        )
        return order_read

    # --- UPDATE (lignes, concurrence optimiste) ---

    async def update_order(self, order_id: int, edit: OrderEdit,
                           current_user: Optional[CurrentUser] = None) -> OrderRead:
        """
        Remplace le panier d'une commande en attente.

        Ordre des contrôles: existence, statut modifiable, version attendue,
        validation du panier, quantités déjà engagées en expédition. Les lignes
        existantes sont verrouillées (FOR UPDATE) avant la lecture de l'engagé,
        comme à la création d'une expédition: les deux opérations se
        sérialisent. L'écriture est un UPDATE conditionnel unique sur
        (id, version, statut); les lignes ne sont modifiées qu'après son
        succès, dans la même transaction.
        """
        try:
            order = await self._get_order_or_raise(order_id)
            if order.status not in {s.value for s in EDITABLE_ORDER_STATUSES}:
                raise OrderNotEditableException(order_id, order.status)
            if edit.expected_version is not None and edit.expected_version != order.version:
                raise OrderVersionConflictException(order_id, edit.expected_version, order.version)

            read_version = order.version
            plan = await self._plan_edit(order, edit)

            customer = await self.customer_repository.get_or_raise(order.customer_id)
            location = await self.location_repository.get_or_raise(order.location_id)
            # Frais de livraison et remise globale repris tels qu'enregistrés
            totals = compute_order_totals(
                plan.lines,
                customer_tax_exempt=customer.tax_exempt,
                tax_rate=effective_tax_rate(location),
                delivery_fee=order.delivery_fee,
                discount_amount=order.discount_amount,
            )

            values: Dict[str, Any] = totals.to_storage()
            if "delivery_address" in edit.model_fields_set:
                values["delivery_address"] = edit.delivery_address

            matched = await self.order_repository.apply_versioned_update(
                order_id, edit.expected_version, values, expected_status=order.status
            )
            if not matched:
                raise await self._stale_write_error(order_id, edit.expected_version, read_version, editing=True)

            await self.order_repository.apply_line_changes(order_id, plan)
            await self.db.commit()
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[OrderService] Édition commande {order_id} refusée: {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        order_read = await self.get_order(order_id)
        logger.info(f"[OrderService] Commande {order_id} modifiée, version {read_version} -> {order_read.version}.")
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_ORDER,
            entity_id=order_id,
            action="UPDATE",
            user_id=_user_id(current_user),
            changes={
                "version": {"from": read_version, "to": order_read.version},
                "items": [{"product_id": i.product_id, "quantity": i.quantity} for i in order_read.items],
                "removed_item_ids": plan.removed_item_ids,
                "total_amount": order_read.total_amount,
            },
        )
        return order_read

    async def _plan_edit(self, order: Order, edit: OrderEdit) -> OrderEditPlan:
        ensure_unique_products(edit.items)
        # Mêmes verrous que la création d'expédition: l'engagé lu plus bas reste valable jusqu'au commit
        existing_items = await self.order_repository.get_items_for_update(order.id)
        existing_products = {item.product_id for item in existing_items}
        new_product_ids = [item.product_id for item in edit.items if item.product_id not in existing_products]
        catalog = await self.product_repository.find_active(new_product_ids)
        catalog_prices = {product_id: product.base_price for product_id, product in catalog.items()}

        plan = plan_order_edit(existing_items, edit.items, catalog_prices)

        committed = await self.shipment_repository.committed_quantities(item.id for item in existing_items)
        for line in plan.kept:
            already = committed.get(line.order_item_id, 0)
            if line.quantity < already:
                raise ShippedQuantityExceededException(line.product_id, line.quantity, already)
        items_by_id = {item.id: item for item in existing_items}
        for item_id in plan.removed_item_ids:
            already = committed.get(item_id, 0)
            if already > 0:
                raise ShippedQuantityExceededException(items_by_id[item_id].product_id, 0, already)
        return plan

    async def _stale_write_error(self, order_id: int, expected_version: Optional[int],
                                 read_version: int, editing: bool) -> DomainException:
        """Relit la commande après un UPDATE conditionnel sans effet pour nommer la cause."""
        await self.db.rollback()
        current = await self.order_repository.get_by_id(order_id)
        if current is None:
            return OrderNotFoundException(order_id)
        if editing and current.status not in {s.value for s in EDITABLE_ORDER_STATUSES}:
            return OrderNotEditableException(order_id, current.status)
        expected = expected_version if expected_version is not None else read_version
        return OrderVersionConflictException(order_id, expected, current.version)

    # --- STATUT ---

    async def change_order_status(self, order_id: int, new_status: OrderStatus,
                                  expected_version: Optional[int] = None,
                                  current_user: Optional[CurrentUser] = None) -> OrderRead:
        new_status = OrderStatus(new_status)
        try:
            order = await self._get_order_or_raise(order_id)
            current_status = OrderStatus(order.status)
            allowed = ORDER_STATUS_TRANSITIONS[current_status]
            if new_status not in allowed:
                raise InvalidOrderStatusTransitionException(
                    order_id, current_status.value, new_status.value, [s.value for s in allowed]
                )
            if expected_version is not None and expected_version != order.version:
                raise OrderVersionConflictException(order_id, expected_version, order.version)

            read_version = order.version
            matched = await self.order_repository.apply_versioned_update(
                order_id, expected_version, {"status": new_status.value}, expected_status=current_status.value
            )
            if not matched:
                raise await self._stale_write_error(order_id, expected_version, read_version, editing=False)
            await self.db.commit()
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[OrderService] Changement de statut commande {order_id} refusé: {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        order_read = await self.get_order(order_id)
        logger.info(f"[OrderService] Commande {order_id}: {current_status.value} -> {new_status.value} (version {order_read.version}).")
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_ORDER,
            entity_id=order_id,
            action="STATUS_CHANGE",
            user_id=_user_id(current_user),
            changes={"status": {"from": current_status.value, "to": new_status.value}},
        )
        return order_read

