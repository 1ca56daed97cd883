import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.service import AbstractAuditSink
from src.auth.models import CurrentUser
from src.config import settings
from src.core.currency import sum_money
from src.core.exceptions import DomainException
from src.customers.repositories import SQLAlchemyCustomerRepository
from src.locations.repositories import SQLAlchemyLocationRepository, effective_tax_rate
from src.numbering.config import EntityType
from src.numbering.service import EntityNumberGenerator
from src.orders.config import ENTITY_TYPE_ORDER, OrderStatus
from src.orders.interfaces.repositories import AbstractOrderRepository
from src.orders.models import OrderRead
from src.pricing.config import DEFAULT_BULK_TIERS
from src.pricing.exceptions import EmptyCartException
from src.pricing.lines import ensure_unique_products, price_new_line
from src.pricing.totals import compute_order_totals, resolve_delivery_fee
from src.products.exceptions import ProductNotFoundException
from src.products.repositories import SQLAlchemyProductRepository
from src.quotes.config import ENTITY_TYPE_QUOTE, NON_CONVERTIBLE_QUOTE_STATUSES, QuoteStatus
from src.quotes.exceptions import (
    QuoteAlreadyConvertedException,
    QuoteNotConvertibleException,
    QuoteNotFoundException,
    QuoteValidityExpiredException,
)
from src.quotes.interfaces.repositories import AbstractQuoteRepository
from src.quotes.models import Quote, QuoteCreate, QuoteRead

logger = logging.getLogger(__name__)


def _user_id(current_user: Optional[CurrentUser]) -> Optional[int]:
    return current_user.user_id if current_user is not None else None


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class QuoteService:
    """Service applicatif pour la gestion des devis et leur conversion en commande."""

    def __init__(self,
                 db: AsyncSession,
                 quote_repository: AbstractQuoteRepository,
                 order_repository: AbstractOrderRepository,
                 product_repository: SQLAlchemyProductRepository,
                 customer_repository: SQLAlchemyCustomerRepository,
                 location_repository: SQLAlchemyLocationRepository,
                 number_generator: EntityNumberGenerator,
                 audit_logger: AbstractAuditSink,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.db = db
        self.quote_repository = quote_repository
        self.order_repository = order_repository
        self.product_repository = product_repository
        self.customer_repository = customer_repository
        self.location_repository = location_repository
        self.number_generator = number_generator
        self.audit_logger = audit_logger
        self.clock = clock

    async def get_quote(self, quote_id: int) -> QuoteRead:
        quote = await self.quote_repository.get_by_id(quote_id)
        if quote is None:
            logger.warning(f"[QuoteService] Devis ID {quote_id} non trouvé.")
            raise QuoteNotFoundException(quote_id)
        return QuoteRead.model_validate(quote)

    async def create_quote(self, quote_data: QuoteCreate, current_user: Optional[CurrentUser] = None) -> QuoteRead:
        """
        Tarifie le panier au prix catalogue courant (paliers de volume si
        demandés), applique taxe du site, exonération du client et frais de
        livraison, puis numérote le devis.
        """
        logger.info(f"[QuoteService] Création devis client {quote_data.customer_id}, site {quote_data.location_id}")
        if not quote_data.items:
            raise EmptyCartException()
        ensure_unique_products(quote_data.items)

        try:
            customer = await self.customer_repository.get_or_raise(quote_data.customer_id)
            location = await self.location_repository.get_or_raise(quote_data.location_id)

            products = await self.product_repository.find_active(item.product_id for item in quote_data.items)
            missing = [item.product_id for item in quote_data.items if item.product_id not in products]
            if missing:
                raise ProductNotFoundException(missing)

            tiers = DEFAULT_BULK_TIERS if quote_data.apply_bulk_discount else None
            lines = [
                price_new_line(item.product_id, products[item.product_id].base_price,
                               item.quantity, item.discount, tiers=tiers)
                for item in quote_data.items
            ]
            delivery_fee = resolve_delivery_fee(
                bool(quote_data.delivery_address), sum_money(line.subtotal for line in lines)
            )
            totals = compute_order_totals(
                lines,
                customer_tax_exempt=customer.tax_exempt,
                tax_rate=effective_tax_rate(location),
                delivery_fee=delivery_fee,
                discount_amount=quote_data.discount_amount,
            )

            validity_days = quote_data.validity_days or settings.QUOTE_VALIDITY_DAYS
            quote_number = await self.number_generator.generate(EntityType.QUOTE)
            quote = await self.quote_repository.create_with_items(
                {
                    "quote_number": quote_number,
                    "customer_id": customer.id,
                    "location_id": location.id,
                    "status": QuoteStatus.DRAFT.value,
                    "delivery_address": quote_data.delivery_address,
                    "notes": quote_data.notes,
                    "valid_until": self.clock() + timedelta(days=validity_days),
                    "created_by": _user_id(current_user),
                    **totals.to_storage(),
                },
                [line.to_storage() for line in lines],
            )
            quote_id = quote.id
            await self.db.commit()
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[QuoteService] Création devis refusée: {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        quote_read = await self.get_quote(quote_id)
        logger.info(f"[QuoteService] Devis {quote_read.quote_number} (ID {quote_id}) créé, total {quote_read.total_amount}.")
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_QUOTE,
            entity_id=quote_id,
            action="CREATE",
            user_id=_user_id(current_user),
            changes={"quote_number": quote_read.quote_number, "total_amount": quote_read.total_amount},
        )
        return quote_read

    def _ensure_convertible(self, quote: Quote) -> None:
        if quote.converted_to_order_id is not None:
            raise QuoteAlreadyConvertedException(quote.id, quote.converted_to_order_id)
        if quote.status in {s.value for s in NON_CONVERTIBLE_QUOTE_STATUSES}:
            raise QuoteNotConvertibleException(quote.id, quote.status)
        if quote.valid_until is not None and self.clock() > _as_utc(quote.valid_until):
            raise QuoteValidityExpiredException(quote.id, _as_utc(quote.valid_until))

    async def convert_quote_to_order(self, quote_id: int, current_user: Optional[CurrentUser] = None) -> OrderRead:
        """
        Crée une commande en recopiant les prix et totaux figés du devis.
        Le devis passe à ACCEPTED et référence la commande créée.
        """
        try:
            quote = await self.quote_repository.get_by_id(quote_id)
            if quote is None:
                raise QuoteNotFoundException(quote_id)
            self._ensure_convertible(quote)

            order_number = await self.number_generator.generate(EntityType.ORDER)
            order = await self.order_repository.create_order_with_items(
                {
                    "order_number": order_number,
                    "customer_id": quote.customer_id,
                    "location_id": quote.location_id,
                    "quote_id": quote.id,
                    "status": OrderStatus.PENDING.value,
                    "subtotal": quote.subtotal,
                    "line_discount_total": quote.line_discount_total,
                    "discount_amount": quote.discount_amount,
                    "tax_amount": quote.tax_amount,
                    "delivery_fee": quote.delivery_fee,
                    "total_amount": quote.total_amount,
                    "delivery_address": quote.delivery_address,
                    "created_by": _user_id(current_user),
                },
                [
                    {
                        "product_id": item.product_id,
                        "quantity": item.quantity,
                        "unit_price": item.unit_price,
                        "discount": item.discount,
                        "subtotal": item.subtotal,
                    }
                    for item in quote.items
                ],
            )
            order_id = order.id

            # Conditionnel: une conversion concurrente du même devis échoue ici
            if not await self.quote_repository.mark_converted(quote_id, order_id, QuoteStatus.ACCEPTED.value):
                await self.db.rollback()
                current = await self.quote_repository.get_by_id(quote_id)
                raise QuoteAlreadyConvertedException(quote_id, current.converted_to_order_id if current else order_id)
            await self.db.commit()
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[QuoteService] Conversion devis {quote_id} refusée: {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        order = await self.order_repository.get_by_id(order_id)
        order_read = OrderRead.model_validate(order)
        logger.info(f"[QuoteService] Devis {quote_id} converti en commande {order_read.order_number} (ID {order_id}).")
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_QUOTE,
            entity_id=quote_id,
            action="CONVERT",
            user_id=_user_id(current_user),
            changes={"order_id": order_id, "order_number": order_read.order_number},
        )
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_ORDER,
            entity_id=order_id,
            action="CREATE",
            user_id=_user_id(current_user),
            changes={"quote_id": quote_id, "total_amount": order_read.total_amount},
        )
        return order_read
