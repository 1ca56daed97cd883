import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.service import AbstractAuditSink
from src.auth.models import CurrentUser
from src.config import settings
from src.core.currency import Money
from src.core.exceptions import DomainException
from src.customers.repositories import SQLAlchemyCustomerRepository
from src.invoices.config import (
    DEFAULT_INVOICE_TERMS,
    ENTITY_TYPE_INVOICE,
    NON_PAYABLE_INVOICE_STATUSES,
    InvoiceStatus,
)
from src.invoices.exceptions import (
    CustomerCreditHoldException,
    InvalidPaymentAmountException,
    InvoiceNotFoundException,
    InvoiceNotPayableException,
    OrderAlreadyInvoicedException,
    OrderNotInvoiceableException,
)
from src.invoices.interfaces.repositories import AbstractInvoiceRepository
from src.invoices.models import InvoiceRead, PaymentCreate, PaymentRead
from src.locations.repositories import SQLAlchemyLocationRepository, effective_tax_rate
from src.numbering.config import EntityType
from src.numbering.service import EntityNumberGenerator
from src.orders.config import OrderStatus
from src.orders.exceptions import OrderNotFoundException
from src.orders.interfaces.repositories import AbstractOrderRepository
from src.pricing.lines import PricedLine
from src.pricing.totals import compute_order_totals
from src.products.repositories import SQLAlchemyProductRepository

logger = logging.getLogger(__name__)


def _user_id(current_user: Optional[CurrentUser]) -> Optional[int]:
    return current_user.user_id if current_user is not None else None


class InvoiceService:
    """Facturation des commandes et imputation des encaissements."""

    def __init__(self,
                 db: AsyncSession,
                 invoice_repository: AbstractInvoiceRepository,
                 order_repository: AbstractOrderRepository,
                 product_repository: SQLAlchemyProductRepository,
                 customer_repository: SQLAlchemyCustomerRepository,
                 location_repository: SQLAlchemyLocationRepository,
                 number_generator: EntityNumberGenerator,
                 audit_logger: AbstractAuditSink,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.db = db
        self.invoice_repository = invoice_repository
        self.order_repository = order_repository
        self.product_repository = product_repository
        self.customer_repository = customer_repository
        self.location_repository = location_repository
        self.number_generator = number_generator
        self.audit_logger = audit_logger
        self.clock = clock

    async def get_invoice(self, invoice_id: int) -> InvoiceRead:
        invoice = await self.invoice_repository.get_by_id(invoice_id)
        if invoice is None:
            logger.warning(f"[InvoiceService] Facture ID {invoice_id} non trouvée.")
            raise InvoiceNotFoundException(invoice_id)
        return InvoiceRead.model_validate(invoice)

    async def convert_order_to_invoice(self, order_id: int, notes: Optional[str] = None,
                                       current_user: Optional[CurrentUser] = None) -> InvoiceRead:
        """
        Facture une commande: lignes recopiées avec leurs prix et remises
        figés, totaux recalculés par ``compute_order_totals`` (taxe du site,
        exonération du client, remise globale et frais de livraison de la
        commande). L'échéance suit le délai de paiement du client.

        Une commande n'est facturée qu'une fois; un client bloqué ou une
        commande annulée sont refusés.
        """
        logger.info(f"[InvoiceService] Facturation commande {order_id}")
        try:
            order = await self.order_repository.get_by_id(order_id)
            if order is None:
                raise OrderNotFoundException(order_id)
            existing = await self.invoice_repository.get_by_order_id(order_id)
            if existing is not None:
                raise OrderAlreadyInvoicedException(order_id, existing.id)
            if order.status == OrderStatus.CANCELLED.value:
                raise OrderNotInvoiceableException(order_id, order.status)

            customer = await self.customer_repository.get_or_raise(order.customer_id)
            if customer.credit_hold:
                raise CustomerCreditHoldException(customer.id)
            location = await self.location_repository.get_or_raise(order.location_id)

            lines = [
                PricedLine(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=Money(item.unit_price),
                    discount=Money(item.discount),
                    order_item_id=item.id,
                )
                for item in order.items
            ]
            totals = compute_order_totals(
                lines,
                customer_tax_exempt=customer.tax_exempt,
                tax_rate=effective_tax_rate(location),
                delivery_fee=order.delivery_fee,
                discount_amount=order.discount_amount,
            )
            # Produits supprimés depuis: leur nom reste sur la facture
            products = await self.product_repository.get_including_deleted(line.product_id for line in lines)

            # 0 est un délai valide (paiement à réception)
            term_days = customer.payment_term_days
            if term_days is None:
                term_days = settings.DEFAULT_PAYMENT_TERM_DAYS
            invoice_date = self.clock()
            stored = totals.to_storage()

            invoice_number = await self.number_generator.generate(EntityType.INVOICE)
            invoice = await self.invoice_repository.create_with_items(
                {
                    "invoice_number": invoice_number,
                    "customer_id": customer.id,
                    "location_id": location.id,
                    "order_id": order.id,
                    "status": InvoiceStatus.DRAFT.value,
                    "invoice_date": invoice_date,
                    "due_date": invoice_date + timedelta(days=term_days),
                    "payment_term_days": term_days,
                    "paid_amount": Money.zero().to_stored_decimal(),
                    "balance_due": stored["total_amount"],
                    "notes": notes,
                    "terms": DEFAULT_INVOICE_TERMS,
                    "created_by": _user_id(current_user),
                    **stored,
                },
                [
                    {
                        **line.to_storage(),
                        "description": products[line.product_id].name if line.product_id in products else None,
                    }
                    for line in lines
                ],
            )
            invoice_id = invoice.id
            await self.db.commit()
        except IntegrityError:
            # Facturation concurrente de la même commande: l'index unique sur order_id tranche
            await self.db.rollback()
            current = await self.invoice_repository.get_by_order_id(order_id)
            if current is None:
                raise
            logger.warning(f"[InvoiceService] Commande {order_id} déjà facturée (facture {current.id}).")
            raise OrderAlreadyInvoicedException(order_id, current.id) from None
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[InvoiceService] Facturation commande {order_id} refusée: {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        invoice_read = await self.get_invoice(invoice_id)
        logger.info(f"[InvoiceService] Commande {order_id} facturée: {invoice_read.invoice_number} (ID {invoice_id}), total {invoice_read.total_amount}.")
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_INVOICE,
            entity_id=invoice_id,
            action="CREATE",
            user_id=_user_id(current_user),
            changes={
                "order_id": order_id,
                "invoice_number": invoice_read.invoice_number,
                "total_amount": invoice_read.total_amount,
            },
        )
        return invoice_read

    # --- Encaissements ---

    async def record_payment(self, invoice_id: int, payment: PaymentCreate,
                             current_user: Optional[CurrentUser] = None) -> PaymentRead:
        """
        Impute un encaissement sur le solde de la facture (ligne verrouillée).
        L'excédent éventuel est conservé comme montant non affecté.
        """
        amount = Money(payment.amount)
        if amount.is_negative() or amount.is_zero():
            raise InvalidPaymentAmountException(payment.amount)

        try:
            invoice = await self.invoice_repository.get_for_update(invoice_id)
            if invoice is None:
                raise InvoiceNotFoundException(invoice_id)
            if invoice.status in {s.value for s in NON_PAYABLE_INVOICE_STATUSES}:
                raise InvoiceNotPayableException(invoice_id, invoice.status)

            balance = Money(invoice.balance_due)
            applied = amount if amount.lte(balance.amount) else balance
            if applied.is_negative():
                applied = Money.zero()
            unapplied = amount.subtract(applied)

            new_paid = Money(invoice.paid_amount).add(applied)
            new_balance = balance.subtract(applied)
            now = self.clock()
            values = {
                "paid_amount": new_paid.to_stored_decimal(),
                "balance_due": new_balance.to_stored_decimal(),
            }
            # Une facture déjà soldée garde son statut et sa date de règlement
            already_paid = invoice.status == InvoiceStatus.PAID.value
            if not already_paid and (new_balance.is_zero() or new_balance.is_negative()):
                values["status"] = InvoiceStatus.PAID.value
                values["paid_at"] = now
            elif not already_paid and not applied.is_zero():
                values["status"] = InvoiceStatus.PARTIALLY_PAID.value
            previous_status = invoice.status

            await self.invoice_repository.update_balance(invoice_id, values)
            recorded = await self.invoice_repository.add_payment(
                {
                    "invoice_id": invoice_id,
                    "customer_id": invoice.customer_id,
                    "amount": amount.to_stored_decimal(),
                    "applied_amount": applied.to_stored_decimal(),
                    "unapplied_amount": unapplied.to_stored_decimal(),
                    "payment_method": payment.payment_method.value,
                    "reference_number": payment.reference_number,
                    "notes": payment.notes,
                    "payment_date": payment.payment_date or now,
                    "recorded_by": _user_id(current_user),
                }
            )
            payment_read = PaymentRead.model_validate(recorded)
            await self.db.commit()
        except DomainException as e:
            await self.db.rollback()
            logger.warning(f"[InvoiceService] Encaissement facture {invoice_id} refusé: {e.message}")
            raise
        except Exception:
            await self.db.rollback()
            raise

        new_status = values.get("status", previous_status)
        logger.info(
            f"[InvoiceService] Encaissement {payment_read.amount} sur facture {invoice_id}: "
            f"imputé {payment_read.applied_amount}, solde {values['balance_due']}, statut {new_status}."
        )
        await self.audit_logger.log_activity(
            entity_type=ENTITY_TYPE_INVOICE,
            entity_id=invoice_id,
            action="PAYMENT",
            user_id=_user_id(current_user),
            changes={
                "payment_id": payment_read.id,
                "amount": payment_read.amount,
                "applied_amount": payment_read.applied_amount,
                "balance_due": values["balance_due"],
                "status": {"from": previous_status, "to": new_status},
            },
        )
        return payment_read

    async def list_payments(self, invoice_id: int) -> List[PaymentRead]:
        invoice = await self.invoice_repository.get_by_id(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundException(invoice_id)
        payments = await self.invoice_repository.list_payments(invoice_id)
        return [PaymentRead.model_validate(payment) for payment in payments]
