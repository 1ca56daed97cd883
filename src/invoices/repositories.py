import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.invoices.interfaces.repositories import AbstractInvoiceRepository
from src.invoices.models import Invoice, InvoiceItem, InvoicePayment

logger = logging.getLogger(__name__)


class SQLAlchemyInvoiceRepository(AbstractInvoiceRepository):
    """Implémentation SQLAlchemy du repository des factures."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        logger.debug(f"[InvoiceRepository] Getting invoice by ID: {invoice_id}")
        stmt = (
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_by_order_id(self, order_id: int) -> Optional[Invoice]:
        result = await self.db.execute(
            select(Invoice)
            .where(Invoice.order_id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_for_update(self, invoice_id: int) -> Optional[Invoice]:
        stmt = (
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_with_items(self, invoice_data: Dict[str, Any], items_data: List[Dict[str, Any]]) -> Invoice:
        invoice = Invoice(**invoice_data)
        self.db.add(invoice)
        await self.db.flush()

        for item in items_data:
            self.db.add(InvoiceItem(invoice_id=invoice.id, **item))
        await self.db.flush()
        logger.debug(f"[InvoiceRepository] Invoice ID {invoice.id} staged with {len(items_data)} items.")
        return invoice

    async def update_balance(self, invoice_id: int, values: Dict[str, Any]) -> None:
        await self.db.execute(
            update(Invoice)
            .where(Invoice.id == invoice_id)
            .values(**values, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )

    async def add_payment(self, payment_data: Dict[str, Any]) -> InvoicePayment:
        payment = InvoicePayment(**payment_data)
        self.db.add(payment)
        await self.db.flush()
        return payment

    async def list_payments(self, invoice_id: int) -> List[InvoicePayment]:
        result = await self.db.execute(
            select(InvoicePayment)
            .where(InvoicePayment.invoice_id == invoice_id)
            .order_by(InvoicePayment.payment_date.desc(), InvoicePayment.id.desc())
        )
        return list(result.scalars().all())
