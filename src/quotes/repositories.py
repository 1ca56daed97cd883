import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.quotes.interfaces.repositories import AbstractQuoteRepository
from src.quotes.models import Quote, QuoteItem

logger = logging.getLogger(__name__)


class SQLAlchemyQuoteRepository(AbstractQuoteRepository):
    """Implémentation SQLAlchemy du repository des devis."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def get_by_id(self, quote_id: int) -> Optional[Quote]:
        logger.debug(f"[QuoteRepository] Getting quote by ID: {quote_id}")
        stmt = (
            select(Quote)
            .where(Quote.id == quote_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_with_items(self, quote_data: Dict[str, Any], items_data: List[Dict[str, Any]]) -> Quote:
        quote = Quote(**quote_data)
        self.db.add(quote)
        await self.db.flush()

        for item in items_data:
            self.db.add(QuoteItem(quote_id=quote.id, **item))
        await self.db.flush()
        logger.debug(f"[QuoteRepository] Quote ID {quote.id} staged with {len(items_data)} items.")
        return quote

    async def mark_converted(self, quote_id: int, order_id: int, status: str) -> bool:
        result = await self.db.execute(
            update(Quote)
            .where(Quote.id == quote_id, Quote.converted_to_order_id.is_(None))
            .values(converted_to_order_id=order_id, status=status, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
