import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import NotFoundException
from src.customers.models import Customer

logger = logging.getLogger(__name__)


class CustomerNotFoundException(NotFoundException):
    def __init__(self, customer_id: int):
        super().__init__(f"Customer {customer_id} not found")
        self.customer_id = customer_id


class SQLAlchemyCustomerRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, customer_id: int) -> Optional[Customer]:
        return await self.db.get(Customer, customer_id)

    async def get_or_raise(self, customer_id: int) -> Customer:
        customer = await self.get_by_id(customer_id)
        if customer is None:
            logger.warning(f"Client ID {customer_id} non trouvé.")
            raise CustomerNotFoundException(customer_id)
        return customer
