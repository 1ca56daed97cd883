import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.exceptions import NotFoundException
from src.locations.models import Location

logger = logging.getLogger(__name__)


class LocationNotFoundException(NotFoundException):
    def __init__(self, location_id: int):
        super().__init__(f"Location {location_id} not found")
        self.location_id = location_id


def effective_tax_rate(location: Location) -> Decimal:
    """Taux du site, ou taux par défaut lorsque le site n'en définit pas."""
    if location.tax_rate is None:
        return settings.DEFAULT_TAX_RATE
    return Decimal(str(location.tax_rate))


class SQLAlchemyLocationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, location_id: int) -> Optional[Location]:
        return await self.db.get(Location, location_id)

    async def get_or_raise(self, location_id: int) -> Location:
        location = await self.get_by_id(location_id)
        if location is None:
            logger.warning(f"Site ID {location_id} non trouvé.")
            raise LocationNotFoundException(location_id)
        return location
