import logging
from typing import Annotated

from fastapi import Depends

from src.database import SessionDep
from src.products.repositories import SQLAlchemyProductRepository

logger = logging.getLogger(__name__)

def get_product_repository(session: SessionDep) -> SQLAlchemyProductRepository:
    """Fournit une instance du repository catalogue."""
    logger.debug("Providing SQLAlchemyProductRepository")
    return SQLAlchemyProductRepository(db=session)

ProductRepositoryDep = Annotated[SQLAlchemyProductRepository, Depends(get_product_repository)]
