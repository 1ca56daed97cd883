import logging
from typing import Annotated

from fastapi import Depends

from src.audit.dependencies import AuditLoggerDep
from src.customers.dependencies import CustomerRepositoryDep
from src.database import SessionDep
from src.locations.dependencies import LocationRepositoryDep
from src.numbering.dependencies import NumberGeneratorDep
from src.orders.dependencies import OrderRepositoryDep
from src.products.dependencies import ProductRepositoryDep
from src.quotes.interfaces.repositories import AbstractQuoteRepository
from src.quotes.repositories import SQLAlchemyQuoteRepository
from src.quotes.service import QuoteService

logger = logging.getLogger(__name__)

# --- Dépendances Repository ---

def get_quote_repository(session: SessionDep) -> AbstractQuoteRepository:
    """Fournit une instance du repository des devis."""
    return SQLAlchemyQuoteRepository(db_session=session)

QuoteRepositoryDep = Annotated[AbstractQuoteRepository, Depends(get_quote_repository)]

# --- Dépendance Service ---

def get_quote_service(
    session: SessionDep,
    quote_repository: QuoteRepositoryDep,
    order_repository: OrderRepositoryDep,
    product_repository: ProductRepositoryDep,
    customer_repository: CustomerRepositoryDep,
    location_repository: LocationRepositoryDep,
    number_generator: NumberGeneratorDep,
    audit_logger: AuditLoggerDep,
) -> QuoteService:
    logger.debug("Providing QuoteService")
    return QuoteService(
        db=session,
        quote_repository=quote_repository,
        order_repository=order_repository,
        product_repository=product_repository,
        customer_repository=customer_repository,
        location_repository=location_repository,
        number_generator=number_generator,
        audit_logger=audit_logger,
    )

QuoteServiceDep = Annotated[QuoteService, Depends(get_quote_service)]
