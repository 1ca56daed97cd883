import logging
from typing import Annotated

from fastapi import Depends

from src.audit.dependencies import AuditLoggerDep
from src.customers.dependencies import CustomerRepositoryDep
from src.database import SessionDep
from src.invoices.interfaces.repositories import AbstractInvoiceRepository
from src.invoices.repositories import SQLAlchemyInvoiceRepository
from src.invoices.service import InvoiceService
from src.locations.dependencies import LocationRepositoryDep
from src.numbering.dependencies import NumberGeneratorDep
from src.orders.dependencies import OrderRepositoryDep
from src.products.dependencies import ProductRepositoryDep

logger = logging.getLogger(__name__)

# --- Dépendances Repository ---

def get_invoice_repository(session: SessionDep) -> AbstractInvoiceRepository:
    return SQLAlchemyInvoiceRepository(db_session=session)

InvoiceRepositoryDep = Annotated[AbstractInvoiceRepository, Depends(get_invoice_repository)]

# --- Dépendance Service ---

def get_invoice_service(
    session: SessionDep,
    invoice_repository: InvoiceRepositoryDep,
    order_repository: OrderRepositoryDep,
    product_repository: ProductRepositoryDep,
    customer_repository: CustomerRepositoryDep,
    location_repository: LocationRepositoryDep,
    number_generator: NumberGeneratorDep,
    audit_logger: AuditLoggerDep,
) -> InvoiceService:
    logger.debug("Providing InvoiceService")
    return InvoiceService(
        db=session,
        invoice_repository=invoice_repository,
        order_repository=order_repository,
        product_repository=product_repository,
        customer_repository=customer_repository,
        location_repository=location_repository,
        number_generator=number_generator,
        audit_logger=audit_logger,
    )

InvoiceServiceDep = Annotated[InvoiceService, Depends(get_invoice_service)]
