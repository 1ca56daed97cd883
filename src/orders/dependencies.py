import logging
from typing import Annotated

from fastapi import Depends

from src.audit.dependencies import AuditLoggerDep
from src.customers.dependencies import CustomerRepositoryDep
from src.database import SessionDep
from src.locations.dependencies import LocationRepositoryDep
from src.numbering.dependencies import NumberGeneratorDep
from src.orders.interfaces.repositories import AbstractOrderRepository
from src.orders.repositories import SQLAlchemyOrderRepository
from src.orders.service import OrderService
from src.products.dependencies import ProductRepositoryDep
from src.shipments.repositories import SQLAlchemyShipmentRepository

logger = logging.getLogger(__name__)

# --- Repository Dependency ---

def get_order_repository(session: SessionDep) -> AbstractOrderRepository:
    """Fournit une instance du repository de commandes."""
    logger.debug("Providing SQLAlchemyOrderRepository")
    return SQLAlchemyOrderRepository(db_session=session)

OrderRepositoryDep = Annotated[AbstractOrderRepository, Depends(get_order_repository)]

# --- Service Dependency ---

def get_order_service(
    session: SessionDep,
    order_repository: OrderRepositoryDep,
    product_repository: ProductRepositoryDep,
    customer_repository: CustomerRepositoryDep,
    location_repository: LocationRepositoryDep,
    number_generator: NumberGeneratorDep,
    audit_logger: AuditLoggerDep,
) -> OrderService:
    """
    Fournit une instance du service de gestion des commandes,
    injectant les repositories, le générateur de numéros et le journal d'audit.
    """
    logger.debug("Providing OrderService")
    return OrderService(
        db=session,
        order_repository=order_repository,
        # Lecture des quantités déjà engagées en expédition
        shipment_repository=SQLAlchemyShipmentRepository(db_session=session),
        product_repository=product_repository,
        customer_repository=customer_repository,
        location_repository=location_repository,
        number_generator=number_generator,
        audit_logger=audit_logger,
    )

OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
