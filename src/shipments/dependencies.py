import logging
from typing import Annotated

from fastapi import Depends

from src.audit.dependencies import AuditLoggerDep
from src.database import SessionDep
from src.orders.dependencies import OrderRepositoryDep
from src.shipments.interfaces.repositories import AbstractShipmentRepository
from src.shipments.repositories import SQLAlchemyShipmentRepository
from src.shipments.service import ShipmentService

logger = logging.getLogger(__name__)

def get_shipment_repository(session: SessionDep) -> AbstractShipmentRepository:
    """Fournit une instance du repository des expéditions."""
    return SQLAlchemyShipmentRepository(db_session=session)

ShipmentRepositoryDep = Annotated[AbstractShipmentRepository, Depends(get_shipment_repository)]


def get_shipment_service(
    session: SessionDep,
    shipment_repository: ShipmentRepositoryDep,
    order_repository: OrderRepositoryDep,
    audit_logger: AuditLoggerDep,
) -> ShipmentService:
    logger.debug("Providing ShipmentService")
    return ShipmentService(
        db=session,
        shipment_repository=shipment_repository,
        order_repository=order_repository,
        audit_logger=audit_logger,
    )

ShipmentServiceDep = Annotated[ShipmentService, Depends(get_shipment_service)]
