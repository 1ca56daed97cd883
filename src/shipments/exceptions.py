"""Exceptions spécifiques au domaine Shipment."""
from typing import Iterable

from src.core.exceptions import (
    ConflictException,
    ImmutableStateException,
    NotFoundException,
    ValidationException,
)


class ShipmentNotFoundException(NotFoundException):
    """Levée lorsque l'expédition n'existe pas ou n'appartient pas à la commande indiquée."""
    def __init__(self, shipment_id: int, order_id: int):
        super().__init__(f"Shipment {shipment_id} not found for order {order_id}")
        self.shipment_id = shipment_id
        self.order_id = order_id


class ShipmentImmutableException(ImmutableStateException):
    """Levée lorsqu'on modifie ou supprime une expédition déjà partie ou livrée."""
    def __init__(self, shipment_id: int, status: str, action: str = "edit"):
        super().__init__(
            f"Cannot {action} shipment {shipment_id}: it is {status}",
            details={"shipment_id": shipment_id, "status": status},
        )
        self.shipment_id = shipment_id
        self.status = status


class InvalidShipmentStatusTransitionException(ImmutableStateException):
    """Levée lorsque le changement de statut demandé n'est pas autorisé."""
    def __init__(self, shipment_id: int, current: str, requested: str, allowed: Iterable[str]):
        allowed = sorted(allowed)
        allowed_str = ", ".join(allowed) if allowed else "none"
        super().__init__(
            f"Cannot change shipment {shipment_id} from {current} to {requested} (allowed: {allowed_str})",
            details={"current": current, "requested": requested, "allowed": allowed},
        )


class ShipmentConcurrentModificationException(ConflictException):
    """Levée lorsque le statut a changé entre la lecture et l'écriture."""
    def __init__(self, shipment_id: int):
        super().__init__(f"Shipment {shipment_id} was modified by another request. Reload and retry.")
        self.shipment_id = shipment_id


class EmptyShipmentException(ValidationException):
    def __init__(self):
        super().__init__("At least one item is required to create a shipment")


class ForeignOrderItemsException(ValidationException):
    """Levée lorsque des lignes demandées n'appartiennent pas à la commande."""
    def __init__(self, order_id: int, order_item_ids: Iterable[int]):
        ids = sorted(set(order_item_ids))
        ids_str = ", ".join(str(i) for i in ids)
        super().__init__(
            f"Order item(s) {ids_str} do not belong to order {order_id}",
            details={"order_item_ids": ids},
        )
        self.order_item_ids = ids


class DuplicateShipmentItemException(ValidationException):
    def __init__(self, order_item_id: int):
        super().__init__(f"Order item {order_item_id} appears more than once in the shipment")
        self.order_item_id = order_item_id


class InvalidShipmentQuantityException(ValidationException):
    def __init__(self, order_item_id: int, quantity: object):
        super().__init__(
            f"Shipment quantity for item {order_item_id} must be a positive integer (got {quantity!r})",
            details={"order_item_id": order_item_id, "quantity": quantity},
        )


class InsufficientAvailableQuantityException(ValidationException):
    """Levée lorsqu'une quantité dépasse le reste à expédier de la ligne."""
    def __init__(self, order_item_id: int, requested: int, available: int, ordered: int, shipped: int):
        super().__init__(
            f"Cannot ship {requested} units of item {order_item_id}. "
            f"Only {available} available ({ordered} ordered, {shipped} already shipped).",
            details={
                "order_item_id": order_item_id,
                "requested": requested,
                "available": available,
                "ordered": ordered,
                "shipped": shipped,
            },
        )
        self.order_item_id = order_item_id
        self.available = available


class ShipmentOrderClosedException(ImmutableStateException):
    def __init__(self, order_id: int, status: str):
        super().__init__(
            f"Cannot create a shipment for order {order_id}: it is {status}",
            details={"status": status},
        )


class InvalidScheduleDateException(ValidationException):
    """Levée pour une date de planification ambiguë ou impossible."""
    pass
