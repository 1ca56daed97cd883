"""Exceptions spécifiques au domaine Order."""
from typing import Iterable, Optional

from src.core.exceptions import (
    ConflictException,
    ImmutableStateException,
    NotFoundException,
    ValidationException,
)


class OrderNotFoundException(NotFoundException):
    """Levée lorsqu'une commande spécifique n'est pas trouvée."""
    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class OrderVersionConflictException(ConflictException):
    """Levée lorsque la version attendue ne correspond plus à la version enregistrée."""
    def __init__(self, order_id: int, expected_version: int, current_version: Optional[int] = None):
        current = f", current version is {current_version}" if current_version is not None else ""
        super().__init__(
            f"Order {order_id} was modified by another request (expected version {expected_version}{current}). "
            "Reload the order and retry.",
            details={"expected_version": expected_version, "current_version": current_version},
        )
        self.order_id = order_id
        self.expected_version = expected_version
        self.current_version = current_version


class OrderNotEditableException(ImmutableStateException):
    """Levée lorsqu'on tente de modifier les lignes d'une commande qui n'est plus en attente."""
    def __init__(self, order_id: int, status: str):
        super().__init__(
            f"Only PENDING orders can be edited (order {order_id} is {status})",
            details={"status": status},
        )
        self.order_id = order_id
        self.status = status


class InvalidOrderStatusTransitionException(ImmutableStateException):
    """Levée lorsque le changement de statut demandé n'est pas autorisé."""
    def __init__(self, order_id: int, current: str, requested: str, allowed: Iterable[str]):
        allowed = sorted(allowed)
        allowed_str = ", ".join(allowed) if allowed else "none"
        super().__init__(
            f"Cannot change order {order_id} from {current} to {requested} (allowed: {allowed_str})",
            details={"current": current, "requested": requested, "allowed": allowed},
        )


class ShippedQuantityExceededException(ValidationException):
    """Levée lorsqu'une édition réduirait une ligne sous la quantité déjà engagée en expédition."""
    def __init__(self, product_id: int, requested: int, committed: int):
        action = "remove" if requested <= 0 else f"reduce to {requested}"
        super().__init__(
            f"Cannot {action} product {product_id}: {committed} already committed to shipments",
            details={"product_id": product_id, "requested": requested, "committed": committed},
        )
        self.product_id = product_id
        self.requested = requested
        self.committed = committed
