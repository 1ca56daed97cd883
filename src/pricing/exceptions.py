"""Exceptions spécifiques au calcul des prix et totaux."""
from typing import Optional

from src.core.exceptions import InternalException, ValidationException


class InvalidQuantityException(ValidationException):
    """Levée lorsqu'une ligne nouvelle porte une quantité nulle, négative ou non entière."""
    def __init__(self, quantity: object, product_id: Optional[int] = None):
        target = f" for product {product_id}" if product_id is not None else ""
        super().__init__(
            f"Quantity must be a positive integer{target} (got {quantity!r})",
            details={"product_id": product_id, "quantity": quantity},
        )
        self.quantity = quantity
        self.product_id = product_id


class InvalidDiscountException(ValidationException):
    """Levée lorsqu'une remise est négative ou dépasse le montant auquel elle s'applique."""
    pass


class EmptyCartException(ValidationException):
    """Levée lorsqu'une opération laisserait un devis/une commande sans aucune ligne."""
    def __init__(self, message: str = "At least one item is required"):
        super().__init__(message)


class DuplicateLineException(ValidationException):
    """Levée lorsqu'un même produit apparaît plusieurs fois dans une requête."""
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} appears more than once in the request")
        self.product_id = product_id


class NegativeTotalException(InternalException):
    """Invariant violé: un total calculé est négatif."""
    pass
