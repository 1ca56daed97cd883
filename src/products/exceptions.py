"""Exceptions spécifiques au catalogue produits."""
from typing import Iterable

from src.core.exceptions import NotFoundException


class ProductNotFoundException(NotFoundException):
    """Levée lorsqu'un ou plusieurs produits référencés n'existent pas (ou sont supprimés)."""
    def __init__(self, product_ids: Iterable[int]):
        ids = sorted(product_ids)
        ids_str = ", ".join(str(i) for i in ids)
        super().__init__(f"Product(s) not found or inactive: {ids_str}", details={"product_ids": ids})
        self.product_ids = ids
