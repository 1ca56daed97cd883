"""
Configuration spécifique au module Pricing.
Paliers de remise sur volume et politique de frais de livraison.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple

from src.config import settings


@dataclass(frozen=True)
class BulkDiscountTier:
    """Palier de remise: à partir de ``min_quantity`` unités, ``percent`` % de remise sur le prix catalogue."""
    min_quantity: int
    percent: Decimal


# Paliers utilisés à la création de devis (le plus haut palier atteint s'applique)
DEFAULT_BULK_TIERS: Tuple[BulkDiscountTier, ...] = (
    BulkDiscountTier(min_quantity=1000, percent=Decimal("15")),
    BulkDiscountTier(min_quantity=500, percent=Decimal("10")),
    BulkDiscountTier(min_quantity=100, percent=Decimal("5")),
)

# Frais de livraison forfaitaires sous le seuil de gratuité
DELIVERY_FEE: Decimal = settings.DELIVERY_FEE
FREE_DELIVERY_THRESHOLD: Decimal = settings.FREE_DELIVERY_THRESHOLD
