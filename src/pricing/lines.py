"""
Résolution du prix des lignes de devis/commande.

``unit_price × quantity − discount`` en arithmétique exacte. À l'édition d'une
commande, les lignes déjà présentes gardent le prix et la remise enregistrés;
seules les lignes ajoutées prennent le prix catalogue courant.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from src.core.currency import Money, MoneyInput
from src.pricing.config import DEFAULT_BULK_TIERS, BulkDiscountTier
from src.pricing.exceptions import (
    DuplicateLineException,
    EmptyCartException,
    InvalidDiscountException,
    InvalidQuantityException,
)
from src.products.exceptions import ProductNotFoundException

logger = logging.getLogger(__name__)

_HUNDRED = Decimal(100)


def validate_quantity(quantity: Any, product_id: Optional[int] = None) -> int:
    # bool est un int pour Python, on l'exclut explicitement
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityException(quantity, product_id)
    return quantity


def line_subtotal(unit_price: MoneyInput, quantity: int, discount: MoneyInput = 0,
                  product_id: Optional[int] = None) -> Money:
    """Sous-total exact d'une ligne: prix × quantité − remise."""
    validate_quantity(quantity, product_id)
    price = Money(unit_price)
    line_discount = Money(discount)
    if price.is_negative():
        raise InvalidDiscountException(f"Unit price cannot be negative (got {price})")
    if line_discount.is_negative():
        raise InvalidDiscountException(f"Line discount cannot be negative (got {line_discount})")
    gross = price.multiply(quantity)
    if line_discount.gt(gross):
        raise InvalidDiscountException(
            f"Line discount {line_discount} exceeds line value {gross}",
            details={"product_id": product_id, "discount": str(line_discount), "line_value": str(gross)},
        )
    return gross.subtract(line_discount)


def apply_bulk_discount(base_price: MoneyInput, quantity: int,
                        tiers: Iterable[BulkDiscountTier] = DEFAULT_BULK_TIERS) -> Money:
    """Prix unitaire après application du palier le plus élevé atteint par ``quantity``."""
    price = Money(base_price)
    for tier in sorted(tiers, key=lambda t: t.min_quantity, reverse=True):
        if quantity >= tier.min_quantity:
            return price.multiply(_HUNDRED - tier.percent).divide(_HUNDRED)
    return price


@dataclass
class PricedLine:
    """Ligne dont le prix est résolu. ``order_item_id`` n'est renseigné que pour une ligne existante."""
    product_id: int
    quantity: int
    unit_price: Money
    discount: Money = field(default_factory=Money.zero)
    order_item_id: Optional[int] = None

    @property
    def subtotal(self) -> Money:
        return line_subtotal(self.unit_price, self.quantity, self.discount, self.product_id)

    def to_storage(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price.to_stored_decimal(),
            "discount": self.discount.to_stored_decimal(),
            "subtotal": self.subtotal.to_stored_decimal(),
        }


def price_new_line(product_id: int, catalog_price: MoneyInput, quantity: int,
                   discount: MoneyInput = 0,
                   tiers: Optional[Iterable[BulkDiscountTier]] = None) -> PricedLine:
    """Ligne nouvelle au prix catalogue courant (avec paliers de volume si fournis)."""
    validate_quantity(quantity, product_id)
    unit_price = apply_bulk_discount(catalog_price, quantity, tiers) if tiers else Money(catalog_price)
    line = PricedLine(
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
        discount=Money(discount),
    )
    # Valide la remise dès maintenant
    line.subtotal
    return line


@dataclass
class OrderEditPlan:
    kept: List[PricedLine]
    added: List[PricedLine]
    removed_item_ids: List[int]

    @property
    def lines(self) -> List[PricedLine]:
        return self.kept + self.added


def ensure_unique_products(requested: Sequence[Any]) -> None:
    seen = set()
    for item in requested:
        if item.product_id in seen:
            raise DuplicateLineException(item.product_id)
        seen.add(item.product_id)


def plan_order_edit(existing_items: Sequence[Any], requested: Sequence[Any],
                    catalog_prices: Mapping[int, MoneyInput]) -> OrderEditPlan:
    """
    Calcule le nouveau panier d'une commande éditée.

    ``requested`` est le panier complet souhaité (objets avec ``product_id`` et
    ``quantity``). Une ligne existante absente, ou demandée avec une quantité
    ≤ 0, est retirée. ``catalog_prices`` n'est consulté que pour les produits
    nouveaux.
    """
    ensure_unique_products(requested)
    existing_by_product = {item.product_id: item for item in existing_items}

    kept: List[PricedLine] = []
    added: List[PricedLine] = []
    missing: List[int] = []

    for item in requested:
        current = existing_by_product.get(item.product_id)
        if current is not None:
            if isinstance(item.quantity, int) and not isinstance(item.quantity, bool) and item.quantity <= 0:
                continue
            validate_quantity(item.quantity, item.product_id)
            line = PricedLine(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=Money(current.unit_price),
                discount=Money(current.discount),
                order_item_id=current.id,
            )
            line.subtotal
            kept.append(line)
            continue

        validate_quantity(item.quantity, item.product_id)
        price = catalog_prices.get(item.product_id)
        if price is None:
            missing.append(item.product_id)
            continue
        added.append(price_new_line(item.product_id, price, item.quantity))

    if missing:
        raise ProductNotFoundException(missing)

    kept_ids = {line.order_item_id for line in kept}
    removed = [item.id for item in existing_items if item.id not in kept_ids]

    if not kept and not added:
        raise EmptyCartException("An order must keep at least one line item")

    logger.debug(f"Plan d'édition: {len(kept)} conservée(s), {len(added)} ajoutée(s), {len(removed)} retirée(s).")
    return OrderEditPlan(kept=kept, added=added, removed_item_ids=removed)
