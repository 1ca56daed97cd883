"""
Agrégation des totaux d'un devis ou d'une commande.

Le calcul est toujours fait sur le panier complet et en précision exacte;
``OrderTotals.to_storage()`` arrondit au centime au moment de persister.

Deux remises coexistent sans se confondre:
- ``line_discount_total``: somme des remises de ligne, déjà déduites de chaque
  sous-total de ligne (donc du ``subtotal``); reportée pour information;
- ``discount_amount``: remise globale, déduite une seule fois du ``subtotal``
  avant le calcul de la taxe.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Protocol

from src.core.currency import Money, MoneyInput, sum_money
from src.core.exceptions import ValidationException
from src.pricing.config import DELIVERY_FEE, FREE_DELIVERY_THRESHOLD
from src.pricing.exceptions import InvalidDiscountException, NegativeTotalException


class PricedLineLike(Protocol):
    @property
    def subtotal(self) -> Money: ...

    @property
    def discount(self) -> Money: ...


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Money
    line_discount_total: Money
    discount_amount: Money
    tax_amount: Money
    delivery_fee: Money
    total_amount: Money

    def to_storage(self) -> Dict[str, Decimal]:
        """Valeurs arrondies half-up à 2 décimales, prêtes pour la persistance."""
        return {
            "subtotal": self.subtotal.to_stored_decimal(),
            "line_discount_total": self.line_discount_total.to_stored_decimal(),
            "discount_amount": self.discount_amount.to_stored_decimal(),
            "tax_amount": self.tax_amount.to_stored_decimal(),
            "delivery_fee": self.delivery_fee.to_stored_decimal(),
            "total_amount": self.total_amount.to_stored_decimal(),
        }


def compute_order_totals(lines: Iterable[PricedLineLike], customer_tax_exempt: bool,
                         tax_rate: MoneyInput, delivery_fee: MoneyInput = 0,
                         discount_amount: MoneyInput = 0) -> OrderTotals:
    lines = list(lines)
    subtotal = sum_money(line.subtotal for line in lines)
    line_discounts = sum_money(line.discount for line in lines)

    order_discount = Money(discount_amount)
    if order_discount.is_negative():
        raise InvalidDiscountException(f"Order discount cannot be negative (got {order_discount})")
    if order_discount.gt(subtotal):
        raise InvalidDiscountException(
            f"Order discount {order_discount} exceeds subtotal {subtotal}",
            details={"discount_amount": str(order_discount), "subtotal": str(subtotal)},
        )

    rate = Money(tax_rate)
    if rate.is_negative():
        raise ValidationException(f"Tax rate cannot be negative (got {rate.amount})")

    fee = Money(delivery_fee)
    if fee.is_negative():
        raise ValidationException(f"Delivery fee cannot be negative (got {fee})")

    taxable = subtotal.subtract(order_discount)
    tax = Money.zero() if customer_tax_exempt else taxable.multiply(rate.amount)
    total = taxable.add(tax).add(fee)

    if total.is_negative():
        raise NegativeTotalException(f"Computed total is negative: {total.amount}")

    return OrderTotals(
        subtotal=subtotal,
        line_discount_total=line_discounts,
        discount_amount=order_discount,
        tax_amount=tax,
        delivery_fee=fee,
        total_amount=total,
    )


def resolve_delivery_fee(has_delivery_address: bool, subtotal: MoneyInput,
                         flat_fee: MoneyInput = DELIVERY_FEE,
                         free_threshold: MoneyInput = FREE_DELIVERY_THRESHOLD) -> Money:
    """Forfait de livraison si une adresse est fournie et que le sous-total est sous le seuil."""
    if has_delivery_address and Money(subtotal).lt(free_threshold):
        return Money(flat_fee)
    return Money.zero()
