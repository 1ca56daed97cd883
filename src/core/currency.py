"""
Valeur monétaire décimale exacte.

Toutes les sommes (prix, remises, taxes, totaux) transitent par ``Money``
avant d'être comparées ou persistées. Les opérations travaillent sur la valeur
décimale exacte; l'arrondi "half-up" à 2 décimales n'intervient qu'aux bords
(stockage, affichage, égalité au centime).

La précision et le mode d'arrondi sont portés par un ``MoneyContext`` attaché
à chaque valeur: aucun appel ne modifie ``decimal.getcontext()``.
"""
from dataclasses import dataclass
from decimal import (
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
)
from functools import cached_property
from typing import Iterable, Optional, Union

from src.config import settings
from src.core.exceptions import ValidationException


class InvalidMoneyValue(ValidationException):
    """Levée lorsqu'une valeur ne peut pas être interprétée comme un montant exact."""
    def __init__(self, value: object):
        super().__init__(f"Invalid monetary amount: {value!r}")
        self.value = value


class MoneyDivisionByZero(ValidationException, ZeroDivisionError):
    """Levée lors d'une division d'un montant par zéro."""
    def __init__(self, dividend: "Money"):
        super().__init__(f"Cannot divide {dividend.to_display_string()} by zero")


@dataclass(frozen=True)
class MoneyContext:
    """Précision (chiffres significatifs), nombre de décimales et arrondi d'un montant."""
    precision: int = 28
    places: int = 2
    rounding: str = ROUND_HALF_UP

    @cached_property
    def decimal_context(self) -> Context:
        return Context(
            prec=self.precision,
            rounding=self.rounding,
            traps=[InvalidOperation, DivisionByZero, Overflow],
        )

    def exponent(self, places: Optional[int] = None) -> Decimal:
        return Decimal(1).scaleb(-(self.places if places is None else places))


DEFAULT_MONEY_CONTEXT = MoneyContext(
    precision=settings.MONEY_PRECISION,
    places=settings.MONEY_DECIMAL_PLACES,
)

MoneyInput = Union["Money", Decimal, int, str, float]


def _to_decimal(value: MoneyInput) -> Decimal:
    if isinstance(value, Money):
        return value.amount
    # bool est une sous-classe d'int: True ne doit pas devenir 1.00
    if isinstance(value, bool):
        raise InvalidMoneyValue(value)
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # repr() donne la plus courte écriture décimale qui redonne ce float,
        # jamais son développement binaire (0.1 -> "0.1")
        if value != value or value in (float("inf"), float("-inf")):
            raise InvalidMoneyValue(value)
        return Decimal(repr(value))
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidMoneyValue(value) from None
    else:
        raise InvalidMoneyValue(value)
    if not result.is_finite():
        raise InvalidMoneyValue(value)
    return result


class Money:
    """Montant décimal exact, arrondi au centime uniquement aux frontières."""

    __slots__ = ("_amount", "_context")

    def __init__(self, amount: MoneyInput = 0, context: Optional[MoneyContext] = None):
        if context is None:
            context = amount.context if isinstance(amount, Money) else DEFAULT_MONEY_CONTEXT
        self._context = context
        self._amount = context.decimal_context.plus(_to_decimal(amount))

    @classmethod
    def zero(cls, context: Optional[MoneyContext] = None) -> "Money":
        return cls(0, context)

    @property
    def amount(self) -> Decimal:
        """Valeur exacte, non arrondie."""
        return self._amount

    @property
    def context(self) -> MoneyContext:
        return self._context

    def _new(self, amount: Decimal) -> "Money":
        return Money(amount, self._context)

    # --- Arithmétique exacte ---

    def add(self, other: MoneyInput) -> "Money":
        return self._new(self._context.decimal_context.add(self._amount, _to_decimal(other)))

    def subtract(self, other: MoneyInput) -> "Money":
        return self._new(self._context.decimal_context.subtract(self._amount, _to_decimal(other)))

    def multiply(self, other: MoneyInput) -> "Money":
        return self._new(self._context.decimal_context.multiply(self._amount, _to_decimal(other)))

    def divide(self, other: MoneyInput) -> "Money":
        divisor = _to_decimal(other)
        if divisor.is_zero():
            raise MoneyDivisionByZero(self)
        return self._new(self._context.decimal_context.divide(self._amount, divisor))

    def negate(self) -> "Money":
        return self._new(self._context.decimal_context.minus(self._amount))

    # --- Frontières: stockage et affichage ---

    def to_stored_decimal(self, places: Optional[int] = None) -> Decimal:
        """Décimal arrondi half-up, prêt pour la persistance."""
        rounded = self._amount.quantize(
            self._context.exponent(places),
            rounding=ROUND_HALF_UP,
            context=self._context.decimal_context,
        )
        # Pas de "-0.00"
        if rounded.is_zero():
            rounded = rounded.copy_abs()
        return rounded

    def to_display_string(self) -> str:
        return format(self.to_stored_decimal(), "f")

    def to_number(self) -> float:
        """Approximation flottante pour l'affichage uniquement, jamais pour enchaîner des calculs."""
        return float(self.to_stored_decimal())

    # --- Comparaisons ---

    def eq(self, other: MoneyInput) -> bool:
        """Égalité au centime: les deux côtés sont arrondis avant comparaison."""
        return self.to_stored_decimal() == Money(other, self._context).to_stored_decimal()

    def lt(self, other: MoneyInput) -> bool:
        return self._amount < _to_decimal(other)

    def lte(self, other: MoneyInput) -> bool:
        return self._amount <= _to_decimal(other)

    def gt(self, other: MoneyInput) -> bool:
        return self._amount > _to_decimal(other)

    def gte(self, other: MoneyInput) -> bool:
        return self._amount >= _to_decimal(other)

    def is_zero(self) -> bool:
        return self.to_stored_decimal().is_zero()

    def is_negative(self) -> bool:
        return self._amount < 0

    # --- Protocoles Python ---

    def __add__(self, other):
        if not isinstance(other, (Money, Decimal, int, str, float)):
            return NotImplemented
        return self.add(other)

    def __radd__(self, other):
        # Permet sum() qui démarre à 0
        if not isinstance(other, (Decimal, int, str, float)):
            return NotImplemented
        return Money(other, self._context).add(self)

    def __sub__(self, other):
        if not isinstance(other, (Money, Decimal, int, str, float)):
            return NotImplemented
        return self.subtract(other)

    def __rsub__(self, other):
        if not isinstance(other, (Decimal, int, str, float)):
            return NotImplemented
        return Money(other, self._context).subtract(self)

    def __mul__(self, other):
        if not isinstance(other, (Money, Decimal, int, str, float)):
            return NotImplemented
        return self.multiply(other)

    __rmul__ = __mul__

    def __truediv__(self, other):
        if not isinstance(other, (Money, Decimal, int, str, float)):
            return NotImplemented
        return self.divide(other)

    def __neg__(self):
        return self.negate()

    def __eq__(self, other):
        if not isinstance(other, (Money, Decimal, int, str, float)) or isinstance(other, bool):
            return NotImplemented
        try:
            return self.eq(other)
        except InvalidMoneyValue:
            # "abc" n'est égal à aucun montant
            return False

    def __hash__(self):
        return hash(self.to_stored_decimal())

    def __lt__(self, other):
        return self.lt(other)

    def __le__(self, other):
        return self.lte(other)

    def __gt__(self, other):
        return self.gt(other)

    def __ge__(self, other):
        return self.gte(other)

    def __str__(self) -> str:
        return self.to_display_string()

    def __repr__(self) -> str:
        return f"Money('{self._amount}')"


def currency(amount: MoneyInput, context: Optional[MoneyContext] = None) -> Money:
    """Raccourci de construction."""
    return Money(amount, context)


def sum_money(values: Iterable[MoneyInput], context: Optional[MoneyContext] = None) -> Money:
    total = Money.zero(context)
    for value in values:
        total = total.add(value)
    return total
