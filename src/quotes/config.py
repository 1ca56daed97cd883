"""
Configuration spécifique au module Quotes.
"""
from enum import Enum
from typing import FrozenSet


class QuoteStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"    # Converti en commande
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


# Un devis dans l'un de ces statuts ne peut plus devenir une commande
NON_CONVERTIBLE_QUOTE_STATUSES: FrozenSet[QuoteStatus] = frozenset({
    QuoteStatus.REJECTED,
    QuoteStatus.EXPIRED,
})

ENTITY_TYPE_QUOTE: str = "Quote"
