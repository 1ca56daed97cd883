"""
Configuration de la numérotation des entités (devis, commandes, transferts).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type

from sqlmodel import SQLModel

from src.config import settings
from src.numbering.models import InvoiceSequence, OrderSequence, QuoteSequence, TransferSequence


class EntityType(str, Enum):
    QUOTE = "QUOTE"
    ORDER = "ORDER"
    TRANSFER = "TRANSFER"
    INVOICE = "INVOICE"


@dataclass(frozen=True)
class EntityNumberConfig:
    prefix: str
    start_from: int = settings.ENTITY_NUMBER_START
    pad: int = settings.ENTITY_NUMBER_PAD
    # None: pas de table de séquence, repli sur un horodatage (unicité plus faible)
    sequence_model: Optional[Type[SQLModel]] = None


ENTITY_CONFIGS: Dict[EntityType, EntityNumberConfig] = {
    EntityType.QUOTE: EntityNumberConfig(prefix="Q", sequence_model=QuoteSequence),
    EntityType.ORDER: EntityNumberConfig(prefix="ORD", sequence_model=OrderSequence),
    EntityType.TRANSFER: EntityNumberConfig(prefix="TXF", sequence_model=TransferSequence),
    EntityType.INVOICE: EntityNumberConfig(prefix="INV", sequence_model=InvoiceSequence),
}
