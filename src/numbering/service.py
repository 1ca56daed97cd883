"""
Génération des numéros lisibles (``ORD-001001``, ``Q-001002``...).

Le numéro dérive de l'identité attribuée par la base à une ligne insérée dans
la table de séquence du type: aucune lecture du maximum courant, donc aucune
collision entre appels concurrents.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from src.numbering.config import ENTITY_CONFIGS, EntityNumberConfig, EntityType
from src.numbering.exceptions import SequenceAllocationException, UnknownEntityTypeException

logger = logging.getLogger(__name__)


def format_entity_number(config: EntityNumberConfig, sequence_id: int) -> str:
    return f"{config.prefix}-{config.start_from + sequence_id:0{config.pad}d}"


def _coerce_type(entity_type: Union[EntityType, str]) -> EntityType:
    try:
        return EntityType(entity_type)
    except ValueError:
        raise UnknownEntityTypeException(entity_type) from None


def is_valid_entity_number(number: str, entity_type: Union[EntityType, str],
                           configs: Dict[EntityType, EntityNumberConfig] = ENTITY_CONFIGS) -> bool:
    config = configs[_coerce_type(entity_type)]
    return re.fullmatch(rf"{re.escape(config.prefix)}-\d+", number) is not None


class EntityNumberGenerator:
    """Attribue les numéros dans la transaction de l'appelant (flush, pas de commit)."""

    def __init__(self, db: AsyncSession,
                 configs: Optional[Dict[EntityType, EntityNumberConfig]] = None,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.db = db
        self.configs = configs if configs is not None else ENTITY_CONFIGS
        self.clock = clock

    async def generate(self, entity_type: Union[EntityType, str]) -> str:
        entity_type = _coerce_type(entity_type)
        config = self.configs.get(entity_type)
        if config is None:
            raise UnknownEntityTypeException(entity_type)

        if config.sequence_model is None:
            # Repli horodaté: deux appels dans la même milliseconde peuvent collisionner
            millis = int(self.clock().timestamp() * 1000)
            logger.warning(f"Aucune table de séquence pour {entity_type.value}, numéro horodaté utilisé.")
            return f"{config.prefix}-{millis}"

        row = config.sequence_model()
        self.db.add(row)
        await self.db.flush()
        if row.id is None:
            raise SequenceAllocationException(f"No identity assigned for {entity_type.value} sequence")

        number = format_entity_number(config, row.id)
        logger.debug(f"Numéro {number} attribué ({entity_type.value}, séquence {row.id}).")
        return number


async def generate_entity_number(db: AsyncSession, entity_type: Union[EntityType, str]) -> str:
    return await EntityNumberGenerator(db).generate(entity_type)
