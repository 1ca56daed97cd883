"""
Journal d'audit.

Appelé après le commit de la mutation principale. Un échec d'écriture du
journal est consigné dans les logs et n'est jamais propagé: il ne peut pas
annuler la mutation déjà validée.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic_core import to_jsonable_python
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.models import AuditLog

logger = logging.getLogger(__name__)


class AbstractAuditSink(ABC):
    """Interface du collaborateur d'audit."""

    @abstractmethod
    async def log_activity(
        self,
        *,
        entity_type: str,
        entity_id: Any,
        action: str,
        user_id: Optional[Any],
        changes: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> bool:
        """Enregistre l'activité. Retourne False si l'écriture a échoué."""
        pass


class SQLAuditLogger(AbstractAuditSink):
    """Écrit les entrées d'audit dans la table ``audit_logs`` via la session de la requête."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_activity(
        self,
        *,
        entity_type: str,
        entity_id: Any,
        action: str,
        user_id: Optional[Any],
        changes: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> bool:
        try:
            entry = AuditLog(
                entity_type=entity_type,
                entity_id=str(entity_id),
                action=action,
                user_id=str(user_id) if user_id is not None else None,
                # Decimal -> str, datetime -> ISO 8601
                changes=to_jsonable_python(changes) if changes is not None else None,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            self.db.add(entry)
            await self.db.commit()
            return True
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.error(f"Échec écriture audit {entity_type}#{entity_id} ({action}): {e}", exc_info=True)
            await self.db.rollback()
            return False
