from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from src.quotes.models import Quote


class AbstractQuoteRepository(ABC):
    """Interface abstraite pour le repository des devis."""

    @abstractmethod
    async def get_by_id(self, quote_id: int) -> Optional[Quote]:
        """Récupère un devis et ses lignes."""
        pass

    @abstractmethod
    async def create_with_items(self, quote_data: Dict[str, Any], items_data: List[Dict[str, Any]]) -> Quote:
        """Ajoute le devis et ses lignes à la transaction en cours (flush, pas de commit)."""
        pass

    @abstractmethod
    async def mark_converted(self, quote_id: int, order_id: int, status: str) -> bool:
        """Rattache la commande au devis s'il n'a pas déjà été converti. Retourne False sinon."""
        pass
