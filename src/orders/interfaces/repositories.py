from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from src.orders.models import Order, OrderItem
from src.pricing.lines import OrderEditPlan


class AbstractOrderRepository(ABC):
    """Interface abstraite pour le repository des commandes et de leurs lignes."""

    @abstractmethod
    async def get_by_id(self, order_id: int) -> Optional[Order]:
        """Récupère une commande et ses lignes, relue depuis la base (pas depuis le cache de session)."""
        pass

    @abstractmethod
    async def create_order_with_items(
        self,
        order_data: Dict[str, Any],
        items_data: List[Dict[str, Any]]
    ) -> Order:
        """Ajoute une commande et ses lignes à la transaction en cours (flush, pas de commit)."""
        pass

    @abstractmethod
    async def apply_versioned_update(
        self,
        order_id: int,
        expected_version: Optional[int],
        values: Dict[str, Any],
        expected_status: Optional[str] = None
    ) -> bool:
        """
        UPDATE conditionnel unique: applique ``values`` et incrémente la version
        si (et seulement si) la version enregistrée vaut ``expected_version``
        (et le statut ``expected_status`` s'il est fourni).
        Retourne False si aucune ligne n'a été modifiée.
        """
        pass

    @abstractmethod
    async def apply_line_changes(self, order_id: int, plan: OrderEditPlan) -> None:
        """Met à jour les lignes conservées, supprime les retirées, insère les nouvelles."""
        pass

    @abstractmethod
    async def get_items_for_update(self, order_id: int) -> List[OrderItem]:
        """Lignes de la commande, verrouillées jusqu'à la fin de la transaction."""
        pass
