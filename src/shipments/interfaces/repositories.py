from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from src.shipments.models import Shipment


class AbstractShipmentRepository(ABC):
    """Interface abstraite pour le repository des expéditions."""

    @abstractmethod
    async def committed_quantities(self, order_item_ids: Iterable[int]) -> Dict[int, int]:
        """Quantité engagée par ligne de commande, expéditions annulées exclues."""
        pass

    @abstractmethod
    async def get_by_id(self, shipment_id: int) -> Optional[Shipment]:
        pass

    @abstractmethod
    async def list_by_order(self, order_id: int) -> List[Shipment]:
        pass

    @abstractmethod
    async def create_with_items(self, shipment_data: Dict[str, Any], items_data: List[Dict[str, Any]]) -> Shipment:
        """Ajoute l'expédition et ses lignes à la transaction en cours (flush, pas de commit)."""
        pass

    @abstractmethod
    async def update_if_status(self, shipment_id: int, expected_status: str, values: Dict[str, Any]) -> bool:
        """UPDATE conditionné au statut lu par l'appelant. Retourne False si le statut a changé entre-temps."""
        pass

    @abstractmethod
    async def delete_if_status(self, shipment_id: int, expected_status: str) -> bool:
        pass

    @abstractmethod
    async def list_in_range(self, start: datetime, end: datetime, location_id: Optional[int] = None) -> List[Shipment]:
        """Expéditions planifiées dans [start, end], bornes incluses."""
        pass
