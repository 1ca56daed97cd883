from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from src.invoices.models import Invoice, InvoicePayment


class AbstractInvoiceRepository(ABC):
    """Interface abstraite pour le repository des factures."""

    @abstractmethod
    async def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        """Récupère une facture et ses lignes."""
        pass

    @abstractmethod
    async def get_by_order_id(self, order_id: int) -> Optional[Invoice]:
        pass

    @abstractmethod
    async def get_for_update(self, invoice_id: int) -> Optional[Invoice]:
        """Récupère la facture en verrouillant sa ligne jusqu'à la fin de la transaction."""
        pass

    @abstractmethod
    async def create_with_items(self, invoice_data: Dict[str, Any], items_data: List[Dict[str, Any]]) -> Invoice:
        """Ajoute la facture et ses lignes à la transaction en cours (flush, pas de commit)."""
        pass

    @abstractmethod
    async def update_balance(self, invoice_id: int, values: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def add_payment(self, payment_data: Dict[str, Any]) -> InvoicePayment:
        pass

    @abstractmethod
    async def list_payments(self, invoice_id: int) -> List[InvoicePayment]:
        """Encaissements de la facture, du plus récent au plus ancien."""
        pass
