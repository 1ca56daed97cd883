"""
Configuration spécifique au module Orders.
Contient les statuts et les transitions autorisées pour les commandes.
"""
from enum import Enum
from typing import Dict, FrozenSet


class OrderStatus(str, Enum):
    PENDING = "PENDING"        # Commande saisie, lignes modifiables
    CONFIRMED = "CONFIRMED"    # Commande confirmée, lignes figées
    COMPLETED = "COMPLETED"    # Commande terminée
    CANCELLED = "CANCELLED"    # Commande annulée


# Seules ces commandes acceptent une modification de leurs lignes
EDITABLE_ORDER_STATUSES: FrozenSet[OrderStatus] = frozenset({OrderStatus.PENDING})

ORDER_STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Version initiale d'une commande; incrémentée de 1 à chaque mise à jour réussie
INITIAL_ORDER_VERSION: int = 1

ENTITY_TYPE_ORDER: str = "Order"
