"""
Configuration spécifique au module Shipments.
Contient les statuts d'expédition et les transitions autorisées.
"""
from enum import Enum
from typing import Dict, FrozenSet


class ShipmentStatus(str, Enum):
    PENDING = "PENDING"        # Expédition préparée, pas encore planifiée
    SCHEDULED = "SCHEDULED"    # Créneau de livraison fixé
    SHIPPED = "SHIPPED"        # Partie de l'entrepôt
    DELIVERED = "DELIVERED"    # Livrée au client
    CANCELLED = "CANCELLED"    # Annulée, quantités rendues au stock disponible


# Statuts possibles à la création
INITIAL_SHIPMENT_STATUSES: FrozenSet[ShipmentStatus] = frozenset({
    ShipmentStatus.PENDING,
    ShipmentStatus.SCHEDULED,
})

# Une expédition partie ne se modifie plus et ne se supprime plus
IMMUTABLE_SHIPMENT_STATUSES: FrozenSet[ShipmentStatus] = frozenset({
    ShipmentStatus.SHIPPED,
    ShipmentStatus.DELIVERED,
})

SHIPMENT_STATUS_TRANSITIONS: Dict[ShipmentStatus, FrozenSet[ShipmentStatus]] = {
    ShipmentStatus.PENDING: frozenset({ShipmentStatus.SCHEDULED, ShipmentStatus.SHIPPED, ShipmentStatus.CANCELLED}),
    ShipmentStatus.SCHEDULED: frozenset({ShipmentStatus.PENDING, ShipmentStatus.SHIPPED, ShipmentStatus.CANCELLED}),
    ShipmentStatus.SHIPPED: frozenset({ShipmentStatus.DELIVERED}),
    ShipmentStatus.DELIVERED: frozenset(),
    ShipmentStatus.CANCELLED: frozenset(),
}

ENTITY_TYPE_SHIPMENT: str = "Shipment"
