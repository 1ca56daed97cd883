from typing import Optional, List
from datetime import datetime, timezone

from pydantic import ConfigDict, field_validator
from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field, Relationship

from src.shipments.config import ShipmentStatus

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

# --- Tables ---

class ShipmentItem(SQLModel, table=True):
    """Quantité d'une ligne de commande engagée dans une expédition."""
    id: Optional[int] = Field(default=None, primary_key=True)
    shipment_id: int = Field(foreign_key="shipments.id", index=True)
    order_item_id: int = Field(foreign_key="order_items.id", index=True)
    quantity: int = Field(..., gt=0)

    __tablename__ = "shipment_items"

class Shipment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    status: str = Field(default=ShipmentStatus.SCHEDULED.value, max_length=20, index=True)
    # Toujours en UTC
    scheduled_date: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True, index=True)
    )
    duration_minutes: int = Field(default=90, gt=0)
    method: str = Field(default="DELIVERY", max_length=30)
    carrier: Optional[str] = Field(default=None, max_length=100)
    tracking_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_by: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    items: List["ShipmentItem"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "ShipmentItem.id"}
    )

    __tablename__ = "shipments"

# --- Schémas API ---

class ShipmentItemCreate(SQLModel):
    order_item_id: int
    # Contrôlée par le service pour renvoyer un message qui nomme la ligne
    quantity: int

class ShipmentCreate(SQLModel):
    items: List[ShipmentItemCreate] = []
    # "YYYY-MM-DD" ou date-heure avec fuseau explicite
    scheduled_date: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    method: Optional[str] = Field(default=None, max_length=30)
    carrier: Optional[str] = Field(default=None, max_length=100)
    tracking_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    status: ShipmentStatus = ShipmentStatus.SCHEDULED

class ShipmentUpdate(SQLModel):
    """Métadonnées modifiables. Seuls les champs envoyés sont appliqués."""
    scheduled_date: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    method: Optional[str] = Field(default=None, max_length=30)
    carrier: Optional[str] = Field(default=None, max_length=100)
    tracking_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[ShipmentStatus] = None

class ShipmentStatusUpdate(SQLModel):
    status: ShipmentStatus

class ShipmentItemRead(SQLModel):
    id: int
    shipment_id: int
    order_item_id: int
    quantity: int

    model_config = ConfigDict(from_attributes=True)

class ShipmentRead(SQLModel):
    id: int
    order_id: int
    status: ShipmentStatus
    scheduled_date: Optional[datetime] = None
    duration_minutes: int
    method: str
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    items: List[ShipmentItemRead] = []

    model_config = ConfigDict(from_attributes=True)

    @field_validator("scheduled_date", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite ne conserve pas le fuseau: les valeurs stockées sont en UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

class AllocationLine(SQLModel):
    """Reste à expédier d'une ligne de commande."""
    order_item_id: int
    product_id: int
    ordered: int
    shipped: int
    available: int
