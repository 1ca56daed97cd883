from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field, Relationship

from src.orders.config import OrderStatus, INITIAL_ORDER_VERSION

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

# --- Modèles de base pour OrderItem ---

class OrderItemBase(SQLModel):
    """Base pour les champs de la table OrderItem."""
    product_id: int = Field(foreign_key="products.id", index=True)
    quantity: int = Field(..., gt=0)
    # Prix et remise figés au moment de l'ajout de la ligne
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    subtotal: Decimal = Field(..., max_digits=14, decimal_places=2)

class OrderItem(OrderItemBase, table=True):
    """Modèle de table pour les lignes de commande."""
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)

    __tablename__ = "order_items"

# --- Modèles de base pour Order ---

class OrderBase(SQLModel):
    """Base pour les champs de la table Order."""
    order_number: str = Field(index=True, unique=True, max_length=50)
    customer_id: int = Field(foreign_key="customers.id", index=True)
    location_id: int = Field(foreign_key="locations.id", index=True)
    quote_id: Optional[int] = Field(default=None, index=True)
    status: str = Field(default=OrderStatus.PENDING.value, max_length=20, index=True)
    subtotal: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    line_discount_total: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    delivery_fee: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    total_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    delivery_address: Optional[str] = Field(default=None, max_length=500)

class Order(OrderBase, table=True):
    """Modèle de table pour les commandes."""
    id: Optional[int] = Field(default=None, primary_key=True)
    # Compteur de concurrence optimiste
    version: int = Field(default=INITIAL_ORDER_VERSION, nullable=False)
    created_by: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    items: List["OrderItem"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "OrderItem.id"}
    )

    __tablename__ = "orders"

# --- Schémas API ---

class OrderItemRead(OrderItemBase):
    id: int
    order_id: int

    model_config = ConfigDict(from_attributes=True)

class OrderRead(OrderBase):
    id: int
    version: int
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemRead] = []

    model_config = ConfigDict(from_attributes=True)

class OrderLineCreate(SQLModel):
    """Ligne demandée à la création: le prix vient du catalogue."""
    product_id: int
    quantity: int
    discount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)

class OrderCreate(SQLModel):
    customer_id: int
    location_id: int
    items: List[OrderLineCreate]
    delivery_address: Optional[str] = Field(default=None, max_length=500)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)

class OrderEditItem(SQLModel):
    """Ligne du panier souhaité. Quantité ≤ 0 sur une ligne existante: la ligne est retirée."""
    product_id: int
    quantity: int

class OrderEdit(SQLModel):
    """Édition d'une commande: panier complet + champs de livraison."""
    # None: contrôle de version désactivé (appelants internes de confiance)
    expected_version: Optional[int] = Field(default=None, ge=0)
    items: List[OrderEditItem]
    delivery_address: Optional[str] = Field(default=None, max_length=500)

class OrderStatusUpdate(SQLModel):
    status: OrderStatus
    expected_version: Optional[int] = Field(default=None, ge=0)
