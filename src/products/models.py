from typing import Optional
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

# --- Modèle Product (catalogue) ---

class ProductBase(SQLModel):
    sku: str = Field(index=True, unique=True, max_length=100)
    name: str = Field(max_length=255)
    # Prix catalogue courant; les lignes de commande existantes en gardent une copie figée
    base_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)

class Product(ProductBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    # Suppression logique: l'unicité du SKU reste contrôlée sur toutes les lignes
    deleted_at: Optional[datetime] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)

    __tablename__ = "products"

class ProductRead(ProductBase):
    id: int
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
