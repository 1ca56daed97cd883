from typing import Optional, List
from decimal import Decimal
from datetime import datetime, timezone

from pydantic import ConfigDict, field_validator
from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field, Relationship

from src.quotes.config import QuoteStatus

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

# --- Modèles pour QuoteItem ---

class QuoteItemBase(SQLModel):
    """Ligne de devis; mêmes colonnes monétaires qu'une ligne de commande."""
    product_id: int = Field(foreign_key="products.id", index=True)
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    subtotal: Decimal = Field(..., max_digits=14, decimal_places=2)

class QuoteItem(QuoteItemBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    quote_id: int = Field(foreign_key="quotes.id", index=True)

    __tablename__ = "quote_items"

# --- Modèles pour Quote ---

class QuoteBase(SQLModel):
    quote_number: str = Field(index=True, unique=True, max_length=50)
    customer_id: int = Field(foreign_key="customers.id", index=True)
    location_id: int = Field(foreign_key="locations.id", index=True)
    status: str = Field(default=QuoteStatus.DRAFT.value, max_length=20, index=True)
    subtotal: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    line_discount_total: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    delivery_fee: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    total_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    delivery_address: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=2000)
    converted_to_order_id: Optional[int] = Field(default=None, index=True)

class Quote(QuoteBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    valid_until: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    created_by: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    items: List["QuoteItem"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "QuoteItem.id"}
    )

    __tablename__ = "quotes"

# --- Schémas API ---

class QuoteLineCreate(SQLModel):
    product_id: int
    quantity: int
    discount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)

class QuoteCreate(SQLModel):
    customer_id: int
    location_id: int
    items: List[QuoteLineCreate]
    delivery_address: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=2000)
    # None -> QUOTE_VALIDITY_DAYS
    validity_days: Optional[int] = Field(default=None, gt=0)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    # Paliers de remise sur volume appliqués au prix catalogue
    apply_bulk_discount: bool = False

class QuoteItemRead(QuoteItemBase):
    id: int
    quote_id: int

    model_config = ConfigDict(from_attributes=True)

class QuoteRead(QuoteBase):
    id: int
    valid_until: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    items: List[QuoteItemRead] = []

    model_config = ConfigDict(from_attributes=True)

    @field_validator("valid_until")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
