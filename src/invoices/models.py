from typing import Optional, List
from decimal import Decimal
from datetime import datetime, timezone

from pydantic import ConfigDict, field_validator
from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field, Relationship

from src.invoices.config import InvoiceStatus, PaymentMethod

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _assume_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite rend des datetimes naïves; elles sont stockées en UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

# --- Modèles pour InvoiceItem ---

class InvoiceItemBase(SQLModel):
    """Ligne de facture recopiée d'une ligne de commande (prix et remise figés)."""
    product_id: int = Field(foreign_key="products.id", index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    subtotal: Decimal = Field(..., max_digits=14, decimal_places=2)

class InvoiceItem(InvoiceItemBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    invoice_id: int = Field(foreign_key="invoices.id", index=True)

    __tablename__ = "invoice_items"

# --- Modèles pour Invoice ---

class InvoiceBase(SQLModel):
    invoice_number: str = Field(index=True, unique=True, max_length=50)
    customer_id: int = Field(foreign_key="customers.id", index=True)
    location_id: int = Field(foreign_key="locations.id", index=True)
    # Unique: une commande n'est facturée qu'une fois
    order_id: Optional[int] = Field(default=None, foreign_key="orders.id", unique=True, index=True)
    status: str = Field(default=InvoiceStatus.DRAFT.value, max_length=20, index=True)
    subtotal: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    line_discount_total: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    delivery_fee: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    total_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    paid_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    balance_due: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    payment_term_days: int = Field(default=30, ge=0)
    notes: Optional[str] = Field(default=None, max_length=2000)
    terms: Optional[str] = Field(default=None, max_length=2000)

class Invoice(InvoiceBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    invoice_date: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    due_date: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    paid_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    created_by: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    items: List["InvoiceItem"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "InvoiceItem.id"}
    )

    __tablename__ = "invoices"

# --- Modèle InvoicePayment ---

class InvoicePaymentBase(SQLModel):
    invoice_id: int = Field(foreign_key="invoices.id", index=True)
    customer_id: int = Field(foreign_key="customers.id", index=True)
    amount: Decimal = Field(..., max_digits=14, decimal_places=2)
    # Part imputée sur le solde de la facture; le reste est un avoir non affecté
    applied_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    unapplied_amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    payment_method: str = Field(max_length=30)
    reference_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=500)

class InvoicePayment(InvoicePaymentBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    payment_date: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    recorded_by: Optional[int] = Field(default=None)

    __tablename__ = "invoice_payments"

# --- Schémas API ---

class InvoiceFromOrder(SQLModel):
    order_id: int
    notes: Optional[str] = Field(default=None, max_length=2000)

class InvoiceItemRead(InvoiceItemBase):
    id: int
    invoice_id: int

    model_config = ConfigDict(from_attributes=True)

class InvoiceRead(InvoiceBase):
    id: int
    invoice_date: datetime
    due_date: datetime
    paid_at: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    items: List[InvoiceItemRead] = []

    model_config = ConfigDict(from_attributes=True)

    @field_validator("invoice_date", "due_date", "paid_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _assume_utc(value)

class PaymentCreate(SQLModel):
    amount: Decimal = Field(..., max_digits=14, decimal_places=2)
    payment_method: PaymentMethod
    reference_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=500)
    # None -> maintenant
    payment_date: Optional[datetime] = None

class PaymentRead(InvoicePaymentBase):
    id: int
    payment_date: datetime
    recorded_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("payment_date")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return _assume_utc(value)
