from typing import Optional
from decimal import Decimal

from sqlmodel import SQLModel, Field

class LocationBase(SQLModel):
    code: str = Field(index=True, unique=True, max_length=20)
    name: str = Field(max_length=255)
    # Taux sous forme de fraction (0.0825 = 8,25 %); None -> taux par défaut de la configuration
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, max_digits=6, decimal_places=4)

class Location(LocationBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    __tablename__ = "locations"
