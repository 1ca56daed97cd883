from typing import Optional

from sqlmodel import SQLModel, Field

class CustomerBase(SQLModel):
    name: str = Field(max_length=255)
    # Client exonéré: aucune taxe n'est appliquée à ses devis et commandes
    tax_exempt: bool = Field(default=False)
    # Délai de paiement des factures; None -> DEFAULT_PAYMENT_TERM_DAYS
    payment_term_days: Optional[int] = Field(default=None, ge=0, le=365)
    # Compte bloqué: aucune nouvelle facture
    credit_hold: bool = Field(default=False)

class Customer(CustomerBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    __tablename__ = "customers"
