from typing import Optional

from sqlmodel import SQLModel, Field

# Tables de séquence: une identité auto-incrémentée et rien d'autre.
# Une ligne insérée n'est jamais réutilisée, même si l'entité numérotée est supprimée.

class QuoteSequence(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    __tablename__ = "quote_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

class OrderSequence(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    __tablename__ = "order_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

class TransferSequence(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    __tablename__ = "transfer_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

class InvoiceSequence(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    __tablename__ = "invoice_sequences"
    __table_args__ = {"sqlite_autoincrement": True}
