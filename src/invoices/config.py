"""
Configuration spécifique au module Invoices.
Statuts de facture et moyens de paiement acceptés.
"""
from enum import Enum
from typing import FrozenSet


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CHECK = "CHECK"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    ACH = "ACH"
    WIRE_TRANSFER = "WIRE_TRANSFER"


# Aucun encaissement ne peut être imputé sur ces factures
NON_PAYABLE_INVOICE_STATUSES: FrozenSet[InvoiceStatus] = frozenset({InvoiceStatus.CANCELLED})

DEFAULT_INVOICE_TERMS: str = "Payment due within specified terms."

ENTITY_TYPE_INVOICE: str = "Invoice"
