"""Exceptions spécifiques au module Invoice."""
from src.core.exceptions import ImmutableStateException, NotFoundException, ValidationException


class InvoiceNotFoundException(NotFoundException):
    """Levée lorsqu'une facture spécifique n'est pas trouvée."""
    def __init__(self, invoice_id: int):
        super().__init__(f"Invoice {invoice_id} not found")
        self.invoice_id = invoice_id


class OrderAlreadyInvoicedException(ImmutableStateException):
    def __init__(self, order_id: int, invoice_id: int):
        super().__init__(
            f"Order {order_id} has already been converted to invoice {invoice_id}",
            details={"invoice_id": invoice_id},
        )
        self.invoice_id = invoice_id


class OrderNotInvoiceableException(ImmutableStateException):
    """Levée pour une commande annulée."""
    def __init__(self, order_id: int, status: str):
        super().__init__(
            f"Order {order_id} is {status} and cannot be invoiced",
            details={"status": status},
        )


class CustomerCreditHoldException(ValidationException):
    def __init__(self, customer_id: int):
        super().__init__(
            "Customer account is on credit hold",
            details={"customer_id": customer_id},
        )


class InvoiceNotPayableException(ImmutableStateException):
    def __init__(self, invoice_id: int, status: str):
        super().__init__(
            f"Cannot record payment for {status.lower()} invoice {invoice_id}",
            details={"status": status},
        )


class InvalidPaymentAmountException(ValidationException):
    def __init__(self, amount: object):
        super().__init__(f"Payment amount must be positive (got {amount})")
