"""Exceptions spécifiques au module Quote."""
from datetime import datetime

from src.core.exceptions import ImmutableStateException, NotFoundException


class QuoteNotFoundException(NotFoundException):
    """Levée lorsqu'un devis spécifique n'est pas trouvé."""
    def __init__(self, quote_id: int):
        super().__init__(f"Quote {quote_id} not found")
        self.quote_id = quote_id


class QuoteAlreadyConvertedException(ImmutableStateException):
    def __init__(self, quote_id: int, order_id: int):
        super().__init__(
            f"Quote {quote_id} has already been converted to order {order_id}",
            details={"order_id": order_id},
        )
        self.order_id = order_id


class QuoteNotConvertibleException(ImmutableStateException):
    """Levée pour un devis refusé ou expiré."""
    def __init__(self, quote_id: int, status: str):
        super().__init__(
            f"Quote {quote_id} is {status} and cannot be converted to an order",
            details={"status": status},
        )


class QuoteValidityExpiredException(ImmutableStateException):
    def __init__(self, quote_id: int, valid_until: datetime):
        super().__init__(
            f"Quote {quote_id} expired on {valid_until.isoformat()} and cannot be converted to an order",
            details={"valid_until": valid_until.isoformat()},
        )
