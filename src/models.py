"""Importe toutes les tables pour les enregistrer dans ``SQLModel.metadata``."""
from src.audit.models import AuditLog  # noqa: F401
from src.customers.models import Customer  # noqa: F401
from src.invoices.models import Invoice, InvoiceItem, InvoicePayment  # noqa: F401
from src.locations.models import Location  # noqa: F401
from src.numbering.models import InvoiceSequence, OrderSequence, QuoteSequence, TransferSequence  # noqa: F401
from src.orders.models import Order, OrderItem  # noqa: F401
from src.products.models import Product  # noqa: F401
from src.quotes.models import Quote, QuoteItem  # noqa: F401
from src.shipments.models import Shipment, ShipmentItem  # noqa: F401
