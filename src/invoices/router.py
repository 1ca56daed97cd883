import logging
from typing import List

from fastapi import APIRouter, status

from src.auth.dependencies import CurrentUserDep
from src.core.errors import to_http_exception
from src.invoices.dependencies import InvoiceServiceDep
from src.invoices.models import InvoiceFromOrder, InvoiceRead, PaymentCreate, PaymentRead

logger = logging.getLogger(__name__)

# --- Création du Routeur ---
router = APIRouter(
    prefix="/invoices",
    tags=["Invoices"]
)

@router.post("/convert-from-order", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
async def convert_order_to_invoice_endpoint(
    invoice_service: InvoiceServiceDep,
    current_user: CurrentUserDep,
    request: InvoiceFromOrder,
):
    """Facture une commande (une seule facture par commande)."""
    logger.info(f"API convert_order_to_invoice commande {request.order_id} pour user ID: {current_user.user_id}")
    try:
        return await invoice_service.convert_order_to_invoice(
            request.order_id, notes=request.notes, current_user=current_user
        )
    except Exception as e:
        raise to_http_exception(e, f"convert_order_to_invoice order={request.order_id}")

@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice_endpoint(
    invoice_service: InvoiceServiceDep,
    current_user: CurrentUserDep,
    invoice_id: int,
):
    try:
        return await invoice_service.get_invoice(invoice_id)
    except Exception as e:
        raise to_http_exception(e, f"get_invoice id={invoice_id}")

@router.post("/{invoice_id}/payments", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
async def record_payment_endpoint(
    invoice_service: InvoiceServiceDep,
    current_user: CurrentUserDep,
    invoice_id: int,
    payment: PaymentCreate,
):
    """Enregistre un encaissement et met à jour le solde de la facture."""
    try:
        return await invoice_service.record_payment(invoice_id, payment, current_user=current_user)
    except Exception as e:
        raise to_http_exception(e, f"record_payment invoice={invoice_id}")

@router.get("/{invoice_id}/payments", response_model=List[PaymentRead])
async def list_payments_endpoint(
    invoice_service: InvoiceServiceDep,
    current_user: CurrentUserDep,
    invoice_id: int,
):
    try:
        return await invoice_service.list_payments(invoice_id)
    except Exception as e:
        raise to_http_exception(e, f"list_payments invoice={invoice_id}")
