import logging

from fastapi import APIRouter, status

from src.auth.dependencies import CurrentUserDep
from src.core.errors import to_http_exception
from src.orders.models import OrderRead
from src.quotes.dependencies import QuoteServiceDep
from src.quotes.models import QuoteCreate, QuoteRead

logger = logging.getLogger(__name__)

# --- Création du Routeur ---
router = APIRouter(
    prefix="/quotes",
    tags=["Quotes"]
)

@router.post("", response_model=QuoteRead, status_code=status.HTTP_201_CREATED)
async def create_quote_endpoint(
    quote_service: QuoteServiceDep,
    current_user: CurrentUserDep,
    quote_request: QuoteCreate,
):
    """Crée un devis numéroté aux prix catalogue courants."""
    logger.info(f"API create_quote pour user ID: {current_user.user_id}")
    try:
        return await quote_service.create_quote(quote_request, current_user=current_user)
    except Exception as e:
        raise to_http_exception(e, f"create_quote user={current_user.user_id}")

@router.get("/{quote_id}", response_model=QuoteRead)
async def get_quote_endpoint(
    quote_service: QuoteServiceDep,
    current_user: CurrentUserDep,
    quote_id: int,
):
    try:
        return await quote_service.get_quote(quote_id)
    except Exception as e:
        raise to_http_exception(e, f"get_quote id={quote_id}")

@router.post("/{quote_id}/convert", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def convert_quote_endpoint(
    quote_service: QuoteServiceDep,
    current_user: CurrentUserDep,
    quote_id: int,
):
    """Transforme le devis en commande (prix et totaux du devis conservés)."""
    try:
        return await quote_service.convert_quote_to_order(quote_id, current_user=current_user)
    except Exception as e:
        raise to_http_exception(e, f"convert_quote id={quote_id}")
