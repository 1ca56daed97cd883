"""
Module principal de l'application FastAPI.

Configure le logging et CORS, puis inclut les routeurs des devis, commandes,
expéditions et factures sous le préfixe ``/api/v1``.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import settings
from src.database import create_tables, engine
from src.invoices.router import router as invoice_router
from src.orders.router import order_router
from src.quotes.router import router as quote_router
from src.shipments.router import order_shipment_router, schedule_router

# Configurer le logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.is_development:
        # En production, le schéma est géré hors de l'application
        await create_tables()
        logger.info("Tables créées (environnement de développement).")
    yield
    if engine is not None:
        await engine.dispose()


app = FastAPI(
    title="Multi-site ERP API",
    description="Devis, commandes et expéditions multi-sites: calculs monétaires exacts et concurrence optimiste.",
    version="1.2.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ======================================================
# Inclure les routeurs
# ======================================================
app.include_router(quote_router, prefix=settings.API_V1_PREFIX)
app.include_router(order_router, prefix=settings.API_V1_PREFIX)
app.include_router(order_shipment_router, prefix=settings.API_V1_PREFIX)
app.include_router(schedule_router, prefix=settings.API_V1_PREFIX)
app.include_router(invoice_router, prefix=settings.API_V1_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "ok"}
