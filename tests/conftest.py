# Standard Library
from decimal import Decimal
from typing import AsyncGenerator, Dict, List

# Third-Party Libraries
import pytest
import pytest_asyncio

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# First-Party Libraries (Your project)
from src import models  # noqa: F401  (enregistre toutes les tables)
from src.main import app
from src.database import get_db_session
from src.audit.service import SQLAuditLogger
from src.auth.dependencies import get_current_user
from src.auth.models import CurrentUser
from src.customers.models import Customer
from src.customers.repositories import SQLAlchemyCustomerRepository
from src.invoices.repositories import SQLAlchemyInvoiceRepository
from src.invoices.service import InvoiceService
from src.locations.models import Location
from src.locations.repositories import SQLAlchemyLocationRepository
from src.numbering.service import EntityNumberGenerator
from src.orders.models import OrderCreate, OrderLineCreate, OrderRead
from src.orders.repositories import SQLAlchemyOrderRepository
from src.orders.service import OrderService
from src.products.models import Product
from src.products.repositories import SQLAlchemyProductRepository
from src.quotes.repositories import SQLAlchemyQuoteRepository
from src.quotes.service import QuoteService
from src.shipments.repositories import SQLAlchemyShipmentRepository
from src.shipments.service import ShipmentService

# URL de base pour la DB en mémoire
TEST_DATABASE_BASE_URL = "sqlite+aiosqlite:///:memory:"

API_PREFIX = "/api/v1"

# --- Fixtures de Base ---

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Crée un engine, des tables, et fournit une session DB en mémoire pour chaque test."""
    # StaticPool: une seule connexion, donc une seule base en mémoire pour tout le test
    engine: AsyncEngine = create_async_engine(TEST_DATABASE_BASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with TestingSessionLocal() as session:
        yield session

    await engine.dispose()

@pytest.fixture(scope="function")
def current_user() -> CurrentUser:
    return CurrentUser(user_id=42, role="ADMIN", location_ids=[1])

@pytest_asyncio.fixture(scope="function")
async def test_client(db_session: AsyncSession, current_user: CurrentUser) -> AsyncGenerator[AsyncClient, None]:
    """Fournit un AsyncClient httpx qui utilise la session DB de test isolée."""
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_get_current_user() -> CurrentUser:
        return current_user

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_current_user] = override_get_current_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

# --- Fixtures Référentiel (sites, clients, catalogue) ---
# Objets détachés de la session: un rollback dans un service ne les expire pas.

@pytest_asyncio.fixture(scope="function")
async def test_location(db_session: AsyncSession) -> Location:
    """Site avec un taux de taxe de 8,25 %."""
    location = Location(code="AUS", name="Austin", tax_rate=Decimal("0.0825"))
    db_session.add(location)
    await db_session.commit()
    await db_session.refresh(location)
    db_session.expunge(location)
    return location

@pytest_asyncio.fixture(scope="function")
async def other_location(db_session: AsyncSession) -> Location:
    """Site sans taux propre: le taux par défaut de la configuration s'applique."""
    location = Location(code="DAL", name="Dallas", tax_rate=None)
    db_session.add(location)
    await db_session.commit()
    await db_session.refresh(location)
    db_session.expunge(location)
    return location

@pytest_asyncio.fixture(scope="function")
async def test_customer(db_session: AsyncSession) -> Customer:
    customer = Customer(name="Acme Landscaping", tax_exempt=False)
    db_session.add(customer)
    await db_session.commit()
    await db_session.refresh(customer)
    db_session.expunge(customer)
    return customer

@pytest_asyncio.fixture(scope="function")
async def exempt_customer(db_session: AsyncSession) -> Customer:
    customer = Customer(name="City Parks Department", tax_exempt=True)
    db_session.add(customer)
    await db_session.commit()
    await db_session.refresh(customer)
    db_session.expunge(customer)
    return customer

@pytest_asyncio.fixture(scope="function")
async def test_products(db_session: AsyncSession) -> List[Product]:
    """Trois produits catalogue aux prix 10.00, 25.50 et 99.99."""
    products = [
        Product(sku="MULCH-BAG", name="Mulch bag", base_price=Decimal("10.00")),
        Product(sku="PAVER-SQ", name="Square paver", base_price=Decimal("25.50")),
        Product(sku="FOUNTAIN", name="Garden fountain", base_price=Decimal("99.99")),
    ]
    db_session.add_all(products)
    await db_session.commit()
    for product in products:
        await db_session.refresh(product)
        db_session.expunge(product)
    return products

# --- Fixtures Services ---

@pytest.fixture(scope="function")
def order_service(db_session: AsyncSession) -> OrderService:
    return OrderService(
        db=db_session,
        order_repository=SQLAlchemyOrderRepository(db_session),
        shipment_repository=SQLAlchemyShipmentRepository(db_session),
        product_repository=SQLAlchemyProductRepository(db_session),
        customer_repository=SQLAlchemyCustomerRepository(db_session),
        location_repository=SQLAlchemyLocationRepository(db_session),
        number_generator=EntityNumberGenerator(db_session),
        audit_logger=SQLAuditLogger(db_session),
    )

@pytest.fixture(scope="function")
def shipment_service(db_session: AsyncSession) -> ShipmentService:
    return ShipmentService(
        db=db_session,
        shipment_repository=SQLAlchemyShipmentRepository(db_session),
        order_repository=SQLAlchemyOrderRepository(db_session),
        audit_logger=SQLAuditLogger(db_session),
    )

@pytest.fixture(scope="function")
def quote_service(db_session: AsyncSession) -> QuoteService:
    return QuoteService(
        db=db_session,
        quote_repository=SQLAlchemyQuoteRepository(db_session),
        order_repository=SQLAlchemyOrderRepository(db_session),
        product_repository=SQLAlchemyProductRepository(db_session),
        customer_repository=SQLAlchemyCustomerRepository(db_session),
        location_repository=SQLAlchemyLocationRepository(db_session),
        number_generator=EntityNumberGenerator(db_session),
        audit_logger=SQLAuditLogger(db_session),
    )

@pytest.fixture(scope="function")
def invoice_service(db_session: AsyncSession) -> InvoiceService:
    return InvoiceService(
        db=db_session,
        invoice_repository=SQLAlchemyInvoiceRepository(db_session),
        order_repository=SQLAlchemyOrderRepository(db_session),
        product_repository=SQLAlchemyProductRepository(db_session),
        customer_repository=SQLAlchemyCustomerRepository(db_session),
        location_repository=SQLAlchemyLocationRepository(db_session),
        number_generator=EntityNumberGenerator(db_session),
        audit_logger=SQLAuditLogger(db_session),
    )

# --- Fixtures Commandes ---

@pytest_asyncio.fixture(scope="function")
async def pending_order(order_service: OrderService, test_customer: Customer, test_location: Location,
                        test_products: List[Product], current_user: CurrentUser) -> OrderRead:
    """
    Commande PENDING en version 1:
    10 × 10.00 (remise 5.00) + 2 × 25.50, sans adresse de livraison.
    """
    mulch, paver, _ = test_products
    return await order_service.create_order(
        OrderCreate(
            customer_id=test_customer.id,
            location_id=test_location.id,
            items=[
                OrderLineCreate(product_id=mulch.id, quantity=10, discount=Decimal("5.00")),
                OrderLineCreate(product_id=paver.id, quantity=2),
            ],
        ),
        current_user=current_user,
    )

@pytest.fixture(scope="function")
def items_by_product(pending_order: OrderRead) -> Dict[int, int]:
    """product_id -> order_item_id de la commande en attente."""
    return {item.product_id: item.id for item in pending_order.items}
