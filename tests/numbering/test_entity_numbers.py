import asyncio
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from src import models  # noqa: F401
from src.numbering.config import ENTITY_CONFIGS, EntityNumberConfig, EntityType
from src.numbering.exceptions import UnknownEntityTypeException
from src.numbering.service import (
    EntityNumberGenerator,
    format_entity_number,
    generate_entity_number,
    is_valid_entity_number,
)


def test_format_entity_number():
    config = EntityNumberConfig(prefix="ORD", start_from=1000, pad=6)
    assert format_entity_number(config, 1) == "ORD-001001"
    assert format_entity_number(config, 9000000) == "ORD-9001000"


def test_is_valid_entity_number():
    assert is_valid_entity_number("ORD-001001", EntityType.ORDER)
    assert is_valid_entity_number("Q-001001", "QUOTE")
    assert is_valid_entity_number("INV-001001", EntityType.INVOICE)
    assert not is_valid_entity_number("Q-001001", EntityType.ORDER)
    assert not is_valid_entity_number("ORD-", EntityType.ORDER)
    with pytest.raises(UnknownEntityTypeException):
        is_valid_entity_number("X-1", "CREDIT_MEMO")


@pytest.mark.asyncio
async def test_numbers_are_monotonic_per_type(db_session: AsyncSession):
    generator = EntityNumberGenerator(db_session)
    orders = [await generator.generate(EntityType.ORDER) for _ in range(3)]
    quote = await generator.generate("QUOTE")
    transfer = await generator.generate(EntityType.TRANSFER)
    invoice = await generator.generate("INVOICE")
    await db_session.commit()

    assert orders == ["ORD-001001", "ORD-001002", "ORD-001003"]
    assert quote == "Q-001001"
    assert transfer == "TXF-001001"
    assert invoice == "INV-001001"


@pytest.mark.asyncio
async def test_module_helper_shares_the_caller_transaction(db_session: AsyncSession):
    number = await generate_entity_number(db_session, EntityType.QUOTE)
    await db_session.rollback()
    assert number == "Q-001001"


@pytest.mark.asyncio
async def test_unknown_entity_type(db_session: AsyncSession):
    with pytest.raises(UnknownEntityTypeException):
        await EntityNumberGenerator(db_session).generate("CREDIT_MEMO")


@pytest.mark.asyncio
async def test_timestamp_fallback_without_sequence_table(db_session: AsyncSession):
    fixed = datetime(2025, 12, 15, 12, 0, tzinfo=timezone.utc)
    configs = {**ENTITY_CONFIGS, EntityType.TRANSFER: EntityNumberConfig(prefix="TXF", sequence_model=None)}
    generator = EntityNumberGenerator(db_session, configs=configs, clock=lambda: fixed)
    number = await generator.generate(EntityType.TRANSFER)
    assert number == f"TXF-{int(fixed.timestamp() * 1000)}"

# --- Concurrence: sessions distinctes sur une même base fichier ---

@pytest_asyncio.fixture(scope="function")
async def file_session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'numbers.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.mark.asyncio
async def test_concurrent_generation_yields_distinct_numbers(file_session_factory):
    async def allocate() -> str:
        async with file_session_factory() as session:
            number = await EntityNumberGenerator(session).generate(EntityType.ORDER)
            await session.commit()
            return number

    numbers = await asyncio.gather(*(allocate() for _ in range(10)))
    assert len(set(numbers)) == 10
    assert sorted(numbers) == [f"ORD-{1000 + i:06d}" for i in range(1, 11)]
