from typing import List, Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories import SqlAlchemyCreditAccountRepository, SqlAlchemyMediaResourceRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.ai_feature_gate import AIFeatureGate
from src.app.services.cache_manager import MemoryCacheTier
from src.app.services.name_generation_service import NameGenerationService
from src.app.services.settlement_service import (
    RemoteSettlementService,
    SettlementConfirmation,
)
from src.depends import (
    build_rename_orchestrator,
    get_ai_feature_gate,
    get_memory_cache_tier,
    get_name_generator,
    get_session,
    get_settlement_service,
)
from src.domain.base import utcnow
from src.domain.credit_account import CreditAccount
from src.domain.media_resource import MediaResource


class StubNameGenerator(NameGenerationService):
    """Returns canned names, or raises ``error`` when set"""

    def __init__(self, names: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.names = names or ["red-bicycle-city-street", "urban-cycling-photo", "bike-on-brick-wall"]
        self.error = error
        self.analyses = []

    async def generate(self, analysis, context, count, timeout=None):
        self.analyses.append(analysis)
        if self.error is not None:
            raise self.error
        return self.names[:count]

    async def test_connection(self) -> bool:
        if self.error is not None:
            raise self.error
        return True


class StubSettlementService(RemoteSettlementService):
    """Plays back ``outcomes`` in order: exceptions are raised, anything else confirms"""

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.calls = []

    async def deduct(self, owner_id, amount, request_id, operation, attempt=1):
        self.calls.append({"owner_id": owner_id, "request_id": request_id, "attempt": attempt})
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        return SettlementConfirmation(confirmed=True, request_id=request_id, remaining_balance=outcome)


@pytest_asyncio.fixture(scope="function")
async def engine():
    """Shared in-memory SQLite database, rebuilt for every test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Create a new database session for each test"""
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
def name_generator():
    return StubNameGenerator()


@pytest_asyncio.fixture
def gate():
    return AIFeatureGate()


@pytest_asyncio.fixture
def orchestrator(db_session, gate, name_generator):
    return build_rename_orchestrator(db_session, gate, name_generator, memory_tier=MemoryCacheTier())


@pytest_asyncio.fixture
def create_media(db_session):
    """Insert a media resource and commit"""

    async def _create(owner_id: str = "user_1", **fields) -> MediaResource:
        values = {
            "filename": "IMG_0042",
            "extension": "jpg",
            "mime_type": "image/jpeg",
            "title": "Red bicycle on a city street",
            "tags": ["bicycle", "city"],
        }
        values.update(fields)
        resource = await SqlAlchemyMediaResourceRepository(db_session).create(
            MediaResource(owner_id=owner_id, **values)
        )
        await SqlAlchemyUnitOfWork(db_session).commit()
        return resource

    return _create


@pytest_asyncio.fixture
def fund_account(db_session):
    """Create a credit account with the given balance and commit"""

    async def _fund(owner_id: str = "user_1", balance: int = 5, created_at=None) -> CreditAccount:
        now = utcnow()
        account = await SqlAlchemyCreditAccountRepository(db_session).create(
            CreditAccount(
                owner_id=owner_id, balance=balance, used_total=0, created_at=created_at or now, last_updated=now
            )
        )
        await SqlAlchemyUnitOfWork(db_session).commit()
        return account

    return _fund


@pytest_asyncio.fixture
async def client(db_session, gate, name_generator):
    """Create test client with session and collaborator overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)
    memory_tier = MemoryCacheTier()

    # Override the session dependency to use test session
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_ai_feature_gate] = lambda: gate
    app.dependency_overrides[get_name_generator] = lambda: name_generator
    app.dependency_overrides[get_settlement_service] = lambda: None
    app.dependency_overrides[get_memory_cache_tier] = lambda: memory_tier

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
def settled_orchestrator(db_session, gate, name_generator):
    """Orchestrator charging through a StubSettlementService playing back ``outcomes``"""

    def _build(outcomes):
        settlement = StubSettlementService(outcomes)
        orchestrator = build_rename_orchestrator(
            db_session, gate, name_generator, settlement_service=settlement, memory_tier=MemoryCacheTier()
        )
        return orchestrator, settlement

    return _build


@pytest_asyncio.fixture
def settlement_stub():
    """Factory for StubSettlementService"""
    return StubSettlementService
