from typing import Optional
from fastapi import Depends
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyAuditLogRepository,
    SqlAlchemyCacheRepository,
    SqlAlchemyCreditAccountRepository,
    SqlAlchemyCreditTransactionRepository,
    SqlAlchemyMediaResourceRepository,
    SqlAlchemyOperationRecordRepository,
    SqlAlchemyRateLimitRepository,
    SqlAlchemySettlementRecordRepository,
)
from src.adapter.services import (
    CatalogContextExtractor,
    CatalogMediaRenamer,
    HttpNameGenerationService,
    HttpSettlementService,
    MetadataContentAnalyzer,
    SqlAlchemyUnitOfWork,
)
from src.app.services.ai_feature_gate import AIFeatureGate
from src.app.services.cache_manager import CacheManager, MemoryCacheTier
from src.app.services.name_generation_service import NameGenerationService
from src.app.services.rate_limiter import RateLimiter
from src.app.services.settlement_service import RemoteSettlementService
from src.app.use_cases.credits.ledger import CreditLedger
from src.app.use_cases.recovery.dispatcher import FallbackDispatcher
from src.app.use_cases.rename.orchestrator import RenameOrchestrator
from src.app.use_cases.rename.pipeline import RenamePipeline
from src.domain.cache_entry import CacheType

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# Process-wide state shared by every request
ai_feature_gate = AIFeatureGate(
    enabled=ApplicationConfig.AI_ENABLED,
    api_key_configured=bool(ApplicationConfig.AI_API_KEY),
)
memory_cache_tier = MemoryCacheTier(max_entries=ApplicationConfig.CACHE_MEMORY_MAX_ENTRIES)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_ai_feature_gate() -> AIFeatureGate:
    return ai_feature_gate


def get_memory_cache_tier() -> MemoryCacheTier:
    return memory_cache_tier


def get_name_generator() -> NameGenerationService:
    return HttpNameGenerationService(
        endpoint=ApplicationConfig.AI_API_ENDPOINT,
        api_key=ApplicationConfig.AI_API_KEY,
        timeout=ApplicationConfig.AI_TIMEOUT,
        max_retries=ApplicationConfig.AI_MAX_RETRIES,
        prompt_template=ApplicationConfig.AI_PROMPT_TEMPLATE,
    )


def get_settlement_service() -> Optional[RemoteSettlementService]:
    if not ApplicationConfig.SETTLEMENT_ENABLED:
        return None
    return HttpSettlementService(
        endpoint=ApplicationConfig.SETTLEMENT_API_ENDPOINT,
        api_key=ApplicationConfig.SETTLEMENT_API_KEY,
        timeout=ApplicationConfig.SETTLEMENT_TIMEOUT,
    )


def build_credit_ledger(
    session: AsyncSession,
    settlement_service: Optional[RemoteSettlementService] = None,
    ai_enabled: bool = ApplicationConfig.AI_ENABLED,
) -> CreditLedger:
    return CreditLedger(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCreditAccountRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
        settlement_repo=SqlAlchemySettlementRecordRepository(session),
        settlement_service=settlement_service,
        max_transactions=ApplicationConfig.MAX_TRANSACTIONS,
        free_credits_amount=ApplicationConfig.FREE_CREDITS_AMOUNT,
        free_credits_min_account_age_seconds=ApplicationConfig.FREE_CREDITS_MIN_ACCOUNT_AGE_SECONDS,
        ai_enabled=ai_enabled,
    )


def build_rename_orchestrator(
    session: AsyncSession,
    gate: AIFeatureGate,
    name_generator: NameGenerationService,
    settlement_service: Optional[RemoteSettlementService] = None,
    memory_tier: Optional[MemoryCacheTier] = None,
) -> RenameOrchestrator:
    uow = SqlAlchemyUnitOfWork(session)
    media_repo = SqlAlchemyMediaResourceRepository(session)
    ledger = build_credit_ledger(session, settlement_service, ai_enabled=gate.enabled)

    cache = CacheManager(
        uow,
        SqlAlchemyCacheRepository(session),
        enabled=ApplicationConfig.CACHE_ENABLED,
        ttls={
            CacheType.CONTENT_ANALYSIS.value: ApplicationConfig.CACHE_TTL_CONTENT_ANALYSIS,
            CacheType.CONTEXT.value: ApplicationConfig.CACHE_TTL_CONTEXT,
            CacheType.SUGGESTIONS.value: ApplicationConfig.CACHE_TTL_SUGGESTIONS,
        },
        memory_tier=memory_tier,
    )
    pipeline = RenamePipeline(
        uow,
        media_repo,
        SqlAlchemyOperationRecordRepository(session),
        cache,
        ledger,
        MetadataContentAnalyzer(),
        CatalogContextExtractor(media_repo),
        name_generator,
        CatalogMediaRenamer(uow, media_repo),
        credits_per_rename=ApplicationConfig.CREDITS_PER_RENAME,
        history_max_entries=ApplicationConfig.HISTORY_MAX_ENTRIES,
    )
    rate_limiter = RateLimiter(
        uow,
        SqlAlchemyRateLimitRepository(session),
        limits=ApplicationConfig.RATE_LIMITS,
        debug=ApplicationConfig.DEBUG,
    )
    dispatcher = FallbackDispatcher(uow=uow, audit_repo=SqlAlchemyAuditLogRepository(session))

    return RenameOrchestrator(
        pipeline,
        rate_limiter,
        dispatcher,
        gate,
        ledger,
        bulk_max_items=ApplicationConfig.BULK_MAX_ITEMS,
        credits_per_rename=ApplicationConfig.CREDITS_PER_RENAME,
    )


async def get_credit_ledger(
    session: AsyncSession = Depends(get_session),
    settlement_service: Optional[RemoteSettlementService] = Depends(get_settlement_service),
    gate: AIFeatureGate = Depends(get_ai_feature_gate),
) -> CreditLedger:
    return build_credit_ledger(session, settlement_service, ai_enabled=gate.enabled)


async def get_rename_orchestrator(
    session: AsyncSession = Depends(get_session),
    gate: AIFeatureGate = Depends(get_ai_feature_gate),
    name_generator: NameGenerationService = Depends(get_name_generator),
    settlement_service: Optional[RemoteSettlementService] = Depends(get_settlement_service),
    memory_tier: MemoryCacheTier = Depends(get_memory_cache_tier),
) -> RenameOrchestrator:
    return build_rename_orchestrator(session, gate, name_generator, settlement_service, memory_tier)
