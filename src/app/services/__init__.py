from .unit_of_work import UnitOfWork
from .settlement_service import (
    RemoteSettlementService,
    SettlementConfirmation,
    SettlementError,
    SettlementNotConfiguredError,
    SettlementRejectedError,
    SettlementTransientError,
)
from .content_analyzer import ContentAnalyzer, ContentAnalysis
from .context_extractor import ContextExtractor, PageContext
from .name_generation_service import NameGenerationService
from .media_renamer import MediaRenamer
from .rate_limiter import RateLimiter, DEFAULT_RATE_LIMITS
from .cache_manager import CacheManager, MemoryCacheTier, DEFAULT_CACHE_TTLS
from .ai_feature_gate import AIFeatureGate

__all__ = [
    "UnitOfWork",
    "RemoteSettlementService",
    "SettlementConfirmation",
    "SettlementError",
    "SettlementNotConfiguredError",
    "SettlementRejectedError",
    "SettlementTransientError",
    "ContentAnalyzer",
    "ContentAnalysis",
    "ContextExtractor",
    "PageContext",
    "NameGenerationService",
    "MediaRenamer",
    "RateLimiter",
    "DEFAULT_RATE_LIMITS",
    "CacheManager",
    "MemoryCacheTier",
    "DEFAULT_CACHE_TTLS",
    "AIFeatureGate",
]
