from .unit_of_work import SqlAlchemyUnitOfWork
from .settlement_service import HttpSettlementService
from .name_generation_service import HttpNameGenerationService
from .content_analyzer import MetadataContentAnalyzer
from .context_extractor import CatalogContextExtractor
from .media_renamer import CatalogMediaRenamer

__all__ = [
    "SqlAlchemyUnitOfWork",
    "HttpSettlementService",
    "HttpNameGenerationService",
    "MetadataContentAnalyzer",
    "CatalogContextExtractor",
    "CatalogMediaRenamer",
]
