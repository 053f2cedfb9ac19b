from .dtos import BulkRenameResultDTO, CreditStatusDTO, RenameOptions
from .pipeline import RenamePipeline
from .fallbacks import FallbackToBasicRename, UseMetadataOnly
from .orchestrator import RenameOrchestrator

__all__ = [
    "BulkRenameResultDTO",
    "CreditStatusDTO",
    "RenameOptions",
    "RenamePipeline",
    "FallbackToBasicRename",
    "UseMetadataOnly",
    "RenameOrchestrator",
]
