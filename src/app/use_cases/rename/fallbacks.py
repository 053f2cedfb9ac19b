"""Rename recovery strategies

Registered by the orchestrator for AI-side failures. Both resume the pipeline
from the resource already loaded into the failure context.
"""

import logging

from src.app.use_cases.recovery.dtos import ErrorEnvelope, FailureContext
from src.app.use_cases.recovery.strategies import FallbackStrategy
from src.domain.errors import AIServiceError, ErrorKind
from src.domain.naming import fallback_name
from .dtos import RenameOptions
from .pipeline import RenamePipeline

logger = logging.getLogger(__name__)

SUGGEST_OPERATION = "suggest"


def _unavailable(kind: ErrorKind, context: FailureContext, message: str, strategy: str) -> ErrorEnvelope:
    return ErrorEnvelope(
        success=False,
        error_kind=kind,
        message=message,
        manual_path_available=True,
        fallback_strategy_used=strategy,
        resource_id=context.resource_id,
    )


class FallbackToBasicRename(FallbackStrategy):
    """Name the file from its own metadata and commit it without charging"""

    name = "fallback_to_basic_rename"

    def __init__(self, pipeline: RenamePipeline):
        self.pipeline = pipeline

    async def handle(self, failure, kind, context):
        resource = context.resource
        if not context.fallback_enabled or resource is None or context.state.get("committed_filename"):
            return _unavailable(
                kind,
                context,
                "AI service is unavailable. Please try again later or rename the file manually.",
                self.name,
            )

        if context.operation == SUGGEST_OPERATION:
            return ErrorEnvelope(
                success=True,
                message="Suggestions generated from existing metadata (AI unavailable).",
                method="fallback",
                fallback_strategy_used=self.name,
                resource_id=context.resource_id,
                suggestions=[fallback_name(resource)],
            )

        envelope = await self.pipeline.fallback_rename(
            context.owner_id,
            resource,
            failure,
            bulk_batch_id=context.bulk_batch_id,
            state=context.state,
        )
        envelope.fallback_strategy_used = self.name
        return envelope


class UseMetadataOnly(FallbackStrategy):
    """
    Continue naming with a metadata-only descriptor

    When the name generator then fails as well, the basic rename takes over.
    """

    name = "use_metadata_only"

    def __init__(self, pipeline: RenamePipeline, basic: FallbackToBasicRename):
        self.pipeline = pipeline
        self.basic = basic

    async def handle(self, failure, kind, context):
        resource = context.resource
        if not context.fallback_enabled or resource is None or context.state.get("committed_filename"):
            return _unavailable(
                kind,
                context,
                "The file content could not be analyzed. Please rename the file manually.",
                self.name,
            )

        options = context.state.get("options") or RenameOptions()
        analysis = self.pipeline.metadata_analysis(resource)
        logger.info(f"Continuing {context.operation} of resource {context.resource_id} with metadata-only analysis")

        try:
            if context.operation == SUGGEST_OPERATION:
                names = await self.pipeline.suggest_names(
                    resource,
                    context.suggestion_count or 1,
                    use_cache=options.cache_enabled,
                    timeout=options.timeout,
                    analysis=analysis,
                )
                return ErrorEnvelope(
                    success=True,
                    message="Suggestions generated from metadata (content analysis unavailable).",
                    method="ai",
                    fallback_strategy_used=self.name,
                    resource_id=context.resource_id,
                    suggestions=names,
                )

            envelope = await self.pipeline.complete_rename(
                context.owner_id,
                resource,
                options,
                analysis=analysis,
                credit_operation=context.state.get("credit_operation", "ai_rename"),
                bulk_batch_id=context.bulk_batch_id,
                state=context.state,
                fallback_used=True,
            )
        except AIServiceError as e:
            logger.warning(f"Name generation failed on metadata-only path for resource {context.resource_id}: {e}")
            return await self.basic.handle(e, ErrorKind.AI_SERVICE, context)

        envelope.fallback_strategy_used = self.name
        return envelope
