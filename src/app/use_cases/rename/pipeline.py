"""Rename pipeline

The individual steps of an AI-assisted rename. Steps raise typed failures; the
orchestrator catches them once and routes them through the dispatcher.

analyze -> context -> generate -> commit -> charge -> record
"""

import logging
from typing import List, Optional

from src.app.repositories.media_resource_repository import MediaResourceRepository
from src.app.repositories.operation_record_repository import OperationRecordRepository
from src.app.services.cache_manager import CacheManager
from src.app.services.content_analyzer import ContentAnalysis, ContentAnalyzer
from src.app.services.context_extractor import ContextExtractor, PageContext
from src.app.services.media_renamer import MediaRenamer
from src.app.services.name_generation_service import NameGenerationService
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.credits.ledger import CreditLedger
from src.app.use_cases.recovery.dtos import ErrorEnvelope
from src.domain.cache_entry import CacheType
from src.domain.errors import (
    AIServiceError,
    CreditError,
    LedgerFailure,
    PermissionDenied,
    ResourceNotFound,
    ValidationFailure,
)
from src.domain.media_resource import MediaResource
from src.domain.naming import fallback_name, metadata_descriptor
from src.domain.operation_record import OperationRecord, RenameMethod
from .dtos import RenameOptions

logger = logging.getLogger(__name__)


class RenamePipeline:

    def __init__(
        self,
        uow: UnitOfWork,
        media_repo: MediaResourceRepository,
        history_repo: OperationRecordRepository,
        cache: CacheManager,
        ledger: CreditLedger,
        analyzer: ContentAnalyzer,
        context_extractor: ContextExtractor,
        name_generator: NameGenerationService,
        renamer: MediaRenamer,
        credits_per_rename: int = 1,
        history_max_entries: int = 5,
    ):
        self.uow = uow
        self.media_repo = media_repo
        self.history_repo = history_repo
        self.cache = cache
        self.ledger = ledger
        self.analyzer = analyzer
        self.context_extractor = context_extractor
        self.name_generator = name_generator
        self.renamer = renamer
        self.credits_per_rename = credits_per_rename
        self.history_max_entries = history_max_entries

    async def load_resource(self, owner_id: str, resource_id: int, is_admin: bool = False) -> MediaResource:
        resource = await self.media_repo.get_by_id(resource_id)
        if resource is None:
            raise ResourceNotFound(resource_id)
        if resource.owner_id != owner_id and not is_admin:
            raise PermissionDenied("You do not have permission to rename this media resource")
        if not resource.is_supported:
            raise ValidationFailure(f"Invalid file type: {resource.mime_type} is not supported")
        return resource

    async def analyze(self, resource: MediaResource, use_cache: bool = True) -> ContentAnalysis:
        key = self.cache.content_key(resource)
        if use_cache:
            cached = await self.cache.get(CacheType.CONTENT_ANALYSIS, key)
            if cached is not None:
                return ContentAnalysis(**cached)

        analysis = await self.analyzer.analyze(resource)

        if use_cache:
            await self.cache.set(CacheType.CONTENT_ANALYSIS, key, analysis.model_dump(), resource_id=resource.id)
        return analysis

    @staticmethod
    def metadata_analysis(resource: MediaResource) -> ContentAnalysis:
        """Analysis built from catalog metadata only, used when the analyzer fails"""
        return ContentAnalysis(
            descriptor=metadata_descriptor(resource),
            file_type=(resource.mime_type or "unknown").split("/")[0],
            analysis_method="metadata_only",
        )

    async def page_context(self, resource: MediaResource, use_cache: bool = True) -> PageContext:
        key = self.cache.context_key(resource)
        if use_cache:
            cached = await self.cache.get(CacheType.CONTEXT, key)
            if cached is not None:
                return PageContext(**cached)

        context = await self.context_extractor.extract(resource)

        if use_cache:
            await self.cache.set(CacheType.CONTEXT, key, context.model_dump(), resource_id=resource.id)
        return context

    async def suggest_names(
        self,
        resource: MediaResource,
        count: int,
        use_cache: bool = True,
        timeout: Optional[float] = None,
        analysis: Optional[ContentAnalysis] = None,
    ) -> List[str]:
        """
        Suggestions for a resource, from cache when possible

        A caller-supplied analysis (metadata-only fallback) bypasses the
        suggestion cache in both directions.
        """
        cacheable = use_cache and analysis is None
        key = self.cache.suggestions_key(resource, count)

        if cacheable:
            cached = await self.cache.get(CacheType.SUGGESTIONS, key)
            if cached:
                return list(cached.get("suggestions", []))

        if analysis is None:
            analysis = await self.analyze(resource, use_cache=use_cache)
        context = await self.page_context(resource, use_cache=use_cache)

        names = await self.name_generator.generate(analysis, context, count, timeout=timeout)
        names = list(names)[:count]
        if not names:
            raise AIServiceError("AI service returned no valid suggestions.")

        if cacheable:
            await self.cache.set(CacheType.SUGGESTIONS, key, {"suggestions": names}, resource_id=resource.id)
        return names

    async def ensure_credits(self, owner_id: str):
        if not await self.ledger.has_sufficient(owner_id, self.credits_per_rename):
            balance = await self.ledger.balance(owner_id)
            shortfall = self.credits_per_rename - balance
            raise CreditError(
                f"You need {shortfall} more credits to perform this operation. "
                f"Current balance: {balance}, required: {self.credits_per_rename}",
                balance=balance,
                required=self.credits_per_rename,
            )

    async def commit(self, resource: MediaResource, new_name: str, state: Optional[dict] = None) -> str:
        """Apply the name and drop the resource's cached artifacts"""
        resource_id = resource.id
        applied = await self.renamer.commit_rename(resource, new_name)
        if state is not None:
            state["committed_filename"] = applied
        await self.cache.invalidate(resource_id)
        return applied

    async def charge(self, owner_id: str, resource_id: int, operation: str, max_retries: int) -> int:
        """Deduct the rename cost. Returns the balance after the deduction."""
        if self.ledger.settlement_configured:
            result = await self.ledger.deduct_with_remote_settlement(
                owner_id,
                self.credits_per_rename,
                operation,
                resource_id=resource_id,
                max_retries=max_retries,
            )
            if result.is_ok():
                return result.value.transaction.balance_after
        else:
            result = await self.ledger.deduct(owner_id, self.credits_per_rename, operation, resource_id=resource_id)
            if result.is_ok():
                return result.value.balance_after

        balance = await self.ledger.balance(owner_id)
        raise LedgerFailure(result.error, balance=balance, required=self.credits_per_rename)

    async def record(
        self,
        owner_id: str,
        resource_id: int,
        method: RenameMethod,
        suggestions: List[str],
        previous_name: Optional[str],
        selected_name: Optional[str],
        credits_used: int = 0,
        fallback_used: bool = False,
        error_message: Optional[str] = None,
        bulk_batch_id: Optional[str] = None,
    ):
        selected_index = None
        if selected_name:
            stem = selected_name.rsplit(".", 1)[0]
            for index, suggestion in enumerate(suggestions):
                if suggestion == stem or stem.startswith(f"{suggestion}-"):
                    selected_index = index
                    break

        await self.history_repo.append(
            OperationRecord(
                resource_id=resource_id,
                owner_id=owner_id,
                method=method,
                suggestions_considered=list(suggestions),
                selected_index=selected_index,
                previous_name=previous_name,
                selected_name=selected_name,
                credits_used=credits_used,
                fallback_used=fallback_used,
                error_occurred=error_message is not None,
                error_message=error_message,
                bulk_batch_id=bulk_batch_id,
            ),
            keep_latest=self.history_max_entries,
        )
        await self.uow.commit()

    async def complete_rename(
        self,
        owner_id: str,
        resource: MediaResource,
        options: RenameOptions,
        selected_name: Optional[str] = None,
        analysis: Optional[ContentAnalysis] = None,
        credit_operation: str = "ai_rename",
        bulk_batch_id: Optional[str] = None,
        state: Optional[dict] = None,
        fallback_used: bool = False,
    ) -> ErrorEnvelope:
        """AI rename from credit check to history record"""
        resource_id = resource.id
        previous_name = resource.full_filename

        await self.ensure_credits(owner_id)

        if selected_name:
            suggestions = [selected_name]
            new_name = selected_name
        else:
            suggestions = await self.suggest_names(
                resource,
                1,
                use_cache=options.cache_enabled,
                timeout=options.timeout,
                analysis=analysis,
            )
            new_name = suggestions[0]

        applied = await self.commit(resource, new_name, state)

        try:
            balance = await self.charge(owner_id, resource_id, credit_operation, options.max_retries)
        except Exception as e:
            await self.record(
                owner_id,
                resource_id,
                RenameMethod.AI,
                suggestions,
                previous_name,
                applied,
                credits_used=0,
                fallback_used=fallback_used,
                error_message=f"Credit deduction failed after rename: {e}",
                bulk_batch_id=bulk_batch_id,
            )
            raise

        await self.record(
            owner_id,
            resource_id,
            RenameMethod.AI,
            suggestions,
            previous_name,
            applied,
            credits_used=self.credits_per_rename,
            fallback_used=fallback_used,
            bulk_batch_id=bulk_batch_id,
        )

        logger.info(
            f"Renamed resource {resource_id} for {owner_id}: {previous_name} -> {applied}"
            + (f" (batch {bulk_batch_id})" if bulk_batch_id else "")
        )
        return ErrorEnvelope(
            success=True,
            message="File renamed successfully with AI.",
            method=RenameMethod.AI.value,
            resource_id=resource_id,
            filename=applied,
            suggestions=suggestions,
            credits_used=self.credits_per_rename,
            current_balance=balance,
        )

    async def fallback_rename(
        self,
        owner_id: str,
        resource: MediaResource,
        failure: Exception,
        bulk_batch_id: Optional[str] = None,
        state: Optional[dict] = None,
    ) -> ErrorEnvelope:
        """Rename from existing metadata without AI. Free of charge."""
        resource_id = resource.id
        previous_name = resource.full_filename
        new_name = fallback_name(resource)

        applied = await self.commit(resource, new_name, state)
        await self.record(
            owner_id,
            resource_id,
            RenameMethod.FALLBACK,
            [new_name],
            previous_name,
            applied,
            credits_used=0,
            fallback_used=True,
            error_message=str(failure),
            bulk_batch_id=bulk_batch_id,
        )

        logger.info(f"Renamed resource {resource_id} with fallback name {applied} (AI unavailable)")
        return ErrorEnvelope(
            success=True,
            message="File renamed using fallback method (AI unavailable).",
            method=RenameMethod.FALLBACK.value,
            resource_id=resource_id,
            filename=applied,
            suggestions=[new_name],
            credits_used=0,
        )

    async def manual_rename(self, owner_id: str, resource: MediaResource, new_name: str) -> ErrorEnvelope:
        resource_id = resource.id
        previous_name = resource.full_filename

        applied = await self.commit(resource, new_name)
        await self.record(owner_id, resource_id, RenameMethod.MANUAL, [], previous_name, applied)

        return ErrorEnvelope(
            success=True,
            message="File renamed successfully.",
            method=RenameMethod.MANUAL.value,
            resource_id=resource_id,
            filename=applied,
        )
