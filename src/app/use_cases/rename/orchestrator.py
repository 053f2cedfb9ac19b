"""Rename Orchestrator

Top-level coordinator for single, suggestion-only and bulk renames.

Every public operation returns an ErrorEnvelope (or a bulk result of them).
Failures raised anywhere in the pipeline are caught exactly once here and
handed to the FallbackDispatcher.
"""

import logging
from typing import Callable, List, Optional, Union

from src.app.services.ai_feature_gate import AIFeatureGate
from src.app.services.rate_limiter import RateLimiter
from src.app.use_cases.credits.ledger import CreditLedger
from src.app.use_cases.recovery.dispatcher import FallbackDispatcher, summarize_bulk
from src.app.use_cases.recovery.dtos import ErrorEnvelope, FailureContext
from src.app.use_cases.recovery.strategies import DisableAIFeatures, ShowCreditError
from src.domain.base import generate_uuid
from src.domain.errors import CreditError, ErrorKind, LedgerFailure, ValidationFailure
from src.domain.naming import validate_selected_name
from .dtos import BulkRenameResultDTO, CreditStatusDTO, RenameOptions
from .fallbacks import SUGGEST_OPERATION, FallbackToBasicRename, UseMetadataOnly
from .pipeline import RenamePipeline

logger = logging.getLogger(__name__)

DEFAULT_BULK_MAX_ITEMS = 50
MAX_SUGGESTIONS = 5

RENAME_OPERATION = "rename"
MANUAL_RENAME_OPERATION = "manual_rename"
BULK_RENAME_OPERATION = "bulk_rename"

# Rate-limited operation names
RATE_SINGLE = "ai_rename_single"
RATE_SUGGESTIONS = "ai_suggestions"
RATE_BULK = "ai_bulk_rename"

OptionsInput = Union[RenameOptions, dict, None]


class RenameOrchestrator:

    def __init__(
        self,
        pipeline: RenamePipeline,
        rate_limiter: RateLimiter,
        dispatcher: FallbackDispatcher,
        gate: AIFeatureGate,
        ledger: CreditLedger,
        bulk_max_items: int = DEFAULT_BULK_MAX_ITEMS,
        credits_per_rename: int = 1,
        batch_id_factory: Callable[[], str] = generate_uuid,
    ):
        self.pipeline = pipeline
        self.rate_limiter = rate_limiter
        self.dispatcher = dispatcher
        self.gate = gate
        self.ledger = ledger
        self.bulk_max_items = bulk_max_items
        self.credits_per_rename = credits_per_rename
        self.batch_id_factory = batch_id_factory

        basic = FallbackToBasicRename(pipeline)
        dispatcher.register(ErrorKind.AI_SERVICE, basic)
        dispatcher.register(ErrorKind.CONTENT_ANALYSIS, UseMetadataOnly(pipeline, basic))
        dispatcher.register(ErrorKind.CONFIGURATION, DisableAIFeatures(gate))
        dispatcher.register(ErrorKind.CREDIT, ShowCreditError(ledger))

    @staticmethod
    def parse_options(options: OptionsInput) -> RenameOptions:
        if options is None:
            return RenameOptions()
        if isinstance(options, RenameOptions):
            return options
        return RenameOptions(**options)

    async def _recover(self, failure: Exception, context: FailureContext) -> ErrorEnvelope:
        """Reset a session the failure broke, then hand the failure to the dispatcher"""
        try:
            if await self.pipeline.uow.recover(failure) and context.resource is not None:
                # Rollback expired the loaded resource; ownership was already checked
                context.resource = await self.pipeline.load_resource(
                    context.owner_id, context.resource_id, is_admin=True
                )
        except Exception as e:
            logger.exception(f"Could not reset session after failed {context.operation}: {e}")
            context.resource = None
        return await self.dispatcher.handle(failure, context)

    async def rename(
        self,
        owner_id: str,
        resource_id: int,
        selected_name: Optional[str] = None,
        options: OptionsInput = None,
        is_admin: bool = False,
    ) -> ErrorEnvelope:
        """AI rename of one resource, optionally with a caller-selected name"""
        context = FailureContext(
            owner_id=owner_id,
            operation=RENAME_OPERATION,
            resource_id=resource_id,
            selected_name=selected_name,
        )
        try:
            # Step 1: Validate input
            parsed = self.parse_options(options)
            context.fallback_enabled = parsed.fallback_enabled
            context.state["options"] = parsed
            context.state["credit_operation"] = "ai_rename"
            name = validate_selected_name(selected_name) if selected_name is not None else None

            # Step 2: Admission
            await self.rate_limiter.admit(owner_id, RATE_SINGLE, is_admin=is_admin)

            # Step 3: Load resource and check AI availability
            resource = await self.pipeline.load_resource(owner_id, resource_id, is_admin=is_admin)
            context.resource = resource
            self.gate.ensure_available()

            # Step 4: Generate, commit, charge, record
            return await self.pipeline.complete_rename(
                owner_id,
                resource,
                parsed,
                selected_name=name,
                state=context.state,
            )
        except Exception as e:
            return await self._recover(e, context)

    async def rename_manual(
        self,
        owner_id: str,
        resource_id: int,
        new_name: str,
        is_admin: bool = False,
    ) -> ErrorEnvelope:
        """Rename with a name chosen by the user. Free and not rate limited."""
        context = FailureContext(
            owner_id=owner_id,
            operation=MANUAL_RENAME_OPERATION,
            resource_id=resource_id,
            selected_name=new_name,
            fallback_enabled=False,
        )
        try:
            name = validate_selected_name(new_name)
            resource = await self.pipeline.load_resource(owner_id, resource_id, is_admin=is_admin)
            context.resource = resource
            return await self.pipeline.manual_rename(owner_id, resource, name)
        except Exception as e:
            return await self._recover(e, context)

    async def suggest(
        self,
        owner_id: str,
        resource_id: int,
        count: int = 3,
        options: OptionsInput = None,
        is_admin: bool = False,
    ) -> ErrorEnvelope:
        """Name suggestions without committing anything. Not charged."""
        context = FailureContext(
            owner_id=owner_id,
            operation=SUGGEST_OPERATION,
            resource_id=resource_id,
            suggestion_count=count,
        )
        try:
            parsed = self.parse_options(options)
            context.fallback_enabled = parsed.fallback_enabled
            context.state["options"] = parsed
            if not isinstance(count, int) or isinstance(count, bool) or count < 1 or count > MAX_SUGGESTIONS:
                raise ValidationFailure(f"Invalid suggestion count: must be between 1 and {MAX_SUGGESTIONS}")

            await self.rate_limiter.admit(owner_id, RATE_SUGGESTIONS, is_admin=is_admin)

            resource = await self.pipeline.load_resource(owner_id, resource_id, is_admin=is_admin)
            context.resource = resource
            self.gate.ensure_available()

            names = await self.pipeline.suggest_names(
                resource,
                count,
                use_cache=parsed.cache_enabled,
                timeout=parsed.timeout,
            )
            return ErrorEnvelope(
                success=True,
                message=f"Generated {len(names)} suggestions.",
                method="ai",
                resource_id=resource_id,
                suggestions=names,
            )
        except Exception as e:
            return await self._recover(e, context)

    def _validate_bulk_ids(self, resource_ids: List[int]) -> List[int]:
        if not resource_ids:
            raise ValidationFailure("Invalid bulk request: no media resources selected")
        unique_ids = list(dict.fromkeys(resource_ids))
        if len(unique_ids) > self.bulk_max_items:
            raise ValidationFailure(
                f"Invalid bulk request: at most {self.bulk_max_items} media resources per batch"
            )
        return unique_ids

    async def rename_bulk(
        self,
        owner_id: str,
        resource_ids: List[int],
        options: OptionsInput = None,
        is_admin: bool = False,
    ) -> BulkRenameResultDTO:
        """
        Rename resources one after another under a single admission

        Once the balance runs out the remaining items are reported as credit
        errors without touching the rate limiter or the cache.
        """
        batch_id = self.batch_id_factory()
        batch_context = FailureContext(owner_id=owner_id, operation=BULK_RENAME_OPERATION, bulk_batch_id=batch_id)

        # Step 1: Validate, admit once, check AI availability
        try:
            parsed = self.parse_options(options)
            unique_ids = self._validate_bulk_ids(list(resource_ids or []))
            await self.rate_limiter.admit(owner_id, RATE_BULK, is_admin=is_admin)
            self.gate.ensure_available()
        except Exception as e:
            envelope = await self._recover(e, batch_context)
            ids = list(dict.fromkeys(resource_ids or [])) or [None]
            results = [envelope.model_copy(update={"resource_id": rid}, deep=True) for rid in ids]
            return BulkRenameResultDTO(batch_id=batch_id, results=results, summary=summarize_bulk(results))

        logger.info(f"Starting bulk rename {batch_id} for {owner_id}: {len(unique_ids)} resources")

        # Step 2: Process items sequentially
        results: List[ErrorEnvelope] = []
        exhausted = False
        for resource_id in unique_ids:
            context = FailureContext(
                owner_id=owner_id,
                operation=BULK_RENAME_OPERATION,
                resource_id=resource_id,
                fallback_enabled=parsed.fallback_enabled,
                bulk_batch_id=batch_id,
                state={"options": parsed, "credit_operation": "bulk_rename"},
            )
            try:
                if not exhausted and not await self.ledger.has_sufficient(owner_id, self.credits_per_rename):
                    exhausted = True
                if exhausted:
                    raise CreditError(
                        "Insufficient credits to continue the bulk rename.",
                        balance=await self.ledger.balance(owner_id),
                        required=self.credits_per_rename,
                    )

                resource = await self.pipeline.load_resource(owner_id, resource_id, is_admin=is_admin)
                context.resource = resource
                envelope = await self.pipeline.complete_rename(
                    owner_id,
                    resource,
                    parsed,
                    credit_operation="bulk_rename",
                    bulk_batch_id=batch_id,
                    state=context.state,
                )
            except Exception as e:
                envelope = await self._recover(e, context)

            if not envelope.success and envelope.error_kind == ErrorKind.CREDIT:
                exhausted = True
            results.append(envelope)

        # Step 3: Summarize
        summary = summarize_bulk(results)
        logger.info(
            f"Bulk rename {batch_id} finished: {summary.successful_count}/{summary.total} succeeded, "
            f"{summary.fallback_count} via fallback, errors={summary.errors_by_kind}"
        )
        return BulkRenameResultDTO(batch_id=batch_id, results=results, summary=summary)

    async def credit_status(self, owner_id: str) -> CreditStatusDTO:
        """
        Raises:
            LedgerFailure: balance or statistics could not be read
        """
        balance = await self.ledger.balance(owner_id)
        stats = await self.ledger.stats(owner_id)
        if stats.is_err():
            raise LedgerFailure(stats.error)

        ai_available = self.gate.is_available() and balance >= self.credits_per_rename
        reason = None
        if not self.gate.is_available():
            reason = "AI features are unavailable"
        elif not ai_available:
            reason = "No credits available"

        return CreditStatusDTO(
            owner_id=owner_id,
            balance=balance,
            stats=stats.value,
            ai_available=ai_available,
            ai_unavailable_reason=reason,
        )
