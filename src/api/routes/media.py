"""Media API Routes

FastAPI routes for AI-assisted, manual and bulk renaming.

Rename endpoints always answer with an ErrorEnvelope; the HTTP status mirrors
the envelope outcome.
"""

from typing import List
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from libs.result import Error
from src.adapter.repositories import SqlAlchemyMediaResourceRepository, SqlAlchemyOperationRecordRepository
from src.api.error import ClientError
from src.api.schemas.rename_request import (
    BulkRenameRequestSchema,
    ManualRenameRequestSchema,
    RenameRequestSchema,
    SuggestionsRequestSchema,
)
from src.api.security import Principal, get_principal
from src.app.use_cases.recovery.dtos import ErrorEnvelope
from src.app.use_cases.rename.dtos import BulkRenameResultDTO
from src.app.use_cases.rename.orchestrator import RenameOrchestrator
from src.depends import get_rename_orchestrator, get_session
from src.domain.errors import ErrorKind
from src.domain.operation_record import OperationRecord

router = APIRouter(prefix="/media", tags=["Media"])

CODE_STATUS = {
    "RESOURCE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "RATE_LIMIT_EXCEEDED": status.HTTP_429_TOO_MANY_REQUESTS,
    "INSUFFICIENT_CREDIT": status.HTTP_402_PAYMENT_REQUIRED,
    "SETTLEMENT_INSUFFICIENT": status.HTTP_402_PAYMENT_REQUIRED,
}

KIND_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CREDIT: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorKind.CONFIGURATION: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.AI_SERVICE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.CONTENT_ANALYSIS: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.SYSTEM: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def envelope_status(envelope: ErrorEnvelope) -> int:
    if envelope.success:
        return status.HTTP_200_OK
    code = envelope.details.get("code")
    if code in CODE_STATUS:
        return CODE_STATUS[code]
    return KIND_STATUS.get(envelope.error_kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def envelope_response(envelope: ErrorEnvelope) -> JSONResponse:
    headers = {}
    if envelope.retry_after is not None:
        headers["Retry-After"] = str(envelope.retry_after)
    return JSONResponse(
        status_code=envelope_status(envelope),
        content=envelope.model_dump(mode="json"),
        headers=headers,
    )


@router.post(
    "/{resource_id}/rename",
    response_model=ErrorEnvelope,
    responses={
        402: {"description": "Insufficient credits"},
        404: {"description": "Media resource not found"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def rename_media(
    resource_id: int,
    request: RenameRequestSchema,
    principal: Principal = Depends(get_principal),
    orchestrator: RenameOrchestrator = Depends(get_rename_orchestrator),
):
    """
    Rename a media resource with an AI generated (or previously suggested) name.

    Costs one credit on success. When the AI service is unavailable the file is
    renamed from its metadata free of charge and `method` is `fallback`.
    """
    envelope = await orchestrator.rename(
        principal.user_id,
        resource_id,
        selected_name=request.selected_name,
        options=request.options,
        is_admin=principal.is_admin,
    )
    return envelope_response(envelope)


@router.post("/{resource_id}/rename-manual", response_model=ErrorEnvelope)
async def rename_media_manually(
    resource_id: int,
    request: ManualRenameRequestSchema,
    principal: Principal = Depends(get_principal),
    orchestrator: RenameOrchestrator = Depends(get_rename_orchestrator),
):
    envelope = await orchestrator.rename_manual(
        principal.user_id, resource_id, request.new_name, is_admin=principal.is_admin
    )
    return envelope_response(envelope)


@router.post("/{resource_id}/suggestions", response_model=ErrorEnvelope)
async def suggest_names(
    resource_id: int,
    request: SuggestionsRequestSchema,
    principal: Principal = Depends(get_principal),
    orchestrator: RenameOrchestrator = Depends(get_rename_orchestrator),
):
    """Generate 1-5 name suggestions without renaming. Not charged."""
    envelope = await orchestrator.suggest(
        principal.user_id,
        resource_id,
        count=request.count,
        options=request.options,
        is_admin=principal.is_admin,
    )
    return envelope_response(envelope)


@router.post("/rename-bulk", response_model=BulkRenameResultDTO, status_code=status.HTTP_200_OK)
async def rename_media_bulk(
    request: BulkRenameRequestSchema,
    principal: Principal = Depends(get_principal),
    orchestrator: RenameOrchestrator = Depends(get_rename_orchestrator),
):
    """
    Rename up to 50 media resources sequentially.

    Each resource gets its own envelope; the summary counts successes,
    failures and fallbacks.
    """
    return await orchestrator.rename_bulk(
        principal.user_id,
        request.resource_ids,
        options=request.options,
        is_admin=principal.is_admin,
    )


@router.get("/{resource_id}/history", response_model=List[OperationRecord])
async def get_rename_history(
    resource_id: int,
    limit: int = 10,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    media_repo = SqlAlchemyMediaResourceRepository(session)
    history_repo = SqlAlchemyOperationRecordRepository(session)

    resource = await media_repo.get_by_id(resource_id)
    if resource is None:
        raise ClientError(
            Error(code="RESOURCE_NOT_FOUND", message=f"Media resource {resource_id} does not exist"),
            status_code=status.HTTP_404_NOT_FOUND,
        )
    if resource.owner_id != principal.user_id and not principal.is_admin:
        raise ClientError(
            Error(code="PERMISSION_DENIED", message="You do not have access to this media resource"),
            status_code=status.HTTP_403_FORBIDDEN,
        )

    return await history_repo.list_by_resource(resource_id, limit=max(1, min(limit, 50)))
