"""Credits API Routes

FastAPI routes for balance queries and credit administration.
"""

from fastapi import APIRouter, Depends, status

from src.api.error import ClientError
from src.api.schemas.credit_request import (
    AddCreditsRequestSchema,
    FreeCreditsRequestSchema,
    ResetCreditsRequestSchema,
)
from src.api.security import Principal, get_principal, require_admin
from src.app.use_cases.credits.dtos import (
    CreditTransactionResponseDTO,
    FreeCreditsResultDTO,
    ResetResultDTO,
    TransactionListResponseDTO,
)
from src.app.use_cases.credits.ledger import CreditLedger
from src.app.use_cases.rename.dtos import CreditStatusDTO
from src.app.use_cases.rename.orchestrator import RenameOrchestrator
from src.depends import get_credit_ledger, get_rename_orchestrator
from src.domain.errors import LedgerFailure

router = APIRouter(prefix="/credits", tags=["Credits"])

VALIDATION_CODES = {"INVALID_AMOUNT", "INVALID_OWNER", "INVALID_OPERATION", "INVALID_PAGINATION"}


def raise_for_error(error):
    if error.code in VALIDATION_CODES:
        raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
    raise ClientError(error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/me", response_model=CreditStatusDTO)
async def get_my_credits(
    principal: Principal = Depends(get_principal),
    orchestrator: RenameOrchestrator = Depends(get_rename_orchestrator),
):
    """Current balance, usage statistics and whether AI renaming is available."""
    try:
        return await orchestrator.credit_status(principal.user_id)
    except LedgerFailure as e:
        raise_for_error(e.error)


@router.get("/me/transactions", response_model=TransactionListResponseDTO)
async def list_my_transactions(
    limit: int = 20,
    offset: int = 0,
    principal: Principal = Depends(get_principal),
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    result = await ledger.history(principal.user_id, limit=limit, offset=offset)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post("/me/free-credits", response_model=FreeCreditsResultDTO)
async def claim_free_credits(
    principal: Principal = Depends(get_principal),
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    """
    Grant the one-time free credits.

    Granted once per owner, only while AI features are enabled and once the
    credit account is old enough. Ineligible requests return `granted: false`
    with a reason.
    """
    result = await ledger.initialize_free_credits(principal.user_id)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post("/{owner_id}/free-credits", response_model=FreeCreditsResultDTO)
async def grant_free_credits(
    owner_id: str,
    request: FreeCreditsRequestSchema,
    admin: Principal = Depends(require_admin),
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    """
    Grant the one-time free credits on behalf of a user.

    `registered_at` comes from the user directory and is trusted here only
    because the caller is an administrator.
    """
    result = await ledger.initialize_free_credits(owner_id, registered_at=request.registered_at)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post("/{owner_id}/add", response_model=CreditTransactionResponseDTO)
async def add_credits(
    owner_id: str,
    request: AddCreditsRequestSchema,
    admin: Principal = Depends(require_admin),
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    result = await ledger.add(owner_id, request.amount, operation=request.operation)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post("/{owner_id}/reset", response_model=ResetResultDTO)
async def reset_credits(
    owner_id: str,
    request: ResetCreditsRequestSchema,
    admin: Principal = Depends(require_admin),
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    result = await ledger.reset(owner_id, request.new_balance)
    if result.is_err():
        raise_for_error(result.error)
    return result.value
