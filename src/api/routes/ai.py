"""AI API Routes

Availability of AI features and their administration.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Error
from src.adapter.repositories import SqlAlchemyRateLimitRepository
from src.adapter.services import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.api.security import Principal, get_principal, require_admin
from src.app.services.ai_feature_gate import AIFeatureGate
from src.app.services.name_generation_service import NameGenerationService
from src.app.services.rate_limiter import RateLimiter
from src.app.use_cases.credits.ledger import CreditLedger
from src.app.use_cases.recovery.check_availability import CheckAIAvailability
from src.app.use_cases.recovery.dtos import AIAvailabilityDTO
from src.depends import get_ai_feature_gate, get_credit_ledger, get_name_generator, get_session
from src.domain.errors import ConfigurationError, LedgerFailure, RateLimitExceeded, RenameError

router = APIRouter(prefix="/ai", tags=["AI"])


@router.get("/availability", response_model=AIAvailabilityDTO)
async def get_availability(
    principal: Principal = Depends(get_principal),
    gate: AIFeatureGate = Depends(get_ai_feature_gate),
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    use_case = CheckAIAvailability(gate, ledger, credits_per_rename=ApplicationConfig.CREDITS_PER_RENAME)
    try:
        result = await use_case.execute(principal.user_id)
    except LedgerFailure as e:
        raise ClientError(e.error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return result.value


@router.post("/re-enable")
async def re_enable_ai(
    admin: Principal = Depends(require_admin),
    gate: AIFeatureGate = Depends(get_ai_feature_gate),
):
    """Clear a temporary disable caused by a configuration failure."""
    was_disabled = gate.re_enable()
    return {"re_enabled": was_disabled, "gate": gate.status()}


@router.post("/test-connection")
async def test_connection(
    admin: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    gate: AIFeatureGate = Depends(get_ai_feature_gate),
    name_generator: NameGenerationService = Depends(get_name_generator),
):
    rate_limiter = RateLimiter(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyRateLimitRepository(session),
        limits=ApplicationConfig.RATE_LIMITS,
        debug=ApplicationConfig.DEBUG,
    )
    try:
        await rate_limiter.admit(admin.user_id, "ai_test_connection", is_admin=True)
        await name_generator.test_connection()
    except RateLimitExceeded as e:
        raise ClientError(
            Error(code=e.code, message=e.message),
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )
    except ConfigurationError as e:
        gate.disable(e.message)
        raise ClientError(Error(code=e.code, message=e.message), status_code=status.HTTP_502_BAD_GATEWAY)
    except RenameError as e:
        raise ClientError(Error(code=e.code, message=e.message), status_code=status.HTTP_502_BAD_GATEWAY)

    return {"connected": True, "gate": gate.status()}
