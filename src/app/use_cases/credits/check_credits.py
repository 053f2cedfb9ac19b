"""CheckCredits Use Case

Read-only sufficiency check. Never creates or locks the account.
"""

from libs.result import Result, Return, Error
from src.app.repositories.credit_account_repository import CreditAccountRepository


class CheckCredits:

    def __init__(self, account_repo: CreditAccountRepository):
        self.account_repo = account_repo

    async def execute(self, owner_id: str, amount: int) -> Result[bool]:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            return Return.ok(False)

        try:
            account = await self.account_repo.get_by_owner_id(owner_id)
            balance = account.balance if account else 0
            return Return.ok(balance >= amount)
        except Exception as e:
            return Return.err(
                Error(
                    code="CHECK_CREDITS_FAILED",
                    message="Failed to check credit balance",
                    reason=str(e),
                )
            )
