"""CheckAIAvailability Use Case

Whether an owner can use AI renaming right now.
"""

from libs.result import Result, Return
from src.app.services.ai_feature_gate import AIFeatureGate
from .dtos import AIAvailabilityDTO


class CheckAIAvailability:

    def __init__(self, gate: AIFeatureGate, ledger, credits_per_rename: int = 1):
        self.gate = gate
        self.ledger = ledger
        self.credits_per_rename = credits_per_rename

    async def execute(self, owner_id: str) -> Result[AIAvailabilityDTO]:
        status = self.gate.status()

        if not self.gate.enabled:
            return Return.ok(AIAvailabilityDTO(available=False, reason="AI features are disabled", gate=status))
        if self.gate.temporarily_disabled:
            return Return.ok(
                AIAvailabilityDTO(available=False, reason="AI features are temporarily disabled", gate=status)
            )
        if not self.gate.api_key_configured:
            return Return.ok(
                AIAvailabilityDTO(available=False, reason="AI service API key is not configured", gate=status)
            )

        balance = await self.ledger.balance(owner_id)
        if balance < self.credits_per_rename:
            return Return.ok(
                AIAvailabilityDTO(available=False, reason="No credits available", balance=balance, gate=status)
            )

        return Return.ok(AIAvailabilityDTO(available=True, balance=balance, gate=status))
