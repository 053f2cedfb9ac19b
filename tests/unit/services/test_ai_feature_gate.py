"""Unit tests for AIFeatureGate and CheckAIAvailability"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.services.ai_feature_gate import AIFeatureGate
from src.app.use_cases.recovery.check_availability import CheckAIAvailability
from src.domain.errors import ConfigurationError


class TestAIFeatureGate:

    def test_available_by_default(self):
        gate = AIFeatureGate()

        assert gate.is_available() is True
        gate.ensure_available()

    def test_disable_and_re_enable(self):
        gate = AIFeatureGate()

        gate.disable("API key rejected")

        assert gate.is_available() is False
        assert gate.status()["temporarily_disabled"] is True
        assert gate.status()["disabled_at"] is not None
        with pytest.raises(ConfigurationError, match="API key rejected"):
            gate.ensure_available()

        assert gate.re_enable() is True
        assert gate.is_available() is True
        assert gate.re_enable() is False

    def test_re_enable_does_not_override_configuration(self):
        gate = AIFeatureGate(enabled=False)

        gate.re_enable()

        assert gate.is_available() is False
        with pytest.raises(ConfigurationError, match="disabled in configuration"):
            gate.ensure_available()

    def test_missing_api_key(self):
        gate = AIFeatureGate(api_key_configured=False)

        with pytest.raises(ConfigurationError, match="API key is not configured"):
            gate.ensure_available()


@pytest.fixture
def ledger():
    ledger = MagicMock()
    ledger.balance = AsyncMock(return_value=2)
    return ledger


@pytest.mark.asyncio
class TestCheckAIAvailability:

    async def test_available(self, ledger):
        result = await CheckAIAvailability(AIFeatureGate(), ledger).execute("user_1")

        assert result.value.available is True
        assert result.value.balance == 2

    async def test_no_credits(self, ledger):
        ledger.balance.return_value = 0

        result = await CheckAIAvailability(AIFeatureGate(), ledger).execute("user_1")

        assert result.value.available is False
        assert result.value.reason == "No credits available"

    async def test_temporarily_disabled_skips_ledger(self, ledger):
        gate = AIFeatureGate()
        gate.disable("bad key")

        result = await CheckAIAvailability(gate, ledger).execute("user_1")

        assert result.value.available is False
        assert result.value.reason == "AI features are temporarily disabled"
        ledger.balance.assert_not_called()

    async def test_cost_above_balance(self, ledger):
        result = await CheckAIAvailability(AIFeatureGate(), ledger, credits_per_rename=3).execute("user_1")

        assert result.value.available is False
