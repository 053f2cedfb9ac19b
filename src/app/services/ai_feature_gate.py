"""Process-wide switch for AI-backed features

A configuration failure (rejected or missing API key) disables AI features
until an administrator re-enables them.
"""

import logging
from datetime import datetime
from typing import Optional

from src.domain.base import utcnow
from src.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)


class AIFeatureGate:

    def __init__(self, enabled: bool = True, api_key_configured: bool = True):
        self.enabled = enabled
        self.api_key_configured = api_key_configured
        self._disabled_reason: Optional[str] = None
        self._disabled_at: Optional[datetime] = None

    @property
    def temporarily_disabled(self) -> bool:
        return self._disabled_reason is not None

    def is_available(self) -> bool:
        return self.enabled and self.api_key_configured and not self.temporarily_disabled

    def ensure_available(self):
        if not self.enabled:
            raise ConfigurationError("AI features are disabled in configuration")
        if not self.api_key_configured:
            raise ConfigurationError("AI service API key is not configured")
        if self.temporarily_disabled:
            raise ConfigurationError(f"AI features are temporarily disabled: {self._disabled_reason}")

    def disable(self, reason: str):
        if not self.temporarily_disabled:
            logger.warning(f"Disabling AI features: {reason}")
        self._disabled_reason = reason
        self._disabled_at = utcnow()

    def re_enable(self) -> bool:
        was_disabled = self.temporarily_disabled
        self._disabled_reason = None
        self._disabled_at = None
        if was_disabled:
            logger.info("AI features re-enabled")
        return was_disabled

    def status(self) -> dict:
        return {
            "enabled": self.enabled,
            "api_key_configured": self.api_key_configured,
            "temporarily_disabled": self.temporarily_disabled,
            "reason": self._disabled_reason,
            "disabled_at": self._disabled_at.isoformat() if self._disabled_at else None,
        }
