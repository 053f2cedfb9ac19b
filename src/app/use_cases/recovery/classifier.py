"""Error Classifier

Maps any raw failure onto one of the six ErrorKinds. Rules are evaluated in
order; the first match wins.

1. Failures that already know their kind (RenameError and subclasses)
2. Ledger Error results, by code
3. Request validation errors (pydantic)
4. Database errors
5. Outbound HTTP errors and timeouts
6. Message patterns
7. Anything else is a system error
"""

import asyncio
import re
from typing import List, Pattern, Tuple

import httpx
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from libs.result import Error
from src.domain.errors import ErrorKind, LEDGER_ERROR_KINDS, RenameError

MESSAGE_RULES: List[Tuple[Pattern, ErrorKind]] = [
    (re.compile(r"credit|insufficient", re.IGNORECASE), ErrorKind.CREDIT),
    (re.compile(r"api key|configuration|not configured", re.IGNORECASE), ErrorKind.CONFIGURATION),
    (re.compile(r"AI service|\bAPI\b"), ErrorKind.AI_SERVICE),
    (re.compile(r"timeout|timed out", re.IGNORECASE), ErrorKind.AI_SERVICE),
    (re.compile(r"content|analysis", re.IGNORECASE), ErrorKind.CONTENT_ANALYSIS),
    (re.compile(r"invalid|verification", re.IGNORECASE), ErrorKind.VALIDATION),
]


class ErrorClassifier:

    def __init__(self, message_rules: List[Tuple[Pattern, ErrorKind]] = None):
        self.message_rules = message_rules if message_rules is not None else MESSAGE_RULES

    def classify(self, failure) -> ErrorKind:
        if isinstance(failure, RenameError):
            return failure.kind

        if isinstance(failure, Error):
            if failure.code in LEDGER_ERROR_KINDS:
                return LEDGER_ERROR_KINDS[failure.code]
            return self.classify_message(failure.message)

        if isinstance(failure, ValidationError):
            return ErrorKind.VALIDATION

        if isinstance(failure, SQLAlchemyError):
            return ErrorKind.SYSTEM

        if isinstance(failure, (httpx.HTTPError, asyncio.TimeoutError, TimeoutError)):
            return ErrorKind.AI_SERVICE

        return self.classify_message(str(failure))

    def classify_message(self, message: str) -> ErrorKind:
        for pattern, kind in self.message_rules:
            if pattern.search(message or ""):
                return kind
        return ErrorKind.SYSTEM
