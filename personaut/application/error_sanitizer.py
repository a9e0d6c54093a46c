"""Strips sensitive details from error messages before they reach users."""
from __future__ import annotations

import logging
import re
import traceback
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Literal, Optional, Pattern, Union

logger = logging.getLogger(__name__)

ErrorClassification = Literal["user", "system", "security"]

GENERIC_MESSAGES: Dict[str, str] = {
    "user": "The operation could not be completed. Please check your input and try again.",
    "system": "An unexpected error occurred. Please try again later.",
    "security": "The operation was blocked for security reasons.",
}

SENSITIVE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"/(?:home|Users|var|etc|tmp|usr|opt|root|srv)/[^\s\"'<>|]+", re.IGNORECASE),
    re.compile(r"[A-Za-z]:\\(?:Users|Windows|Program Files|ProgramData)[^\s\"'<>|]*", re.IGNORECASE),
    re.compile(r"(?:^|(?<=[\s\"'(]))/[\w.-]+(?:/[\w.-]+){2,}"),
    re.compile(r"\bAKIA[A-Z0-9]{16}\b"),
    re.compile(r"Bearer\s+[\w.-]+", re.IGNORECASE),
    re.compile(r"eyJ[\w-]+\.eyJ[\w-]+\.[\w-]+"),
    re.compile(r"(?:api[_-]?key|secret|token|password|credential|auth)[_-]?[a-z]*\s*[=:]\s*[\"']?[^\s\"']+[\"']?", re.IGNORECASE),
    re.compile(r"\b[\w-]{20,}\b"),
    re.compile(r"[\w.%+-]+@[\w.-]+\.[A-Za-z]{2,}"),
    re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"),
    re.compile(r"(?:mongodb|mysql|postgres|postgresql|redis|amqp)://[^\s\"']+", re.IGNORECASE),
]

STACK_TRACE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"^Traceback \(most recent call last\):.*$", re.MULTILINE),
    re.compile(r"^\s*File \".+\", line \d+.*$", re.MULTILINE),
    re.compile(r"\S+\.py:\d+"),
]

TECHNICAL_PATTERNS: List[Pattern[str]] = [
    re.compile(r"Errno|ENOENT|EACCES|EPERM|ECONNREFUSED|ETIMEDOUT"),
    re.compile(r"TypeError|KeyError|AttributeError|NameError|SyntaxError"),
    re.compile(r"NoneType|object has no attribute", re.IGNORECASE),
    re.compile(r"heap|memory|buffer overflow|segmentation fault", re.IGNORECASE),
]

USER_ERROR_KEYWORDS = (
    "invalid input", "validation failed", "required field", "not found",
    "permission denied", "access denied", "unauthorized", "bad request",
    "invalid format", "missing parameter", "already exists", "duplicate",
    "too long", "too short", "out of range", "cannot add more than",
)

SECURITY_ERROR_KEYWORDS = (
    "injection", "blocked", "forbidden", "blacklist", "blocklist",
    "malicious", "suspicious", "rate limit", "throttle", "sandbox",
    "security", "unsafe", "dangerous", "escapes storage root",
)

ERROR_CODE = re.compile(r"\b([A-Z][A-Z0-9_]{2,})\b(?=:)")
MAX_USER_MESSAGE_LENGTH = 200


@dataclass
class SanitizedError:
    original_message: str
    user_message: str
    log_message: str
    classification: ErrorClassification
    code: Optional[str] = None
    contained_sensitive_info: bool = False


class ErrorSanitizer:
    """Separates what is logged from what is shown.

    The log message keeps everything, including the traceback. The user
    message is either the original text, when it is short and free of paths,
    secrets and tracebacks, or a generic message for its classification.
    """

    def __init__(
        self,
        extra_patterns: Optional[List[Pattern[str]]] = None,
        generic_messages: Optional[Dict[str, str]] = None,
    ) -> None:
        self.patterns = SENSITIVE_PATTERNS + list(extra_patterns or [])
        self.generic_messages = {**GENERIC_MESSAGES, **(generic_messages or {})}

    def sanitize(self, error: Union[BaseException, str], context: Optional[str] = None) -> SanitizedError:
        message = str(error)
        stack = None
        if isinstance(error, BaseException) and error.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))

        classification = self.classify(message)
        sensitive = self.contains_sensitive_info(message) or (
            stack is not None and self.contains_sensitive_info(stack)
        )
        return SanitizedError(
            original_message=message,
            user_message=self._user_message(message, classification, sensitive),
            log_message=self._log_message(message, stack, context),
            classification=classification,
            code=self._error_code(message),
            contained_sensitive_info=sensitive,
        )

    def classify(self, message: str) -> ErrorClassification:
        lowered = message.lower()
        if any(keyword in lowered for keyword in SECURITY_ERROR_KEYWORDS):
            return "security"
        if any(keyword in lowered for keyword in USER_ERROR_KEYWORDS):
            return "user"
        return "system"

    def contains_sensitive_info(self, message: str) -> bool:
        return bool(message) and any(pattern.search(message) for pattern in self.patterns)

    def remove_sensitive_info(self, message: str) -> str:
        for pattern in self.patterns:
            message = pattern.sub("[REDACTED]", message)
        return message

    def remove_stack_trace(self, message: str) -> str:
        for pattern in STACK_TRACE_PATTERNS:
            message = pattern.sub("", message)
        return re.sub(r"\n{3,}", "\n\n", message).strip()

    def _user_message(self, message: str, classification: ErrorClassification, sensitive: bool) -> str:
        generic = self.generic_messages[classification]
        if sensitive:
            return generic
        cleaned = self.remove_stack_trace(message)
        if self.contains_sensitive_info(cleaned):
            return generic
        if len(cleaned) > MAX_USER_MESSAGE_LENGTH or any(p.search(cleaned) for p in TECHNICAL_PATTERNS):
            return generic
        return cleaned or generic

    @staticmethod
    def _log_message(message: str, stack: Optional[str], context: Optional[str]) -> str:
        parts = []
        if context:
            parts.append(f"[Context: {context}]")
        parts.append(f"[Message: {message}]")
        if stack:
            parts.append(f"[Stack: {stack}]")
        parts.append(f"[Timestamp: {datetime.now().isoformat()}]")
        return " ".join(parts)

    @staticmethod
    def _error_code(message: str) -> Optional[str]:
        match = ERROR_CODE.search(message)
        return match.group(1) if match else None


error_sanitizer = ErrorSanitizer()
