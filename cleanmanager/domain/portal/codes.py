"""
One-time login codes for the customer portal

Codes are held in process memory keyed by lower-cased email. A code expires
after CODE_EXPIRY_SECONDS and is discarded after MAX_ATTEMPTS wrong guesses.
"""

import time
from dataclasses import dataclass
from threading import Lock
from typing import Optional

from ...security_utils import constant_time_compare, generate_numeric_code

MAX_ATTEMPTS = 3
CODE_EXPIRY_SECONDS = 15 * 60


class LoginCodeError(Exception):
    """Raised when a submitted code cannot be accepted; the message is user facing"""


@dataclass
class _PendingCode:
    code: str
    expires_at: float
    attempts: int = 0


class LoginCodeStore:
    def __init__(self, expiry_seconds: int = CODE_EXPIRY_SECONDS, max_attempts: int = MAX_ATTEMPTS):
        self.expiry_seconds = expiry_seconds
        self.max_attempts = max_attempts
        self._codes: dict[str, _PendingCode] = {}
        self._lock = Lock()

    def issue(self, email: str, now: Optional[float] = None) -> str:
        """Create a fresh code for the email, replacing any pending one"""
        now = time.time() if now is None else now
        code = generate_numeric_code(6)
        with self._lock:
            self._codes[email.lower()] = _PendingCode(code=code, expires_at=now + self.expiry_seconds)
        return code

    def verify(self, email: str, code: str, now: Optional[float] = None) -> None:
        """Consume the pending code for the email or raise LoginCodeError"""
        now = time.time() if now is None else now
        key = email.lower()
        with self._lock:
            pending = self._codes.get(key)
            if pending is None:
                raise LoginCodeError("No login code found. Please request a new code.")
            if now > pending.expires_at:
                del self._codes[key]
                raise LoginCodeError("Code has expired. Please request a new code.")
            if pending.attempts >= self.max_attempts:
                del self._codes[key]
                raise LoginCodeError("Too many failed attempts. Please request a new code.")
            if not constant_time_compare(str(code).strip(), pending.code):
                pending.attempts += 1
                raise LoginCodeError("Invalid code. Please try again.")
            del self._codes[key]

    def clear(self) -> None:
        with self._lock:
            self._codes.clear()


login_codes = LoginCodeStore()
