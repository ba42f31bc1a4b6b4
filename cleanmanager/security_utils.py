"""
Security Utilities
Password hashing, random tokens, portal JWTs and security audit logging
"""

import logging
import re
import secrets
import string
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import SECRET_KEY

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
MAX_PASSWORD_LENGTH = 128

# Cost factor 10
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against bcrypt hash"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


COMMON_PASSWORDS = {"password", "12345678", "123456789", "qwerty123", "letmein1", "admin123", "welcome1"}
SPECIAL_CHARACTERS = r"[!@#$%^&*(),.?\":{}|<>_\-+=\[\]\\/`~;']"


def check_password_strength(password: str) -> dict[str, Any]:
    """
    Check password against the account password policy

    Returns:
        dict with 'is_valid' (bool), 'errors' (list of messages),
        'score' (0-7) and 'strength' (weak/fair/good/strong)
    """
    if len(password) > MAX_PASSWORD_LENGTH:
        return {
            "is_valid": False,
            "errors": [f"Password must not exceed {MAX_PASSWORD_LENGTH} characters"],
            "score": 0,
            "strength": "weak",
        }

    errors = []
    score = 0

    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    else:
        score += 1
        if len(password) >= 12:
            score += 1
        if len(password) >= 16:
            score += 1

    if re.search(r"[A-Z]", password):
        score += 1
    else:
        errors.append("Password must contain at least one uppercase letter")

    if re.search(r"[a-z]", password):
        score += 1
    else:
        errors.append("Password must contain at least one lowercase letter")

    if re.search(r"\d", password):
        score += 1
    else:
        errors.append("Password must contain at least one number")

    if re.search(SPECIAL_CHARACTERS, password):
        score += 1
    else:
        errors.append("Password must contain at least one special character")

    lowered = password.lower()
    if any(lowered.startswith(common) for common in COMMON_PASSWORDS):
        errors.append("This password is too common - choose something unique")
        score = 0

    if score <= 2:
        strength = "weak"
    elif score <= 4:
        strength = "fair"
    elif score <= 5:
        strength = "good"
    else:
        strength = "strong"

    return {"is_valid": not errors, "errors": errors, "score": score, "strength": strength}


def generate_password(length: int = 12) -> str:
    """Random password with at least one uppercase, lowercase, digit and special character"""
    special = "!@#$%&*"
    alphabet = string.ascii_letters + string.digits + special
    chars = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice(special),
    ]
    chars += [secrets.choice(alphabet) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


# ============================================================================
# TOKEN GENERATION & VALIDATION
# ============================================================================


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure URL-safe token"""
    return secrets.token_urlsafe(length)


def generate_hex_token(length: int = 32) -> str:
    """Generate a hex token (email verification, password reset)"""
    return secrets.token_hex(length)


def generate_numeric_code(digits: int = 6) -> str:
    """Generate a numeric one-time code without leading zeros"""
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT token

    Args:
        data: Data to encode in the token
        expires_delta: Token expiration time (default 15 minutes)
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


# ============================================================================
# AUDIT LOGGING
# ============================================================================


def log_security_event(
    event_type: str,
    user_id: Optional[int] = None,
    ip_address: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
):
    """
    Log security-related events for audit trail

    Args:
        event_type: Type of security event (login, logout, failed_auth, etc.)
        user_id: User or employee identifier
        ip_address: Client IP address
        details: Additional event details
    """
    log_entry = {
        "timestamp": datetime.utcnow().isoformat(),
        "event_type": event_type,
        "user_id": user_id,
        "ip_address": ip_address,
        "details": details or {},
    }
    logger.info(f"SECURITY_EVENT: {log_entry}")


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks"""
    return secrets.compare_digest(a.encode(), b.encode())


def mask_email(email: str) -> str:
    """Mask an email address for logging (j***@example.com)"""
    local, _, domain = email.partition("@")
    if not domain:
        return "***"
    return f"{local[:1]}***@{domain}"
