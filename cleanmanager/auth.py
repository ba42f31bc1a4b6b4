import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, joinedload

from .config import (
    EMPLOYEE_SESSION_COOKIE_NAME,
    IS_PRODUCTION,
    SESSION_COOKIE_NAME,
    SESSION_DURATION_DAYS,
)
from .database import get_db
from .models import AuthSession, Customer, Employee, User
from .rate_limiter import get_client_ip
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

# Customer portal only; company users and employees authenticate with cookies
portal_bearer = HTTPBearer(auto_error=False)

SESSION_TYPE_USER = "user"
SESSION_TYPE_EMPLOYEE = "employee"


def _cookie_name(session_type: str) -> str:
    return EMPLOYEE_SESSION_COOKIE_NAME if session_type == SESSION_TYPE_EMPLOYEE else SESSION_COOKIE_NAME


def create_session(
    db: Session,
    request: Request,
    company_id: int,
    user_id: Optional[int] = None,
    employee_id: Optional[int] = None,
    session_type: str = SESSION_TYPE_USER,
) -> AuthSession:
    """Persist a new login session bound to the caller's IP and user agent"""
    session = AuthSession(
        user_id=user_id,
        employee_id=employee_id,
        company_id=company_id,
        type=session_type,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        expires_at=datetime.utcnow() + timedelta(days=SESSION_DURATION_DAYS),
        last_active_at=datetime.utcnow(),
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info(f"🔑 Created {session_type} session for company {company_id}")
    return session


def set_session_cookie(response: Response, token: str, session_type: str = SESSION_TYPE_USER) -> None:
    response.set_cookie(
        key=_cookie_name(session_type),
        value=token,
        max_age=SESSION_DURATION_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="strict",
        path="/",
    )


def clear_session_cookie(response: Response, session_type: str = SESSION_TYPE_USER) -> None:
    response.delete_cookie(
        key=_cookie_name(session_type),
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="strict",
        path="/",
    )


def get_session(
    db: Session, request: Request, session_type: str = SESSION_TYPE_USER
) -> Optional[AuthSession]:
    """
    Resolve the session cookie of the given type.

    Expired sessions are ignored. In production a session presented from a
    different IP address or user agent than the one it was created with is
    deleted and treated as missing.
    """
    token = request.cookies.get(_cookie_name(session_type))
    if not token:
        return None

    session = (
        db.query(AuthSession)
        .filter(
            AuthSession.token == token,
            AuthSession.type == session_type,
            AuthSession.expires_at > datetime.utcnow(),
        )
        .first()
    )
    if not session:
        return None

    if IS_PRODUCTION:
        ip_address = get_client_ip(request)
        user_agent = request.headers.get("user-agent")
        if session.ip_address != ip_address or session.user_agent != user_agent:
            logger.warning(
                f"⚠️ Session binding mismatch for {session_type} session {session.id}, revoking"
            )
            db.delete(session)
            db.commit()
            return None

    session.last_active_at = datetime.utcnow()
    db.commit()
    return session


def delete_user_sessions(db: Session, user_id: int) -> int:
    """Sign a company user out of every device"""
    deleted = db.query(AuthSession).filter(AuthSession.user_id == user_id).delete()
    db.commit()
    return deleted


def delete_employee_sessions(db: Session, employee_id: int) -> int:
    """Sign an employee out of every device"""
    deleted = db.query(AuthSession).filter(AuthSession.employee_id == employee_id).delete()
    db.commit()
    return deleted


def cleanup_expired_sessions(db: Session) -> int:
    deleted = db.query(AuthSession).filter(AuthSession.expires_at <= datetime.utcnow()).delete()
    db.commit()
    if deleted:
        logger.info(f"🧹 Removed {deleted} expired sessions")
    return deleted


async def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Company user of the current session, or None"""
    session = get_session(db, request, SESSION_TYPE_USER)
    if not session or not session.user_id:
        return None

    user = (
        db.query(User)
        .options(joinedload(User.company))
        .filter(User.id == session.user_id)
        .first()
    )
    if not user or not user.is_active:
        return None
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


async def get_optional_employee(
    request: Request, db: Session = Depends(get_db)
) -> Optional[Employee]:
    """Employee of the current employee session, or None"""
    session = get_session(db, request, SESSION_TYPE_EMPLOYEE)
    if not session or not session.employee_id:
        return None

    employee = db.query(Employee).filter(Employee.id == session.employee_id).first()
    if not employee or employee.status != "active":
        return None
    return employee


async def get_current_employee(
    employee: Optional[Employee] = Depends(get_optional_employee),
) -> Employee:
    if not employee:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return employee


async def get_portal_customer(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(portal_bearer),
    db: Session = Depends(get_db),
) -> Customer:
    """Customer identified by a portal bearer JWT"""
    if not credentials:
        raise HTTPException(status_code=401, detail="Unauthorized")

    payload = verify_jwt_token(credentials.credentials)
    if not payload or payload.get("type") != "customer" or not payload.get("customerId"):
        raise HTTPException(status_code=401, detail="Invalid token")

    customer = db.query(Customer).filter(Customer.id == payload["customerId"]).first()
    if not customer:
        raise HTTPException(status_code=401, detail="Invalid token")
    return customer
