import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import config, email_service
from ..auth import (
    SESSION_TYPE_EMPLOYEE,
    SESSION_TYPE_USER,
    clear_session_cookie,
    create_session,
    delete_employee_sessions,
    delete_user_sessions,
    get_optional_employee,
    get_optional_user,
    set_session_cookie,
)
from ..database import get_db
from ..domain.company.notifications import default_notification_settings
from ..models import Company, Employee, PasswordResetToken, User
from ..rate_limiter import get_client_ip, rate_limiter_for
from ..security_utils import (
    check_password_strength,
    generate_hex_token,
    hash_password_bcrypt,
    log_security_event,
    mask_email,
    verify_password_bcrypt,
)
from ..shared.validators import (
    is_reserved_email,
    normalize_email,
    reserved_email_message,
    validate_email,
    validate_uk_phone,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

rate_limit_signup = rate_limiter_for("signup")
rate_limit_signin = rate_limiter_for("signin")
rate_limit_verify_email = rate_limiter_for("verify_email")
rate_limit_resend_verification = rate_limiter_for("resend_verification")
rate_limit_forgot_password = rate_limiter_for("forgot_password")
rate_limit_reset_password = rate_limiter_for("reset_password")
rate_limit_employee_signin = rate_limiter_for("employee_signin")

TRIAL_DAYS = 15
VERIFICATION_TOKEN_HOURS = 24
RESET_TOKEN_HOURS = 1

GENERIC_RESEND_MESSAGE = (
    "If an account exists with this email and is not yet verified, a new verification link has been sent."
)
GENERIC_FORGOT_MESSAGE = "If an account exists with this email, you will receive a password reset link."


class SignupRequest(BaseModel):
    companyName: str
    companyEmail: str
    companyPhone: Optional[str] = None
    companyAddress: Optional[str] = None
    companyCity: Optional[str] = None
    companyPostcode: Optional[str] = None
    businessType: Optional[str] = None
    firstName: str
    lastName: str
    email: str
    password: str

    @field_validator("companyName", "firstName", "lastName")
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Missing required fields")
        return v.strip()

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("companyEmail")
    @classmethod
    def check_company_email(cls, v):
        try:
            return validate_email(v)
        except ValueError:
            raise ValueError("Invalid company email format") from None

    @field_validator("companyPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_uk_phone(v) if v else None


class SigninRequest(BaseModel):
    email: str
    password: str


class EmailRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    password: str


class EmployeeSigninRequest(BaseModel):
    identifier: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    companyId: Optional[int] = None


def user_summary(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "role": user.role,
        "emailVerified": user.email_verified,
    }


def company_summary(company: Optional[Company]) -> Optional[dict]:
    if not company:
        return None
    return {
        "id": company.id,
        "name": company.name,
        "subscriptionPlan": company.subscription_plan,
        "subscriptionStatus": company.subscription_status,
    }


def employee_summary(employee: Employee) -> dict:
    return {
        "id": employee.id,
        "firstName": employee.first_name,
        "lastName": employee.last_name,
        "email": employee.email,
        "username": employee.username,
        "role": employee.role,
        "companyId": employee.company_id,
    }


def _ensure_password_policy(password: str) -> None:
    result = check_password_strength(password)
    if not result["is_valid"]:
        raise HTTPException(status_code=400, detail=". ".join(result["errors"]))


# ============================================================================
# COMPANY USERS
# ============================================================================


@router.post("/signup", status_code=201)
async def signup(
    data: SignupRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_signup),
):
    """Create a company and its first admin user, pending email verification"""
    if is_reserved_email(data.email):
        raise HTTPException(status_code=400, detail=reserved_email_message("Admin email"))
    if is_reserved_email(data.companyEmail):
        raise HTTPException(status_code=400, detail=reserved_email_message("Company email"))

    _ensure_password_policy(data.password)

    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(
            status_code=409,
            detail="An account with this email already exists. Please sign in instead.",
        )
    if db.query(Company).filter(Company.email == data.companyEmail).first():
        raise HTTPException(
            status_code=409,
            detail="A company with this email already exists. Please use a different company email.",
        )

    verification_token = generate_hex_token(32)
    company = Company(
        name=data.companyName,
        email=data.companyEmail,
        phone=data.companyPhone,
        address=data.companyAddress or None,
        city=data.companyCity or None,
        postcode=data.companyPostcode or None,
        business_type=data.businessType or None,
        subscription_plan="trial",
        subscription_status="active",
        trial_ends_at=datetime.utcnow() + timedelta(days=TRIAL_DAYS),
        notification_settings=default_notification_settings(),
    )
    db.add(company)
    db.flush()

    user = User(
        company_id=company.id,
        email=data.email,
        password=hash_password_bcrypt(data.password),
        first_name=data.firstName,
        last_name=data.lastName,
        role="admin",
        is_active=True,
        email_verified=False,
        verification_token=verification_token,
        verification_token_expires_at=datetime.utcnow() + timedelta(hours=VERIFICATION_TOKEN_HOURS),
    )
    db.add(user)
    db.commit()
    db.refresh(company)
    db.refresh(user)
    logger.info(f"🆕 Company {company.id} created with admin {mask_email(user.email)}")

    try:
        await email_service.send_verification_email(
            user.email, f"{user.first_name} {user.last_name}", verification_token
        )
    except email_service.EmailDeliveryError as e:
        logger.error(f"❌ Failed to send verification email to {mask_email(user.email)}: {e}")
        if config.IS_PRODUCTION:
            db.delete(user)
            db.delete(company)
            db.commit()
            raise HTTPException(
                status_code=500, detail="Failed to send verification email. Please try again."
            ) from e

    return {
        "success": True,
        "message": "Account created! Please check your email to verify your account.",
        "requiresVerification": True,
        "user": {
            "id": user.id,
            "email": user.email,
            "firstName": user.first_name,
            "lastName": user.last_name,
            "role": user.role,
        },
        "company": {"id": company.id, "name": company.name},
    }


@router.post("/signin")
async def signin(
    data: SigninRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_signin),
):
    ip_address = get_client_ip(request)
    email = normalize_email(data.email)
    if not email or not data.password:
        raise HTTPException(status_code=400, detail="Missing email or password")

    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password_bcrypt(data.password, user.password):
        log_security_event(
            "failed_login",
            user_id=user.id if user else None,
            ip_address=ip_address,
            details={"email": mask_email(email), "reason": "invalid_credentials"},
        )
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.email_verified:
        log_security_event("failed_login", user.id, ip_address, {"reason": "email_not_verified"})
        raise HTTPException(
            status_code=403,
            detail={
                "message": "Please verify your email before signing in. Check your inbox for the verification link.",
                "requiresVerification": True,
                "email": user.email,
            },
        )

    if not user.is_active:
        log_security_event("failed_login", user.id, ip_address, {"reason": "account_disabled"})
        raise HTTPException(status_code=403, detail="Account is disabled")

    user.last_login_at = datetime.utcnow()
    db.commit()

    session = create_session(db, request, company_id=user.company_id, user_id=user.id)
    set_session_cookie(response, session.token, SESSION_TYPE_USER)
    log_security_event("login", user.id, ip_address, {"type": "user"})

    return {
        "success": True,
        "user": user_summary(user),
        "company": company_summary(user.company),
    }


@router.post("/signout")
async def signout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Sign out of every device"""
    if user:
        deleted = delete_user_sessions(db, user.id)
        log_security_event("logout", user.id, get_client_ip(request), {"sessions_deleted": deleted})

    clear_session_cookie(response, SESSION_TYPE_USER)
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    response.headers["Clear-Site-Data"] = '"cookies", "storage"'
    return {"success": True}


@router.get("/session")
async def get_session_info(user: Optional[User] = Depends(get_optional_user)):
    if not user:
        return {"user": None}
    return {"user": user_summary(user), "company": company_summary(user.company)}


@router.get("/verify-email")
async def verify_email(
    request: Request,
    response: Response,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_verify_email),
):
    if not token:
        raise HTTPException(status_code=400, detail="Verification token is required")

    user = (
        db.query(User)
        .filter(
            User.verification_token == token,
            User.verification_token_expires_at > datetime.utcnow(),
        )
        .first()
    )
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired verification token")

    if user.email_verified:
        return {
            "success": True,
            "message": "Email already verified. You can sign in.",
            "alreadyVerified": True,
        }

    user.email_verified = True
    user.verification_token = None
    user.verification_token_expires_at = None
    db.commit()
    logger.info(f"✅ Email verified for user {user.id}")

    session = create_session(db, request, company_id=user.company_id, user_id=user.id)
    set_session_cookie(response, session.token, SESSION_TYPE_USER)

    company_name = user.company.name if user.company else "your company"
    await email_service.send_best_effort(
        email_service.send_welcome_email(user.email, f"{user.first_name} {user.last_name}", company_name),
        "welcome email",
    )

    return {
        "success": True,
        "message": "Email verified successfully! Welcome to CleanManager.",
        "user": user_summary(user),
        "company": company_summary(user.company),
    }


@router.post("/resend-verification")
async def resend_verification(
    data: EmailRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_resend_verification),
):
    email = normalize_email(data.email)
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")

    user = db.query(User).filter(User.email == email).first()
    if user and not user.email_verified:
        user.verification_token = generate_hex_token(32)
        user.verification_token_expires_at = datetime.utcnow() + timedelta(hours=VERIFICATION_TOKEN_HOURS)
        db.commit()
        await email_service.send_best_effort(
            email_service.send_verification_email(
                user.email, f"{user.first_name} {user.last_name}", user.verification_token
            ),
            "verification email",
        )

    return {"success": True, "message": GENERIC_RESEND_MESSAGE}


@router.post("/forgot-password")
async def forgot_password(
    data: EmailRequest,
    request: Request,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_forgot_password),
):
    email = normalize_email(data.email)
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")

    user = db.query(User).filter(User.email == email).first()
    if user:
        reset = PasswordResetToken(
            user_id=user.id,
            token=generate_hex_token(32),
            expires_at=datetime.utcnow() + timedelta(hours=RESET_TOKEN_HOURS),
        )
        db.add(reset)
        db.commit()
        log_security_event("password_reset_requested", user.id, get_client_ip(request))
        await email_service.send_best_effort(
            email_service.send_password_reset_email(user.email, reset.token),
            "password reset email",
        )

    return {"success": True, "message": GENERIC_FORGOT_MESSAGE}


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_reset_password),
):
    if not data.token or not data.password:
        raise HTTPException(status_code=400, detail="Token and password are required")

    _ensure_password_policy(data.password)

    reset = (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.token == data.token,
            PasswordResetToken.used_at.is_(None),
            PasswordResetToken.expires_at > datetime.utcnow(),
        )
        .first()
    )
    if not reset or not reset.user:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    reset.user.password = hash_password_bcrypt(data.password)
    reset.used_at = datetime.utcnow()
    db.commit()

    deleted = delete_user_sessions(db, reset.user_id)
    log_security_event(
        "password_reset", reset.user_id, get_client_ip(request), {"sessions_deleted": deleted}
    )

    return {
        "success": True,
        "message": "Password has been reset successfully. You can now sign in with your new password.",
    }


# ============================================================================
# EMPLOYEES
# ============================================================================


@router.post("/employee-signin")
async def employee_signin(
    data: EmployeeSigninRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_employee_signin),
):
    ip_address = get_client_ip(request)
    identifier = (data.identifier or data.username or data.email or "").strip().lower()
    if not identifier or not data.password:
        raise HTTPException(status_code=400, detail="Missing email/username or password")

    query = db.query(Employee).filter(
        or_(Employee.username == identifier, Employee.email == identifier)
    )
    if data.companyId:
        query = query.filter(Employee.company_id == data.companyId)
    employee = query.first()

    if not employee or not employee.password or not verify_password_bcrypt(data.password, employee.password):
        log_security_event(
            "failed_login",
            user_id=employee.id if employee else None,
            ip_address=ip_address,
            details={"type": "employee", "reason": "invalid_credentials"},
        )
        raise HTTPException(status_code=401, detail="Invalid login details")

    if employee.status != "active":
        log_security_event("failed_login", employee.id, ip_address, {"type": "employee", "reason": "inactive"})
        raise HTTPException(status_code=403, detail="Employee account is not active")

    session = create_session(
        db,
        request,
        company_id=employee.company_id,
        employee_id=employee.id,
        session_type=SESSION_TYPE_EMPLOYEE,
    )
    set_session_cookie(response, session.token, SESSION_TYPE_EMPLOYEE)
    log_security_event("login", employee.id, ip_address, {"type": "employee"})

    return {"success": True, "redirectTo": "/employee", "employee": employee_summary(employee)}


@router.post("/employee-signout")
async def employee_signout(
    response: Response,
    db: Session = Depends(get_db),
    employee: Optional[Employee] = Depends(get_optional_employee),
):
    if employee:
        delete_employee_sessions(db, employee.id)
        log_security_event("logout", employee.id, details={"type": "employee"})

    clear_session_cookie(response, SESSION_TYPE_EMPLOYEE)
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    return {"success": True}


@router.get("/employee-session")
async def get_employee_session(employee: Optional[Employee] = Depends(get_optional_employee)):
    if not employee:
        return {"employee": None}
    return {"employee": employee_summary(employee)}
