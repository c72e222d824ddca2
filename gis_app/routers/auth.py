import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from slowapi.util import get_remote_address
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import config, rate_limit
from ..auth import (
    SessionContext,
    end_session,
    get_current_user,
    get_password_hash,
    get_session,
    is_logged_in,
    require_auth,
    start_session,
    verify_password,
)
from ..database import get_db
from ..errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    RateLimitError,
    ValidationError,
)
from ..models import User
from ..payloads import read_json_body
from ..responses import success
from ..validator import LOGIN_RULES, REGISTER_RULES, validate

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login")
def login(
    request: Request,
    payload: Dict[str, Any] = Depends(read_json_body),
    db: Session = Depends(get_db),
):
    result = validate(payload, LOGIN_RULES)
    if not result.valid:
        raise ValidationError(result.errors)
    data = result.data

    # 10 percobaan per 15 menit per IP
    identifier = rate_limit.client_identifier(request, "login")
    if not rate_limit.check(identifier, rate_limit.LOGIN_MAX_ATTEMPTS, rate_limit.LOGIN_WINDOW):
        raise RateLimitError("Too many login attempts. Please try again later.")

    try:
        user = db.query(User).filter(User.email == data["email"]).first()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Database error during login")
        raise PersistenceError()

    if not user or not verify_password(data["password"], user.password_hash):
        log.warning("Failed login attempt email=%s ip=%s", data["email"], get_remote_address(request))
        raise AuthError("Invalid email or password")

    response = success(
        {"user": user.to_dict(), "session_timeout": config.SESSION_TIMEOUT},
        "Login successful",
    )
    start_session(response, user, db)
    log.info("Successful login user_id=%s email=%s", user.id, user.email)
    return response


@router.post("/register")
def register(
    session: SessionContext = Depends(require_auth),
    payload: Dict[str, Any] = Depends(read_json_body),
    db: Session = Depends(get_db),
):
    """Hanya admin yang sudah login yang bisa mendaftarkan admin baru."""
    result = validate(payload, REGISTER_RULES)
    if not result.valid:
        raise ValidationError(result.errors)
    data = result.data

    if data["password"] != data["confirm_password"]:
        raise ValidationError(
            ["Password confirmation does not match"],
            message="Password confirmation does not match",
        )

    try:
        if db.query(User).filter(User.email == data["email"]).first():
            raise ConflictError("Email already exists")
        user = User(
            name=data["name"],
            email=data["email"],
            password_hash=get_password_hash(data["password"]),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        # email sama didaftarkan bersamaan
        db.rollback()
        raise ConflictError("Email already exists")
    except SQLAlchemyError:
        db.rollback()
        log.exception("Database error during registration")
        raise PersistenceError()

    log.info("New admin registered new_user_id=%s registered_by=%s", user.id, session.user_id)
    return success(user.to_dict(), "Admin berhasil didaftarkan")


@router.get("/profile")
def profile(
    session: SessionContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    try:
        user = db.get(User, session.user_id)
    except SQLAlchemyError:
        db.rollback()
        log.exception("Database error getting profile user_id=%s", session.user_id)
        raise PersistenceError()
    if not user:
        raise NotFoundError("User not found")
    return success(user.to_dict(with_created=True))


@router.get("/check")
def check(
    session: SessionContext = Depends(get_session),
    db: Session = Depends(get_db),
):
    if is_logged_in(session):
        user = get_current_user(session, db)
        if user:
            return success({
                "authenticated": True,
                "user": user.to_dict(),
                "session_remaining": session.remaining(),
            })
    return success({"authenticated": False})


@router.delete("/logout")
def logout(
    session: SessionContext = Depends(get_session),
    db: Session = Depends(get_db),
):
    if session.user_id is not None:
        log.info("User logged out user_id=%s", session.user_id)
    response = success(None, "Logout successful")
    end_session(response, session, db)
    return response
