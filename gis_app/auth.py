import logging
import time
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request, Response
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import config
from .database import get_db
from .errors import AuthError, PersistenceError
from .models import LoginSession, User

log = logging.getLogger(__name__)

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_COST)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        # hash rusak / bukan bcrypt
        return False


@dataclass
class SessionContext:
    """Data sesi login milik satu request (dibaca dari cookie)."""
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    login_time: Optional[int] = None
    session_id: Optional[str] = None

    def remaining(self, now: Optional[float] = None) -> int:
        if self.login_time is None:
            return 0
        now = time.time() if now is None else now
        return int(config.SESSION_TIMEOUT - (now - self.login_time))


def create_session_token(user: User, login_time: Optional[int] = None, session_id: Optional[str] = None) -> str:
    login_time = int(time.time()) if login_time is None else int(login_time)
    claims = {
        "sub": str(user.id),
        "name": user.name,
        "email": user.email,
        "login_time": login_time,
    }
    if session_id:
        claims["jti"] = session_id
    return jwt.encode(claims, config.SECRET_KEY, algorithm=ALGORITHM)


def open_session(db: Session, user: User, login_time: Optional[int] = None) -> str:
    """Catat sesi baru di database dan kembalikan token cookie-nya."""
    login_time = int(time.time()) if login_time is None else int(login_time)
    session_id = uuid.uuid4().hex
    try:
        # sekalian buang sesi yang sudah kedaluwarsa
        expired_before = int(time.time()) - config.SESSION_TIMEOUT
        db.query(LoginSession).filter(LoginSession.login_time <= expired_before).delete()
        db.add(LoginSession(id=session_id, user_id=user.id, login_time=login_time))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Error opening session user_id=%s", user.id)
        raise PersistenceError()
    return create_session_token(user, login_time, session_id)


def start_session(response: Response, user: User, db: Session,
                  login_time: Optional[int] = None) -> SessionContext:
    """Set cookie sesi (httponly, SameSite=Strict). Login ulang cukup menimpa cookie lama."""
    token = open_session(db, user, login_time)
    response.set_cookie(
        config.SESSION_COOKIE_NAME,
        token,
        max_age=config.SESSION_TIMEOUT,
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="strict",
    )
    return decode_session(token)


def end_session(response: Response, session: SessionContext, db: Session) -> None:
    """Hapus catatan sesi di server lalu cookie-nya; token lama tidak bisa dipakai lagi."""
    if session.session_id:
        try:
            db.query(LoginSession).filter(LoginSession.id == session.session_id).delete()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            log.exception("Error closing session user_id=%s", session.user_id)
            raise PersistenceError()
    response.delete_cookie(
        config.SESSION_COOKIE_NAME,
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="strict",
    )


def decode_session(token: Optional[str]) -> SessionContext:
    if not token:
        return SessionContext()
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[ALGORITHM])
        return SessionContext(
            user_id=int(payload["sub"]),
            user_name=payload.get("name"),
            user_email=payload.get("email"),
            login_time=int(payload["login_time"]),
            session_id=payload.get("jti"),
        )
    except (JWTError, KeyError, TypeError, ValueError):
        return SessionContext()


def get_session(request: Request, db: Session = Depends(get_db)) -> SessionContext:
    """Sesi dari cookie, hanya jika masih tercatat di server (belum logout)."""
    session = decode_session(request.cookies.get(config.SESSION_COOKIE_NAME))
    if not session.session_id:
        return SessionContext()
    try:
        record = db.get(LoginSession, session.session_id)
    except SQLAlchemyError:
        db.rollback()
        log.exception("Error loading session user_id=%s", session.user_id)
        return SessionContext()
    if record is None or record.user_id != session.user_id:
        return SessionContext()
    return session


def is_logged_in(session: SessionContext, now: Optional[float] = None) -> bool:
    if session.user_id is None or session.login_time is None:
        return False
    now = time.time() if now is None else now
    return (now - session.login_time) < config.SESSION_TIMEOUT


def require_auth(session: SessionContext = Depends(get_session)) -> SessionContext:
    if not is_logged_in(session):
        raise AuthError("Authentication required")
    return session


def get_current_user(session: SessionContext, db: Session) -> Optional[User]:
    """User pemilik sesi, atau None. Error database dianggap belum login (fail closed)."""
    if not is_logged_in(session):
        return None
    try:
        return db.get(User, session.user_id)
    except SQLAlchemyError:
        log.exception("Error getting current user user_id=%s", session.user_id)
        return None
