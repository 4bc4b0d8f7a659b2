"""
Authentication: credential strategies, session tokens and request identity.

Sign-in goes through a registry of credential strategies keyed by provider id
("credentials", "demo"). A successful sign-in issues a signed JWT; requests
present it as a Bearer token and handlers receive an AuthenticatedUser built
once by get_current_user / get_optional_user.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session, select

from pickup.database import get_session
from pickup.models.user import User

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "24"))
ENABLE_DEMO_LOGIN = os.getenv("ENABLE_DEMO_LOGIN", "true").lower() in ("true", "1", "yes")

JWT_ALGORITHM = "HS256"
BCRYPT_MAX_PASSWORD_BYTES = 72

bearer_scheme = HTTPBearer(auto_error=False)


class AuthError(Exception):
    """Raised when a credential strategy rejects a sign-in"""

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code


class AuthenticatedUser(BaseModel):
    """Identity of the caller, resolved from the session token."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: Optional[str] = None


class SignInRequest(BaseModel):
    provider: str = "credentials"
    email: Optional[str] = None
    password: Optional[str] = None
    is_registering: bool = False
    name: Optional[str] = None


# ============================================================================
# Passwords
# ============================================================================


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


# ============================================================================
# Credential strategies
# ============================================================================


class CredentialStrategy:
    """Base class for a sign-in provider"""

    id: str = ""
    name: str = ""

    @property
    def enabled(self) -> bool:
        return True

    def authenticate(self, session: Session, request: SignInRequest) -> User:
        raise NotImplementedError


class EmailPasswordStrategy(CredentialStrategy):
    """Email + password; registers a new account when is_registering is set."""

    id = "credentials"
    name = "Email and Password"

    def authenticate(self, session: Session, request: SignInRequest) -> User:
        email = (request.email or "").strip().lower()
        password = request.password or ""
        if not email or not password:
            raise AuthError("Email and password are required", status_code=400)
        if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise AuthError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes", status_code=400)

        existing = session.exec(select(User).where(User.email == email)).first()

        if request.is_registering:
            if existing:
                raise AuthError("User already exists", status_code=409)
            user = User(
                email=email,
                name=request.name or email.split("@")[0],
                password_hash=hash_password(password),
                auth_provider=self.id,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            logger.info("Registered user %s (%s)", user.id, email)
            return user

        if not existing or not verify_password(password, existing.password_hash):
            raise AuthError("Invalid email or password")
        return existing


class DemoStrategy(CredentialStrategy):
    """Any display name signs in; the account is created on first use."""

    id = "demo"
    name = "Demo User"

    @property
    def enabled(self) -> bool:
        return ENABLE_DEMO_LOGIN

    def authenticate(self, session: Session, request: SignInRequest) -> User:
        name = (request.name or "").strip()
        if not name:
            raise AuthError("Name is required", status_code=400)

        email = f"{name.lower().replace(' ', '')}@demo.com"
        user = session.exec(select(User).where(User.email == email)).first()
        if user:
            return user

        user = User(email=email, name=name, auth_provider=self.id)
        session.add(user)
        session.commit()
        session.refresh(user)
        logger.info("Created demo user %s (%s)", user.id, email)
        return user


STRATEGIES: Dict[str, CredentialStrategy] = {
    strategy.id: strategy for strategy in (EmailPasswordStrategy(), DemoStrategy())
}


def enabled_strategies() -> List[CredentialStrategy]:
    return [s for s in STRATEGIES.values() if s.enabled]


def sign_in(session: Session, request: SignInRequest) -> User:
    """Dispatch a sign-in request to its provider's strategy."""
    strategy = STRATEGIES.get(request.provider)
    if strategy is None or not strategy.enabled:
        raise AuthError(f"Unknown sign-in provider '{request.provider}'", status_code=400)
    return strategy.authenticate(session, request)


# ============================================================================
# Session tokens
# ============================================================================


def create_session_token(user: User) -> str:
    """Create a signed session token for a user."""
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "exp": datetime.now(timezone.utc) + timedelta(hours=SESSION_TTL_HOURS),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str) -> Optional[int]:
    """Return the user id carried by a token, or None if it is invalid or expired."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired session token")
        return None
    except jwt.InvalidTokenError:
        logger.debug("Rejected invalid session token")
        return None

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None


# ============================================================================
# Request dependencies
# ============================================================================


def _resolve_identity(
    credentials: Optional[HTTPAuthorizationCredentials], session: Session
) -> Optional[AuthenticatedUser]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    user_id = decode_session_token(credentials.credentials)
    if user_id is None:
        return None
    user = session.get(User, user_id)
    if not user:
        return None
    return AuthenticatedUser(id=user.id, email=user.email, name=user.name)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> AuthenticatedUser:
    """Require an authenticated caller (401 otherwise)"""
    identity = _resolve_identity(credentials, session)
    if identity is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return identity


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Optional[AuthenticatedUser]:
    """Resolve the caller if a valid token is present; anonymous otherwise"""
    return _resolve_identity(credentials, session)
