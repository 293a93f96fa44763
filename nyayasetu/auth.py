"""
Authentication
==============

Email/password accounts for eNyayaSetu.

Roles:
- admin: sees every case, session and payment
- user: sees only what they own

A signed-in client sends ``Authorization: Bearer <jwt>`` (HS256, 7 days by
default). ``get_current_user`` resolves it to an ``AuthContext`` and
``require_auth`` turns a missing token into 401.
"""

import os
import logging
from typing import Optional, Dict, Any
from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
from fastapi import Depends, Header, HTTPException
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .db.models import User, Profile, UserWallet, UserRole
from .db.session import get_db

logger = logging.getLogger(__name__)

JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
JWT_ALGORITHM = "HS256"
SESSION_TTL_MINUTES = int(os.environ.get("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _password_fits(password: str) -> bool:
    return len(password.encode("utf-8")) <= MAX_PASSWORD_BYTES


def get_password_hash(password: str) -> str:
    if not _password_fits(password):
        raise ValueError(f"Password longer than {MAX_PASSWORD_BYTES} bytes")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for a wrong, oversized or unparseable password; never raises."""
    if not _password_fits(plain_password):
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.warning(f"Stored password hash rejected: {e}")
        return False


def create_access_token(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    expires_at = datetime.utcnow() + (expires_delta or timedelta(minutes=SESSION_TTL_MINUTES))
    return jwt.encode({**claims, "exp": expires_at, "type": "access"}, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Claims of a valid, unexpired token; None otherwise."""
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        return None


# =============================================================================
# AUTH CONTEXT
# =============================================================================

@dataclass
class AuthContext:
    """Authorization context for a request"""
    user_id: str
    email: str
    role: UserRole
    display_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def owns(self, owner_id: Optional[str]) -> bool:
        """Admins act on everything; users only on rows they own."""
        return self.is_admin or (owner_id is not None and owner_id == self.user_id)


class AuthError(Exception):
    """Sign-up/sign-in failure carrying the HTTP status to report"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# =============================================================================
# AUTH SERVICE
# =============================================================================

class AuthService:
    """Account management on top of SQLAlchemy"""

    def __init__(self, db: Session):
        self.db = db

    def _context_for(self, user: User) -> AuthContext:
        return AuthContext(
            user_id=user.id,
            email=user.email,
            role=user.role,
            display_name=user.profile.display_name if user.profile else None,
        )

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> AuthContext:
        """
        Create a user with its profile and an empty INR wallet.

        Raises:
            AuthError: email already registered or password too long
        """
        if not _password_fits(password):
            raise AuthError(f"Password too long (max {MAX_PASSWORD_BYTES} bytes)")

        email = email.lower()
        existing = self.db.query(User).filter(User.email == email).first()
        if existing:
            raise AuthError("User already exists")

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            role=UserRole.USER,
            extra_data={"display_name": display_name} if display_name else {},
        )
        self.db.add(user)
        self.db.flush()

        self.db.add(Profile(user_id=user.id, display_name=display_name or email.split("@", 1)[0]))
        self.db.add(UserWallet(user_id=user.id, balance=0.0, currency="INR"))
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User signed up: {user.id}")
        return self._context_for(user)

    def authenticate_user(self, email: str, password: str) -> Optional[AuthContext]:
        """
        Authenticate a user by email and password.

        Returns:
            AuthContext if authentication succeeds, None otherwise
        """
        user = self.db.query(User).filter(User.email == email.lower()).first()
        if not user:
            logger.warning("Auth failed: email not found")
            return None

        if not verify_password(password, user.password_hash):
            logger.warning(f"Auth failed: invalid password for user {user.id}")
            return None

        return self._context_for(user)

    def get_auth_context(self, user_id: str) -> Optional[AuthContext]:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            logger.warning(f"Auth failed: user {user_id} not found")
            return None
        return self._context_for(user)

    def build_session(self, auth: AuthContext) -> Dict[str, Any]:
        """Session payload returned by sign-up and sign-in"""
        token = create_access_token({"sub": auth.user_id, "email": auth.email, "role": auth.role.value})
        return {
            "access_token": token,
            "token_type": "bearer",
            "expires_in": SESSION_TTL_MINUTES * 60,
            "user": {
                "id": auth.user_id,
                "email": auth.email,
                "role": auth.role.value,
                "display_name": auth.display_name,
            },
        }


def get_auth_service(db: Session) -> AuthService:
    """Get auth service instance"""
    return AuthService(db)


# =============================================================================
# FASTAPI DEPENDENCIES
# =============================================================================

async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> Optional[AuthContext]:
    """
    Resolve the caller from `Authorization: Bearer <jwt>`.

    Returns None when no bearer token is sent. A token that does not decode
    or names an unknown user is rejected with 401.
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        return None

    token = authorization.split(" ", 1)[1].strip()
    payload = decode_token(token)
    if not payload or payload.get("type") != "access" or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    auth = get_auth_service(db).get_auth_context(payload["sub"])
    if not auth:
        raise HTTPException(status_code=401, detail="User not found")
    return auth


async def require_auth(
    auth: Optional[AuthContext] = Depends(get_current_user)
) -> AuthContext:
    """Require authenticated user"""
    if not auth:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return auth
