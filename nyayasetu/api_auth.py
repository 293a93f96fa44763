"""
Auth API Endpoints
==================

- POST /api/auth/signup
- POST /api/auth/signin
- GET  /api/auth/me
- GET  /api/auth/is-admin
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .auth import AuthContext, AuthError, get_auth_service, require_auth
from .db.session import get_db
from .errors import ServiceError
from .schemas import SignUpRequest, SignInRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup")
async def signup(request: SignUpRequest, db: Session = Depends(get_db)):
    """Create an account and return a session."""
    auth_service = get_auth_service(db)
    try:
        auth = auth_service.sign_up(request.email, request.password, request.display_name)
    except AuthError as e:
        raise ServiceError(e.message, status_code=e.status_code)
    return auth_service.build_session(auth)


@router.post("/signin")
async def signin(request: SignInRequest, db: Session = Depends(get_db)):
    auth_service = get_auth_service(db)
    auth = auth_service.authenticate_user(request.email, request.password)
    if not auth:
        raise ServiceError("Invalid email or password", status_code=401)
    return auth_service.build_session(auth)


@router.get("/me")
async def me(auth: AuthContext = Depends(require_auth)):
    return {
        "id": auth.user_id,
        "email": auth.email,
        "role": auth.role.value,
        "display_name": auth.display_name,
        "is_admin": auth.is_admin,
    }


@router.get("/is-admin")
async def is_admin(auth: AuthContext = Depends(require_auth)):
    return {"is_admin": auth.is_admin}
