from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import logging

from database.connection import get_db
from core.exceptions import AuthenticationError, AuthorizationError
from core.security import Principal, AuthorizationPolicy, build_policy
from services.auth import (
    authenticate_user,
    create_user,
    create_token_for_user,
    verify_token,
    get_user_by_email
)
from schemas.user import UserLogin, UserRegister, Token, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

_policy: Optional[AuthorizationPolicy] = None

def get_authorization_policy() -> AuthorizationPolicy:
    """The process-wide authorization policy, built from settings on first use."""
    global _policy
    if _policy is None:
        _policy = build_policy()
    return _policy

def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[Principal]:
    """Resolve the bearer token to a principal; anonymous callers get None."""
    if not credentials or not credentials.credentials:
        return None

    token_data = verify_token(credentials.credentials)
    if token_data is None:
        raise AuthenticationError("Could not validate credentials")

    user = get_user_by_email(db, email=token_data.email)
    if user is None:
        logger.warning(f"Token valid but user not found: {token_data.email}")
        raise AuthenticationError("Your session is stale. Please sign in again.")

    if not user.is_active:
        logger.warning(f"Token valid but user inactive: {token_data.email}")
        raise AuthorizationError("Account is inactive")

    return Principal(id=user.id, email=user.email, role=user.role, name=user.display_name)

def require_customer(
    principal: Optional[Principal] = Depends(get_current_principal),
    policy: AuthorizationPolicy = Depends(get_authorization_policy)
) -> Principal:
    return policy.require_authenticated(principal)

def require_seller(
    principal: Optional[Principal] = Depends(get_current_principal),
    policy: AuthorizationPolicy = Depends(get_authorization_policy)
) -> Principal:
    return policy.require_seller(principal)

@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """Register a new customer account."""
    logger.info(f"Registration attempt for email: {user_data.email}")

    user = create_user(db, user_data)

    return Token(
        access_token=create_token_for_user(user),
        token_type="bearer",
        user=UserResponse.from_orm(user)
    )

@router.post("/login", response_model=Token)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Exchange email and password for an access token."""
    user = authenticate_user(db, credentials.email, credentials.password)
    if not user:
        raise AuthenticationError("Invalid email or password")

    return Token(
        access_token=create_token_for_user(user),
        token_type="bearer",
        user=UserResponse.from_orm(user)
    )

@router.get("/me", response_model=UserResponse)
def me(principal: Principal = Depends(require_customer), db: Session = Depends(get_db)):
    """Profile of the authenticated user."""
    user = get_user_by_email(db, principal.email)
    if not user:
        raise AuthenticationError("Your session is stale. Please sign in again.")
    return UserResponse.from_orm(user)
