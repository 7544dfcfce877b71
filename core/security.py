"""
Authenticated principal and authorization policies.

Handlers never read roles from ambient state: the resolved ``Principal`` is
passed in explicitly and the active ``AuthorizationPolicy`` decides whether it
may proceed. The policy is chosen from configuration once, at startup.
"""
from dataclasses import dataclass
from typing import Optional
import logging

from core.config import settings
from core.exceptions import AuthenticationError, AuthorizationError
from models.user import UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    id: str
    email: str
    role: UserRole
    name: Optional[str] = None


def is_seller(principal: Optional[Principal]) -> bool:
    return principal is not None and principal.role in (UserRole.SELLER, UserRole.ADMIN)


class AuthorizationPolicy:
    """Decides whether a principal may call customer or seller operations."""

    name = "base"

    def require_authenticated(self, principal: Optional[Principal]) -> Principal:
        raise NotImplementedError

    def require_seller(self, principal: Optional[Principal]) -> Principal:
        raise NotImplementedError


class EnforcingPolicy(AuthorizationPolicy):
    name = "enforce"

    def require_authenticated(self, principal: Optional[Principal]) -> Principal:
        if principal is None:
            raise AuthenticationError()
        return principal

    def require_seller(self, principal: Optional[Principal]) -> Principal:
        principal = self.require_authenticated(principal)
        if not is_seller(principal):
            raise AuthorizationError("Access denied. Seller role required.")
        return principal


class PermissivePolicy(AuthorizationPolicy):
    """Development policy: seller calls without a seller principal act as the dev seller.

    Anonymous callers and non-seller principals (a logged-in customer) are
    both substituted; a real seller or admin keeps their own identity.
    """

    name = "permissive"

    def __init__(self, dev_seller: Principal):
        self.dev_seller = dev_seller

    def require_authenticated(self, principal: Optional[Principal]) -> Principal:
        if principal is None:
            raise AuthenticationError()
        return principal

    def require_seller(self, principal: Optional[Principal]) -> Principal:
        if not is_seller(principal):
            who = principal.id if principal else "anonymous"
            logger.debug(f"Permissive policy: {who} acting as dev seller {self.dev_seller.id}")
            return self.dev_seller
        return principal


def build_policy(policy_name: str = None) -> AuthorizationPolicy:
    policy_name = (policy_name or settings.AUTH_POLICY).lower()
    if policy_name == PermissivePolicy.name:
        logger.warning("Permissive authorization policy active; do not use in production")
        return PermissivePolicy(
            Principal(
                id=settings.DEV_SELLER_ID,
                email=settings.DEV_SELLER_EMAIL,
                role=UserRole.SELLER,
                name="Development Seller",
            )
        )
    if policy_name != EnforcingPolicy.name:
        raise ValueError(f"Unknown AUTH_POLICY: {policy_name}")
    return EnforcingPolicy()
