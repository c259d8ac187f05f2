# ============================================================================
# FILE: app/api/dependencies.py
# Authentication and tenant dependencies
# ============================================================================
from fastapi import Depends, Header, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from uuid import UUID

from app.config.database import get_db
from app.config.settings import settings
from app.core.exceptions import NotFound, Unauthorized
from app.core.tenant import TenantContext
from app.models.provider import Provider

# ============================================================================
# Security Schemes
# ============================================================================

# auto_error is off so a missing header is a 401, not FastAPI's default 403
jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Enter your JWT access token",
    auto_error=False
)


# ============================================================================
# JWT Token Functions
# ============================================================================

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary with claims (should include 'sub' with user_id)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": "access"
    })

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def verify_access_token(token: str) -> dict:
    """
    Verify and decode a JWT access token.

    Raises:
        Unauthorized: If token is invalid, expired or not an access token
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise Unauthorized(f"Could not validate credentials: {str(e)}")

    if payload.get("type") != "access":
        raise Unauthorized("Invalid token type")

    return payload


# ============================================================================
# Provider Authentication
# ============================================================================

async def get_current_provider(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(jwt_security),
        db: Session = Depends(get_db)
) -> Provider:
    """
    Resolve the provider behind a bearer token.

    The token's 'sub' is the provider's auth user id.

    Raises:
        Unauthorized: missing/invalid token
        NotFound: no provider linked to the user
    """
    if credentials is None:
        raise Unauthorized("Unauthorized")

    payload = verify_access_token(credentials.credentials)

    user_id_str: Optional[str] = payload.get("sub")
    if user_id_str is None:
        raise Unauthorized("Could not validate credentials")

    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise Unauthorized("Invalid user ID in token")

    provider = db.query(Provider).filter(Provider.user_id == user_id).first()
    if provider is None:
        raise NotFound("Provider not found")

    return provider


# ============================================================================
# Tenant Context
# ============================================================================

async def get_optional_tenant_context(
        x_business_id: Optional[str] = Header(None, alias="X-Business-ID"),
        business_id: Optional[str] = Query(None, alias="businessId")
) -> Optional[TenantContext]:
    """Tenant from the businessId query param or X-Business-ID header, if any"""
    value = business_id or x_business_id
    if not value:
        return None
    return TenantContext.from_value(value)


async def get_tenant_context(
        tenant: Optional[TenantContext] = Depends(get_optional_tenant_context)
) -> TenantContext:
    """Like get_optional_tenant_context, but the business is required"""
    if tenant is None:
        return TenantContext.from_value(None)
    return tenant
