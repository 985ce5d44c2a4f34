"""
JWT Authentication utilities for Taskflow.

Provides bearer token generation, validation and revocation.
Tokens are stateless apart from the revocation list written on logout.
"""
import uuid
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID
from django.conf import settings
from django.http import HttpRequest


JWT_ALGORITHM = 'HS256'


def _secret() -> str:
    return getattr(settings, 'JWT_SECRET', settings.SECRET_KEY)


def create_access_token(user_id: UUID) -> str:
    """
    Create a bearer access token.

    Contains the user id (``sub``) and a unique ``jti`` so the token can
    be revoked individually. Lifetime is ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        'sub': str(user_id),
        'jti': uuid.uuid4().hex,
        'exp': expire,
        'iat': now,
        'type': 'access'
    }
    return jwt.encode(payload, _secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload if valid, None if invalid/expired.
    """
    try:
        return jwt.decode(token, _secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_bearer_token(request: HttpRequest) -> Optional[str]:
    """Extract the raw token from an ``Authorization: Bearer`` header."""
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def parse_access_token(token: str) -> Optional[Tuple[UUID, str, datetime]]:
    """
    Validate an access token.

    Returns:
        (user_id, jti, expires_at) if valid and not revoked, None otherwise.
    """
    from .models import RevokedToken

    payload = decode_token(token)
    if not payload or payload.get('type') != 'access':
        return None

    jti = payload.get('jti')
    if not jti or RevokedToken.objects.filter(jti=jti).exists():
        return None

    try:
        user_id = UUID(payload['sub'])
    except (KeyError, ValueError):
        return None

    expires_at = datetime.fromtimestamp(payload['exp'], tz=timezone.utc)
    return user_id, jti, expires_at


def purge_expired_revocations() -> int:
    """Delete revocation rows whose tokens have expired anyway."""
    from .models import RevokedToken

    deleted, _ = RevokedToken.objects.filter(expires_at__lte=datetime.now(timezone.utc)).delete()
    return deleted


def revoke_token(token: str) -> bool:
    """
    Revoke a still-valid access token.
    Expired revocations are purged on the way.

    Returns:
        True if the token was revoked by this call.
    """
    from .models import RevokedToken

    parsed = parse_access_token(token)
    if not parsed:
        return False

    purge_expired_revocations()

    user_id, jti, expires_at = parsed
    _, created = RevokedToken.objects.get_or_create(
        jti=jti,
        defaults={'user_id': user_id, 'expires_at': expires_at},
    )
    return created
