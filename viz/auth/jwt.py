"""
Bearer token verification.

Supabase signs user tokens with ES256 and publishes the public keys as a
JWKS document. Tokens minted locally for development use HS256 with the
project secret.
"""
import logging
from typing import Any, Dict
from datetime import datetime, timezone

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError as JWTInvalidTokenError

from viz.auth import config
from viz.auth.exceptions import InvalidTokenError, TokenExpiredError
from viz.models.session import UserSession

logger = logging.getLogger(__name__)

AUDIENCE = "authenticated"
REQUIRED_CLAIMS = ["exp", "sub"]

# One key client per project URL; each caches the keys it has fetched
_jwks_clients: Dict[str, jwt.PyJWKClient] = {}


def _signing_key(token: str, algorithm: str) -> Any:
    if algorithm == "HS256":
        if not config.SUPABASE_JWT_SECRET:
            raise InvalidTokenError("SUPABASE_JWT_SECRET not configured")
        return config.SUPABASE_JWT_SECRET
    if algorithm == "ES256":
        jwks_url = f"{config.SUPABASE_URL}/auth/v1/.well-known/jwks.json"
        if jwks_url not in _jwks_clients:
            _jwks_clients[jwks_url] = jwt.PyJWKClient(jwks_url)
        return _jwks_clients[jwks_url].get_signing_key_from_jwt(token).key
    raise InvalidTokenError(f"Unsupported signing algorithm: {algorithm}")


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify a Supabase access token and return its claims.

    Raises:
        TokenExpiredError: The token is past its exp claim
        InvalidTokenError: Anything else wrong with the token or its signature
    """
    try:
        algorithm = jwt.get_unverified_header(token).get("alg", "HS256")
        return jwt.decode(
            token,
            _signing_key(token, algorithm),
            algorithms=[algorithm],
            audience=AUDIENCE,
            options={"require": REQUIRED_CLAIMS},
        )
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.PyJWKClientError as e:
        logger.error(f"Signing keys unavailable: {e}")
        raise InvalidTokenError("Token verification failed")
    except JWTInvalidTokenError as e:
        logger.warning(f"Rejected access token: {e}")
        raise InvalidTokenError()


def session_from_token(token: str) -> UserSession:
    claims = decode_access_token(token)
    return UserSession(user_id=str(claims["sub"]), email=claims.get("email"), access_token=token)


def create_dev_token(user_id: str, email: str, expires_in: int = 3600) -> str:
    """Mint an HS256 token for local development and tests."""
    if not config.SUPABASE_JWT_SECRET:
        raise InvalidTokenError("SUPABASE_JWT_SECRET not configured")

    issued_at = int(datetime.now(timezone.utc).timestamp())
    claims = {
        "sub": user_id,
        "email": email,
        "aud": AUDIENCE,
        "role": "authenticated",
        "iat": issued_at,
        "exp": issued_at + expires_in,
    }
    return jwt.encode(claims, config.SUPABASE_JWT_SECRET, algorithm="HS256")
