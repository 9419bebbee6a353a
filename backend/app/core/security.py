import jwt
from fastapi import HTTPException, status

from app.core.config import Settings


class TokenVerifier:
    """Validates Clerk-issued JWTs against the instance's JWKS."""

    def __init__(self, jwks_url: str, issuer: str, audience: str | None = None):
        # JWKS client caches Clerk's public keys automatically
        self._jwks_client = jwt.PyJWKClient(jwks_url, cache_keys=True)
        self._issuer = issuer
        self._audience = audience

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenVerifier":
        return cls(
            jwks_url=settings.CLERK_JWKS_URL,
            issuer=settings.CLERK_ISSUER,
            audience=settings.CLERK_AUDIENCE,
        )

    def decode_token(self, token: str) -> dict:
        """Decode and validate a token, raising 401 on any failure."""
        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(token)
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                issuer=self._issuer,
                audience=self._audience,
                options={"require": ["exp", "sub", "iss"]},
            )
            return payload
        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except (jwt.InvalidTokenError, jwt.PyJWKClientError):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
