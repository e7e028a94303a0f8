"""
Firebase Authentication ID token verification.

This module verifies the bearer tokens sent by signed-in clients against
Google's published signing keys.
"""

import asyncio
from typing import Any, Dict, Optional

import jwt
from jwt import PyJWKClient

from tutorbook.config.config import FirebaseConfig
from tutorbook.search.users import IdentityVerifier
from tutorbook.utils.errors import ErrorCode, UnauthorizedError
from tutorbook.utils.logging import get_logger

logger = get_logger(__name__)

FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)
ALGS = ("RS256",)


class FirebaseTokenVerifier(IdentityVerifier):
    """Verifies Firebase ID tokens and returns the user's ``uid``."""

    def __init__(self, config: FirebaseConfig, jwks_client: Optional[PyJWKClient] = None):
        """
        Initialize the verifier.

        Args:
            config: Firebase configuration (the project ID is the audience)
            jwks_client: Signing key client; defaults to Google's key set
        """
        self.project_id = config.project_id
        self.issuer = f"https://securetoken.google.com/{config.project_id}"
        self.jwks_client = jwks_client or PyJWKClient(FIREBASE_JWKS_URL)
        logger.info("Firebase token verifier initialized")

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Verify the token's signature and claims.

        Returns:
            Verified claims

        Raises:
            UnauthorizedError: If the token is invalid or expired
        """
        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(token)
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=ALGS,
                audience=self.project_id,
                issuer=self.issuer,
                options={"require": ["exp", "iat", "aud", "iss", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token expired", code=ErrorCode.EXPIRED_TOKEN)
        except jwt.PyJWTError as e:
            raise UnauthorizedError(f"Invalid token: {e}", code=ErrorCode.INVALID_TOKEN)

        if not claims.get("sub"):
            raise UnauthorizedError("Token has no subject", code=ErrorCode.INVALID_TOKEN)
        return claims

    async def verify(self, token: str) -> str:
        """
        Verify a Firebase ID token.

        Args:
            token: Raw JWT (without the ``Bearer`` prefix)

        Returns:
            The user's ``uid``

        Raises:
            UnauthorizedError: If the token is invalid
        """
        if not token:
            raise UnauthorizedError("Missing token")
        # Key fetches are blocking HTTP calls.
        claims = await asyncio.to_thread(self.decode, token)
        return claims["sub"]
