"""
core/security.py
----------------
Identity-provider token verification.

Design decisions:
  - Sign-up, sign-in and token refresh happen between the client and the
    identity provider; this service only ever *verifies* access tokens.
  - Access tokens are HS256 JWTs signed with the provider's JWT secret, so
    they are validated locally (signature, expiry, audience and, when
    SUPABASE_URL is configured, issuer) without a network round-trip.
  - The provider's stable subject id ('sub') is the only link to a local
    User row (users.external_id).
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from jose import ExpiredSignatureError, JWTError, jwt

from promptdepot.core.config import Settings
from promptdepot.core.exceptions import AuthenticationError


@dataclass(frozen=True)
class IdentityUser:
    """The caller as the identity provider sees them."""

    id: str
    email: str | None = None
    email_confirmed: bool = False
    claims: Dict[str, Any] = field(default_factory=dict, repr=False)


class IdentityProvider:
    """
    Verifies bearer tokens issued by the external identity provider.

    One instance is built at application start-up and shared through
    app.state; tests build their own against a throwaway secret.
    """

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.SUPABASE_JWT_SECRET
        self._algorithm = settings.SUPABASE_JWT_ALGORITHM
        self._audience = settings.SUPABASE_JWT_AUDIENCE
        self._issuer = settings.token_issuer

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate an access token.

        Raises:
            AuthenticationError: If the token is invalid, expired, or tampered with.
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
            )
        except ExpiredSignatureError as exc:
            raise AuthenticationError("Invalid Token: token has expired") from exc
        except JWTError as exc:
            raise AuthenticationError(f"Invalid Token: {exc}") from exc

    def get_user(self, token: str) -> IdentityUser:
        claims = self.decode(token)
        subject = claims.get("sub")
        if not subject:
            raise AuthenticationError("Invalid Token: User not found for token.")
        return IdentityUser(
            id=subject,
            email=claims.get("email"),
            email_confirmed=bool(claims.get("email_confirmed_at") or claims.get("email_verified")),
            claims=claims,
        )
