"""
JWT token handling.

The relay only verifies bearer tokens issued by the platform's auth
service. Token creation is kept for tooling and tests.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

import jwt


@dataclass
class TokenPayload:
    """JWT token payload data."""
    sub: str  # Subject (user ID)
    exp: Optional[datetime] = None
    iat: Optional[datetime] = None
    type: Optional[str] = None

    @property
    def user_id(self) -> Optional[UUID]:
        try:
            return UUID(str(self.sub))
        except ValueError:
            return None


class JWTHandler:
    """JWT token verification."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 60,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        """
        Initialize JWT handler.

        Args:
            secret_key: Secret key for signing tokens
            algorithm: JWT signing algorithm
            access_token_expire_minutes: Validity of tokens created here
            issuer: Token issuer claim
            audience: Token audience claim
        """
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._access_token_expire_minutes = access_token_expire_minutes
        self._issuer = issuer
        self._audience = audience

    def create_access_token(self, user_id: UUID, legacy_claim: bool = False) -> str:
        """
        Create a new access token.

        Args:
            user_id: Subject.
            legacy_claim: Put the subject in `userId` instead of `sub`, as
                tokens from older app builds do.
        """
        now = datetime.now(timezone.utc)
        expires = now + timedelta(minutes=self._access_token_expire_minutes)

        payload = {
            "exp": expires,
            "iat": now,
            "jti": uuid4().hex,
            "type": "access",
        }
        if legacy_claim:
            payload["userId"] = str(user_id)
        else:
            payload["sub"] = str(user_id)

        if self._issuer:
            payload["iss"] = self._issuer
        if self._audience:
            payload["aud"] = self._audience

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify_token(self, token: str) -> Optional[TokenPayload]:
        """Verify and decode a token."""
        try:
            options = {}
            if self._audience:
                options["audience"] = self._audience
            if self._issuer:
                options["issuer"] = self._issuer

            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                **options
            )
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None

        subject = payload.get("sub") or payload.get("userId")
        if subject is None:
            return None

        return TokenPayload(
            sub=str(subject),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc) if "exp" in payload else None,
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc) if "iat" in payload else None,
            type=payload.get("type"),
        )

    def get_user_id(self, token: str) -> Optional[UUID]:
        """Caller identity for a bearer token, or None if invalid."""
        payload = self.verify_token(token)
        return payload.user_id if payload else None
