from __future__ import annotations

import hmac
from datetime import datetime, timedelta, timezone

import jwt

from printvault.core.errors import AuthError, ValidationError

TOKEN_ALGORITHM = "HS256"


class AuthService:
    """Issues and checks the signed admin token (HS256 JWT with an ``admin`` claim)."""

    def __init__(self, *, admin_password: str, jwt_secret: str, token_ttl_days: int = 7) -> None:
        self.admin_password = admin_password
        self.jwt_secret = jwt_secret
        self.token_ttl = timedelta(days=token_ttl_days)

    def login(self, password: str | None) -> str:
        if not password:
            raise ValidationError("Password is required")
        if not hmac.compare_digest(str(password).encode("utf-8"), self.admin_password.encode("utf-8")):
            raise AuthError("Invalid password", reason="invalid")
        return self.issue_token()

    def issue_token(self, *, admin: bool = True, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "admin": admin,
            "iat": issued_at,
            "exp": issued_at + self.token_ttl,
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: str | None) -> dict:
        if not token:
            raise AuthError("Authentication required", reason="missing")
        try:
            claims = jwt.decode(token, self.jwt_secret, algorithms=[TOKEN_ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("Token expired", reason="expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError("Invalid token", reason="invalid") from exc
        if not claims.get("admin"):
            raise AuthError("Admin access required", reason="forbidden")
        return claims
