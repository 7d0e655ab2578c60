from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from printvault.application.services.auth_service import AuthService
from printvault.core.errors import AuthError, ValidationError


def _service(**overrides) -> AuthService:
    options = {"admin_password": "s3cret", "jwt_secret": "test-secret", "token_ttl_days": 7}
    options.update(overrides)
    return AuthService(**options)


def test_login_issues_verifiable_admin_token() -> None:
    service = _service()

    token = service.login("s3cret")
    claims = service.verify(token)

    assert claims["admin"] is True
    assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60


def test_login_rejects_wrong_or_missing_password() -> None:
    service = _service()

    with pytest.raises(AuthError) as excinfo:
        service.login("nope")
    assert str(excinfo.value) == "Invalid password"
    assert excinfo.value.status_code == 401

    with pytest.raises(ValidationError, match="Password is required"):
        service.login("")
    with pytest.raises(ValidationError):
        service.login(None)


def test_verify_missing_token() -> None:
    with pytest.raises(AuthError) as excinfo:
        _service().verify(None)
    assert excinfo.value.reason == "missing"
    assert excinfo.value.status_code == 401


def test_verify_expired_token() -> None:
    service = _service()
    token = service.issue_token(now=datetime.now(timezone.utc) - timedelta(days=8))

    with pytest.raises(AuthError) as excinfo:
        service.verify(token)
    assert str(excinfo.value) == "Token expired"
    assert excinfo.value.reason == "expired"


def test_verify_rejects_garbage_and_foreign_signatures() -> None:
    service = _service()
    foreign = _service(jwt_secret="other-secret").issue_token()

    for token in ("not-a-token", foreign):
        with pytest.raises(AuthError) as excinfo:
            service.verify(token)
        assert str(excinfo.value) == "Invalid token"
        assert excinfo.value.status_code == 401


def test_verify_requires_admin_claim() -> None:
    service = _service()
    token = service.issue_token(admin=False)

    with pytest.raises(AuthError) as excinfo:
        service.verify(token)
    assert str(excinfo.value) == "Admin access required"
    assert excinfo.value.status_code == 403
