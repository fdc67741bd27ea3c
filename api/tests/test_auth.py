"""
Bearer token handling.

The API trusts the ``sub`` claim of an HS256 JWT as the caller's user id.
"""

import pytest

pytest.importorskip("fastapi")
from fastapi import HTTPException

from nearmatch.auth import deps as auth_deps
from nearmatch.auth import security

SECRET = "unit-secret"


@pytest.fixture(autouse=True)
def _secret(monkeypatch):
    monkeypatch.setattr(security, "JWT_SECRET", SECRET)


def test_token_round_trip():
    token = security.create_access_token("user-42")
    payload = security.decode_access_token(token)
    assert payload["sub"] == "user-42"
    assert payload["exp"] > payload["iat"]


def test_wrong_secret_is_rejected():
    token = security.create_access_token("user-42", secret="other")
    with pytest.raises(HTTPException) as exc:
        security.decode_access_token(token)
    assert exc.value.status_code == 401


def test_expired_token_reports_reason(monkeypatch):
    monkeypatch.setattr(auth_deps, "DEV_MODE", True)
    token = security.create_access_token("user-42", ttl_minutes=-5)
    with pytest.raises(HTTPException) as exc:
        auth_deps.get_current_user_id(f"Bearer {token}")
    assert exc.value.status_code == 401
    assert exc.value.detail["reason"] == "token_expired"
    assert exc.value.detail["trace_id"]


@pytest.mark.parametrize(
    "header, reason",
    [(None, "missing_token"), ("Token abc", "malformed_token"), ("Bearer   ", "malformed_token")],
)
def test_bad_headers(monkeypatch, header, reason):
    monkeypatch.setattr(auth_deps, "DEV_MODE", True)
    with pytest.raises(HTTPException) as exc:
        auth_deps.get_current_user_id(header)
    assert exc.value.detail["reason"] == reason


def test_reason_hidden_outside_dev_mode(monkeypatch):
    monkeypatch.setattr(auth_deps, "DEV_MODE", False)
    with pytest.raises(HTTPException) as exc:
        auth_deps.get_current_user_id(None)
    assert "reason" not in exc.value.detail


def test_optional_user_id():
    assert auth_deps.get_optional_user_id(None) is None
    token = security.create_access_token("user-7")
    assert auth_deps.get_optional_user_id(f"Bearer {token}") == "user-7"
