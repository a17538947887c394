from decimal import Decimal
from types import SimpleNamespace

from jose import jwt

from commerce_auth.core.security import (
    TokenSigner,
    from_base64,
    hash_password,
    new_salt,
    to_base64,
    verify_password,
)

ACCESS = SimpleNamespace(name="access", time_span_default=Decimal("1"))
REFRESH = SimpleNamespace(name="refresh", time_span_default=Decimal("7"))
RESTORE = SimpleNamespace(name="restore", time_span_default=Decimal("0.0417"))
USER = SimpleNamespace(id=7, email="alice@x.com")


def test_access_token_round_trip(signer):
    token, jti = signer.issue_token(USER, ACCESS)
    payload = signer.validate_token(token, ACCESS)
    assert payload is not None
    assert payload["sub"] == "7"
    assert payload["jti"] == jti
    assert payload["aud"] == "test-api"
    assert payload["iss"] == "test-issuer"
    assert "email" not in payload


def test_refresh_token_contains_email_and_uses_refresh_audience(signer):
    token, _ = signer.issue_token(USER, REFRESH)
    payload = signer.validate_token(token, REFRESH)
    assert payload is not None
    assert payload["email"] == "alice@x.com"
    assert payload["aud"] == "test-refresh"


def test_refresh_token_is_not_accepted_as_access_token(signer):
    refresh, _ = signer.issue_token(USER, REFRESH)
    access, _ = signer.issue_token(USER, ACCESS)
    assert signer.validate_token(refresh, ACCESS) is None
    assert signer.validate_token(access, REFRESH) is None


def test_key_selection_depends_only_on_kind_name(signer):
    assert signer.key_and_audience("Refresh") == signer.key_and_audience("refresh")
    assert signer.key_and_audience("access") == signer.key_and_audience("anything-else")
    assert signer.key_and_audience("refresh") != signer.key_and_audience("access")


def test_reset_code_kind_returns_six_digit_code(signer):
    for _ in range(50):
        code, identifier = signer.issue_token(USER, RESTORE)
        assert code == identifier
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999


def test_reset_code_length_is_configurable():
    signer = TokenSigner("a" * 32, "iss", "aud", "b" * 32, "raud", reset_code_length=8)
    code, _ = signer.issue_token(USER, RESTORE)
    assert len(code) == 8


def test_expired_token_is_invalid(signer):
    expired = SimpleNamespace(name="access", time_span_default=Decimal("-1"))
    token, _ = signer.issue_token(USER, expired)
    assert signer.validate_token(token, ACCESS) is None


def test_wrong_issuer_or_signature_is_invalid(signer):
    other = TokenSigner(
        secret_key="test-access-secret-key-0123456789abcdef",
        issuer="someone-else",
        audience="test-api",
        refresh_secret_key="x" * 32,
        refresh_audience="test-refresh",
    )
    token, _ = other.issue_token(USER, ACCESS)
    assert signer.validate_token(token, ACCESS) is None

    forged = jwt.encode({"sub": "7", "jti": "x", "aud": "test-api", "iss": "test-issuer"}, "wrong-key", algorithm="HS256")
    assert signer.validate_token(forged, ACCESS) is None


def test_malformed_input_never_raises(signer):
    assert signer.validate_token("not-a-token", ACCESS) is None
    assert signer.validate_token("a.b.c", ACCESS) is None
    assert signer.validate_token("", ACCESS) is None
    assert signer.validate_token(None, ACCESS) is None


def test_password_hash_is_deterministic_per_salt():
    salt = new_salt()
    assert len(salt) == 32
    assert hash_password("Passw0rd!", salt) == hash_password("Passw0rd!", salt)
    assert hash_password("Passw0rd!", salt) != hash_password("Passw0rd!", new_salt())
    assert hash_password("Passw0rd!", salt) != hash_password("Passw0rd?", salt)


def test_verify_password_with_stored_base64_salt():
    salt = new_salt(16)
    stored_salt = to_base64(salt)
    assert from_base64(stored_salt) == salt
    digest = hash_password("Passw0rd!", salt)
    assert verify_password("Passw0rd!", stored_salt, digest)
    assert not verify_password("wrong-password", stored_salt, digest)
