from datetime import timedelta
from decimal import Decimal

from commerce_auth.core.repository import SQLAlchemyRepository
from commerce_auth.core.results import Outcome
from commerce_auth.core.security import utcnow
from commerce_auth.models.security import TOKEN_STATUS_ACTIVE, TOKEN_STATUS_USED, Token, TokenType


def _tokens(db, user, kind):
    token_type = db.query(TokenType).filter(TokenType.name == kind).one()
    return (
        db.query(Token)
        .filter(Token.user_id == user.id, Token.token_type == token_type.id)
        .order_by(Token.id)
        .all()
    )


def test_issued_access_token_validates(token_service, alice):
    result = token_service.create_token(alice, "access")
    assert result.is_ok
    assert result.entity.count(".") == 2
    assert token_service.validate_token(result.entity, "access").entity is True

    rows = _tokens(token_service.uow.session, alice, "access")
    assert len(rows) == 1
    assert rows[0].status == TOKEN_STATUS_ACTIVE
    assert rows[0].expiration > utcnow()


def test_kind_lookup_is_case_insensitive(token_service, alice):
    result = token_service.create_token(alice, "ACCESS")
    assert result.is_ok
    assert token_service.validate_token(result.entity, "Access").is_ok


def test_second_issuance_supersedes_first(token_service, alice, db):
    first = token_service.create_token(alice, "access").entity
    second = token_service.create_token(alice, "access").entity

    rows = _tokens(db, alice, "access")
    assert [r.status for r in rows] == [TOKEN_STATUS_USED, TOKEN_STATUS_ACTIVE]

    assert token_service.validate_token(first, "access").outcome is Outcome.NOT_FOUND
    assert token_service.validate_token(second, "access").is_ok


def test_supersession_is_scoped_to_user_and_kind(token_service, auth_service, alice, db):
    bob = auth_service.sign_up("bob", "bob@x.com", "Passw0rd!").entity
    alice_access = token_service.create_token(alice, "access").entity
    token_service.create_token(alice, "refresh")
    token_service.create_token(bob, "access")

    assert token_service.validate_token(alice_access, "access").is_ok
    assert [r.status for r in _tokens(db, alice, "refresh")] == [TOKEN_STATUS_ACTIVE]
    assert [r.status for r in _tokens(db, bob, "access")] == [TOKEN_STATUS_ACTIVE]


def test_unknown_kind_is_not_found(token_service, alice):
    result = token_service.create_token(alice, "magic-link")
    assert result.outcome is Outcome.NOT_FOUND
    assert token_service.validate_token("x.y.z", "magic-link").outcome is Outcome.NOT_FOUND


def test_status_override(token_service, alice, db):
    token_service.create_token(alice, "access", status=TOKEN_STATUS_USED)
    assert [r.status for r in _tokens(db, alice, "access")] == [TOKEN_STATUS_USED]


def test_expired_token_fails_even_when_row_is_active(token_service, alice, db):
    created = token_service.create_type("short", TOKEN_STATUS_ACTIVE, Decimal("-0.01"))
    assert created.is_ok

    token = token_service.create_token(alice, "short").entity
    rows = _tokens(db, alice, "short")
    assert rows[0].status == TOKEN_STATUS_ACTIVE
    assert not token_service.validate_token(token, "short").is_ok


def test_row_expiry_is_checked_for_signed_tokens(token_service, alice, db):
    token = token_service.create_token(alice, "access").entity
    row = _tokens(db, alice, "access")[0]
    row.expiration = utcnow() - timedelta(minutes=1)
    db.commit()
    assert not token_service.validate_token(token, "access").is_ok


def test_token_of_other_kind_is_rejected(token_service, alice):
    refresh = token_service.create_token(alice, "refresh").entity
    assert not token_service.validate_token(refresh, "access").is_ok
    assert token_service.validate_token(refresh, "refresh").is_ok


def test_restore_kind_stores_code_as_value(token_service, alice, db):
    code = token_service.create_token(alice, "restore").entity
    assert len(code) == 6 and code.isdigit()
    rows = _tokens(db, alice, "restore")
    assert rows[0].value == code


def test_get_user_id_from_signed_token(token_service, alice):
    token = token_service.create_token(alice, "access").entity
    result = token_service.get_user_id_from_signed_token(token)
    assert result.is_ok
    assert result.entity == alice.id

    invalid = token_service.get_user_id_from_signed_token("garbage")
    assert invalid.outcome is Outcome.BAD_REQUEST
    assert invalid.message == "Invalid Token"


def test_persistence_failure_is_internal_error_and_rolls_back(token_service, alice, db, monkeypatch):
    first = token_service.create_token(alice, "access").entity

    def boom(self, entity):
        raise RuntimeError("disk full")

    monkeypatch.setattr(SQLAlchemyRepository, "create", boom)
    result = token_service.create_token(alice, "access")
    monkeypatch.undo()

    assert result.outcome is Outcome.INTERNAL_ERROR
    assert result.message == "Error generating token"
    assert "disk full" not in result.message
    assert [r.status for r in _tokens(db, alice, "access")] == [TOKEN_STATUS_ACTIVE]
    assert token_service.validate_token(first, "access").is_ok


def test_empty_signed_string_is_bad_request(token_service, alice, monkeypatch):
    monkeypatch.setattr(token_service.signer, "issue_token", lambda user, token_type: ("", ""))
    result = token_service.create_token(alice, "access")
    assert result.outcome is Outcome.BAD_REQUEST


def test_get_token(token_service, alice, db):
    assert token_service.get_token(alice).outcome is Outcome.NOT_FOUND
    token_service.create_token(alice, "access")
    access_type = db.query(TokenType).filter(TokenType.name == "access").one()
    assert token_service.get_token(alice, access_type.id).is_ok


def test_reference_data_management(token_service):
    assert token_service.list_types().entity == ["access", "refresh", "restore"]

    created = token_service.create_type("invite", TOKEN_STATUS_ACTIVE, Decimal("3"))
    assert created.is_ok
    assert "invite" in token_service.list_types().entity

    assert token_service.create_type("INVITE", TOKEN_STATUS_ACTIVE, Decimal("3")).outcome is Outcome.CONFLICT
    assert token_service.create_type("other", 99, Decimal("3")).outcome is Outcome.BAD_REQUEST

    assert token_service.create_status("revoked").is_ok
    assert token_service.create_status("Revoked").outcome is Outcome.CONFLICT
