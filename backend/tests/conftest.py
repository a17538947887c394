import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_REFERENCE_DATA", "false")

import pytest
from sqlalchemy.orm import sessionmaker

from commerce_auth.core.database import Base, create_db_engine
from commerce_auth.core.security import TokenSigner
from commerce_auth.core.unit_of_work import UnitOfWork
from commerce_auth.services.auth_service import AuthService
from commerce_auth.services.reference_data import seed_reference_data
from commerce_auth.services.revocation import RevocationRegistry
from commerce_auth.services.token_service import TokenService


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_reference_data(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def signer():
    return TokenSigner(
        secret_key="test-access-secret-key-0123456789abcdef",
        issuer="test-issuer",
        audience="test-api",
        refresh_secret_key="test-refresh-secret-key-0123456789abcdef",
        refresh_audience="test-refresh",
    )


@pytest.fixture
def uow(db):
    return UnitOfWork(db)


@pytest.fixture
def token_service(uow, signer):
    return TokenService(uow, signer)


@pytest.fixture
def registry():
    return RevocationRegistry()


@pytest.fixture
def auth_service(uow, token_service, registry):
    return AuthService(uow, tokens=token_service, registry=registry, lockout_threshold=5)


@pytest.fixture
def alice(auth_service):
    result = auth_service.sign_up("alice", "alice@x.com", "Passw0rd!")
    assert result.is_ok, result.message
    return result.entity
