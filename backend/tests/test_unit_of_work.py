import pytest
from sqlalchemy.orm import sessionmaker

from commerce_auth.core.database import Base, create_db_engine
from commerce_auth.core.repository import SQLAlchemyRepository
from commerce_auth.core.unit_of_work import UnitOfWork
from commerce_auth.models.user import Role


@pytest.fixture
def file_sessions(tmp_path):
    """Two sessions on separate connections so visibility reflects commits"""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'uow.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    writer, reader = factory(), factory()
    try:
        yield writer, reader
    finally:
        writer.close()
        reader.close()
        engine.dispose()


def _visible_roles(reader):
    reader.rollback()
    names = [r.name for r in reader.query(Role).all()]
    reader.rollback()
    return names


def test_nested_scope_commits_only_at_outermost(file_sessions):
    writer, reader = file_sessions
    uow = UnitOfWork(writer)

    uow.begin()
    uow.begin()
    assert uow.depth == 2
    uow.repository(Role).create(Role(name="staff"))

    uow.commit()
    assert uow.depth == 1
    assert _visible_roles(reader) == []

    uow.commit()
    assert uow.depth == 0
    assert _visible_roles(reader) == ["staff"]


def test_rollback_discards_pending_work_and_resets_depth(file_sessions):
    writer, reader = file_sessions
    uow = UnitOfWork(writer)

    uow.begin()
    uow.begin()
    uow.repository(Role).create(Role(name="staff"))
    uow.rollback()

    assert uow.depth == 0
    assert not uow.in_transaction
    assert _visible_roles(reader) == []


def test_commit_without_begin_never_goes_negative(file_sessions):
    writer, _ = file_sessions
    uow = UnitOfWork(writer)
    uow.commit()
    uow.commit()
    assert uow.depth == 0


def test_transaction_context_rolls_back_and_reraises(file_sessions):
    writer, reader = file_sessions
    uow = UnitOfWork(writer)

    with pytest.raises(RuntimeError):
        with uow.transaction():
            uow.repository(Role).create(Role(name="staff"))
            raise RuntimeError("boom")

    assert uow.depth == 0
    assert _visible_roles(reader) == []

    with uow.transaction():
        uow.repository(Role).create(Role(name="support"))
    assert _visible_roles(reader) == ["support"]


def test_save_changes_outside_transaction_commits(file_sessions):
    writer, reader = file_sessions
    uow = UnitOfWork(writer)
    uow.repository(Role).create(Role(name="staff"))
    uow.save_changes()
    assert _visible_roles(reader) == ["staff"]


def test_save_changes_inside_transaction_only_flushes(file_sessions):
    writer, reader = file_sessions
    uow = UnitOfWork(writer)
    uow.begin()
    uow.repository(Role).create(Role(name="staff"))
    uow.save_changes()
    assert _visible_roles(reader) == []
    uow.commit()
    assert _visible_roles(reader) == ["staff"]


def test_repositories_are_cached_per_model(db):
    uow = UnitOfWork(db)
    repo = uow.repository(Role)
    assert isinstance(repo, SQLAlchemyRepository)
    assert uow.repository(Role) is repo


def test_repository_predicates(db):
    roles = UnitOfWork(db).repository(Role)
    assert roles.exists(Role.name == "user")
    assert not roles.exists(Role.name == "nobody")
    assert roles.count() == 2
    assert roles.find_one(Role.name == "admin").name == "admin"
    assert [r.name for r in roles.find_all(order_by=Role.name)] == ["admin", "user"]
    assert roles.get(roles.find_one(Role.name == "user").id).name == "user"
