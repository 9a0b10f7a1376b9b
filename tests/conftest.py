from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from collections.abc import Callable, Generator  # noqa: E402
from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.auth.deps import get_current_user  # noqa: E402
from app.core.db import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.payment import PaymentCategory  # noqa: E402
from app.models.pledge import Pledge  # noqa: E402
from app.models.role import ELDER, MEMBER, PASTOR, SECRETARY, SUPER_ADMIN, TREASURER, Role  # noqa: E402
from app.models.user import User  # noqa: E402

SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def override_get_db() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def authorize(client: TestClient):
    def _apply(user: User):
        app.dependency_overrides[get_current_user] = lambda: user

    yield _apply
    app.dependency_overrides.pop(get_current_user, None)


def _ensure_role(session: Session, name: str) -> Role:
    role = session.query(Role).filter_by(name=name).first()
    if role is None:
        role = Role(name=name)
        session.add(role)
        session.commit()
        session.refresh(role)
    return role


def create_user(session: Session, email: str, full_name: str, *roles: str) -> User:
    user = User(email=email, full_name=full_name, is_active=True)
    for name in roles:
        user.roles.append(_ensure_role(session, name))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture()
def super_admin_user(db_session: Session) -> User:
    return create_user(db_session, "admin@example.com", "Church Admin", SUPER_ADMIN)


@pytest.fixture()
def treasurer_user(db_session: Session) -> User:
    return create_user(db_session, "treasurer@example.com", "Grace Wanjiku", TREASURER)


@pytest.fixture()
def secretary_user(db_session: Session) -> User:
    return create_user(db_session, "secretary@example.com", "Peter Otieno", SECRETARY)


@pytest.fixture()
def pastor_user(db_session: Session) -> User:
    return create_user(db_session, "pastor@example.com", "Pastor Kamau", PASTOR)


@pytest.fixture()
def elder_user(db_session: Session) -> User:
    return create_user(db_session, "elder@example.com", "Elder Njoroge", ELDER)


@pytest.fixture()
def member_user(db_session: Session) -> User:
    return create_user(db_session, "mary.achieng@example.com", "Mary Achieng", MEMBER)


@pytest.fixture()
def building_fund(db_session: Session) -> PaymentCategory:
    category = PaymentCategory(name="Building Fund", code="BUILDING", description="New sanctuary")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture()
def make_pledge(db_session: Session, member_user: User, building_fund: PaymentCategory) -> Callable[..., Pledge]:
    def _make(
        amount: str = "10000",
        fulfilled_amount: str = "0",
        status: str = "pending",
        due_date: date | None = None,
        user: User | None = None,
    ) -> Pledge:
        pledge = Pledge(
            user_id=(user or member_user).id,
            category_id=building_fund.id,
            amount=Decimal(amount),
            fulfilled_amount=Decimal(fulfilled_amount),
            status=status,
            due_date=due_date,
        )
        db_session.add(pledge)
        db_session.commit()
        db_session.refresh(pledge)
        return pledge

    return _make


@pytest.fixture()
def user_factory(db_session: Session) -> Callable[..., User]:
    def _make(email: str, full_name: str, *roles: str) -> User:
        return create_user(db_session, email, full_name, *roles)

    return _make
