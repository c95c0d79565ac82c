"""
Shared fixtures: in-memory SQLite database, factories, fake clock and dispatcher.
"""
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
import app.db.models  # noqa: F401
from app.db.models.department import Department
from app.db.models.subscription import Subscription
from app.db.models.role import Role
from app.db.models.user import User
from app.core.security import hash_password
from app.services.role_service import seed_roles_and_permissions
from app.services.notification_service import NotificationDispatcher, NotificationError


TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

TODAY = date(2026, 10, 17)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def department(db):
    dept = Department(name="Engineering", status="Active")
    db.add(dept)
    db.commit()
    db.refresh(dept)
    return dept


@pytest.fixture
def make_subscription(db):
    """Factory for subscription rows."""
    counter = {"n": 0}

    def _make(renewal_date=None, status="Active", department=None, name=None,
              price="100.00", currency="USD", deleted=False):
        counter["n"] += 1
        sub = Subscription(
            name=name or f"Subscription {counter['n']}",
            price=Decimal(price),
            currency=currency,
            renewal_date=renewal_date,
            status=status,
            department_id=department.id if department else None,
            deleted_at=datetime(2026, 1, 1) if deleted else None,
        )
        db.add(sub)
        db.commit()
        db.refresh(sub)
        return sub

    return _make


@pytest.fixture
def roles(db):
    """Seed default roles; returns {name: Role}."""
    seed_roles_and_permissions(db)
    return {role.name: role for role in db.query(Role).all()}


@pytest.fixture
def test_user(db, roles):
    user = User(
        first_name="Asha",
        last_name="Patel",
        email="asha@example.com",
        password_hash=hash_password("testpass123"),
        status="Active",
        role_id=roles["admin"].id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 17, 9, 0, 0))


class RecordingDispatcher(NotificationDispatcher):
    """Captures notices; fails for the offsets listed in fail_for."""

    def __init__(self, fail_for=()):
        self.notices = []
        self.otps = []
        self.welcomes = []
        self.resets = []
        self.fail_for = set(fail_for)

    def send_grouped_expiry_notice(self, notice):
        if notice.days_remaining in self.fail_for:
            raise NotificationError("SMTP down")
        self.notices.append(notice)

    def send_otp(self, email, first_name, otp):
        self.otps.append((email, otp))

    def send_welcome(self, email, first_name, temp_password):
        self.welcomes.append((email, temp_password))

    def send_password_reset(self, email, first_name, reset_link):
        self.resets.append((email, reset_link))


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def make_dispatcher():
    return RecordingDispatcher


@pytest.fixture
def client(db, dispatcher):
    """TestClient bound to the test session; startup hooks are not run."""
    from fastapi.testclient import TestClient
    from app.main import app
    from app.core.auth_dependency import get_db
    from app.api.routes.auth import get_dispatcher

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(test_user):
    from app.core.security import create_access_token
    token = create_access_token({"sub": str(test_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def basic_user(db, roles):
    """User holding the default 'user' role (user_list only)."""
    user = User(
        first_name="Ravi",
        last_name="Kumar",
        email="ravi@example.com",
        password_hash=hash_password("testpass123"),
        status="Active",
        role_id=roles["user"].id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def basic_headers(basic_user):
    from app.core.security import create_access_token
    token = create_access_token({"sub": str(basic_user.id)})
    return {"Authorization": f"Bearer {token}"}
