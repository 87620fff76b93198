import os

# Set testing environment before the app reads its settings
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ketpa.main import app
from ketpa.api.deps import get_mailer
from ketpa.core.database import get_db, get_redis, Base
from ketpa.core.security import get_password_hash
from ketpa.models.doctor import Doctor
from ketpa.models.user import User

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


class FakeMailer:
    """Records messages instead of talking to SMTP."""

    def __init__(self):
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})


class FailingMailer:
    def send(self, to, subject, html):
        raise ConnectionRefusedError("SMTP server unreachable")


@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(autouse=True)
def reset_rate_limits():
    get_redis().flushall()
    yield

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    yield db
    db.close()

@pytest.fixture
def mailer():
    fake = FakeMailer()
    app.dependency_overrides[get_mailer] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_mailer, None)

@pytest.fixture
def client(mailer):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def doctor(db_session):
    """An available doctor with an empty ledger."""
    doc = Doctor(
        name="Asha Rao",
        email="asha.rao@ketpa.com",
        password_hash=get_password_hash("DoctorPass123"),
        speciality="General Veterinarian",
        degree="BVSc",
        experience="6 Years",
        fees=600,
        clinic_name="Ketpa Indiranagar",
        address={"line1": "12, 100 Feet Road", "line2": "Indiranagar, Bangalore"},
        location="https://maps.google.com/?q=Ketpa+Indiranagar",
        available=True,
        slots_booked={},
    )
    db_session.add(doc)
    db_session.commit()
    db_session.refresh(doc)
    return doc

@pytest.fixture
def patient(db_session):
    """A user with a valid contact number, created directly in the database."""
    user = User(
        name="Ravi Kumar",
        email="ravi@example.com",
        password_hash=get_password_hash("TestPassword123"),
        phone="+91 98765 43210",
        pet="Bruno",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


# Test data
test_user_data = {
    "name": "Test User",
    "email": "test@example.com",
    "phone": "98765 43210",
    "password": "TestPassword123",
    "confirm_password": "TestPassword123",
    "pet": "Milo"
}

test_login_data = {
    "email": "test@example.com",
    "password": "TestPassword123"
}

def auth_headers(client, user_data=None):
    """Register a user and return bearer headers for it."""
    response = client.post("/api/v1/user/register", json=user_data or test_user_data)
    token = response.json()["token"]
    return {"Authorization": f"Bearer {token}"}
