import os

# Set testing environment before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["LOGIN_RATE_LIMIT"] = "5"

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
import uuid

from app.main import app
from app.api.deps import get_signing_keys
from app.core.database import Base, get_db, get_redis
from app.core.security import SigningKeys, UserRole, get_password_hash
from app.models.doctor import Doctor
from app.models.patient import Patient
from app.models.user import User

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "TestPassword123"
PASSWORD_HASH = get_password_hash(PASSWORD)

PATIENT_EMAIL = "patient@hospital.com"
DOCTOR_EMAIL = "doctor@hospital.com"


def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


class FakeRedis:
    """In-memory stand-in for the few Redis commands the API uses."""

    def __init__(self):
        self.data = {}
        self.expirations = {}

    def incr(self, key):
        self.data[key] = int(self.data.get(key, 0)) + 1
        return self.data[key]

    def expire(self, key, seconds):
        self.expirations[key] = seconds
        return True


def generate_signing_keys() -> SigningKeys:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    return SigningKeys.from_private_key(pem)


@pytest.fixture(scope="session")
def signing_keys():
    return generate_signing_keys()


@pytest.fixture(autouse=True)
def dependency_overrides(signing_keys):
    fake_redis = FakeRedis()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_signing_keys] = lambda: signing_keys
    app.dependency_overrides[get_redis] = lambda: fake_redis
    yield fake_redis
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


def create_patient(db, email=PATIENT_EMAIL, name="John Doe") -> Patient:
    user = User(uuid=uuid.uuid4(), email=email, password_hash=PASSWORD_HASH, role=UserRole.PATIENT)
    db.add(user)
    db.flush()
    patient = Patient(uuid=uuid.uuid4(), user_id=user.id, name=name, email=email, mobile_phone="351123123123")
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


def create_doctor(db, email=DOCTOR_EMAIL, name="Doe John") -> Doctor:
    user = User(uuid=uuid.uuid4(), email=email, password_hash=PASSWORD_HASH, role=UserRole.DOCTOR)
    db.add(user)
    db.flush()
    doctor = Doctor(
        uuid=uuid.uuid4(), user_id=user.id, name=name, email=email,
        mobile_phone="351351351351", specialty="Cardiologist"
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


@pytest.fixture
def patient(db_session):
    return create_patient(db_session)


@pytest.fixture
def doctor(db_session):
    return create_doctor(db_session)


def login(client, email):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def patient_headers(client, patient):
    tokens = login(client, PATIENT_EMAIL)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def doctor_headers(client, doctor):
    tokens = login(client, DOCTOR_EMAIL)
    return {"Authorization": f"Bearer {tokens['access_token']}"}
