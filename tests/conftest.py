import io
import os

import pytest
from fastapi.testclient import TestClient
from reportlab.pdfgen import canvas

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from compliance_api.create_tables import create_tables  # noqa: E402
from compliance_api.database import Base, SessionLocal, engine  # noqa: E402
from compliance_api.main import app  # noqa: E402
from compliance_api.modules.auth.services.auth_service import AuthService  # noqa: E402
from compliance_api.modules.documents.models.user import User, UserRole  # noqa: E402
from compliance_api.modules.storage.client import InMemoryStorageClient  # noqa: E402


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    create_tables()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(session):
    def _make(username, role=UserRole.EMPLOYEE, password=None):
        user = User(
            username=username,
            name=username.title(),
            email=f"{username}@example.com",
            password_hash=AuthService.get_password_hash(password) if password else "not-a-real-hash",
            role=role,
            is_active=True,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin", UserRole.ADMIN)


@pytest.fixture
def officer(make_user):
    return make_user("officer", UserRole.COMPLIANCE_OFFICER)


@pytest.fixture
def employee(make_user):
    return make_user("employee", UserRole.EMPLOYEE)


@pytest.fixture
def storage():
    return InMemoryStorageClient()


@pytest.fixture
def client(storage):
    with TestClient(app) as test_client:
        app.state.storage = storage
        yield test_client


def auth_headers(user):
    token = AuthService.create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


def create_dummy_pdf_bytes(text="Compliance test PDF"):
    buf = io.BytesIO()
    c = canvas.Canvas(buf)
    c.drawString(50, 750, text)
    c.save()
    buf.seek(0)
    return buf.read()
