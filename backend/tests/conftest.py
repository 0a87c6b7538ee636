"""Shared fixtures: in-memory database, test client and account helpers."""

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="jobboard-files-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobboard.api.deps import get_mailer, get_oauth_verifier
from jobboard.core.errors import AppError
from jobboard.core.security import create_access_token, get_password_hash
from jobboard.db.base import Base, utcnow
from jobboard.db.session import get_db
from jobboard.main import app
from jobboard.models import CompanyProfile, Job, Profile, Role, User
from jobboard.services.identity import Identity, OAuthProfile
from jobboard.services.mailer import Mailer
from jobboard.services.storage import LocalStorage, get_storage

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

GOOGLE_TOKENS = {
    "google-known": OAuthProfile(subject="g-1", email="known@example.com", name="Known User"),
    "google-new": OAuthProfile(
        subject="g-2", email="newcomer@example.com", name="New Comer", picture="https://img/p.png"
    ),
}


class FakeGoogleVerifier:
    def verify(self, id_token: str) -> OAuthProfile:
        if id_token not in GOOGLE_TOKENS:
            raise AppError("auth/oauth-failed")
        return GOOGLE_TOKENS[id_token]


class RecordingMailer(Mailer):
    def __init__(self):
        super().__init__(host="")
        self.resets: list[tuple[str, str]] = []

    def send_password_reset(self, email: str, link: str) -> None:
        self.resets.append((email, link))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(root=str(tmp_path / "files"), public_url="/files")


@pytest.fixture
def client(db, mailer, storage):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_oauth_verifier] = FakeGoogleVerifier
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer header carrying an access token for a user."""

    def _auth_headers(user: User) -> dict[str, str]:
        token = create_access_token(Identity.from_user(user).claims())
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def make_user(db):
    """Create an account, optionally with a complete profile for its role."""

    def _make_user(
        email: str,
        role: Role = Role.JOB_SEEKER,
        password: str = "password123",
        complete: bool = False,
        company_name: str = "",
    ) -> User:
        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            display_name=email.split("@")[0].title(),
            role=role.value,
            company_name=company_name or None,
            profile_completed="yes" if complete else "no",
            saved_jobs=[],
        )
        db.add(user)
        db.flush()

        if role == Role.JOB_SEEKER:
            profile = Profile(user_id=user.id, profile_completed=user.profile_completed)
            if complete:
                profile.country = "France"
                profile.city = "Lyon"
                profile.phone = "0600000000"
                profile.cv_url = "/files/cv/seed.pdf"
                profile.photo_url = "/files/avatars/seed.png"
                profile.educations = [{"title": "MSc", "school": "INSA"}]
            db.add(profile)
        elif role == Role.COMPANY:
            record = CompanyProfile(
                user_id=user.id,
                company_name=company_name,
                profile_completed=user.profile_completed,
            )
            if complete:
                record.country = "France"
                record.city = "Paris"
                record.phone = "0100000000"
            db.add(record)

        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def seeker(make_user):
    return make_user("seeker@example.com", Role.JOB_SEEKER, complete=True)


@pytest.fixture
def company(make_user):
    return make_user("hr@acme.example", Role.COMPANY, complete=True, company_name="Acme")


@pytest.fixture
def other_company(make_user):
    return make_user("hr@globex.example", Role.COMPANY, complete=True, company_name="Globex")


@pytest.fixture
def make_job(db):
    def _make_job(company: User, **values) -> Job:
        values.setdefault("title", "Backend Developer")
        values.setdefault("company_name", company.company_name or "")
        values.setdefault("posted_at", utcnow())
        job = Job(company_id=company.id, **values)
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    return _make_job
