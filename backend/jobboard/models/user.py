import enum

from sqlalchemy import Column, DateTime, JSON, String
from sqlalchemy.orm import relationship

from jobboard.db.base import Base, generate_uuid, utcnow


class Role(str, enum.Enum):
    """Account roles; they gate which pages and mutations are permitted."""

    JOB_SEEKER = "job-seeker"
    COMPANY = "company"
    STAFF = "staff"


DEFAULT_ROLE = Role.JOB_SEEKER


class User(Base):
    """Canonical account record keyed by the identity id."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=True)  # None for OAuth-only accounts
    display_name = Column(String)
    photo_url = Column(String, nullable=True)
    role = Column(String, default=DEFAULT_ROLE.value)  # 'job-seeker' | 'company' | 'staff'

    # Denormalized company identity shown on job cards
    company_name = Column(String, nullable=True)
    company_logo = Column(String, nullable=True)

    profile_completed = Column(String, default="no")  # "yes" | "no"
    auth_provider = Column(String, default="email")  # "email" | "google"
    saved_jobs = Column(JSON, default=list)  # list of job ids

    created_at = Column(DateTime, default=utcnow)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    profile = relationship(
        "Profile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    company_profile = relationship(
        "CompanyProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    jobs = relationship("Job", back_populates="company", cascade="all, delete-orphan")
    applications = relationship(
        "Application", back_populates="user", cascade="all, delete-orphan"
    )
