from sqlalchemy import Boolean, Column, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.orm import relationship

from jobboard.db.base import Base, generate_uuid, utcnow

JOB_STATUSES = ["active", "expired", "closed"]


class Job(Base):
    """
    A posted job listing.

    Visibility, status and deadline together decide whether seekers can
    discover it.
    """

    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    company_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)

    title = Column(String, nullable=False)
    type = Column(String, default="Full-time")
    location = Column(String, default="")
    salary = Column(String, default="")
    description = Column(Text, default="")
    contact_info = Column(String, default="")
    education_level = Column(String, default="")

    # Questions every applicant must answer
    questions = Column(JSON, default=list)

    # Format: [{"date": "2026-01-15", "time": "10:00"}, ...]
    availability_slots = Column(JSON, default=list)

    is_public = Column(Boolean, default=True, index=True)
    status = Column(String, default="active", index=True)  # 'active' | 'expired' | 'closed'

    # Snapshot of the company card at posting time
    company_name = Column(String, default="")
    company_logo = Column(String, default="")

    posted_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=True)
    deadline = Column(DateTime, nullable=True)

    # Relationships
    company = relationship("User", back_populates="jobs")
    applications = relationship(
        "Application", back_populates="job", cascade="all, delete-orphan"
    )
