from sqlalchemy import Column, DateTime, ForeignKey, JSON, String
from sqlalchemy.orm import relationship

from jobboard.db.base import Base, generate_uuid, utcnow

APPLICATION_STATUSES = ["pending", "interview", "accepted", "rejected"]


class Application(Base):
    """A job seeker's submission against one job."""

    __tablename__ = "applications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey("jobs.id"), index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)

    answers = Column(JSON, default=list)  # one answer per job question

    interview_type = Column(String, default="remote")  # "remote" | "onsite"
    interview_slots = Column(JSON, default=list)

    cv_url = Column(String, default="")
    status = Column(String, default="pending")
    applied_at = Column(DateTime, default=utcnow, index=True)

    # Relationships
    job = relationship("Job", back_populates="applications")
    user = relationship("User", back_populates="applications")
