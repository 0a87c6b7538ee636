from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from jobboard.db.base import Base, utcnow


class Profile(Base):
    """
    Job-seeker profile.

    One-to-one with User through the shared key. `profile_completed` is
    recomputed every time a required field changes.
    """

    __tablename__ = "profiles"

    user_id = Column(String(36), ForeignKey("users.id"), primary_key=True)

    phone = Column(String, default="")
    address = Column(String, default="")
    city = Column(String, default="")
    country = Column(String, default="")

    # Format: {"github": "...", "linkedin": "...", "portfolio": "..."}
    links = Column(JSON, default=dict)

    # Format: [{"title", "school", "city", "country", "start", "end"}, ...]
    educations = Column(JSON, default=list)

    cv_url = Column(String, default="")
    photo_url = Column(String, default="")

    profile_completed = Column(String, default="no")
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="profile")


class CompanyProfile(Base):
    """Company profile with HR contact and branding."""

    __tablename__ = "comprofiles"

    user_id = Column(String(36), ForeignKey("users.id"), primary_key=True)

    company_name = Column(String, default="")
    company_type = Column(String, default="")  # startup, large group, multinational...
    country = Column(String, default="")
    city = Column(String, default="")
    phone = Column(String, default="")
    description = Column(Text, default="")
    website = Column(String, default="")
    linkedin = Column(String, default="")

    hr_email = Column(String, default="")
    hr_phone = Column(String, default="")

    founding_date = Column(String, default="")
    employee_count = Column(Integer, nullable=True)
    yearly_hires = Column(Integer, nullable=True)
    logo_url = Column(String, default="")

    # Format: [{"name", "city", "country"}, ...]
    subsidiaries = Column(JSON, default=list)

    profile_completed = Column(String, default="no")
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="company_profile")
