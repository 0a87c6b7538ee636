"""
Profile completion and role resolution.

Each role has one table of required fields. A profile is complete when every
required field is non-empty, so filling in a missing field can only ever move
a profile from incomplete to complete.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from sqlalchemy.orm import Session

from jobboard.core.config import settings
from jobboard.models import CompanyProfile, Profile, Role, User

logger = logging.getLogger("profiles")

SEEKER_REQUIRED_FIELDS: tuple[str, ...] = (
    "country",
    "city",
    "phone",
    "cv_url",
    "educations",
    "photo_url",
)

COMPANY_REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "basic": ("country", "city", "phone", "company_name"),
    "extended": (
        "country",
        "city",
        "phone",
        "company_name",
        "website",
        "hr_email",
        "hr_phone",
        "founding_date",
        "logo_url",
    ),
}

PROFILE_LINKS = {
    "company": "/profile/entdetails",
    "complete": "/profile/details",
    "incomplete": "/profile",
}


def required_fields(role: Optional[str]) -> tuple[str, ...]:
    """Return the completion rule for a role (empty for staff or unknown roles)."""
    if role == Role.JOB_SEEKER:
        return SEEKER_REQUIRED_FIELDS
    if role == Role.COMPANY:
        return COMPANY_REQUIRED_FIELDS.get(
            settings.COMPANY_COMPLETION_RULES, COMPANY_REQUIRED_FIELDS["basic"]
        )
    return ()


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) > 0
    return True


def missing_fields(role: Optional[str], fields: Mapping[str, Any]) -> list[str]:
    return [name for name in required_fields(role) if not _is_filled(fields.get(name))]


def is_profile_complete(role: Optional[str], fields: Mapping[str, Any]) -> bool:
    """
    Pure completion predicate.

    Args:
        role: The account role
        fields: Profile values keyed by column name

    Returns:
        True when every required field for the role is non-empty
    """
    if role not in (Role.JOB_SEEKER, Role.COMPANY, Role.STAFF):
        return False
    return not missing_fields(role, fields)


def get_profile_link(role: Optional[str], complete: bool) -> str:
    """Navigation target for the profile menu entry."""
    if role == Role.COMPANY:
        return PROFILE_LINKS["company"]
    return PROFILE_LINKS["complete"] if complete else PROFILE_LINKS["incomplete"]


def profile_fields(record: Profile | CompanyProfile | None) -> dict[str, Any]:
    if record is None:
        return {}
    return {column.name: getattr(record, column.name) for column in record.__table__.columns}


def get_profile_record(db: Session, user: User) -> Profile | CompanyProfile | None:
    """Load the role-specific profile record for a user."""
    if user.role == Role.COMPANY:
        return db.query(CompanyProfile).filter(CompanyProfile.user_id == user.id).first()
    if user.role == Role.JOB_SEEKER:
        return db.query(Profile).filter(Profile.user_id == user.id).first()
    return None


def create_empty_profile(db: Session, user: User) -> Profile | CompanyProfile | None:
    """Create the blank profile record a new account starts with."""
    if user.role == Role.COMPANY:
        record = CompanyProfile(user_id=user.id, company_name=user.company_name or "")
    elif user.role == Role.JOB_SEEKER:
        record = Profile(user_id=user.id)
    else:
        return None
    db.add(record)
    return record


def recompute_completion(db: Session, user: User, commit: bool = True) -> bool:
    """
    Recompute and persist the completion flag.

    The flag is written to both the profile record and the user record so
    navigation can read it without recomputing.
    """
    record = get_profile_record(db, user)
    if record is None and user.role in (Role.JOB_SEEKER, Role.COMPANY):
        record = create_empty_profile(db, user)

    complete = is_profile_complete(user.role, profile_fields(record))
    flag = "yes" if complete else "no"

    if record is not None:
        record.profile_completed = flag
    if user.profile_completed != flag:
        logger.info(f"Profile completion for user {user.id} changed to {flag}")
    user.profile_completed = flag

    if commit:
        db.commit()
    return complete
