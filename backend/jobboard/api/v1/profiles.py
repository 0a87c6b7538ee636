"""
Profile API endpoints.

Job seekers and companies edit their role-specific profile here. Every
write recomputes the completion flag; no endpoint can change the role.
"""

from datetime import datetime
from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from jobboard.api.deps import get_current_user, require_roles
from jobboard.core.errors import AppError
from jobboard.db.base import utcnow
from jobboard.db.session import commit_or_rollback, get_db
from jobboard.models import CompanyProfile, Profile, Role, User
from jobboard.services.profiles import (
    create_empty_profile,
    get_profile_link,
    get_profile_record,
    missing_fields,
    profile_fields,
    recompute_completion,
)
from jobboard.services.storage import LocalStorage, StorageError, get_storage

# Configure logger
logger = logging.getLogger("profiles")

router = APIRouter()


# ============== Pydantic Schemas ==============


class Education(BaseModel):
    title: str = ""
    school: str = ""
    city: str = ""
    country: str = ""
    start: str = ""
    end: str = ""


class Subsidiary(BaseModel):
    name: str = ""
    city: str = ""
    country: str = ""


class SeekerProfileUpdate(BaseModel):
    """Job-seeker form; unset fields keep their stored value."""

    display_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    links: Optional[dict[str, str]] = None
    educations: Optional[list[Education]] = None


class CompanyProfileUpdate(BaseModel):
    """Company form; unset fields keep their stored value."""

    company_name: Optional[str] = None
    company_type: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None
    hr_email: Optional[str] = None
    hr_phone: Optional[str] = None
    founding_date: Optional[str] = None
    employee_count: Optional[int] = None
    yearly_hires: Optional[int] = None
    subsidiaries: Optional[list[Subsidiary]] = None


class ProfileResponse(BaseModel):
    role: Optional[str] = None
    profile: dict[str, Any] = {}
    profile_complete: bool = False
    missing_fields: list[str] = []
    profile_link: str
    updated_at: Optional[datetime] = None


# ============== Helper Functions ==============


def profile_response(user: User, record) -> ProfileResponse:
    fields = profile_fields(record)
    complete = user.role == Role.STAFF or user.profile_completed == "yes"
    fields.pop("user_id", None)
    updated_at = fields.pop("updated_at", None)
    return ProfileResponse(
        role=user.role,
        profile=fields,
        profile_complete=complete,
        missing_fields=missing_fields(user.role, profile_fields(record)),
        profile_link=get_profile_link(user.role, complete),
        updated_at=updated_at,
    )


def _ensure_record(db: Session, user: User):
    record = get_profile_record(db, user)
    if record is None:
        record = create_empty_profile(db, user)
        db.flush()
    return record


async def _store_upload(storage: LocalStorage, bucket: str, user: User, upload: UploadFile) -> str:
    """Save an upload; returns its public URL."""
    data = await upload.read()
    try:
        key = storage.upload(bucket, user.id, upload.filename or "", data)
    except StorageError as e:
        raise AppError("validation/invalid-value", str(e), fields={"file": str(e)})
    return storage.public_url(key)


def _save(db: Session, user: User, record, action: str) -> ProfileResponse:
    record.updated_at = utcnow()
    recompute_completion(db, user, commit=False)
    commit_or_rollback(db, logger, action)
    db.refresh(record)
    return profile_response(user, record)


def _save_upload(
    db: Session,
    storage: LocalStorage,
    user: User,
    record,
    new_url: str,
    previous_url: Optional[str],
    action: str,
) -> ProfileResponse:
    """
    Commit a record pointing at a fresh upload.

    The replaced file is only removed once the commit has succeeded; on
    failure the fresh upload is removed instead and the old URL stays valid.
    """
    try:
        response = _save(db, user, record, action)
    except AppError:
        storage.delete(new_url)
        raise
    if previous_url and previous_url != new_url:
        storage.delete(previous_url)
    return response


# ============== API Endpoints ==============


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    The caller's profile record.

    Completion is recomputed on every load so records edited before a rule
    change are brought up to date.
    """
    record = get_profile_record(db, current_user)
    if current_user.role in (Role.JOB_SEEKER, Role.COMPANY):
        recompute_completion(db, current_user, commit=False)
        commit_or_rollback(db, logger, f"refresh completion for {current_user.id}")
        record = get_profile_record(db, current_user)
    return profile_response(current_user, record)


@router.put("/seeker", response_model=ProfileResponse)
async def update_seeker_profile(
    payload: SeekerProfileUpdate,
    current_user: User = Depends(require_roles(Role.JOB_SEEKER)),
    db: Session = Depends(get_db),
):
    """Update the job-seeker profile form."""
    record: Profile = _ensure_record(db, current_user)
    values = payload.model_dump(exclude_unset=True)

    display_name = values.pop("display_name", None)
    if display_name is not None and display_name.strip():
        current_user.display_name = display_name.strip()

    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
        setattr(record, key, value)

    return _save(db, current_user, record, f"update profile for {current_user.id}")


@router.post("/seeker/cv", response_model=ProfileResponse)
async def upload_cv(
    file: UploadFile = File(...),
    current_user: User = Depends(require_roles(Role.JOB_SEEKER)),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    """Upload a CV (PDF or Word), replacing the previous one."""
    record: Profile = _ensure_record(db, current_user)
    previous_url = record.cv_url
    record.cv_url = await _store_upload(storage, "cv", current_user, file)
    response = _save_upload(
        db, storage, current_user, record, record.cv_url, previous_url,
        f"store CV for {current_user.id}",
    )
    logger.info(f"CV updated for user {current_user.id}")
    return response


@router.post("/seeker/photo", response_model=ProfileResponse)
async def upload_photo(
    file: UploadFile = File(...),
    current_user: User = Depends(require_roles(Role.JOB_SEEKER)),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    """Upload a profile photo; it also becomes the account avatar."""
    record: Profile = _ensure_record(db, current_user)
    previous_url = record.photo_url
    new_url = await _store_upload(storage, "avatars", current_user, file)
    record.photo_url = new_url
    current_user.photo_url = new_url
    return _save_upload(
        db, storage, current_user, record, new_url, previous_url,
        f"store photo for {current_user.id}",
    )


@router.put("/company", response_model=ProfileResponse)
async def update_company_profile(
    payload: CompanyProfileUpdate,
    current_user: User = Depends(require_roles(Role.COMPANY)),
    db: Session = Depends(get_db),
):
    """
    Update the company profile form.

    The company name is mirrored onto the account so new job postings pick
    it up.
    """
    record: CompanyProfile = _ensure_record(db, current_user)
    values = payload.model_dump(exclude_unset=True)

    for key, value in values.items():
        if isinstance(value, str):
            value = value.strip()
        setattr(record, key, value)

    if "company_name" in values and record.company_name:
        current_user.company_name = record.company_name

    return _save(db, current_user, record, f"update company profile for {current_user.id}")


@router.post("/company/logo", response_model=ProfileResponse)
async def upload_company_logo(
    file: UploadFile = File(...),
    current_user: User = Depends(require_roles(Role.COMPANY)),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    """Upload the company logo shown on job cards."""
    record: CompanyProfile = _ensure_record(db, current_user)
    previous_url = record.logo_url
    new_url = await _store_upload(storage, "company-logos", current_user, file)
    record.logo_url = new_url
    current_user.company_logo = new_url
    return _save_upload(
        db, storage, current_user, record, new_url, previous_url,
        f"store logo for {current_user.id}",
    )


@router.post("/me/completion", response_model=ProfileResponse)
async def refresh_completion(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Recompute and persist the completion flag without changing any field."""
    recompute_completion(db, current_user, commit=False)
    commit_or_rollback(db, logger, f"refresh completion for {current_user.id}")
    return profile_response(current_user, get_profile_record(db, current_user))
