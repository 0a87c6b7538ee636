"""
Jobs API endpoints.

Public discovery for everyone, plus posting and lifecycle management for the
owning company. Private jobs are only ever returned to their owner.
"""

from datetime import datetime, timezone
from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from jobboard.api.deps import get_current_user, get_session_state, require_roles
from jobboard.core.errors import AppError, required_field_error
from jobboard.db.base import utcnow
from jobboard.db.session import commit_or_rollback, get_db
from jobboard.models import JOB_STATUSES, Job, Role, User
from jobboard.services.jobs import (
    company_jobs,
    filter_options,
    is_open,
    is_visible_to,
    public_jobs_query,
)
from jobboard.services.session_store import SessionState

# Configure logger
logger = logging.getLogger("jobs")

router = APIRouter()


# ============== Pydantic Schemas ==============


class AvailabilitySlot(BaseModel):
    date: str
    time: str


class JobBase(BaseModel):
    type: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[str] = None
    description: Optional[str] = None
    contact_info: Optional[str] = None
    education_level: Optional[str] = None
    questions: Optional[list[str]] = None
    availability_slots: Optional[list[AvailabilitySlot]] = None
    is_public: Optional[bool] = None
    deadline: Optional[datetime] = None
    company_name: Optional[str] = None
    company_logo: Optional[str] = None


class JobCreate(JobBase):
    """Schema for posting a job. Only the title is mandatory."""

    title: Optional[str] = None


class JobUpdate(JobBase):
    """Partial update; unset fields keep their stored value."""

    title: Optional[str] = None
    status: Optional[str] = None


class JobResponse(BaseModel):
    """Schema for a job as shown to clients."""

    id: str
    company_id: str
    title: str
    type: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[str] = None
    description: Optional[str] = None
    contact_info: Optional[str] = None
    education_level: Optional[str] = None
    questions: list[str] = []
    availability_slots: list[AvailabilitySlot] = []
    is_public: bool = True
    status: str = "active"
    company_name: Optional[str] = None
    company_logo: Optional[str] = None
    posted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deadline: Optional[datetime] = None
    accepting_applications: bool = False

    class Config:
        from_attributes = True


class JobListResponse(BaseModel):
    total: int
    jobs: list[JobResponse]


class FilterOption(BaseModel):
    id: str
    label: str


class FilterOptionsResponse(BaseModel):
    types: list[str]
    locations: list[FilterOption]


# ============== Helper Functions ==============


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def job_to_response(job: Job, now: Optional[datetime] = None) -> JobResponse:
    return JobResponse(
        id=job.id,
        company_id=job.company_id,
        title=job.title,
        type=job.type,
        location=job.location,
        salary=job.salary,
        description=job.description,
        contact_info=job.contact_info,
        education_level=job.education_level,
        questions=list(job.questions or []),
        availability_slots=list(job.availability_slots or []),
        is_public=job.is_public is not False,
        status=job.status or "active",
        company_name=job.company_name,
        company_logo=job.company_logo,
        posted_at=job.posted_at,
        updated_at=job.updated_at,
        deadline=job.deadline,
        accepting_applications=is_open(job, now),
    )


def _job_values(payload: JobBase, exclude_unset: bool) -> dict[str, Any]:
    values = payload.model_dump(exclude_unset=exclude_unset)
    if "deadline" in values:
        values["deadline"] = _naive_utc(values["deadline"])
    if values.get("questions") is not None:
        values["questions"] = [q.strip() for q in values["questions"] if q and q.strip()]
    return values


def get_owned_job(db: Session, job_id: str, user: User) -> Job:
    """
    Load a job the caller owns.

    Raises:
        AppError: not-found when missing, permission-denied when owned by
            another company
    """
    job = db.query(Job).filter(Job.id == job_id).first()
    if job is None:
        raise AppError("not-found")
    if job.company_id != user.id:
        logger.warning(f"User {user.id} attempted to modify job {job_id}")
        raise AppError("permission-denied")
    return job


# ============== API Endpoints ==============


@router.get("", response_model=JobListResponse)
async def list_jobs(
    keyword: Optional[str] = None,
    type: Optional[str] = None,
    location: Optional[list[str]] = Query(None),
    state: SessionState = Depends(get_session_state),
    db: Session = Depends(get_db),
):
    """
    Discover open jobs.

    Filters combine with AND; `location` may be repeated and matches any of
    the given location slugs. Signed-in companies also see their own private
    postings.
    """
    viewer_id = state.session.uid if state.session else None
    now = utcnow()
    jobs = public_jobs_query(
        db,
        viewer_id=viewer_id,
        keyword=keyword,
        job_type=type,
        locations=location,
        now=now,
    ).all()
    return JobListResponse(total=len(jobs), jobs=[job_to_response(job, now) for job in jobs])


@router.get("/filters", response_model=FilterOptionsResponse)
async def get_filters(db: Session = Depends(get_db)):
    """Job types and locations present among public open jobs."""
    return filter_options(db)


@router.get("/mine", response_model=JobListResponse)
async def list_my_jobs(
    tab: Optional[str] = Query(None, pattern="^(active|expired)$"),
    current_user: User = Depends(require_roles(Role.COMPANY)),
    db: Session = Depends(get_db),
):
    """The company's own postings, optionally split into active and expired."""
    now = utcnow()
    jobs = company_jobs(db, current_user.id, tab=tab, now=now)
    return JobListResponse(total=len(jobs), jobs=[job_to_response(job, now) for job in jobs])


@router.get("/saved", response_model=JobListResponse)
async def list_saved_jobs(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Bookmarked jobs that still exist and are visible to the caller."""
    saved_ids = list(current_user.saved_jobs or [])
    if not saved_ids:
        return JobListResponse(total=0, jobs=[])

    jobs = db.query(Job).filter(Job.id.in_(saved_ids)).all()
    jobs = [job for job in jobs if is_visible_to(job, current_user.id)]
    order = {job_id: index for index, job_id in enumerate(saved_ids)}
    jobs.sort(key=lambda job: order.get(job.id, len(order)))

    now = utcnow()
    return JobListResponse(total=len(jobs), jobs=[job_to_response(job, now) for job in jobs])


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    state: SessionState = Depends(get_session_state),
    db: Session = Depends(get_db),
):
    """Single job. Private jobs read as not found for everyone but the owner."""
    viewer_id = state.session.uid if state.session else None
    job = db.query(Job).filter(Job.id == job_id).first()
    if job is None or not is_visible_to(job, viewer_id):
        raise AppError("not-found")
    return job_to_response(job)


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreate,
    current_user: User = Depends(require_roles(Role.COMPANY)),
    db: Session = Depends(get_db),
):
    """
    Post a new job as the signed-in company.

    The company card (name and logo) is copied from the account unless the
    payload overrides it. New jobs start active.
    """
    title = (payload.title or "").strip()
    if not title:
        raise required_field_error({"title": "Job title is required"})

    values = _job_values(payload, exclude_unset=False)
    values = {key: value for key, value in values.items() if value is not None}
    values["title"] = title
    values.setdefault("company_name", current_user.company_name or "")
    values.setdefault("company_logo", current_user.company_logo or "")

    job = Job(company_id=current_user.id, status="active", posted_at=utcnow(), **values)
    db.add(job)
    commit_or_rollback(db, logger, "create job")
    db.refresh(job)

    logger.info(f"Company {current_user.id} posted job {job.id}")
    return job_to_response(job)


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    payload: JobUpdate,
    current_user: User = Depends(require_roles(Role.COMPANY)),
    db: Session = Depends(get_db),
):
    """Edit an owned job. Setting `status` here is how a job is expired or closed."""
    job = get_owned_job(db, job_id, current_user)
    values = _job_values(payload, exclude_unset=True)

    if "title" in values:
        values["title"] = (values["title"] or "").strip()
        if not values["title"]:
            raise required_field_error({"title": "Job title is required"})
    if "status" in values and values["status"] not in JOB_STATUSES:
        raise AppError(
            "validation/invalid-value",
            f"Status must be one of: {', '.join(JOB_STATUSES)}",
            fields={"status": "Unknown status"},
        )

    for key, value in values.items():
        setattr(job, key, value)
    job.updated_at = utcnow()

    commit_or_rollback(db, logger, f"update job {job_id}")
    db.refresh(job)
    return job_to_response(job)


def _end_job(db: Session, job_id: str, user: User, new_status: str) -> JobResponse:
    job = get_owned_job(db, job_id, user)
    now = utcnow()
    job.status = new_status
    job.deadline = now
    job.updated_at = now
    commit_or_rollback(db, logger, f"mark job {job_id} {new_status}")
    db.refresh(job)
    logger.info(f"Job {job_id} marked {new_status}")
    return job_to_response(job)


@router.post("/{job_id}/expire", response_model=JobResponse)
async def expire_job(
    job_id: str,
    current_user: User = Depends(require_roles(Role.COMPANY)),
    db: Session = Depends(get_db),
):
    """Expire an owned job now; it leaves public listings immediately."""
    return _end_job(db, job_id, current_user, "expired")


@router.post("/{job_id}/close", response_model=JobResponse)
async def close_job(
    job_id: str,
    current_user: User = Depends(require_roles(Role.COMPANY)),
    db: Session = Depends(get_db),
):
    return _end_job(db, job_id, current_user, "closed")


@router.delete("/{job_id}")
async def delete_job(
    job_id: str,
    current_user: User = Depends(require_roles(Role.COMPANY)),
    db: Session = Depends(get_db),
):
    """Delete an owned job together with its applications."""
    job = get_owned_job(db, job_id, current_user)
    db.delete(job)
    commit_or_rollback(db, logger, f"delete job {job_id}")
    logger.info(f"Job {job_id} deleted by company {current_user.id}")
    return {"message": "Job deleted", "id": job_id}


@router.post("/{job_id}/save")
async def save_job(
    job_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Bookmark a visible job."""
    job = db.query(Job).filter(Job.id == job_id).first()
    if job is None or not is_visible_to(job, current_user.id):
        raise AppError("not-found")

    saved = list(current_user.saved_jobs or [])
    if job_id not in saved:
        saved.append(job_id)
        current_user.saved_jobs = saved
        commit_or_rollback(db, logger, f"save job {job_id}")
    return {"saved_jobs": saved}


@router.delete("/{job_id}/save")
async def unsave_job(
    job_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    saved = [saved_id for saved_id in (current_user.saved_jobs or []) if saved_id != job_id]
    if len(saved) != len(current_user.saved_jobs or []):
        current_user.saved_jobs = saved
        commit_or_rollback(db, logger, f"unsave job {job_id}")
    return {"saved_jobs": saved}
