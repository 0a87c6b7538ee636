"""
Applications API endpoints.

Job seekers apply to open jobs and track their submissions; the owning
company reviews applicants and moves them through the status pipeline.
"""

from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from jobboard.api.deps import require_roles
from jobboard.api.v1.jobs import AvailabilitySlot, get_owned_job
from jobboard.core.errors import AppError, required_field_error
from jobboard.db.base import utcnow
from jobboard.db.session import commit_or_rollback, get_db
from jobboard.models import APPLICATION_STATUSES, Application, Job, Profile, Role, User
from jobboard.services.jobs import is_open, is_visible_to

# Configure logger
logger = logging.getLogger("applications")

router = APIRouter()

INTERVIEW_TYPES = ("remote", "onsite")


# ============== Pydantic Schemas ==============


class ApplicationCreate(BaseModel):
    """Schema for submitting an application."""

    job_id: str
    answers: list[str] = []
    interview_type: str = "remote"  # 'remote' | 'onsite'
    interview_slots: list[AvailabilitySlot] = []
    cv_url: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str


class JobSummary(BaseModel):
    id: str
    title: str
    company_name: Optional[str] = None
    company_logo: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None


class ApplicantSummary(BaseModel):
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None


class ApplicationResponse(BaseModel):
    """Schema for an application, with the job or applicant attached."""

    id: str
    job_id: str
    user_id: str
    answers: list[str] = []
    interview_type: str = "remote"
    interview_slots: list[AvailabilitySlot] = []
    cv_url: Optional[str] = None
    status: str = "pending"
    applied_at: Optional[datetime] = None
    job: Optional[JobSummary] = None
    applicant: Optional[ApplicantSummary] = None


# ============== Helper Functions ==============


def application_to_response(
    application: Application,
    include_job: bool = False,
    include_applicant: bool = False,
) -> ApplicationResponse:
    response = ApplicationResponse(
        id=application.id,
        job_id=application.job_id,
        user_id=application.user_id,
        answers=list(application.answers or []),
        interview_type=application.interview_type or "remote",
        interview_slots=list(application.interview_slots or []),
        cv_url=application.cv_url,
        status=application.status or "pending",
        applied_at=application.applied_at,
    )
    if include_job and application.job is not None:
        job = application.job
        response.job = JobSummary(
            id=job.id,
            title=job.title,
            company_name=job.company_name,
            company_logo=job.company_logo,
            location=job.location,
            type=job.type,
            status=job.status,
        )
    if include_applicant and application.user is not None:
        user = application.user
        response.applicant = ApplicantSummary(
            id=user.id,
            display_name=user.display_name,
            email=user.email,
            photo_url=user.photo_url,
        )
    return response


def unanswered_questions(questions: list[str], answers: list[str]) -> dict[str, str]:
    """Map of `answers.<n>` to a prompt for every question left blank."""
    missing = {}
    for index, _question in enumerate(questions or []):
        answer = answers[index] if index < len(answers) else ""
        if not (answer or "").strip():
            missing[f"answers.{index}"] = f"Please answer question {index + 1}"
    return missing


# ============== API Endpoints ==============


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def apply_to_job(
    payload: ApplicationCreate,
    current_user: User = Depends(require_roles(Role.JOB_SEEKER)),
    db: Session = Depends(get_db),
):
    """
    Apply to a job.

    The job must be visible to the caller and still accepting applications,
    and every one of its questions needs a non-blank answer. Nothing is
    written when any check fails. The CV defaults to the one on the
    caller's profile.
    """
    job = db.query(Job).filter(Job.id == payload.job_id).first()
    if job is None or not is_visible_to(job, current_user.id):
        raise AppError("not-found")
    if not is_open(job):
        raise AppError("jobs/not-accepting")

    missing = unanswered_questions(job.questions or [], payload.answers)
    if missing:
        raise required_field_error(missing)

    if payload.interview_type not in INTERVIEW_TYPES:
        raise AppError(
            "validation/invalid-value",
            "Interview type must be remote or onsite",
            fields={"interview_type": "invalid"},
        )

    cv_url = payload.cv_url
    if not cv_url:
        profile = db.query(Profile).filter(Profile.user_id == current_user.id).first()
        cv_url = profile.cv_url if profile else ""

    application = Application(
        job_id=job.id,
        user_id=current_user.id,
        answers=[answer.strip() for answer in payload.answers[: len(job.questions or [])]]
        if job.questions
        else [],
        interview_type=payload.interview_type,
        interview_slots=[slot.model_dump() for slot in payload.interview_slots],
        cv_url=cv_url or "",
        status="pending",
        applied_at=utcnow(),
    )
    db.add(application)
    commit_or_rollback(db, logger, f"submit application to job {job.id}")
    db.refresh(application)

    logger.info(f"User {current_user.id} applied to job {job.id}")
    return application_to_response(application, include_job=True)


@router.get("/mine", response_model=list[ApplicationResponse])
async def list_my_applications(
    current_user: User = Depends(require_roles(Role.JOB_SEEKER)),
    db: Session = Depends(get_db),
):
    """The caller's applications with a job summary, newest first."""
    applications = (
        db.query(Application)
        .filter(Application.user_id == current_user.id)
        .order_by(Application.applied_at.desc())
        .all()
    )
    return [application_to_response(app_, include_job=True) for app_ in applications]


@router.get("/job/{job_id}", response_model=list[ApplicationResponse])
async def list_job_applications(
    job_id: str,
    current_user: User = Depends(require_roles(Role.COMPANY)),
    db: Session = Depends(get_db),
):
    """Applicants for one of the caller's jobs, newest first."""
    job = get_owned_job(db, job_id, current_user)
    applications = (
        db.query(Application)
        .filter(Application.job_id == job.id)
        .order_by(Application.applied_at.desc())
        .all()
    )
    return [application_to_response(app_, include_applicant=True) for app_ in applications]


@router.put("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: str,
    payload: StatusUpdate,
    current_user: User = Depends(require_roles(Role.COMPANY)),
    db: Session = Depends(get_db),
):
    """Move an application to pending, interview, accepted or rejected."""
    if payload.status not in APPLICATION_STATUSES:
        raise AppError(
            "validation/invalid-value",
            f"Status must be one of: {', '.join(APPLICATION_STATUSES)}",
            fields={"status": "invalid"},
        )

    application = db.query(Application).filter(Application.id == application_id).first()
    if application is None:
        raise AppError("not-found")
    get_owned_job(db, application.job_id, current_user)

    application.status = payload.status
    commit_or_rollback(db, logger, f"update application {application_id}")
    db.refresh(application)

    logger.info(f"Application {application_id} set to {payload.status}")
    return application_to_response(application, include_applicant=True)
