"""
Page routes.

Each page returns the JSON view model a client renders. Protected pages run
a RouteGuard over the request's session state and answer with a redirect
when the guard issues one.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from jobboard.api.deps import get_session_state, page_guard
from jobboard.api.v1.applications import application_to_response
from jobboard.api.v1.auth import session_response
from jobboard.api.v1.jobs import job_to_response
from jobboard.core.errors import NOT_FOUND_MESSAGE
from jobboard.db.base import utcnow
from jobboard.db.session import get_db
from jobboard.models import Application, Job, Role, User
from jobboard.services.identity import REGISTRABLE_ROLES, SUPPORTED_PROVIDERS
from jobboard.services.jobs import (
    company_jobs,
    filter_options,
    is_open,
    is_visible_to,
    public_jobs_query,
)
from jobboard.services.profiles import get_profile_record, missing_fields, profile_fields
from jobboard.services.session_store import SessionState

router = APIRouter()

seeker_page = page_guard([Role.JOB_SEEKER], fallback="/profile/entdetails")
dashboard_page = page_guard([Role.JOB_SEEKER, Role.STAFF], fallback="/company/jobs")
company_profile_page = page_guard([Role.COMPANY], fallback="/dashboard")
company_page = page_guard([Role.COMPANY], fallback="/dashboard", require_complete_company=True)


# ============== Helper Functions ==============


def home_for(role: Optional[str]) -> str:
    """Where a signed-in user lands when no redirect was requested."""
    if not role:
        return "/"
    return "/company/jobs" if role == Role.COMPANY else "/dashboard"


def safe_redirect(target: Optional[str]) -> Optional[str]:
    """Only same-site relative paths are honoured."""
    if not target or not target.startswith("/") or target.startswith("//"):
        return None
    return target


def view(page: str, session_state: SessionState, **extra) -> dict:
    return {"page": page, "session": session_response(session_state).model_dump(), **extra}


def profile_view(page: str, state: SessionState, db: Session, edit: bool) -> dict:
    user = db.query(User).filter(User.id == state.session.uid).first()
    record = get_profile_record(db, user)
    fields = profile_fields(record)
    fields.pop("user_id", None)
    fields.pop("updated_at", None)
    return view(
        page,
        state,
        mode="form" if edit or not state.profile_complete else "summary",
        profile=fields,
        missing_fields=missing_fields(user.role, fields),
    )


# ============== Public Pages ==============


@router.get("/login")
async def login_page(
    redirect: Optional[str] = None,
    state: SessionState = Depends(get_session_state),
):
    """Sign-in form. Signed-in visitors are sent on to where they were going."""
    if state.session is not None:
        return RedirectResponse(safe_redirect(redirect) or home_for(state.session.role))
    return view("login", state, redirect=safe_redirect(redirect), providers=list(SUPPORTED_PROVIDERS))


@router.get("/register")
async def register_page(
    provider: Optional[str] = None,
    state: SessionState = Depends(get_session_state),
):
    """Registration form; `provider` marks the second half of a provider hand-off."""
    if state.session is not None:
        return RedirectResponse(home_for(state.session.role))
    return view(
        "register",
        state,
        provider=provider if provider in SUPPORTED_PROVIDERS else None,
        roles=list(REGISTRABLE_ROLES),
    )


@router.get("/jobs")
async def jobs_page(
    keyword: Optional[str] = None,
    type: Optional[str] = None,
    location: Optional[list[str]] = Query(None),
    state: SessionState = Depends(get_session_state),
    db: Session = Depends(get_db),
):
    """Job discovery with its filter widgets."""
    viewer_id = state.session.uid if state.session else None
    now = utcnow()
    jobs = public_jobs_query(
        db, viewer_id=viewer_id, keyword=keyword, job_type=type, locations=location, now=now
    ).all()
    return view(
        "jobs",
        state,
        filters={"keyword": keyword or "", "type": type or "", "location": location or []},
        options=filter_options(db),
        jobs=[job_to_response(job, now).model_dump(mode="json") for job in jobs],
    )


@router.get("/jobs/post")
async def post_job_page(
    state: SessionState = Depends(company_page),
    db: Session = Depends(get_db),
):
    """Posting form prefilled with the company card."""
    session = state.session
    return view(
        "jobs/post",
        state,
        defaults={
            "company_name": session.company_name or "",
            "company_logo": session.company_logo or "",
            "is_public": True,
            "type": "Full-time",
        },
        options=filter_options(db),
    )


@router.get("/jobs/{job_id}")
async def job_detail_page(
    job_id: str,
    state: SessionState = Depends(get_session_state),
    db: Session = Depends(get_db),
):
    """
    Job detail.

    Missing jobs and private jobs of other companies render the same
    in-page state so a private job's existence is never revealed.
    """
    viewer_id = state.session.uid if state.session else None
    job = db.query(Job).filter(Job.id == job_id).first()
    if job is None or not is_visible_to(job, viewer_id):
        return JSONResponse(
            status_code=404,
            content=view("job", state, state="not-found", message=NOT_FOUND_MESSAGE),
        )

    role = state.session.role if state.session else None
    return view(
        "job",
        state,
        state="ready",
        job=job_to_response(job).model_dump(mode="json"),
        is_owner=viewer_id is not None and job.company_id == viewer_id,
        can_apply=role == Role.JOB_SEEKER and is_open(job),
    )


# ============== Protected Pages ==============


@router.get("/dashboard")
async def dashboard_page_view(
    state: SessionState = Depends(dashboard_page),
    db: Session = Depends(get_db),
):
    """Job-seeker home: the seeker's applications, newest first."""
    applications = (
        db.query(Application)
        .filter(Application.user_id == state.session.uid)
        .order_by(Application.applied_at.desc())
        .all()
    )
    return view(
        "dashboard",
        state,
        applications=[
            application_to_response(app_, include_job=True).model_dump(mode="json")
            for app_ in applications
        ],
    )


@router.get("/profile")
async def profile_page(
    edit: bool = False,
    state: SessionState = Depends(seeker_page),
    db: Session = Depends(get_db),
):
    """Profile form; a completed profile is shown as its summary instead."""
    if state.profile_complete and not edit:
        return RedirectResponse("/profile/details")
    return profile_view("profile", state, db, edit=True)


@router.get("/profile/details")
async def profile_details_page(
    edit: bool = False,
    state: SessionState = Depends(seeker_page),
    db: Session = Depends(get_db),
):
    return profile_view("profile/details", state, db, edit=edit)


@router.get("/profile/entdetails")
async def company_details_page(
    edit: bool = False,
    state: SessionState = Depends(company_profile_page),
    db: Session = Depends(get_db),
):
    return profile_view("profile/entdetails", state, db, edit=edit)


@router.get("/company/profile")
async def company_profile_view(
    edit: bool = False,
    state: SessionState = Depends(company_profile_page),
    db: Session = Depends(get_db),
):
    """Company profile form; incomplete companies are held here."""
    return profile_view("company/profile", state, db, edit=edit)


@router.get("/company/jobs")
async def company_jobs_page(
    state: SessionState = Depends(company_page),
    db: Session = Depends(get_db),
):
    """The company's postings split into active and expired tabs."""
    now = utcnow()
    company_id = state.session.uid
    active = company_jobs(db, company_id, tab="active", now=now)
    expired = company_jobs(db, company_id, tab="expired", now=now)
    return view(
        "company/jobs",
        state,
        active=[job_to_response(job, now).model_dump(mode="json") for job in active],
        expired=[job_to_response(job, now).model_dump(mode="json") for job in expired],
    )
