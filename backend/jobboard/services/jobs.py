"""
Job queries.

All listing filters (visibility, status, deadline, type, location, keyword)
are expressed in SQL rather than applied after a broad fetch.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from jobboard.db.base import utcnow
from jobboard.models import Job


def location_slug(value: Optional[str]) -> str:
    """'New York ' -> 'new-york'; the form used by location filters."""
    return re.sub(r"\s+", "-", (value or "").strip().lower())


def is_visible_to(job: Job, viewer_id: Optional[str]) -> bool:
    """A job is visible when public or when the viewer owns it."""
    return job.is_public is not False or (viewer_id is not None and job.company_id == viewer_id)


def is_open(job: Job, now: Optional[datetime] = None) -> bool:
    """Active status and no past deadline."""
    now = now or utcnow()
    if (job.status or "active") != "active":
        return False
    return job.deadline is None or job.deadline > now


def _open_clause(now: datetime):
    return (
        or_(Job.status == "active", Job.status.is_(None)),
        or_(Job.deadline.is_(None), Job.deadline > now),
    )


def public_jobs_query(
    db: Session,
    viewer_id: Optional[str] = None,
    keyword: Optional[str] = None,
    job_type: Optional[str] = None,
    locations: Optional[Iterable[str]] = None,
    now: Optional[datetime] = None,
) -> Query:
    """
    Open jobs a viewer may discover, newest first.

    Private jobs are only included for their owner.
    """
    now = now or utcnow()
    visibility = or_(Job.is_public.is_(True), Job.is_public.is_(None))
    if viewer_id:
        visibility = or_(visibility, Job.company_id == viewer_id)

    query = db.query(Job).filter(visibility, *_open_clause(now))

    if job_type:
        query = query.filter(Job.type == job_type)

    slugs = [location_slug(loc) for loc in (locations or []) if loc and loc.strip()]
    if slugs:
        # Mirrors location_slug() for single spaces
        column_slug = func.replace(func.lower(func.trim(Job.location)), " ", "-")
        query = query.filter(column_slug.in_(slugs))

    if keyword and keyword.strip():
        pattern = f"%{keyword.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Job.title).like(pattern),
                func.lower(Job.description).like(pattern),
            )
        )

    return query.order_by(Job.posted_at.desc())


def company_jobs(
    db: Session,
    company_id: str,
    tab: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[Job]:
    """
    A company's own jobs, public and private.

    tab="active" keeps open jobs, tab="expired" keeps expired, closed and
    past-deadline ones; no tab returns everything.
    """
    now = now or utcnow()
    query = db.query(Job).filter(Job.company_id == company_id)
    jobs = query.order_by(Job.posted_at.desc()).all()

    if tab == "active":
        return [job for job in jobs if is_open(job, now)]
    if tab == "expired":
        return [job for job in jobs if not is_open(job, now)]
    return jobs


def filter_options(db: Session) -> dict[str, list]:
    """Distinct types and locations among public open jobs, for filter widgets."""
    now = utcnow()
    base = db.query(Job).filter(
        or_(Job.is_public.is_(True), Job.is_public.is_(None)), *_open_clause(now)
    )
    types = sorted({row[0] for row in base.with_entities(Job.type).distinct() if row[0]})
    locations = sorted({row[0].strip() for row in base.with_entities(Job.location).distinct() if row[0] and row[0].strip()})
    return {
        "types": types,
        "locations": [{"id": location_slug(loc), "label": loc} for loc in locations],
    }
