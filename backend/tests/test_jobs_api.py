"""Jobs endpoints: posting, visibility, lifecycle, filters and bookmarks."""

from datetime import timedelta

from jobboard.db.base import utcnow
from jobboard.models import Application, Job


def listed_titles(response):
    return [job["title"] for job in response.json()["jobs"]]


def test_company_posts_a_job(client, auth_headers, company):
    response = client.post(
        "/api/v1/jobs",
        json={"title": "  Backend Developer ", "location": "Paris", "questions": ["Why us?", " "]},
        headers=auth_headers(company),
    )

    assert response.status_code == 201
    job = response.json()
    assert job["title"] == "Backend Developer"
    assert job["company_name"] == "Acme"
    assert job["status"] == "active"
    assert job["is_public"] is True
    assert job["questions"] == ["Why us?"]
    assert job["accepting_applications"] is True


def test_posting_requires_a_title(client, auth_headers, company):
    response = client.post("/api/v1/jobs", json={"title": "   "}, headers=auth_headers(company))

    assert response.status_code == 422
    assert response.json()["code"] == "validation/required-field"
    assert "title" in response.json()["fields"]


def test_only_companies_can_post(client, auth_headers, seeker):
    assert client.post("/api/v1/jobs", json={"title": "x"}).status_code == 401

    response = client.post("/api/v1/jobs", json={"title": "x"}, headers=auth_headers(seeker))
    assert response.status_code == 403
    assert response.json()["code"] == "permission-denied"


def test_private_job_is_only_visible_to_its_owner(client, auth_headers, company, seeker, make_job):
    job = make_job(company, title="Secret Role", is_public=False)

    owner = client.get(f"/api/v1/jobs/{job.id}", headers=auth_headers(company))
    assert owner.status_code == 200

    for headers in ({}, auth_headers(seeker)):
        response = client.get(f"/api/v1/jobs/{job.id}", headers=headers)
        assert response.status_code == 404
        assert response.json()["code"] == "not-found"

    assert "Secret Role" in listed_titles(client.get("/api/v1/jobs", headers=auth_headers(company)))
    assert "Secret Role" not in listed_titles(client.get("/api/v1/jobs", headers=auth_headers(seeker)))


def test_expiring_a_job_removes_it_from_listings(client, auth_headers, company, make_job):
    job = make_job(company, title="Short Lived")
    headers = auth_headers(company)
    assert "Short Lived" in listed_titles(client.get("/api/v1/jobs"))

    response = client.post(f"/api/v1/jobs/{job.id}/expire", headers=headers)

    assert response.status_code == 200
    assert response.json()["status"] == "expired"
    assert response.json()["deadline"] is not None
    assert "Short Lived" not in listed_titles(client.get("/api/v1/jobs"))

    expired = listed_titles(client.get("/api/v1/jobs/mine?tab=expired", headers=headers))
    active = listed_titles(client.get("/api/v1/jobs/mine?tab=active", headers=headers))
    assert expired == ["Short Lived"]
    assert active == []


def test_update_can_set_status(client, auth_headers, company, make_job):
    job = make_job(company)

    response = client.put(
        f"/api/v1/jobs/{job.id}",
        json={"status": "closed", "salary": "50k"},
        headers=auth_headers(company),
    )

    assert response.status_code == 200
    assert response.json()["status"] == "closed"
    assert response.json()["salary"] == "50k"
    assert response.json()["accepting_applications"] is False


def test_update_rejects_unknown_status(client, auth_headers, company, make_job):
    job = make_job(company)
    response = client.put(
        f"/api/v1/jobs/{job.id}", json={"status": "archived"}, headers=auth_headers(company)
    )
    assert response.status_code == 422


def test_other_company_cannot_modify_job(client, auth_headers, company, other_company, make_job):
    job = make_job(company)
    headers = auth_headers(other_company)

    assert client.put(f"/api/v1/jobs/{job.id}", json={"title": "Mine now"}, headers=headers).status_code == 403
    assert client.post(f"/api/v1/jobs/{job.id}/close", headers=headers).status_code == 403
    assert client.delete(f"/api/v1/jobs/{job.id}", headers=headers).status_code == 403


def test_past_deadline_jobs_are_not_listed(client, company, make_job):
    make_job(company, title="Open", deadline=utcnow() + timedelta(days=3))
    make_job(company, title="Lapsed", deadline=utcnow() - timedelta(minutes=1))

    assert listed_titles(client.get("/api/v1/jobs")) == ["Open"]


def test_listing_filters(client, company, make_job):
    now = utcnow()
    make_job(company, title="Python Developer", type="Full-time", location="Paris",
             posted_at=now - timedelta(hours=2))
    make_job(company, title="Product Designer", type="Contract", location="New York",
             description="Work with our python team", posted_at=now - timedelta(hours=1))

    assert listed_titles(client.get("/api/v1/jobs?type=Full-time")) == ["Python Developer"]
    assert listed_titles(client.get("/api/v1/jobs?location=new-york")) == ["Product Designer"]
    assert listed_titles(client.get("/api/v1/jobs?location=new-york&location=paris")) == [
        "Product Designer",
        "Python Developer",
    ]
    assert listed_titles(client.get("/api/v1/jobs?keyword=PYTHON")) == [
        "Product Designer",
        "Python Developer",
    ]
    assert listed_titles(client.get("/api/v1/jobs?keyword=python&type=Contract")) == [
        "Product Designer"
    ]


def test_filter_options(client, company, make_job):
    make_job(company, type="Full-time", location="New York")
    make_job(company, type="Internship", location="Paris")
    make_job(company, type="Contract", location="Berlin", is_public=False)

    body = client.get("/api/v1/jobs/filters").json()

    assert body["types"] == ["Full-time", "Internship"]
    assert body["locations"] == [
        {"id": "new-york", "label": "New York"},
        {"id": "paris", "label": "Paris"},
    ]


def test_delete_removes_applications(client, auth_headers, company, seeker, make_job, db):
    job_id = make_job(company).id
    db.add(Application(job_id=job_id, user_id=seeker.id, answers=[]))
    db.commit()

    response = client.delete(f"/api/v1/jobs/{job_id}", headers=auth_headers(company))

    assert response.status_code == 200
    db.expire_all()
    assert db.query(Job).filter(Job.id == job_id).count() == 0
    assert db.query(Application).count() == 0


def test_save_and_unsave_jobs(client, auth_headers, company, seeker, make_job):
    job = make_job(company, title="Keeper")
    headers = auth_headers(seeker)

    assert client.post(f"/api/v1/jobs/{job.id}/save", headers=headers).json() == {"saved_jobs": [job.id]}
    assert listed_titles(client.get("/api/v1/jobs/saved", headers=headers)) == ["Keeper"]

    client.delete(f"/api/v1/jobs/{job.id}/save", headers=headers)
    assert client.get("/api/v1/jobs/saved", headers=headers).json()["total"] == 0


def test_cannot_save_a_private_job(client, auth_headers, company, seeker, make_job):
    job = make_job(company, is_public=False)
    response = client.post(f"/api/v1/jobs/{job.id}/save", headers=auth_headers(seeker))
    assert response.status_code == 404
