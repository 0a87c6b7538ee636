"""Authentication endpoints: registration, sign-in, OAuth hand-off and password reset."""

from urllib.parse import parse_qs, urlparse

from jobboard.api.deps import get_mailer
from jobboard.core.config import settings
from jobboard.main import app
from jobboard.services.mailer import Mailer
from jobboard.models import CompanyProfile, Profile, Role, User


def register(client, **overrides):
    payload = {
        "name": "Jane Smith",
        "email": "jane@example.com",
        "password": "password123",
        "role": "job-seeker",
    }
    payload.update(overrides)
    return client.post("/api/v1/auth/register", json=payload)


def login(client, email, password):
    return client.post("/api/v1/auth/login", data={"username": email, "password": password})


def test_register_job_seeker_signs_in_and_sets_cookie(client, db):
    response = register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["access_token"]
    assert body["user"]["role"] == "job-seeker"
    assert body["user"]["profile_completed"] == "no"
    assert response.cookies.get(settings.AUTH_COOKIE_NAME) == body["access_token"]

    user = db.query(User).filter(User.email == "jane@example.com").one()
    assert db.get(Profile, user.id) is not None


def test_register_company_creates_company_profile(client, db):
    response = register(
        client, email="hr@acme.example", role="company", company_name="Acme"
    )

    assert response.status_code == 201
    assert response.json()["user"]["company_name"] == "Acme"
    user = db.query(User).filter(User.email == "hr@acme.example").one()
    assert db.get(CompanyProfile, user.id).company_name == "Acme"


def test_register_company_requires_name(client):
    response = register(client, role="company")
    assert response.status_code == 400
    assert response.json()["code"] == "auth/company-name-required"


def test_register_rejects_duplicate_email(client):
    register(client)
    response = register(client, email="JANE@example.com")

    assert response.status_code == 409
    assert response.json()["code"] == "auth/email-already-in-use"


def test_register_rejects_weak_password_and_bad_email(client):
    assert register(client, password="short").json()["code"] == "auth/weak-password"
    assert register(client, email="not-an-email").json()["code"] == "auth/invalid-email"
    assert register(client, name="J").json()["code"] == "auth/invalid-name"


def test_staff_role_cannot_be_self_assigned(client):
    response = register(client, role="staff")
    assert response.status_code == 422
    assert response.json()["code"] == "validation/invalid-value"


def test_login_with_password(client, seeker):
    response = login(client, "seeker@example.com", "password123")

    assert response.status_code == 200
    assert response.json()["user"]["uid"] == seeker.id
    assert response.cookies.get(settings.AUTH_COOKIE_NAME)


def test_login_with_wrong_password(client, seeker):
    response = login(client, "seeker@example.com", "wrong-password")

    assert response.status_code == 401
    assert response.json()["code"] == "auth/invalid-credential"


def test_me_when_signed_out(client):
    response = client.get("/api/v1/auth/me")

    assert response.status_code == 200
    body = response.json()
    assert body["user"] is None
    assert body["profile_complete"] is False
    assert body["checking"] is False


def test_me_reports_profile_link(client, auth_headers, make_user):
    user = make_user("new@example.com", Role.JOB_SEEKER)

    body = client.get("/api/v1/auth/me", headers=auth_headers(user)).json()

    assert body["user"]["email"] == "new@example.com"
    assert body["profile_complete"] is False
    assert body["profile_link"] == "/profile"


def test_me_accepts_the_auth_cookie(client, seeker):
    token = login(client, "seeker@example.com", "password123").json()["access_token"]
    client.cookies.set(settings.AUTH_COOKIE_NAME, token)

    body = client.get("/api/v1/auth/me").json()

    assert body["user"]["uid"] == seeker.id
    assert body["profile_link"] == "/profile/details"


def test_logout_clears_cookie(client, auth_headers, seeker):
    response = client.post("/api/v1/auth/logout", headers=auth_headers(seeker))

    assert response.status_code == 200
    assert f'{settings.AUTH_COOKIE_NAME}=""' in response.headers["set-cookie"]


def test_oauth_known_account_signs_in(client, make_user):
    user = make_user("known@example.com", Role.COMPANY, company_name="Known")

    response = client.post("/api/v1/auth/oauth/google", json={"id_token": "google-known"})

    assert response.status_code == 200
    assert response.json()["user"]["uid"] == user.id
    assert response.json()["user"]["role"] == "company"


def test_oauth_new_account_goes_through_registration(client, db):
    """Unknown provider emails are handed off to registration to pick a role."""
    response = client.post("/api/v1/auth/oauth/google", json={"id_token": "google-new"})

    assert response.status_code == 200
    handoff = response.json()
    assert handoff["is_new_user"] is True
    assert handoff["email"] == "newcomer@example.com"
    assert handoff["next"] == "/register?provider=google"
    assert db.query(User).filter(User.email == "newcomer@example.com").first() is None

    response = client.post(
        "/api/v1/auth/oauth/register",
        json={
            "handoff_token": handoff["handoff_token"],
            "role": "company",
            "company_name": "Newco",
        },
    )

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["role"] == "company"
    assert user["auth_provider"] == "google"
    assert user["photo_url"] == "https://img/p.png"


def test_oauth_register_with_bad_handoff(client):
    response = client.post(
        "/api/v1/auth/oauth/register",
        json={"handoff_token": "garbage", "role": "job-seeker"},
    )
    assert response.json()["code"] == "auth/oauth-handoff-expired"


def test_oauth_rejected_token_and_unknown_provider(client):
    response = client.post("/api/v1/auth/oauth/google", json={"id_token": "forged"})
    assert response.status_code == 401
    assert response.json()["code"] == "auth/oauth-failed"

    response = client.post("/api/v1/auth/oauth/myspace", json={"id_token": "google-known"})
    assert response.json()["code"] == "auth/unsupported-provider"


def test_password_reset_round_trip(client, mailer, seeker):
    response = client.post("/api/v1/auth/reset-password", json={"email": "seeker@example.com"})
    assert response.status_code == 200

    email, link = mailer.resets[-1]
    assert email == "seeker@example.com"
    token = parse_qs(urlparse(link).query)["token"][0]

    response = client.post(
        "/api/v1/auth/reset-password/confirm",
        json={"token": token, "new_password": "brand-new-secret"},
    )
    assert response.status_code == 200

    assert login(client, "seeker@example.com", "password123").status_code == 401
    assert login(client, "seeker@example.com", "brand-new-secret").status_code == 200


def test_reset_link_works_only_once(client, mailer, seeker):
    client.post("/api/v1/auth/reset-password", json={"email": "seeker@example.com"})
    token = parse_qs(urlparse(mailer.resets[-1][1]).query)["token"][0]
    confirm = {"token": token, "new_password": "first-new-secret"}

    assert client.post("/api/v1/auth/reset-password/confirm", json=confirm).status_code == 200

    confirm["new_password"] = "second-new-secret"
    response = client.post("/api/v1/auth/reset-password/confirm", json=confirm)
    assert response.status_code == 401
    assert response.json()["code"] == "auth/invalid-token"
    assert login(client, "seeker@example.com", "first-new-secret").status_code == 200


def test_unreachable_mail_relay_asks_to_retry(client, seeker, monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr("jobboard.services.mailer.smtplib.SMTP", refuse)
    app.dependency_overrides[get_mailer] = lambda: Mailer(host="127.0.0.1", port=1)

    response = client.post("/api/v1/auth/reset-password", json={"email": "seeker@example.com"})

    assert response.status_code == 503
    assert response.json()["code"] == "unavailable"


def test_password_reset_for_unknown_email(client, mailer):
    response = client.post("/api/v1/auth/reset-password", json={"email": "ghost@example.com"})

    assert response.status_code == 404
    assert response.json()["code"] == "auth/user-not-found"
    assert mailer.resets == []


def test_access_token_cannot_confirm_a_reset(client, seeker):
    token = login(client, "seeker@example.com", "password123").json()["access_token"]

    response = client.post(
        "/api/v1/auth/reset-password/confirm",
        json={"token": token, "new_password": "brand-new-secret"},
    )
    assert response.status_code == 401
    assert response.json()["code"] == "auth/invalid-token"
