"""Route guard state machine."""

from typing import Optional

from jobboard.models import Role
from jobboard.services.route_guard import GuardStatus, RouteGuard
from jobboard.services.session_store import Session, SessionState

CHECKING = SessionState()


def signed_in(role: Optional[str]) -> SessionState:
    return SessionState(
        session=Session(uid="u1", email="u1@example.com", role=role),
        loading=False,
        checking=False,
    )


SIGNED_OUT = SessionState(loading=False, checking=False)


def test_no_decision_while_checking():
    guard = RouteGuard([Role.JOB_SEEKER], current_path="/dashboard")
    assert guard.observe(CHECKING) == GuardStatus.CHECKING
    assert guard.redirect_to is None


def test_signed_out_redirects_to_login_with_return_path():
    guard = RouteGuard([Role.COMPANY], current_path="/company/jobs")

    assert guard.observe(SIGNED_OUT) == GuardStatus.UNAUTHENTICATED
    assert guard.redirect_to == "/login?redirect=%2Fcompany%2Fjobs"


def test_redirect_is_issued_once():
    """Repeated emissions after a redirect never issue another one."""
    guard = RouteGuard([Role.COMPANY], current_path="/company/jobs", fallback_path="/dashboard")

    for _ in range(5):
        guard.observe(SIGNED_OUT)
    guard.observe(signed_in("job-seeker"))

    assert guard.redirect_count == 1
    assert guard.status == GuardStatus.UNAUTHENTICATED
    assert guard.redirect_to.startswith("/login")


def test_wrong_role_goes_to_fallback():
    guard = RouteGuard([Role.JOB_SEEKER], current_path="/dashboard", fallback_path="/company/jobs")

    assert guard.observe(signed_in("company")) == GuardStatus.UNAUTHORIZED
    assert guard.redirect_to == "/company/jobs"


def test_missing_role_is_unauthorized():
    guard = RouteGuard([Role.JOB_SEEKER, Role.COMPANY], fallback_path="/")

    assert guard.observe(signed_in(None)) == GuardStatus.UNAUTHORIZED
    assert guard.redirect_to == "/"


def test_missing_role_skips_the_role_fallback():
    guard = RouteGuard([Role.JOB_SEEKER], current_path="/dashboard", fallback_path="/company/jobs")

    assert guard.observe(signed_in(None)) == GuardStatus.UNAUTHORIZED
    assert guard.redirect_to == "/"


def test_allowed_role_is_authorized_after_checking():
    guard = RouteGuard([Role.JOB_SEEKER, Role.STAFF], current_path="/dashboard")

    guard.observe(CHECKING)
    assert guard.observe(signed_in("staff")) == GuardStatus.AUTHORIZED
    assert guard.has_redirected is False
    assert guard.redirect_count == 0


def test_plain_string_roles_are_accepted():
    guard = RouteGuard(["company"])
    assert guard.observe(signed_in("company")) == GuardStatus.AUTHORIZED
