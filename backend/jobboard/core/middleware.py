"""
Cookie gate for protected pages.

Requests to a protected page without any credential are sent to the login
page straight away; everything else falls through to the page's own guard.
"""

from urllib.parse import quote

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from jobboard.core.config import settings

PROTECTED_PREFIXES = ("/dashboard", "/company", "/jobs/post", "/profile")


def is_protected(path: str) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in PROTECTED_PREFIXES)


class AuthCookieMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if request.method == "GET" and is_protected(path):
            has_cookie = bool(request.cookies.get(settings.AUTH_COOKIE_NAME))
            has_bearer = request.headers.get("Authorization", "").lower().startswith("bearer ")
            if not (has_cookie or has_bearer):
                target = f"{path}?{request.url.query}" if request.url.query else path
                return RedirectResponse(f"/login?redirect={quote(target, safe='')}")
        return await call_next(request)
