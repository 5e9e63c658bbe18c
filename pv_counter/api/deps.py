import logging
import secrets
from fastapi import Depends, Header, HTTPException, Request
from ..core.config import Settings
from ..services.key_browser import KeyBrowserService
from ..services.visit_counter import VisitCounterService

logger = logging.getLogger(__name__)

LOCAL_ORIGINS = ("localhost", "127.0.0.1")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_visit_counter_service(request: Request) -> VisitCounterService:
    """
    Dependency that returns the VisitCounterService bound to the app
    """
    return request.app.state.visit_counter


def get_key_browser_service(request: Request) -> KeyBrowserService:
    """
    Dependency that returns the KeyBrowserService bound to the app
    """
    return request.app.state.key_browser


def check_origin(request: Request, config: Settings = Depends(get_settings)) -> None:
    """
    Reject visits from origins other than ALLOWED_ORIGIN

    '*' allows everything, including local development. Otherwise the
    Origin (or Referer) header must contain ALLOWED_ORIGIN and must not
    point at localhost.
    """
    allowed = config.ALLOWED_ORIGIN
    if allowed == "*":
        return

    origin = request.headers.get("origin") or request.headers.get("referer") or ""
    blocked = bool(allowed) and allowed not in origin
    if any(local in origin for local in LOCAL_ORIGINS):
        blocked = True

    if blocked:
        logger.warning(f"[Blocked] Unauthorized request from: {origin}")
        raise HTTPException(status_code=403, detail="Forbidden: Unauthorized Origin")


def require_admin_token(
    x_auth_token: str | None = Header(default=None),
    config: Settings = Depends(get_settings),
) -> None:
    """
    Admin routes need X-Auth-Token equal to DASHBOARD_PWD

    With no password configured every request is rejected.
    """
    expected = config.DASHBOARD_PWD
    if not expected or not x_auth_token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    # compare_digest only accepts ASCII str, headers arrive latin-1 decoded
    if not secrets.compare_digest(x_auth_token.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized")
