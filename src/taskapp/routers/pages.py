from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from ..auth import (
    AuthContext,
    AuthError,
    AuthProvider,
    AuthUnavailableError,
    clear_session,
    get_auth_context,
    get_auth_provider,
    store_session,
)
from ..components.landing import AUTH_PATH, DASHBOARD_PATH, FEATURES, resolve_landing
from ..templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])


# PUBLIC_INTERFACE
@router.get("/", response_class=HTMLResponse, summary="Landing page")
def index(request: Request, auth: AuthContext = Depends(get_auth_context)) -> Response:
    """
    Landing page: loading indicator while the session check is pending,
    redirect to the dashboard when signed in, marketing content otherwise.
    """
    outcome = resolve_landing(auth)
    if outcome.kind == "redirect":
        return RedirectResponse(outcome.redirect_to, status_code=status.HTTP_303_SEE_OTHER)
    if outcome.kind == "loading":
        return render(request, "loading.html")
    return render(request, "index.html", {"features": FEATURES, "auth_path": AUTH_PATH})


# PUBLIC_INTERFACE
@router.get("/auth", response_class=HTMLResponse, summary="Sign-in page")
def sign_in_page(request: Request, auth: AuthContext = Depends(get_auth_context)) -> Response:
    if auth.is_authenticated:
        return RedirectResponse(DASHBOARD_PATH, status_code=status.HTTP_303_SEE_OTHER)
    return render(request, "auth.html", {"email": "", "error": None})


# PUBLIC_INTERFACE
@router.post("/auth", response_class=HTMLResponse, summary="Sign in")
def sign_in(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    provider: AuthProvider = Depends(get_auth_provider),
) -> Response:
    """Exchange credentials for a session, then continue to the dashboard."""
    try:
        user, token = provider.sign_in(email.strip(), password)
    except AuthUnavailableError as e:
        return render(
            request, "auth.html", {"email": email, "error": str(e)},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    except AuthError as e:
        logger.info("Sign-in rejected for %s", email)
        return render(
            request, "auth.html", {"email": email, "error": str(e)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    store_session(request.session, user, token)
    logger.info("User %s signed in", user.id)
    return RedirectResponse(DASHBOARD_PATH, status_code=status.HTTP_303_SEE_OTHER)


# PUBLIC_INTERFACE
@router.get("/auth/callback", summary="Sign-in callback")
def sign_in_callback(
    request: Request,
    access_token: str = "",
    provider: AuthProvider = Depends(get_auth_provider),
) -> Response:
    """
    Accept a token issued by the hosted auth service (e.g. a magic link). The
    user behind it is looked up on the next page load. The development
    provider issues no such tokens, so the callback is closed when it is active.
    """
    if not access_token or not provider.accepts_external_tokens:
        if access_token:
            logger.warning("Ignoring callback token: auth provider does not accept external tokens")
        return RedirectResponse(AUTH_PATH, status_code=status.HTTP_303_SEE_OTHER)
    store_session(request.session, None, access_token)
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


# PUBLIC_INTERFACE
@router.post("/auth/signout", summary="Sign out")
def sign_out(request: Request) -> Response:
    clear_session(request.session)
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
