"""
Auth API endpoints.

Session cookie issue/inspect/clear, plus sign-in, sign-up and sign-out
through the active provider.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.dependencies import get_factory, get_session_service
from api.middleware.auth import get_optional_session
from providers.factory import DatabaseClientFactory
from shared.config import get_settings
from shared.exceptions import AuthError, ValidationError
from shared.models import ActionResult, AuthResult

from .interfaces import ISessionService
from .models import CreateSessionRequest, SessionData, SignInRequest, SignUpRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_session_cookie(response: Response, token: str, max_age: int) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(get_settings().session_cookie_name, path="/")


def _open_session(
    response: Response,
    result: AuthResult,
    sessions: ISessionService,
    message: str,
) -> ActionResult:
    if result.error is not None:
        raise result.error
    # No provider session when sign-up awaits email confirmation
    provider_token = (result.session or {}).get("access_token")
    if provider_token:
        token = sessions.create_session(provider_token)
        _set_session_cookie(response, token, get_settings().session_expires_in)
    return ActionResult(
        status="success",
        message=message,
        data=result.user.model_dump(by_alias=True, mode="json") if result.user else None,
    )


@router.post("/session", response_model=ActionResult)
async def create_session(
    request: CreateSessionRequest,
    response: Response,
    sessions: ISessionService = Depends(get_session_service),
) -> ActionResult:
    """Wrap a provider ID token obtained client-side into a session cookie."""
    if not request.id_token:
        raise ValidationError("ID token is required.", code="MISSING_ID_TOKEN")

    token = sessions.create_session(request.id_token)
    _set_session_cookie(response, token, get_settings().session_expires_in)
    return ActionResult(status="success", message="Session created.")


@router.get("/session")
async def get_session(
    request: Request,
    sessions: ISessionService = Depends(get_session_service),
) -> Any:
    """
    Report the current session.

    An invalid or expired cookie is cleared on the way out.
    """
    token: Optional[str] = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        return JSONResponse(
            status_code=401,
            content={"status": "error", "message": "No session found", "code": "MISSING_SESSION"},
        )

    session = sessions.validate_session(token)
    if session is None:
        expired = JSONResponse(
            status_code=401,
            content={"status": "error", "message": "Invalid or expired session", "code": "INVALID_SESSION"},
        )
        _clear_session_cookie(expired)
        return expired

    try:
        user = sessions.resolve_user(token)
        user_data: Optional[dict[str, Any]] = user.model_dump()
    except AuthError:
        user_data = None

    return {
        "status": "success",
        "user": user_data,
        "issuedAt": session.issued_at,
        "expiresAt": session.expires_at,
    }


@router.delete("/session", response_model=ActionResult)
async def delete_session(response: Response) -> ActionResult:
    _clear_session_cookie(response)
    return ActionResult(status="success", message="Session deleted.")


@router.post("/sign-in", response_model=ActionResult)
async def sign_in(
    request: SignInRequest,
    response: Response,
    factory: DatabaseClientFactory = Depends(get_factory),
    sessions: ISessionService = Depends(get_session_service),
) -> ActionResult:
    """Sign in with email and password and open a session."""
    result = await factory.get().auth.sign_in(request.email, request.password)
    if result.error is not None:
        logger.info("Sign-in failed for %s: %s", request.email, result.error)
    return _open_session(response, result, sessions, "Signed in.")


@router.post("/sign-up", response_model=ActionResult, status_code=201)
async def sign_up(
    request: SignUpRequest,
    response: Response,
    factory: DatabaseClientFactory = Depends(get_factory),
    sessions: ISessionService = Depends(get_session_service),
) -> ActionResult:
    """Create an account with its profile and open a session."""
    metadata = dict(request.metadata)
    if request.name:
        metadata["name"] = request.name

    result = await factory.get().auth.sign_up(request.email, request.password, metadata)
    if result.ok:
        logger.info("New account %s", result.user.id)
    return _open_session(response, result, sessions, "Account created.")


@router.post("/sign-out", response_model=ActionResult)
async def sign_out(
    response: Response,
    session: Optional[SessionData] = Depends(get_optional_session),
    factory: DatabaseClientFactory = Depends(get_factory),
) -> ActionResult:
    """
    End the caller's own session and drop the cookie.

    Without a valid session only the cookie is cleared.
    """
    if session is not None:
        await factory.get().auth.sign_out(session.token)
    _clear_session_cookie(response)
    return ActionResult(status="success", message="Signed out.")
