from typing import Optional

from fastapi import APIRouter, Body, Cookie, Depends, Response
from fastapi.responses import JSONResponse

from learnhub.auth import service as auth_service
from learnhub.auth.dependencies import get_current_user
from learnhub.auth.errors import InvalidOrExpiredRefreshToken
from learnhub.auth.models import AuthenticatedUser
from learnhub.models import (
    LoginRequest,
    PasswordResetRequest,
    RefreshTokenBody,
    SignupRequest,
)
from learnhub.settings import settings
from learnhub.utils.dates import utc_now
from learnhub.utils.logging import logger
from learnhub.utils.response import error_response, success_response

router = APIRouter()


def _set_refresh_cookie(response: Response, token: str, expires_at) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=token,
        max_age=max(int((expires_at - utc_now()).total_seconds()), 0),
        path=settings.refresh_cookie_path,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path=settings.refresh_cookie_path,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def _refresh_token_from_request(
    cookie_token: Optional[str], body: Optional[RefreshTokenBody]
) -> Optional[str]:
    if cookie_token:
        return cookie_token
    if body and body.refresh_token:
        return body.refresh_token
    return None


def _session_payload(result: auth_service.AuthResult) -> dict:
    return {
        "user": result.user,
        "accessToken": result.tokens.access_token,
        "expiresIn": result.tokens.expires_in,
    }


@router.post("/signup")
async def signup(data: SignupRequest) -> JSONResponse:
    """Create an identity and open its first session."""
    result = await auth_service.signup(data)

    response = success_response(
        _session_payload(result), "Account created successfully", status_code=201
    )
    _set_refresh_cookie(
        response, result.tokens.refresh_token, result.tokens.refresh_expires_at
    )
    return response


@router.post("/login")
async def login(data: LoginRequest) -> JSONResponse:
    result = await auth_service.login(data.email, data.password)

    response = success_response(_session_payload(result), "Login successful")
    _set_refresh_cookie(
        response, result.tokens.refresh_token, result.tokens.refresh_expires_at
    )
    return response


@router.post("/refresh")
async def refresh(
    body: Optional[RefreshTokenBody] = Body(None),
    refresh_cookie: Optional[str] = Cookie(None, alias=settings.refresh_cookie_name),
) -> JSONResponse:
    """Exchange a refresh token for a new access token and a rotated refresh token."""
    refresh_token = _refresh_token_from_request(refresh_cookie, body)
    if not refresh_token:
        raise InvalidOrExpiredRefreshToken(
            "Refresh token is required", reason="no refresh token presented"
        )

    try:
        result = await auth_service.refresh_tokens(refresh_token)
    except InvalidOrExpiredRefreshToken as e:
        logger.info(f"Refresh rejected, clearing cookie: {e.reason}")
        response = error_response(e.detail, e.status_code, e.error)
        _clear_refresh_cookie(response)
        return response

    response = success_response(
        {
            "accessToken": result.access.access_token,
            "expiresIn": result.access.expires_in,
        },
        "Token refreshed",
    )
    _set_refresh_cookie(response, result.refresh.token, result.refresh.expires_at)
    return response


@router.post("/logout")
async def logout(
    body: Optional[RefreshTokenBody] = Body(None),
    refresh_cookie: Optional[str] = Cookie(None, alias=settings.refresh_cookie_name),
) -> JSONResponse:
    await auth_service.logout(_refresh_token_from_request(refresh_cookie, body))

    response = success_response(None, "Logged out successfully")
    _clear_refresh_cookie(response)
    return response


@router.get("/me")
async def me(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> JSONResponse:
    user = await auth_service.get_current_user(current_user.id)
    return success_response({"user": user}, "User retrieved")


@router.post("/password-reset/request")
async def request_password_reset(data: PasswordResetRequest) -> JSONResponse:
    message = await auth_service.request_password_reset(data.email)
    return success_response({"message": message}, "Password reset request processed")
