"""User endpoints: profile and session cookies."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from app.core.auth import get_current_user
from app.core.config import settings
from app.core.dependencies import get_user_service
from app.core.exceptions import AppError
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse
from app.services.user_service import UserService
from app.utils.logging import get_logger
from app.utils.responses import create_api_response, http_error_from

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/whoami",
    response_model=ApiResponse,
    summary="Get current user profile",
    description="Get the current authenticated user's profile information",
    operation_id="get_current_user_profile",
)
async def get_current_user_profile(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse:
    """Get current user profile.

    The local user record is created on first sight of the token subject.
    """
    try:
        profile = await user_service.get_current_user_profile(current_user)
    except AppError as e:
        raise http_error_from(e, request) from e

    LOGGER.info("User profile retrieved successfully")
    return create_api_response(
        data=profile,
        message="User profile retrieved successfully",
        request=request,
    )


@router.post(
    "/logout",
    response_model=ApiResponse,
    summary="Log out",
    description="Clear the access and refresh token cookies",
    operation_id="logout_user",
)
async def logout(
    request: Request,
    response: Response,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse:
    response.delete_cookie(settings.auth.access_token_cookie, path="/")
    response.delete_cookie(settings.auth.refresh_token_cookie, path="/")

    LOGGER.info(f"User {current_user.id} logged out")
    return create_api_response(data=None, message="Logged out successfully", request=request)
