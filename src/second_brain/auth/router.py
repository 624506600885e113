"""
Authentication API endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from second_brain.auth.dependencies import CurrentUser, get_auth_service
from second_brain.auth.schemas import (
    ProfileResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    SendVerificationRequest,
    SendVerificationResponse,
    UpdateProfileRequest,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from second_brain.auth.service import AuthService
from second_brain.shared.exceptions import AuthenticationError, UserNotFoundError, ValidationError
from second_brain.shared.schemas import SuccessResponse
from second_brain.users.schemas import UserProfile

router = APIRouter(prefix="/api/auth", tags=["auth"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


@router.post("/send-verification", response_model=SendVerificationResponse)
async def send_verification(
    body: SendVerificationRequest,
    service: AuthServiceDep,
) -> SendVerificationResponse:
    """Send a one-time code to the given phone number."""
    if not body.phone_number:
        raise ValidationError("Phone number is required")

    verification_id = await service.send_verification(body.phone_number)
    return SendVerificationResponse(verification_id=verification_id)


@router.post("/verify-code", response_model=VerifyCodeResponse)
async def verify_code(
    body: VerifyCodeRequest,
    service: AuthServiceDep,
) -> VerifyCodeResponse:
    """Confirm a one-time code and open a session.

    Returns the user profile and a fresh access/refresh token pair.
    """
    if not body.phone_number or not body.code:
        raise ValidationError("Phone number and code are required")

    result = await service.verify_code(body.phone_number, body.code)
    return VerifyCodeResponse(
        user=UserProfile.model_validate(result.user),
        access_token=result.access_token,
        refresh_token=result.refresh_token,
    )


@router.post("/refresh-token", response_model=RefreshTokenResponse)
async def refresh_token(
    body: RefreshTokenRequest,
    service: AuthServiceDep,
) -> RefreshTokenResponse:
    if not body.refresh_token:
        raise ValidationError("Refresh token is required")

    access_token = await service.refresh_access_token(body.refresh_token)
    return RefreshTokenResponse(access_token=access_token)


async def _current_profile(service: AuthService, user_id: int) -> UserProfile:
    # A valid token whose user is gone is treated as an authentication failure.
    try:
        user = await service.get_profile(user_id)
    except UserNotFoundError as e:
        raise AuthenticationError("User not found") from e
    return UserProfile.model_validate(user)


@router.get("/me", response_model=ProfileResponse)
async def get_me(current_user: CurrentUser, service: AuthServiceDep) -> ProfileResponse:
    """Get the authenticated user's profile."""
    return ProfileResponse(user=await _current_profile(service, current_user.user_id))


@router.patch("/me", response_model=ProfileResponse)
async def update_me(
    body: UpdateProfileRequest,
    current_user: CurrentUser,
    service: AuthServiceDep,
) -> ProfileResponse:
    if not body.name or not body.name.strip():
        raise ValidationError("Name is required")

    await _current_profile(service, current_user.user_id)
    user = await service.update_profile(current_user.user_id, name=body.name.strip())
    return ProfileResponse(user=UserProfile.model_validate(user))


@router.delete("/me", response_model=SuccessResponse)
async def delete_me(current_user: CurrentUser, service: AuthServiceDep) -> SuccessResponse:
    """Delete the account and everything it owns."""
    try:
        await service.delete_account(current_user.user_id)
    except UserNotFoundError as e:
        raise AuthenticationError("User not found") from e
    return SuccessResponse()


@router.post("/logout", response_model=SuccessResponse)
async def logout(current_user: CurrentUser, service: AuthServiceDep) -> SuccessResponse:
    """Revoke the stored refresh token."""
    await service.logout(current_user.user_id)
    return SuccessResponse()
