"""
Pydantic schemas for authentication endpoints.

Request fields are optional at the schema level so a missing field surfaces
as the API's own 400 ``VALIDATION_ERROR`` with a readable message.
"""

from pydantic import Field

from second_brain.shared.schemas import CamelModel, SuccessResponse
from second_brain.users.schemas import UserProfile


class SendVerificationRequest(CamelModel):
    phone_number: str | None = Field(default=None, description="Phone number in any common format")


class SendVerificationResponse(SuccessResponse):
    verification_id: str


class VerifyCodeRequest(CamelModel):
    phone_number: str | None = None
    code: str | None = None


class VerifyCodeResponse(SuccessResponse):
    user: UserProfile
    access_token: str
    refresh_token: str


class RefreshTokenRequest(CamelModel):
    refresh_token: str | None = None


class RefreshTokenResponse(SuccessResponse):
    access_token: str


class UpdateProfileRequest(CamelModel):
    name: str | None = Field(default=None, max_length=100)


class ProfileResponse(SuccessResponse):
    user: UserProfile
