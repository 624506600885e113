"""
Pydantic schemas for user profiles.
"""

from second_brain.shared.schemas import CamelModel


class UserProfile(CamelModel):
    """Public view of a user."""

    id: int
    phone_number: str
    name: str | None = None
