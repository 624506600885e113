"""
Repository for user database operations.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.users.models import User


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def get_by_id(self, user_id: int) -> User | None:
        """Get user by ID.

        Args:
            user_id: User primary key.

        Returns:
            User if found, None otherwise.
        """
        stmt = select(User).where(User.id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_phone_number(self, phone_number: str) -> User | None:
        """Get user by normalized phone number."""
        stmt = select(User).where(User.phone_number == phone_number)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, phone_number: str, name: str | None = None) -> User:
        """Create a new user.

        Args:
            phone_number: Normalized phone number.
            name: Optional display name.

        Returns:
            Created User instance.
        """
        user = User(phone_number=phone_number, name=name)
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def update(
        self,
        user_id: int,
        phone_number: str | None = None,
        name: str | None = None,
    ) -> User | None:
        """Update user fields; arguments left as None keep their stored value.

        Returns:
            Updated User, or None if the user does not exist.
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return None

        if phone_number is not None:
            user.phone_number = phone_number
        if name is not None:
            user.name = name

        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def delete(self, user_id: int) -> bool:
        """Delete a user and, through cascading keys, everything they own.

        Returns:
            True if a user was deleted.
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return False
        await self._session.delete(user)
        await self._session.flush()
        return True
