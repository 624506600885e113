"""
Repository for per-user authentication records.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.auth.models import AuthRecord


class AuthRepository:
    """Repository for auth record database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_user_id(self, user_id: int) -> AuthRecord | None:
        stmt = (
            select(AuthRecord)
            .where(AuthRecord.user_id == user_id)
            .order_by(AuthRecord.id.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_verification_id(self, verification_id: str) -> AuthRecord | None:
        stmt = select(AuthRecord).where(AuthRecord.verification_id == verification_id)
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_by_refresh_token(self, refresh_token: str) -> AuthRecord | None:
        """Get the auth record holding exactly this refresh token."""
        stmt = select(AuthRecord).where(AuthRecord.refresh_token == refresh_token)
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def create(
        self,
        user_id: int,
        verification_id: str | None = None,
        refresh_token: str | None = None,
    ) -> AuthRecord:
        record = AuthRecord(
            user_id=user_id,
            verification_id=verification_id,
            refresh_token=refresh_token,
        )
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        return record

    async def update(
        self,
        record_id: int,
        verification_id: str | None = None,
        refresh_token: str | None = None,
    ) -> AuthRecord | None:
        """Update an auth record; None arguments keep the stored value."""
        record = await self._session.get(AuthRecord, record_id)
        if record is None:
            return None

        if verification_id is not None:
            record.verification_id = verification_id
        if refresh_token is not None:
            record.refresh_token = refresh_token

        await self._session.flush()
        await self._session.refresh(record)
        return record

    async def upsert(
        self,
        user_id: int,
        verification_id: str | None = None,
        refresh_token: str | None = None,
    ) -> AuthRecord:
        """Update the user's auth record, creating it on first use.

        Not atomic across concurrent callers: two first-time writers may both
        create a row. Reads always pick the newest one, so the last write wins.
        """
        existing = await self.get_by_user_id(user_id)
        if existing is None:
            return await self.create(
                user_id,
                verification_id=verification_id,
                refresh_token=refresh_token,
            )
        updated = await self.update(
            existing.id,
            verification_id=verification_id,
            refresh_token=refresh_token,
        )
        assert updated is not None
        return updated

    async def revoke_refresh_token(self, user_id: int) -> bool:
        """Clear the stored refresh token of a user.

        Returns:
            True if a token was cleared.
        """
        record = await self.get_by_user_id(user_id)
        if record is None or record.refresh_token is None:
            return False
        record.refresh_token = None
        await self._session.flush()
        return True

    async def delete(self, record_id: int) -> bool:
        record = await self._session.get(AuthRecord, record_id)
        if record is None:
            return False
        await self._session.delete(record)
        await self._session.flush()
        return True
