"""
Repository for call database operations.
"""

from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from second_brain.calls.models import Call, CallStatus, CallType


class CallRepository:
    """Repository for call database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def get_by_id(self, call_id: int) -> Call | None:
        stmt = select(Call).where(Call.id == call_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_provider_call_id(self, provider_call_id: str) -> Call | None:
        """Get call by provider call identifier (e.g., Twilio CallSid)."""
        stmt = select(Call).where(Call.provider_call_id == provider_call_id)
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def list_by_user(self, user_id: int, limit: int | None = None) -> Sequence[Call]:
        """Get a user's calls, newest first."""
        stmt = (
            select(Call)
            .where(Call.user_id == user_id)
            .order_by(Call.created_at.desc(), Call.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def create(
        self,
        user_id: int,
        call_type: CallType,
        status: CallStatus,
        provider_call_id: str | None = None,
        started_at: datetime | None = None,
    ) -> Call:
        """Create a new call record.

        Args:
            user_id: Owner of the call.
            call_type: Incoming or outgoing.
            status: Initial call status.
            provider_call_id: Provider identifier, when already known.
            started_at: Start time; defaults to now.

        Returns:
            Created Call instance.
        """
        call = Call(
            user_id=user_id,
            type=call_type.value,
            status=status.value,
            provider_call_id=provider_call_id,
            started_at=started_at or datetime.now(timezone.utc),
        )
        self._session.add(call)
        await self._session.flush()
        await self._session.refresh(call)
        return call

    async def update(
        self,
        call_id: int,
        status: CallStatus | None = None,
        provider_call_id: str | None = None,
        duration: int | None = None,
        ended_at: datetime | None = None,
    ) -> Call | None:
        """Update call fields; None arguments keep the stored value.

        Returns:
            Updated Call, or None if not found.
        """
        call = await self.get_by_id(call_id)
        if call is None:
            return None

        if status is not None:
            call.status = status.value
        if provider_call_id is not None:
            call.provider_call_id = provider_call_id
        if duration is not None:
            call.duration = duration
        if ended_at is not None:
            call.ended_at = ended_at

        await self._session.flush()
        await self._session.refresh(call)
        return call

    async def delete(self, call_id: int) -> bool:
        call = await self.get_by_id(call_id)
        if call is None:
            return False
        await self._session.delete(call)
        await self._session.flush()
        return True
