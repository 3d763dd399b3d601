"""User directory: lookup and mutation of user records.

Every mutation is a single commit, so a reader never observes a
partially applied update.  Lookups are case-sensitive exact matches.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack_api.models.user import User

_MUTABLE_FIELDS: frozenset[str] = frozenset(
    {
        "email",
        "full_name",
        "role",
        "password",
        "needs_password_change",
        "invitation_token",
        "invitation_expires",
        "invitation_sent",
        "last_login_at",
    }
)


class UserDirectory:
    """Async repository over the ``users`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, user_id: int) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        return await self._first(User.username == username)

    async def get_by_email(self, email: str) -> User | None:
        return await self._first(User.email == email)

    async def get_by_invitation_token(self, token: str) -> User | None:
        if not token:
            return None
        return await self._first(User.invitation_token == token)

    async def list_users(self) -> list[User]:
        result = await self.session.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def create(self, **fields: Any) -> User:
        """Insert a new user.

        The caller supplies ``password`` already hashed.

        Returns:
            The persisted User with its assigned id.
        """
        user = User(**fields)
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def update(self, user_id: int, **fields: Any) -> User | None:
        """Merge ``fields`` into the stored user and commit once.

        Args:
            user_id: Id of the user to update.
            **fields: Column values to set.

        Returns:
            The updated User, or None if no user has that id.

        Raises:
            ValueError: If a field is not a mutable user attribute.
        """
        _check_mutable(fields)

        user = await self.get_by_id(user_id)
        if user is None:
            return None
        for field, value in fields.items():
            setattr(user, field, value)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def consume_invitation(self, user_id: int, token: str, now: datetime, **fields: Any) -> User | None:
        """Apply ``fields`` and clear the invitation, if ``token`` is still live.

        Matching the token, checking its expiry and writing happen in one
        conditional UPDATE, so of several concurrent callers holding the same
        token at most one succeeds.  A token superseded by a re-issue no
        longer matches.

        Returns:
            The updated User, or None if the token no longer belongs to a
            live invitation of this user.

        Raises:
            ValueError: If a field is not a mutable user attribute.
        """
        _check_mutable(fields)
        if not token:
            return None

        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.invitation_token == token,
                User.invitation_expires > now,
            )
            .values(**fields, invitation_token=None, invitation_expires=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        if result.rowcount != 1:
            return None

        user = await self.get_by_id(user_id)
        if user is not None:
            await self.session.refresh(user)
        return user

    async def _first(self, *criteria: Any) -> User | None:
        result = await self.session.execute(select(User).where(*criteria))
        return result.scalar_one_or_none()


def _check_mutable(fields: dict[str, Any]) -> None:
    unknown = set(fields) - _MUTABLE_FIELDS
    if unknown:
        msg = f"Cannot update user fields: {', '.join(sorted(unknown))}"
        raise ValueError(msg)
