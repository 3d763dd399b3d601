"""User model: identity, credentials, and invitation state."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, false, func, true
from sqlalchemy.orm import Mapped, mapped_column

from worktrack_api.models.base import Base

ROLE_EMPLOYEE = "employee"
ROLE_ADMIN = "admin"
ROLES: tuple[str, ...] = (ROLE_EMPLOYEE, ROLE_ADMIN)


class User(Base):
    """An employee or administrator account.

    ``password`` only ever holds a salted hash.  The invitation columns
    describe at most one live invitation; issuing a new one overwrites them.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_EMPLOYEE, server_default=ROLE_EMPLOYEE)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    needs_password_change: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    invitation_token: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True, index=True)
    invitation_expires: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    invitation_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
