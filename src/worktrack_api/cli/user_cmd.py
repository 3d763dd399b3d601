"""User management CLI commands."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer

from worktrack_api.services.user_directory import UserDirectory

user_app = typer.Typer()

T = TypeVar("T")


async def _with_directory(action: Callable[[UserDirectory], Awaitable[T]]) -> T:
    """Run ``action`` against a user directory bound to a fresh engine."""
    from worktrack_api.core.config import get_settings
    from worktrack_api.core.database import dispose_engine, get_session_factory, init_engine

    settings = get_settings()
    init_engine(settings.database_url)
    try:
        factory = get_session_factory()
        async with factory() as session:
            return await action(UserDirectory(session))
    finally:
        await dispose_engine()


@user_app.command("create")
def create_user(
    username: str = typer.Option(..., prompt=True, help="Username"),
    email: str = typer.Option(..., prompt=True, help="Email address"),
    full_name: str = typer.Option(..., "--full-name", prompt=True, help="Full name"),
    role: str = typer.Option("employee", prompt=True, help="User role (employee/admin)"),
    password: str | None = typer.Option(
        None,
        help="Initial password (a temporary password is generated when omitted)",
    ),
    if_not_exists: bool = typer.Option(
        False,
        "--if-not-exists",
        help="Exit successfully if user already exists (idempotent mode)",
    ),
) -> None:
    """Create a user; the user must change the password at first login."""
    asyncio.run(_create_user(username, email, full_name, role, password, if_not_exists=if_not_exists))


async def _create_user(
    username: str,
    email: str,
    full_name: str,
    role: str,
    password: str | None,
    *,
    if_not_exists: bool = False,
) -> None:
    """Async implementation of user creation."""
    from pydantic import TypeAdapter, ValidationError

    from worktrack_api.schemas.auth import PASSWORD_MIN_LENGTH, NewPassword, UserCreateRequest
    from worktrack_api.services.auth_service import Authenticator
    from worktrack_api.services.errors import DuplicateUserError

    try:
        request = UserCreateRequest(username=username, email=email, full_name=full_name, role=role)
    except ValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    if password is not None:
        try:
            TypeAdapter(NewPassword).validate_python(password)
        except ValidationError as e:
            typer.echo(f"Error: password must be at least {PASSWORD_MIN_LENGTH} characters", err=True)
            raise typer.Exit(code=1) from e

    try:
        created = await _with_directory(lambda d: Authenticator(d).create_user(request, password=password))
    except DuplicateUserError as e:
        if if_not_exists:
            typer.echo(f"User '{username}' already exists, skipping (--if-not-exists)")
            return
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    typer.echo(f"User '{created.user.username}' created with role '{created.user.role}' (id {created.user.id})")
    if created.temporary_password is not None:
        typer.echo(f"Temporary password: {created.temporary_password}")


@user_app.command("list")
def list_users() -> None:
    """List all users."""
    users = asyncio.run(_with_directory(lambda d: d.list_users()))
    typer.echo(f"{'ID':<6} {'Username':<20} {'Email':<30} {'Role':<10} {'Must change':<12}")
    typer.echo("-" * 80)
    for user in users:
        typer.echo(
            f"{user.id:<6} {user.username:<20} {user.email:<30} {user.role:<10} {user.needs_password_change!s:<12}"
        )
    typer.echo(f"\nTotal: {len(users)}")


@user_app.command("reset-password")
def reset_password(
    user_id: int = typer.Argument(..., help="Id of the user to reset"),
) -> None:
    """Replace a user's password with a new temporary one."""
    from worktrack_api.services.auth_service import Authenticator
    from worktrack_api.services.errors import UserNotFoundError

    try:
        reset = asyncio.run(_with_directory(lambda d: Authenticator(d).reset_password(user_id)))
    except UserNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(f"Temporary password for '{reset.user.username}': {reset.temporary_password}")


@user_app.command("invite")
def invite_user(
    user_id: int = typer.Argument(..., help="Id of the user to invite"),
) -> None:
    """Issue an invitation and email it to the user."""
    asyncio.run(_invite_user(user_id))


async def _invite_user(user_id: int) -> None:
    """Async implementation of invitation issuance."""
    from worktrack_api.core.config import get_settings
    from worktrack_api.services.email_service import InvitationMailer
    from worktrack_api.services.errors import DeliveryFailureError, UserNotFoundError
    from worktrack_api.services.invitation_service import InvitationManager

    settings = get_settings()
    try:
        issued = await _with_directory(
            lambda d: InvitationManager(d, validity_hours=settings.invitation_validity_hours).issue_invitation(user_id)
        )
    except UserNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    mailer = InvitationMailer(settings)
    typer.echo(f"Invitation link: {mailer.invitation_link(issued.invitation_token)}")
    typer.echo(f"Temporary password: {issued.temporary_password}")
    try:
        await mailer.send_invitation(issued.user, issued.temporary_password, issued.invitation_token)
    except DeliveryFailureError as e:
        typer.echo(f"Warning: {e.message}; relay the credentials above manually", err=True)
        raise typer.Exit(code=1) from e
