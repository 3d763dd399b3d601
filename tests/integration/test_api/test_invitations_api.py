"""Integration tests for invitation preview and redemption endpoints."""

from datetime import timedelta

from httpx import AsyncClient

from tests.conftest import EMPLOYEE_PASSWORD
from worktrack_api.core.clock import utc_now
from worktrack_api.models.user import User
from worktrack_api.services.invitation_service import InvitationManager, IssuedInvitation
from worktrack_api.services.user_directory import UserDirectory


async def _invite(directory: UserDirectory, user: User) -> IssuedInvitation:
    return await InvitationManager(directory).issue_invitation(user.id)


class TestPreview:
    async def test_valid_token(self, client: AsyncClient, directory: UserDirectory, employee_user: User) -> None:
        issued = await _invite(directory, employee_user)

        resp = await client.get(f"/api/invitation/{issued.invitation_token}")
        assert resp.status_code == 200
        assert resp.json() == {
            "valid": True,
            "user": {"id": employee_user.id, "username": "bob", "email": "bob@example.com", "fullName": "Bob Builder"},
        }

    async def test_unknown_token(self, client: AsyncClient) -> None:
        resp = await client.get(f"/api/invitation/{'0' * 64}")
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid or expired invitation"}

    async def test_expired_token_same_error(
        self, client: AsyncClient, directory: UserDirectory, employee_user: User
    ) -> None:
        issued = await _invite(directory, employee_user)
        await directory.update(employee_user.id, invitation_expires=utc_now() - timedelta(minutes=1))

        resp = await client.get(f"/api/invitation/{issued.invitation_token}")
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid or expired invitation"}


class TestRedeem:
    async def test_redeem_sets_password_and_logs_in(
        self, client: AsyncClient, directory: UserDirectory, employee_user: User
    ) -> None:
        issued = await _invite(directory, employee_user)

        resp = await client.post(f"/api/invitation/{issued.invitation_token}", json={"newPassword": "my-own-password"})
        assert resp.status_code == 200
        assert resp.json()["needsPasswordChange"] is False
        assert "worktrack_session" in resp.headers["set-cookie"]

        me = await client.get("/api/user")
        assert me.status_code == 200
        assert me.json()["username"] == "bob"
        assert me.json()["needsPasswordChange"] is False

    async def test_token_is_single_use(
        self, client: AsyncClient, directory: UserDirectory, employee_user: User
    ) -> None:
        issued = await _invite(directory, employee_user)
        url = f"/api/invitation/{issued.invitation_token}"

        first = await client.post(url, json={"newPassword": "my-own-password"})
        second = await client.post(url, json={"newPassword": "another-password"})
        preview = await client.get(url)

        assert first.status_code == 200
        assert second.status_code == 400
        assert preview.status_code == 400

    async def test_short_password_leaves_invitation_open(
        self, client: AsyncClient, directory: UserDirectory, employee_user: User
    ) -> None:
        issued = await _invite(directory, employee_user)
        url = f"/api/invitation/{issued.invitation_token}"

        resp = await client.post(url, json={"newPassword": "short"})
        assert resp.status_code == 400
        assert (await client.get(url)).status_code == 200

    async def test_unknown_token(self, client: AsyncClient, employee_user: User) -> None:
        resp = await client.post(f"/api/invitation/{'f' * 64}", json={"newPassword": "my-own-password"})
        assert resp.status_code == 400

        login = await client.post("/api/login", json={"identifier": "bob", "secret": EMPLOYEE_PASSWORD})
        assert login.status_code == 200
