"""Tests for invitation email delivery."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from worktrack_api.core.config import Settings
from worktrack_api.models.user import User
from worktrack_api.services.email_service import InvitationMailer
from worktrack_api.services.errors import DeliveryFailureError

TOKEN = "ab" * 32


@pytest.fixture
def invitee() -> User:
    return User(id=7, username="alice", email="alice@x.com", full_name="Alice <A>", role="employee")


@pytest.fixture
def smtp_settings(settings: Settings) -> Settings:
    return settings.model_copy(
        update={
            "smtp_enabled": True,
            "smtp_username": "mailer",
            "smtp_password": "mailer-password",
            "invitation_base_url": "https://worktrack.example.com",
        }
    )


class TestBuildMessage:
    def test_headers(self, smtp_settings: Settings, invitee: User) -> None:
        msg = InvitationMailer(smtp_settings).build_message(invitee, "temp-pass-123", TOKEN)
        assert msg["To"] == "alice@x.com"
        assert msg["From"] == smtp_settings.smtp_from
        assert msg["Subject"] == "Your WorkTrack invitation"

    def test_body_carries_credentials_and_link(self, smtp_settings: Settings, invitee: User) -> None:
        msg = InvitationMailer(smtp_settings).build_message(invitee, "temp-pass-123", TOKEN)
        plain, html = (part.get_payload(decode=True).decode() for part in msg.get_payload())

        link = f"https://worktrack.example.com/invitation/{TOKEN}"
        assert "temp-pass-123" in plain
        assert link in plain
        assert "24 hours" in plain
        assert link in html

    def test_html_is_escaped(self, smtp_settings: Settings, invitee: User) -> None:
        msg = InvitationMailer(smtp_settings).build_message(invitee, "temp-pass-123", TOKEN)
        html = msg.get_payload()[1].get_payload(decode=True).decode()
        assert "Alice &lt;A&gt;" in html
        assert "Alice <A>" not in html


class TestSendInvitation:
    async def test_disabled_smtp_does_not_connect(self, settings: Settings, invitee: User) -> None:
        with patch("worktrack_api.services.email_service.smtplib.SMTP") as mock_smtp:
            await InvitationMailer(settings).send_invitation(invitee, "temp-pass-123", TOKEN)
        mock_smtp.assert_not_called()

    async def test_sends_over_smtp(self, smtp_settings: Settings, invitee: User) -> None:
        server = MagicMock()
        with patch("worktrack_api.services.email_service.smtplib.SMTP") as mock_smtp:
            mock_smtp.return_value.__enter__.return_value = server
            await InvitationMailer(smtp_settings).send_invitation(invitee, "temp-pass-123", TOKEN)

        mock_smtp.assert_called_once_with("localhost", 587, timeout=10.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "mailer-password")
        server.send_message.assert_called_once()

    async def test_smtp_error_raises_delivery_failure(self, smtp_settings: Settings, invitee: User) -> None:
        with patch(
            "worktrack_api.services.email_service.smtplib.SMTP",
            side_effect=smtplib.SMTPException("relay refused"),
        ):
            with pytest.raises(DeliveryFailureError, match="could not be delivered"):
                await InvitationMailer(smtp_settings).send_invitation(invitee, "temp-pass-123", TOKEN)

    async def test_connection_error_raises_delivery_failure(self, smtp_settings: Settings, invitee: User) -> None:
        with patch(
            "worktrack_api.services.email_service.smtplib.SMTP",
            side_effect=ConnectionRefusedError(),
        ):
            with pytest.raises(DeliveryFailureError):
                await InvitationMailer(smtp_settings).send_invitation(invitee, "temp-pass-123", TOKEN)
