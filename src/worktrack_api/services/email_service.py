"""Invitation email delivery over SMTP.

The blocking ``smtplib`` exchange runs on a worker thread.  When SMTP is
disabled the delivery is only recorded in the log (recipient and user id,
never the credentials) and reported as sent.
"""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from loguru import logger

from worktrack_api.core.config import Settings
from worktrack_api.models.user import User
from worktrack_api.services.errors import DeliveryFailureError

_SUBJECT = "Your WorkTrack invitation"


class InvitationMailer:
    """Sends invitation emails carrying the temporary password and link."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def invitation_link(self, invitation_token: str) -> str:
        return f"{self.settings.invitation_base_url}/invitation/{invitation_token}"

    def build_message(self, user: User, temporary_password: str, invitation_token: str) -> MIMEMultipart:
        """Build the multipart (plain + HTML) invitation message."""
        link = self.invitation_link(invitation_token)
        hours = self.settings.invitation_validity_hours

        msg = MIMEMultipart("alternative")
        msg["Subject"] = _SUBJECT
        msg["From"] = self.settings.smtp_from
        msg["To"] = user.email

        text_content = f"""Hello {user.full_name},

You have been invited to WorkTrack.

Username: {user.username}
Temporary password: {temporary_password}

To sign in and choose your own password, open:
{link}

The temporary password and the invitation link expire in {hours} hours.
You will be asked to change your password at first login.
"""
        html_content = f"""<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>WorkTrack invitation</h2>
  <p>Hello {escape(user.full_name)},</p>
  <p>You have been invited to WorkTrack.</p>
  <p><strong>Username:</strong> {escape(user.username)}<br>
     <strong>Temporary password:</strong> {escape(temporary_password)}</p>
  <p><a href="{escape(link)}">Accept the invitation</a></p>
  <p style="color: #666; font-size: 14px;">The temporary password and the invitation link expire in
     {hours} hours. You will be asked to change your password at first login.</p>
</div>
"""
        msg.attach(MIMEText(text_content, "plain"))
        msg.attach(MIMEText(html_content, "html"))
        return msg

    async def send_invitation(self, user: User, temporary_password: str, invitation_token: str) -> None:
        """Deliver the invitation to ``user.email``.

        Raises:
            DeliveryFailureError: If the SMTP exchange fails.
        """
        if not self.settings.smtp_enabled:
            logger.info(f"SMTP disabled; invitation email for user {user.id} to {user.email} not sent")
            return

        msg = self.build_message(user, temporary_password, invitation_token)
        try:
            await asyncio.to_thread(self._send_smtp, msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"Failed to send invitation email for user {user.id}: {exc}")
            msg_text = "Invitation email could not be delivered"
            raise DeliveryFailureError(msg_text) from exc
        logger.info(f"Invitation email sent for user {user.id} to {user.email}")

    def _send_smtp(self, msg: MIMEMultipart) -> None:
        """Send via SMTP (blocking)."""
        s = self.settings
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout) as server:
            if s.smtp_use_tls:
                server.starttls()
            if s.smtp_username and s.smtp_password:
                server.login(s.smtp_username, s.smtp_password)
            server.send_message(msg)
