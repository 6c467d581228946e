"""
Email Service for AlumNet
=========================
Handles all outgoing email:
- Signup verification OTP
- Password reset OTP
- Admin broadcasts to selected users

Supports both SMTP (aiosmtplib) and SendGrid.
"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Optional, List, Dict, Any
from datetime import datetime
import asyncio

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content

from alumnet.core.config import settings
from alumnet.core.logging_config import logger


class EmailService:
    """Async email service using SMTP or SendGrid"""

    # Pause between messages of a bulk send
    bulk_delay_seconds = 0.1

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL
        self.sendgrid_api_key = settings.SENDGRID_API_KEY
        self.use_sendgrid = settings.USE_SENDGRID and bool(self.sendgrid_api_key)

        if self.use_sendgrid:
            logger.info("[Email] Using SendGrid for email delivery")
        else:
            logger.info("[Email] Using SMTP for email delivery")

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        if self.use_sendgrid:
            return bool(self.sendgrid_api_key)
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False

        if self.use_sendgrid:
            return await self._send_via_sendgrid(to_email, subject, html_content, text_content)
        return await self._send_via_smtp(to_email, subject, html_content, text_content)

    async def _send_via_sendgrid(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SendGrid API"""
        try:
            message = Mail(
                from_email=Email(self.from_email, self.from_name),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )

            if text_content:
                message.add_content(Content("text/plain", text_content))

            sg = SendGridAPIClient(self.sendgrid_api_key)
            # SendGrid client is synchronous
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, sg.send, message)

            if response.status_code in (200, 201, 202):
                logger.info(f"[Email/SendGrid] Sent email to {to_email}: {subject}")
                return True

            logger.error(f"[Email/SendGrid] Failed with status {response.status_code}: {response.body}")
            return False

        except Exception as e:
            logger.error(f"[Email/SendGrid] Failed to send email to {to_email}: {e}")
            return False

    async def _send_via_smtp(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SMTP"""
        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            # Plain text first so clients prefer the HTML part
            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )

            logger.info(f"[Email/SMTP] Sent email to {to_email}: {subject}")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    async def send_bulk_email(
        self,
        recipients: List[Dict[str, str]],  # [{"email": "...", "name": "..."}]
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Send one email per recipient.

        Args:
            recipients: List of dicts with 'email' and optional 'name' keys
            subject: Email subject
            html_content: HTML body (can use {{name}} placeholder)
            text_content: Plain text body (optional, same placeholder)

        Returns:
            Dict with 'success_count', 'failed_count', 'failed_emails'
        """
        success_count = 0
        failed_count = 0
        failed_emails = []

        for index, recipient in enumerate(recipients):
            email = recipient.get("email")
            name = recipient.get("name") or "there"

            if not email:
                failed_count += 1
                continue

            personalized_html = html_content.replace("{{name}}", escape(name))
            personalized_text = text_content.replace("{{name}}", name) if text_content else None

            if await self.send_email(email, subject, personalized_html, personalized_text):
                success_count += 1
            else:
                failed_count += 1
                failed_emails.append(email)

            if index < len(recipients) - 1 and self.bulk_delay_seconds:
                await asyncio.sleep(self.bulk_delay_seconds)

        logger.info(f"[Email] Bulk send complete: {success_count} success, {failed_count} failed")

        return {
            "success_count": success_count,
            "failed_count": failed_count,
            "failed_emails": failed_emails
        }

    def _render(self, heading: str, body_html: str) -> str:
        """Wrap body HTML in the shared email layout"""
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background: #1e3a8a; color: white; padding: 24px; text-align: center; border-radius: 10px 10px 0 0; }}
                .content {{ background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px; }}
                .otp {{ font-size: 32px; letter-spacing: 8px; font-weight: 700; text-align: center; margin: 24px 0; }}
                .footer {{ text-align: center; margin-top: 30px; font-size: 12px; color: #6b7280; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header"><h1>{escape(heading)}</h1></div>
                <div class="content">{body_html}</div>
                <div class="footer">
                    <p>&copy; {datetime.utcnow().year} {escape(self.from_name)}. All rights reserved.</p>
                </div>
            </div>
        </body>
        </html>
        """

    async def send_otp_email(self, to_email: str, user_name: str, otp: str) -> bool:
        """Send the signup verification code"""
        minutes = settings.OTP_EXPIRE_MINUTES
        html_content = self._render(
            "Verify your account",
            f"""
            <p>Hi {escape(user_name or 'there')},</p>
            <p>Use this code to verify your {escape(self.from_name)} account:</p>
            <div class="otp">{otp}</div>
            <p style="font-size: 14px; color: #6b7280;">The code expires in {minutes} minutes.</p>
            """
        )
        text_content = (
            f"Hi {user_name or 'there'},\n\n"
            f"Your verification code is {otp}. It expires in {minutes} minutes.\n"
        )
        return await self.send_email(to_email, "Your verification code", html_content, text_content)

    async def send_password_reset_otp(self, to_email: str, user_name: str, otp: str) -> bool:
        """Send the password reset code"""
        minutes = settings.OTP_EXPIRE_MINUTES
        html_content = self._render(
            "Password reset",
            f"""
            <p>Hi {escape(user_name or 'there')},</p>
            <p>We received a request to reset your password. Your reset code is:</p>
            <div class="otp">{otp}</div>
            <p style="font-size: 14px; color: #6b7280;">
                The code expires in {minutes} minutes. If you didn't request a reset, ignore this email.
            </p>
            """
        )
        text_content = (
            f"Hi {user_name or 'there'},\n\n"
            f"Your password reset code is {otp}. It expires in {minutes} minutes.\n"
            "If you didn't request a reset, ignore this email.\n"
        )
        return await self.send_email(to_email, "Reset your password", html_content, text_content)

    async def send_broadcast(
        self,
        recipients: List[Dict[str, str]],
        subject: str,
        message: str
    ) -> Dict[str, Any]:
        """Send an admin broadcast; the message is plain text"""
        paragraphs = "".join(
            f"<p>{escape(line)}</p>" for line in message.splitlines() if line.strip()
        )
        html_content = self._render(
            subject,
            f"""
            <p>Hi {{{{name}}}},</p>
            {paragraphs}
            <p style="font-size: 14px; color: #6b7280;">
                <a href="{self.frontend_url}/login">Open {escape(self.from_name)}</a>
            </p>
            """
        )
        text_content = f"Hi {{{{name}}}},\n\n{message}\n\n- {self.from_name}\n"

        return await self.send_bulk_email(recipients, subject, html_content, text_content)


# Singleton instance
email_service = EmailService()
