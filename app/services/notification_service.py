"""
Notification dispatcher.

Delivers grouped expiry notices to the admin mailbox and account mail (OTP
codes, welcome, password reset) to users over SMTP. Expiry presentation
(subject line, urgency label) is driven only by days_remaining; dates are
never re-derived here.
"""
import html
import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import List, Optional

from app.core.config import (
    SMTP_HOST,
    SMTP_PORT,
    SMTP_USER,
    SMTP_PASSWORD,
    EMAIL_FROM,
    ADMIN_EMAIL,
    RESET_TOKEN_EXPIRE_MINUTES,
)
from app.services.otp_service import OTP_EXPIRY_SECONDS
from app.schemas.notification import GroupedExpiryNotice

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30


class NotificationError(Exception):
    """Raised when a notification cannot be delivered."""


class NotificationDispatcher(ABC):
    """Transport-agnostic notification boundary."""

    @abstractmethod
    def send_grouped_expiry_notice(self, notice: GroupedExpiryNotice) -> None:
        ...

    @abstractmethod
    def send_otp(self, email: str, first_name: str, otp: str) -> None:
        ...

    @abstractmethod
    def send_welcome(self, email: str, first_name: str, temp_password: str) -> None:
        ...

    @abstractmethod
    def send_password_reset(self, email: str, first_name: str, reset_link: str) -> None:
        ...


def urgency_label(days_remaining: int) -> str:
    if days_remaining <= 0:
        return "EXPIRING TODAY"
    return f"Expiring in {days_remaining} Day{'s' if days_remaining > 1 else ''}"


def expiry_subject(notice: GroupedExpiryNotice) -> str:
    count = notice.total_subscriptions
    noun = "Subscription" if count == 1 else "Subscriptions"
    return f"⚠️ {count} {noun} {urgency_label(notice.days_remaining)}"


def render_expiry_text(notice: GroupedExpiryNotice) -> str:
    lines: List[str] = [
        f"{notice.total_subscriptions} subscription(s) {urgency_label(notice.days_remaining).lower()}.",
        "",
    ]
    for group in notice.departments:
        lines.append(f"{group.name}:")
        for item in group.subscriptions:
            lines.append(
                f"  - {item.name} | {item.currency} {item.price} | "
                f"expires {item.expiry_date_formatted} | {item.url}"
            )
        lines.append("")
    return "\n".join(lines)


def render_expiry_html(notice: GroupedExpiryNotice) -> str:
    e = html.escape
    accent = "#f5576c" if notice.days_remaining == 0 else "#667eea"
    sections = []
    for group in notice.departments:
        rows = "".join(
            f"<tr>"
            f"<td style=\"padding:8px;border-bottom:1px solid #e0e0e0;\">{e(item.name)}</td>"
            f"<td style=\"padding:8px;border-bottom:1px solid #e0e0e0;\">{e(str(item.price))} {e(item.currency)}</td>"
            f"<td style=\"padding:8px;border-bottom:1px solid #e0e0e0;color:{accent};\">{e(item.expiry_date_formatted)}</td>"
            f"<td style=\"padding:8px;border-bottom:1px solid #e0e0e0;\"><a href=\"{e(item.url)}\">Renew</a></td>"
            f"</tr>"
            for item in group.subscriptions
        )
        sections.append(
            f"<h3 style=\"margin:24px 0 8px;color:#333;\">{e(group.name)}</h3>"
            f"<table style=\"width:100%;border-collapse:collapse;\">{rows}</table>"
        )

    return (
        "<!DOCTYPE html><html lang=\"en\"><body style=\"font-family:'Segoe UI',Tahoma,sans-serif;"
        "background:#f4f5fb;padding:32px;\">"
        "<div style=\"max-width:640px;margin:0 auto;background:#fff;border-radius:12px;overflow:hidden;\">"
        f"<div style=\"background:{accent};padding:28px;text-align:center;color:#fff;\">"
        f"<h1 style=\"margin:0;font-size:24px;\">{e(urgency_label(notice.days_remaining))}</h1>"
        f"<p style=\"margin:8px 0 0;\">{notice.total_subscriptions} subscription(s) need attention</p>"
        "</div>"
        f"<div style=\"padding:24px;\">{''.join(sections)}</div>"
        "<div style=\"background:#f8f9fa;padding:20px;text-align:center;color:#666;font-size:13px;\">"
        "<p style=\"margin:0;\"><strong>Department Subscription Management System</strong></p>"
        "<p style=\"margin:4px 0 0;\">This is an automated reminder. Please do not reply to this email.</p>"
        "</div></div></body></html>"
    )


def render_otp_html(first_name: str, otp: str) -> str:
    minutes = OTP_EXPIRY_SECONDS // 60
    return (
        "<div style=\"font-family:Arial,sans-serif;max-width:600px;margin:0 auto;\">"
        "<div style=\"background:#667eea;padding:30px;text-align:center;border-radius:10px 10px 0 0;\">"
        "<h1 style=\"color:#fff;margin:0;\">Two-Factor Authentication</h1></div>"
        "<div style=\"background:#f8f9fa;padding:30px;border-radius:0 0 10px 10px;\">"
        f"<p>Hello <strong>{html.escape(first_name)}</strong>,</p>"
        "<p>Use the verification code below to complete your login:</p>"
        "<h2 style=\"font-size:36px;color:#667eea;letter-spacing:8px;text-align:center;"
        f"font-family:'Courier New',monospace;\">{html.escape(otp)}</h2>"
        f"<p>This code will expire in <strong>{minutes} minutes</strong>.</p>"
        "<p style=\"color:#999;font-size:13px;\">If you didn't attempt to log in, ignore this email "
        "or contact support immediately.</p>"
        "</div></div>"
    )


def render_welcome_html(first_name: str, email: str, temp_password: str) -> str:
    return (
        "<div style=\"font-family:Arial,sans-serif;max-width:600px;margin:0 auto;\">"
        f"<p>Hello <strong>{html.escape(first_name)}</strong>,</p>"
        "<p>An account has been created for you on the Department Subscription Management System.</p>"
        f"<p><strong>Email:</strong> {html.escape(email)}<br>"
        f"<strong>Temporary Password:</strong> {html.escape(temp_password)}</p>"
        "<p>Please log in and change your password using the forgot password link.</p>"
        "</div>"
    )


def render_password_reset_html(first_name: str, reset_link: str, expires_minutes: int) -> str:
    return (
        "<div style=\"font-family:Arial,sans-serif;max-width:600px;margin:0 auto;\">"
        f"<p>Hello {html.escape(first_name)},</p>"
        f"<p>Click below to reset your password (expires in {expires_minutes} minutes):</p>"
        f"<a href=\"{html.escape(reset_link)}\" style=\"display:inline-block;background:#2563eb;color:#fff;"
        "padding:7px 22px;border-radius:6px;text-decoration:none;\">Reset password</a>"
        "<p style=\"color:#999;font-size:13px;\">If you did not request a reset, you can ignore this email.</p>"
        "</div>"
    )


class EmailNotificationDispatcher(NotificationDispatcher):
    """SMTP delivery with STARTTLS."""

    def __init__(
        self,
        host: Optional[str] = SMTP_HOST,
        port: int = SMTP_PORT,
        username: Optional[str] = SMTP_USER,
        password: Optional[str] = SMTP_PASSWORD,
        sender: Optional[str] = EMAIL_FROM,
        admin_email: Optional[str] = ADMIN_EMAIL,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.admin_email = admin_email

    def _connect(self) -> smtplib.SMTP:
        if not self.host:
            raise NotificationError("SMTP_HOST is not configured")
        smtp = smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS)
        smtp.ehlo()
        smtp.starttls()
        if self.username and self.password:
            smtp.login(self.username, self.password)
        return smtp

    def send_mail(self, to: str, subject: str, text: str, html_body: Optional[str] = None) -> None:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender or self.username or ""
        msg["To"] = to
        msg.set_content(text)
        if html_body:
            msg.add_alternative(html_body, subtype="html")

        try:
            with self._connect() as smtp:
                smtp.send_message(msg)
        except NotificationError:
            raise
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            raise NotificationError(f"Email sending failed: {e}") from e

        logger.info(f"Email sent: to={to}, subject={subject!r}")

    def send_grouped_expiry_notice(self, notice: GroupedExpiryNotice) -> None:
        if not self.admin_email:
            raise NotificationError("ADMIN_EMAIL is not configured")
        self.send_mail(
            self.admin_email,
            expiry_subject(notice),
            render_expiry_text(notice),
            render_expiry_html(notice),
        )

    def send_otp(self, email: str, first_name: str, otp: str) -> None:
        self.send_mail(
            email,
            "Your Login Verification Code",
            f"Your OTP is: {otp}",
            render_otp_html(first_name, otp),
        )

    def send_welcome(self, email: str, first_name: str, temp_password: str) -> None:
        self.send_mail(
            email,
            "Your Admin Panel Account",
            f"Your temporary password is: {temp_password}",
            render_welcome_html(first_name, email, temp_password),
        )

    def send_password_reset(self, email: str, first_name: str, reset_link: str) -> None:
        self.send_mail(
            email,
            "Reset your admin panel password",
            f"Reset your password: {reset_link}",
            render_password_reset_html(first_name, reset_link, RESET_TOKEN_EXPIRE_MINUTES),
        )

    def check_connection(self) -> bool:
        """Return True when the SMTP server accepts a connection and login."""
        try:
            with self._connect() as smtp:
                smtp.noop()
            logger.info("Email server is ready to send messages")
            return True
        except Exception as e:
            logger.error(f"Email server connection failed: {e}")
            return False
