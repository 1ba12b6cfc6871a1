"""Transactional email via Resend.

Sending is best-effort: failures are logged and reported as ``False`` so
registration and moderation never fail because of the mail provider.
"""
import html
import logging

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.RESEND_API_KEY


def _sender() -> str:
    return f"{settings.FROM_NAME} <{settings.FROM_EMAIL}>"


def _send(to: str, subject: str, body_html: str) -> bool:
    if not settings.RESEND_API_KEY:
        logger.info("RESEND_API_KEY not set; skipping email '%s' to %s", subject, to)
        return False

    try:
        response = resend.Emails.send(
            {
                "from": _sender(),
                "to": to,
                "subject": subject,
                "html": body_html,
            }
        )
    except Exception:
        logger.exception("Failed to send email '%s' to %s", subject, to)
        return False

    logger.info("Sent email '%s' to %s (id=%s)", subject, to, response.get("id"))
    return True


def send_verification_email(to: str, full_name: str, code: str) -> bool:
    """Six-digit verification code sent after registration."""
    body = f"""
    <html>
      <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2>Verify your email</h2>
        <p>Hi {html.escape(full_name)},</p>
        <p>Your verification code is:</p>
        <p style="font-size: 28px; letter-spacing: 6px; font-weight: bold;">{html.escape(code)}</p>
        <p>The code expires in {settings.EMAIL_VERIFICATION_EXPIRE_MINUTES} minutes.</p>
      </body>
    </html>
    """
    return _send(to, f"[{settings.FROM_NAME}] Your verification code", body)


def send_approval_email(to: str, full_name: str, approved: bool) -> bool:
    """Notify a researcher that an admin approved or rejected their account."""
    if approved:
        headline = "Your account has been approved"
        text = "You can now log in and start creating surveys."
    else:
        headline = "Your account request was not approved"
        text = "Reply to this email if you think this is a mistake."
    body = f"""
    <html>
      <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2>{headline}</h2>
        <p>Hi {html.escape(full_name)},</p>
        <p>{text}</p>
      </body>
    </html>
    """
    return _send(to, f"[{settings.FROM_NAME}] {headline}", body)
