"""Service helpers for composing and sending system emails."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from html import escape
from urllib.parse import urlencode

from storefront.core.config import settings

logger = logging.getLogger(__name__)


def _wrap_email_html(*, title: str, intro: str, content: str, footer: str) -> str:
    return f"""\
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>{escape(title)}</title>
  </head>
  <body style="margin:0;padding:0;background:#f4f7f2;font-family:Arial,sans-serif;color:#1f2937;">
    <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="padding:24px 12px;">
      <tr>
        <td align="center">
          <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="max-width:600px;background:#ffffff;border-radius:12px;border:1px solid #e5e7eb;">
            <tr>
              <td style="padding:20px 24px;background:#2f855a;color:#ffffff;">
                <h1 style="margin:0;font-size:20px;line-height:1.3;">{escape(title)}</h1>
              </td>
            </tr>
            <tr>
              <td style="padding:24px;">
                <p style="margin:0 0 14px;font-size:15px;line-height:1.6;">{escape(intro)}</p>
                {content}
              </td>
            </tr>
            <tr>
              <td style="padding:16px 24px;background:#f9fafb;border-top:1px solid #e5e7eb;">
                <p style="margin:0;font-size:12px;line-height:1.6;color:#6b7280;">{escape(footer)}</p>
              </td>
            </tr>
          </table>
        </td>
      </tr>
    </table>
  </body>
</html>
"""


def _cta_button(label: str, href: str) -> str:
    return (
        '<p style="margin:20px 0;">'
        f'<a href="{escape(href, quote=True)}" '
        'style="display:inline-block;background:#2f855a;color:#ffffff;text-decoration:none;'
        'padding:12px 18px;border-radius:8px;font-weight:600;font-size:14px;">'
        f"{escape(label)}</a></p>"
    )


def build_reset_link(token_id: int, token: str) -> str:
    query = urlencode({"token_id": token_id, "token": token})
    return f"{settings.FRONTEND_BASE_URL}/account/reset-password?{query}"


def build_password_reset_email(name: str, token_id: int, token: str) -> tuple[str, str, str]:
    link = build_reset_link(token_id, token)
    minutes = settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES
    subject = "Reset your MOA Clover password"
    body = (
        f"Hello {name},\n\n"
        "We received a request to reset the password of your account.\n\n"
        f"Reset link: {link}\n\n"
        f"This link is valid for {minutes} minutes and can be used once.\n\n"
        "If you did not ask for this, you can ignore this email."
    )
    html_content = (
        f'<p style="margin:0 0 12px;font-size:14px;">Hello {escape(name)},</p>'
        '<p style="margin:0 0 14px;font-size:14px;line-height:1.6;">'
        "Click the button below to choose a new password.</p>"
        f"{_cta_button('Reset my password', link)}"
        '<p style="margin:0;font-size:12px;color:#6b7280;line-height:1.6;">'
        f"This link is valid for {minutes} minutes. Direct link:<br>{escape(link)}</p>"
    )
    html_body = _wrap_email_html(
        title="Password reset",
        intro="A password reset was requested for your MOA Clover account.",
        content=html_content,
        footer="If you did not ask for this, no action is needed.",
    )
    return subject, body, html_body


def send_email(to: str, subject: str, body: str, *, html_body: str | None = None) -> bool:
    if not settings.smtp_ready:
        logger.warning("SMTP not configured; skipping send to %s", to)
        return False

    message = EmailMessage()
    message["From"] = formataddr((settings.SMTP_FROM_NAME, settings.SMTP_FROM))
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)
    if html_body:
        message.add_alternative(html_body, subtype="html")

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
            server.ehlo()
            if settings.SMTP_TLS:
                server.starttls()
                server.ehlo()
            if settings.SMTP_USER:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.send_message(message)
        logger.info("Email sent: %s", to)
        return True
    except (smtplib.SMTPException, OSError):
        logger.exception("Email send failed: %s", to)
        return False
