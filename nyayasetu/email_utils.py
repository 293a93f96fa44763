"""
Outgoing mail (lawyer OTP codes).

Without SMTP credentials the service runs in dev mode: the message is
reported in the log by subject and recipient and treated as delivered.
"""

import os
import smtplib
import logging
from email.message import EmailMessage
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


def get_email_config() -> Dict[str, Any]:
    return {
        "host": os.environ.get("SMTP_HOST", ""),
        "port": int(os.environ.get("SMTP_PORT", "587")),
        "user": os.environ.get("SMTP_USER", ""),
        "password": os.environ.get("SMTP_PASSWORD", ""),
        "sender": os.environ.get("SMTP_FROM", "eNyayaSetu <noreply@enyayasetu.in>"),
        "starttls": os.environ.get("SMTP_USE_TLS", "true").lower() == "true",
    }


def is_email_configured() -> bool:
    config = get_email_config()
    return all((config["host"], config["user"], config["password"]))


def send_email(to_email: str, subject: str, html_body: str, text_body: Optional[str] = None) -> bool:
    """Deliver one message; False when the SMTP exchange fails."""
    config = get_email_config()
    if not is_email_configured():
        logger.info(f"[DEV MODE] Not sending '{subject}' to {to_email}: SMTP not configured")
        return True

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = config["sender"]
    message["To"] = to_email
    message.set_content(text_body or "This message requires an HTML-capable mail client.")
    message.add_alternative(html_body, subtype="html")

    try:
        with smtplib.SMTP(config["host"], config["port"], timeout=30) as smtp:
            if config["starttls"]:
                smtp.starttls()
            smtp.login(config["user"], config["password"])
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"SMTP delivery to {to_email} failed: {e}")
        return False

    logger.info(f"Sent '{subject}' to {to_email}")
    return True


def send_lawyer_otp_email(to_email: str, otp: str, case_title: Optional[str], court_code: Optional[str]) -> bool:
    """
    Send the hearing verification code to a lawyer.

    The code is only ever written into the message body; it is not logged.
    """
    case_line = case_title or "your client's case"
    code_line = court_code or "-"

    text_body = (
        f"You have been named as the advocate for {case_line}.\n"
        f"Court code: {code_line}\n\n"
        f"Verification code: {otp}\n\n"
        "The code is valid for 15 minutes.\n\n"
        "eNyayaSetu Digital Justice Platform\n"
    )
    html_body = f"""<!DOCTYPE html>
<html lang="en">
<body style="font-family: Arial, sans-serif; max-width: 560px; margin: 0 auto;">
  <h2 style="background: #1e3a8a; color: #fff; padding: 16px; margin: 0;">eNyayaSetu</h2>
  <p>You have been named as the advocate for <strong>{case_line}</strong>.</p>
  <p>Court code: <strong>{code_line}</strong></p>
  <p style="font-size: 28px; letter-spacing: 6px; font-weight: bold; text-align: center;">{otp}</p>
  <p>Enter this code to confirm your appearance. It is valid for 15 minutes.</p>
  <p style="color: #888; font-size: 12px;">Automated message, please do not reply.</p>
</body>
</html>
"""
    return send_email(to_email, "Hearing verification code - eNyayaSetu", html_body, text_body)
