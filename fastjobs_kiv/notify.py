"""
Failure alerts by email (optional; SMTP env vars).

Only used when a run cannot continue: login failed after the retry, or the
driver crashed. Sending is best-effort and never raises.
"""

import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import List, Optional

from . import config


def recipients() -> List[str]:
    """SMTP_TO may list several addresses, comma-separated."""
    return [addr.strip() for addr in (config.SMTP_TO or "").split(",") if addr.strip()]


def smtp_config_ok() -> bool:
    return all([config.SMTP_HOST, config.SMTP_PORT, config.SMTP_USER, config.SMTP_PASS, config.SMTP_FROM]) and bool(
        recipients()
    )


def should_send_email() -> bool:
    """EMAIL_ENABLED=0 disables; otherwise send whenever SMTP config is complete."""
    if config.EMAIL_ENABLED == "0":
        return False
    return smtp_config_ok()


def build_message(subject: str, text_body: str, html_body: Optional[str] = None) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = config.SMTP_FROM
    msg["To"] = ", ".join(recipients())
    msg.attach(MIMEText(text_body or "", "plain", "utf-8"))
    if html_body:
        msg.attach(MIMEText(html_body, "html", "utf-8"))
    return msg


def _deliver(msg: MIMEMultipart, to: List[str]) -> None:
    with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=30) as server:
        server.starttls(context=ssl.create_default_context())
        server.login(config.SMTP_USER, config.SMTP_PASS)
        refused = server.sendmail(config.SMTP_FROM, to, msg.as_string())
    if refused:
        print(f"Email: some recipients refused: {', '.join(sorted(refused))}")


def send_email(subject: str, text_body: str, html_body: Optional[str] = None) -> bool:
    """Send via STARTTLS + SMTP auth. Returns True if the message went out."""
    if not should_send_email():
        print("Email: skipped (SMTP not configured or disabled).")
        return False

    to = recipients()
    try:
        _deliver(build_message(subject, text_body, html_body), to)
    except (smtplib.SMTPException, OSError) as e:
        print(f"Email: FAILED to send: {e}")
        return False

    print(f"Email: sent to {', '.join(to)}")
    return True


def send_failure_email(what: str, err: str) -> bool:
    today = datetime.now().date().isoformat()
    subject = f"{config.EMAIL_SUBJECT_PREFIX} FAILED {today}: {what}"
    body = f"{what} failed.\n\n{err}\n"
    html = f"<p><b>{escape(what)} failed.</b></p><pre>{escape(err)}</pre>"
    return send_email(subject, body, html)
