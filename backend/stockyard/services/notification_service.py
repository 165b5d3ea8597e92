"""Notification recipients and best-effort email delivery.

Sending never raises into the caller: the business transaction has already
committed by the time an email goes out, so a mail failure is logged and
reported as ``False``.
"""
from __future__ import annotations

from dataclasses import dataclass
from email import policy
from email.message import EmailMessage
import smtplib
from ssl import create_default_context
from typing import Sequence

from flask import current_app, render_template

from ..errors import NotFoundError
from ..extensions import db
from ..models import NotificationRecipient
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError, coerce_str
from . import catalog_service
from .concurrency import run_in_transaction


@dataclass
class SMTPConfig:
    host: str
    port: int
    username: str | None
    password: str | None
    use_tls: bool
    use_ssl: bool
    sender: str | None


def _as_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def notifications_enabled() -> bool:
    return _as_bool(current_app.config.get("NOTIFICATIONS_ENABLED"), default=True)


def load_smtp_config() -> SMTPConfig:
    """Build an SMTP configuration object from Flask settings."""
    host = current_app.config.get("MAIL_SMTP_HOST") or ""
    if not host:
        raise RuntimeError("MAIL_SMTP_HOST must be configured to send email")

    username = current_app.config.get("MAIL_SMTP_USERNAME") or None
    sender = current_app.config.get("MAIL_DEFAULT_SENDER") or None

    return SMTPConfig(
        host=host,
        port=int(current_app.config.get("MAIL_SMTP_PORT", 587)),
        username=username,
        password=current_app.config.get("MAIL_SMTP_PASSWORD") or None,
        use_tls=_as_bool(current_app.config.get("MAIL_SMTP_USE_TLS"), default=True),
        use_ssl=_as_bool(current_app.config.get("MAIL_SMTP_USE_SSL"), default=False),
        sender=sender or username,
    )


# --- recipients ------------------------------------------------------------

def _normalize_email(value) -> str:
    email = coerce_str(value, "email", max_length=255).lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError(f"Invalid email address: {email}")
    return email


def list_recipients(*, active_only: bool = False) -> list[NotificationRecipient]:
    query = db.session.query(NotificationRecipient)
    if active_only:
        query = query.filter(NotificationRecipient.active.is_(True))
    return query.order_by(NotificationRecipient.name, NotificationRecipient.id).all()


def get_recipient(recipient_id: int) -> NotificationRecipient:
    recipient = db.session.get(NotificationRecipient, recipient_id)
    if recipient is None:
        raise NotFoundError(f"Recipient {recipient_id} not found", recipient_id=recipient_id)
    return recipient


def create_recipient(email, name) -> NotificationRecipient:
    def _op():
        address = _normalize_email(email)
        if db.session.query(NotificationRecipient).filter_by(email=address).first() is not None:
            raise ConflictError(f"Recipient {address} already exists")
        recipient = NotificationRecipient(
            email=address,
            name=coerce_str(name, "name", max_length=255),
            active=True,
        )
        db.session.add(recipient)
        db.session.flush()
        return recipient

    return run_in_transaction(_op)


def set_recipient_active(recipient_id: int, active: bool) -> NotificationRecipient:
    if not isinstance(active, bool):
        raise ValidationError("active must be true or false")

    def _op():
        recipient = get_recipient(recipient_id)
        recipient.active = active
        return recipient

    return run_in_transaction(_op)


def delete_recipient(recipient_id: int) -> None:
    def _op():
        db.session.delete(get_recipient(recipient_id))

    run_in_transaction(_op)


# --- sending ---------------------------------------------------------------

def build_message(subject: str, recipients: Sequence[str], html_body: str, text_body: str) -> EmailMessage:
    message = EmailMessage(policy=policy.default)
    message["Subject"] = subject
    sender = current_app.config.get("MAIL_DEFAULT_SENDER") or None
    if sender:
        message["From"] = sender
    message["To"] = ", ".join(recipients)
    message.set_content(text_body)
    message.add_alternative(html_body, subtype="html")
    return message


def send_email_via_smtp(message: EmailMessage, smtp_config: SMTPConfig | None = None) -> None:
    """Send the provided message using the configured SMTP server."""
    config = smtp_config or load_smtp_config()
    if not config.sender:
        raise RuntimeError("MAIL_DEFAULT_SENDER or SMTP username must be configured for sending email")

    if "From" not in message:
        message["From"] = config.sender

    smtp_class = smtplib.SMTP_SSL if config.use_ssl else smtplib.SMTP
    with smtp_class(config.host, config.port, timeout=10) as client:
        client.ehlo()
        if config.use_tls and not config.use_ssl:
            client.starttls(context=create_default_context())
            client.ehlo()
        if config.username and config.password:
            client.login(config.username, config.password)
        client.send_message(message)


def send_email(subject: str, template_name: str, text_body: str, **context) -> bool:
    """
    Render and send to every active recipient.

    Returns True only when a message was handed to the SMTP server.
    """
    if not notifications_enabled():
        current_app.logger.debug("Notifications disabled; skipping %r", subject)
        return False
    if not current_app.config.get("MAIL_SMTP_HOST"):
        current_app.logger.info("MAIL_SMTP_HOST not configured; skipping %r", subject)
        return False

    recipients = [r.email for r in list_recipients(active_only=True)]
    if not recipients:
        current_app.logger.info("No active notification recipients; skipping %r", subject)
        return False

    try:
        html_body = render_template(template_name, generated_at=utcnow(), **context)
        send_email_via_smtp(build_message(subject, recipients, html_body, text_body))
    except (OSError, smtplib.SMTPException, RuntimeError):
        current_app.logger.warning("Failed to send %r to %d recipient(s)", subject, len(recipients), exc_info=True)
        return False

    current_app.logger.info("Sent %r to %d recipient(s)", subject, len(recipients))
    return True


def send_transfer_notification(transfer) -> bool:
    item = catalog_service.get_item(transfer.sku)
    subject = f"Transfer request #{transfer.id}: {transfer.quantity} x {transfer.sku}"
    text_body = (
        f"{transfer.requested_by} requested {transfer.quantity} x {transfer.sku} "
        f"({item.description}) from {transfer.from_location} to {transfer.to_location}."
    )
    return send_email(
        subject,
        "email/transfer_request.html",
        text_body,
        transfer=transfer,
        item=item,
    )


def send_reconciliation_notification(report) -> bool:
    discrepancies = [row for row in report.items if row.difference != 0]
    subject = (
        f"Reconciliation at {report.location_id}: "
        f"{report.discrepancy_count} discrepancy(ies) in {report.total_items} item(s)"
    )
    text_body = (
        f"{report.submitted_by} submitted a physical count for {report.location_id}. "
        f"{report.discrepancy_count} of {report.total_items} counted item(s) differ from the system."
    )
    return send_email(
        subject,
        "email/reconciliation_report.html",
        text_body,
        report=report,
        discrepancies=discrepancies,
    )
