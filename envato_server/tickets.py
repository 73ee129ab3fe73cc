import logging

from markupsafe import Markup

from .accounts import is_email
from .results import ErrorKind, Result
from .views import render_ticket_email

logger = logging.getLogger(__name__)


def sanitize_text(value) -> str:
    """Strip tags and collapse whitespace, for single-line fields."""
    return Markup(value or "").striptags().strip()


def compose_subject(title: str, from_name: str, theme: str) -> str:
    return f"{title} - {from_name} - {theme.split(' - ')[0]}"


def submit_ticket(mailer, mailbox: str, sender_name: str, sender_email: str,
                  theme: str, title: str, message: str) -> Result:
    """Email a support question to ``mailbox`` with the sender as Reply-To."""
    errors = []
    if not (theme or "").strip():
        errors.append(ErrorKind.MISSING_THEME)
    if not (title or "").strip():
        errors.append(ErrorKind.MISSING_TITLE)
    if not (message or "").strip():
        errors.append(ErrorKind.MISSING_MESSAGE)
    if errors:
        return Result.failure(*errors)

    mailbox = (mailbox or "").strip()
    if not is_email(mailbox):
        logger.error("support mailbox is not configured (%r)", mailbox)
        return Result.failure(ErrorKind.MAILBOX_NOT_CONFIGURED)

    from_name = sanitize_text(sender_name)
    from_email = (sender_email or "").strip()
    title = sanitize_text(title)
    theme = sanitize_text(theme)

    subject = compose_subject(title, from_name, theme)
    body = render_ticket_email(from_name, theme, message)
    reply_to = (from_name, from_email) if is_email(from_email) else None

    if not mailer.send(mailbox, subject, body, reply_to=reply_to):
        return Result.failure(ErrorKind.MAIL_FAILED)

    logger.info("ticket from %s sent to %s", from_email or from_name, mailbox)
    return Result.success()
