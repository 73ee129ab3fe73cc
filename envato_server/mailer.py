import json
import logging
import re
from typing import Optional, Tuple

import requests

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"

_TAG_RE = re.compile(r"<[^>]+>")
_BREAK_RE = re.compile(r"<br\s*/?>|</p>", re.IGNORECASE)


def html_to_text(html: str) -> str:
    text = _BREAK_RE.sub("\n", html or "")
    return _TAG_RE.sub("", text).strip()


class SendGridMailer:
    """Minimal SendGrid v3 sender. ``send`` returns True on a 2xx response."""

    def __init__(self, api_key: str, from_email: str, from_name: str = "",
                 sandbox: bool = False, session: Optional[requests.Session] = None, timeout: int = 10):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.sandbox = sandbox
        self.session = session or requests.Session()
        self.timeout = timeout

    def send(self, to_email: str, subject: str, html: str,
             reply_to: Optional[Tuple[str, str]] = None, text: Optional[str] = None) -> bool:
        if not self.api_key:
            logger.warning("SENDGRID_API_KEY not set; skipping email to %s", to_email)
            return False

        sender = {"email": self.from_email}
        if self.from_name:
            sender["name"] = self.from_name

        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": sender,
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": text or html_to_text(html)},
                {"type": "text/html", "value": html},
            ],
        }
        if reply_to:
            name, email = reply_to
            payload["reply_to"] = {"email": email, "name": name} if name else {"email": email}
        if self.sandbox:
            payload["mail_settings"] = {"sandbox_mode": {"enable": True}}

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            resp = self.session.post(SENDGRID_URL, headers=headers, data=json.dumps(payload),
                                     timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("SendGrid request failed: %r", e)
            return False

        ok = 200 <= resp.status_code < 300
        if not ok:
            logger.warning("SendGrid error %s: %s", resp.status_code, resp.text[:500])
        return ok
