# src/ostrich/adapters/sendgrid_client.py
from __future__ import annotations

import threading
from dataclasses import dataclass, field

import requests

from ostrich.adapters.config import config
from ostrich.adapters.logging_utils import get_logger
from ostrich.domain.errors import EmailDispatchError, OstrichError

logger = get_logger(__name__)


class SendGridConfigError(OstrichError):
    pass


@dataclass
class SendGridClient:
    """HTML mail through SendGrid's v3 REST API. Delivery is not retried."""

    api_key: str
    from_email: str
    base_url: str = "https://api.sendgrid.com/v3"
    timeout_s: float = 20.0
    # one Session per worker thread unless a session is injected
    session: requests.Session | None = None
    _local: threading.local = field(default_factory=threading.local, init=False, repr=False)

    def _http(self) -> requests.Session:
        if self.session is not None:
            return self.session
        s = getattr(self._local, "session", None)
        if s is None:
            s = self._local.session = requests.Session()
        return s

    def _payload(self, to: str, subject: str, html: str) -> dict:
        return {
            "personalizations": [{"to": [{"email": to, "name": to}]}],
            "from": {"email": self.from_email, "name": self.from_email},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }

    def send(self, to: str, subject: str, html: str) -> None:
        logger.info("email_send", extra={"context": {"to": to, "subject": subject}})
        logger.debug(
            "email_body",
            extra={"context": {"from": self.from_email, "to": to, "body": html}},
        )

        try:
            resp = self._http().post(
                self.base_url.rstrip("/") + "/mail/send",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=self._payload(to, subject, html),
                timeout=self.timeout_s,
            )
        except requests.RequestException as exc:
            raise EmailDispatchError(
                f"could not send email: {exc}", recipient=to
            ) from exc

        if resp.status_code >= 400:
            raise EmailDispatchError(
                f"SendGrid HTTP {resp.status_code}: {resp.text[:300]}",
                recipient=to,
                status_code=resp.status_code,
            )


def make_sendgrid_client(session: requests.Session | None = None) -> SendGridClient:
    if not config.SENDGRID_API_KEY:
        raise SendGridConfigError(
            "Missing OSTRICH_SENDGRID_API_KEY. Set it in your environment before sending email."
        )
    return SendGridClient(
        api_key=config.SENDGRID_API_KEY,
        from_email=config.EMAIL_FROM,
        base_url=config.SENDGRID_BASE_URL,
        session=session,
    )
