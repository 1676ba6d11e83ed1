"""
Critical-risk alert delivery via the Resend email API, with an in-memory double.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from typing import Protocol, Sequence

import requests

from shared.types import BusFactorResult

logger = logging.getLogger(__name__)

RESEND_EMAILS_URL = "https://api.resend.com/emails"
REQUEST_TIMEOUT = 10  # seconds


class NotificationError(Exception):
    pass


class Notifier(Protocol):
    """Sends the critical bus factor alert to an organization's owners."""

    def send_critical_alert(
        self, to: Sequence[str], org_name: str, result: BusFactorResult
    ) -> None:
        ...


def alert_subject(org_name: str) -> str:
    return f"Critical Bus Factor Alert - {org_name}"


def render_alert_html(org_name: str, result: BusFactorResult) -> str:
    items = "".join(
        f"<li><strong>{html.escape(gap.function)}</strong>: "
        f"{html.escape(gap.single_point_of_failure)}</li>"
        for gap in result.critical_gaps
    )
    return (
        "<h1>Critical Business Continuity Risk Detected</h1>"
        f"<p>Your organization \"{html.escape(org_name)}\" has been identified "
        "with critical bus factor risks.</p>"
        "<p>Immediate action required for the following functions:</p>"
        f"<ul>{items}</ul>"
        f"<p>Current Bus Factor: {result.bus_factor}</p>"
        "<p>Please review your emergency procedures immediately.</p>"
    )


@dataclass
class SentAlert:
    to: list[str]
    subject: str
    html: str


@dataclass
class InMemoryNotifier:
    """Test double that records alerts instead of sending them."""

    sent: list[SentAlert] = field(default_factory=list)

    def send_critical_alert(
        self, to: Sequence[str], org_name: str, result: BusFactorResult
    ) -> None:
        self.sent.append(
            SentAlert(
                to=list(to),
                subject=alert_subject(org_name),
                html=render_alert_html(org_name, result),
            )
        )


@dataclass
class ResendNotifier:
    api_key: str
    sender: str = "Backup Boss <alerts@backupboss.io>"
    url: str = RESEND_EMAILS_URL

    def send_critical_alert(
        self, to: Sequence[str], org_name: str, result: BusFactorResult
    ) -> None:
        payload = {
            "from": self.sender,
            "to": list(to),
            "subject": alert_subject(org_name),
            "html": render_alert_html(org_name, result),
        }
        try:
            response = requests.post(
                self.url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NotificationError(f"Failed to send alert email: {exc}") from exc
        logger.info("Sent critical alert for %s to %d recipients", org_name, len(to))
