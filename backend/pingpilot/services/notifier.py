"""Notifier - renders alert emails and sends them to a target's contacts."""
import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..config import settings
from ..models import Alert, MonitoredTarget
from ..store import TargetStore
from ..utils.time_utils import to_local
from .alerter import AlertKind
from .checker import CheckResult
from .email_sender import EmailSendError, EmailSenderService, email_sender_service

logger = logging.getLogger(__name__)


@dataclass
class AlertMessage:
    subject: str
    html: str


_HEADER_COLORS = {
    AlertKind.DOWN: "#ff4d4d",
    AlertKind.RECOVERED: "#10b981",
    AlertKind.SLOW: "#f59e0b",
}


def _row(label: str, value: str) -> str:
    return f'<p style="margin: 8px 0 0;"><strong>{label}:</strong> {html.escape(value)}</p>'


def build_message(
    target: MonitoredTarget,
    kind: AlertKind,
    result: CheckResult,
    threshold_ms: int,
    now: datetime,
) -> AlertMessage:
    """Subject and HTML body for one alert kind."""
    name = target.name
    timestamp = to_local(now).strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    rows = [_row("Server URL", target.address), _row("Time Detected", timestamp)]

    if kind == AlertKind.DOWN:
        subject = f"Alert: {name} is DOWN"
        title = "Server Down Alert"
        intro = f"We've detected that your server <strong>{html.escape(name)}</strong> is currently <strong>DOWN</strong>."
        rows.append(_row("Error", result.error_message or "Unknown error"))
        outro = "Please check your server as soon as possible. We'll notify you when it is back online."
    elif kind == AlertKind.RECOVERED:
        subject = f"Recovery: {name} is UP"
        title = "Server Recovery Alert"
        intro = f"Good news! Your server <strong>{html.escape(name)}</strong> is now <strong>UP and running</strong>."
        if result.response_time_ms is not None:
            rows.append(_row("Response Time", f"{result.response_time_ms}ms"))
        outro = "No further action is needed at this time."
    else:
        subject = f"Warning: {name} - High Response Time"
        title = "Response Time Alert"
        intro = f"Your server <strong>{html.escape(name)}</strong> is responding slower than the threshold you've set."
        rows.append(_row("Current Response Time", f"{result.response_time_ms}ms"))
        rows.append(_row("Threshold", f"{threshold_ms}ms"))
        outro = "You may want to investigate performance issues with your server."

    color = _HEADER_COLORS[kind]
    details_url = f"{settings.app_url.rstrip('/')}/servers/{target.id}"
    body = "\n".join([
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">',
        f'  <div style="background-color: {color}; color: white; padding: 15px; text-align: center;">',
        f'    <h1 style="margin: 0;">{title}</h1>',
        "  </div>",
        '  <div style="padding: 20px; border: 1px solid #ddd; border-top: none;">',
        f"    <p>{intro}</p>",
        f'    <div style="margin: 20px 0; padding: 15px; background-color: #f8f8f8; border-left: 4px solid {color};">',
        *[f"      {row}" for row in rows],
        "    </div>",
        f"    <p>{outro}</p>",
        f'    <p><a href="{html.escape(details_url)}">View Server Details</a></p>',
        "  </div>",
        '  <div style="text-align: center; padding: 15px; color: #666; font-size: 12px;">',
        "    <p>This is an automated message from Ping Pilot. Please do not reply to this email.</p>",
        "  </div>",
        "</div>",
    ])
    return AlertMessage(subject=subject, html=body)


class Notifier:
    """Sends one email per contact, sequentially. Phone is a declared but inert channel."""

    def __init__(self, store: TargetStore, sender: Optional[EmailSenderService] = None):
        self.store = store
        self.sender = sender or email_sender_service

    async def notify(
        self,
        target: MonitoredTarget,
        kind: AlertKind,
        result: CheckResult,
        now: datetime,
    ) -> bool:
        """Returns True if at least one contact was reached."""
        alert_config = target.effective_config.alerts
        delivered = False

        if alert_config.email and target.emails:
            message = build_message(target, kind, result, alert_config.response_threshold_ms, now)
            for email in target.emails:
                if await self._send_one(target, kind, email, message):
                    delivered = True

        if alert_config.phone and target.phones:
            logger.warning(
                f"Phone alerts requested for target {target.id} but no phone dispatcher exists; "
                f"skipped {len(target.phones)} number(s)"
            )

        if delivered:
            logger.info(f"{kind.value.upper()} alert sent for {target.name} (target {target.id})")
        return delivered

    async def _send_one(
        self,
        target: MonitoredTarget,
        kind: AlertKind,
        email: str,
        message: AlertMessage,
    ) -> bool:
        try:
            await self.sender.send_email(email, message.subject, message.html)
            success = True
        except EmailSendError as e:
            logger.error(f"Failed to send {kind.value} alert for target {target.id} to {email}: {e}")
            success = False
        except Exception as e:
            logger.error(f"Unexpected error sending alert for target {target.id} to {email}: {type(e).__name__}: {e}")
            success = False

        await self._log_alert(target, kind, email, message.subject, success)
        return success

    async def _log_alert(
        self,
        target: MonitoredTarget,
        kind: AlertKind,
        recipient: str,
        subject: str,
        success: bool,
    ) -> None:
        try:
            await self.store.record_alert(Alert(
                target_id=target.id,
                alert_type=kind.value,
                channel="email",
                recipient=recipient,
                subject=subject,
                success=1 if success else 0,
            ))
        except Exception as e:
            logger.error(f"Failed to record alert log for target {target.id}: {e}")
