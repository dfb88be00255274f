"""Chat notification fan-out for charted alerts."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from string import Template
from typing import Any, List, Mapping, Protocol, Sequence, Tuple

import requests

from alerting.errors import NotificationError
from alerting.models import Alert
from infra.env import get_bool, get_env, get_float, get_str

_LOGGER = logging.getLogger("alertgraph.notify")

DEFAULT_TEMPLATE = "*[$status] $alertname*\n$summary"
SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


@dataclass(slots=True)
class AlertMessage:
    """Text and chart links delivered for one alert."""

    alert: Alert
    text: str
    image_urls: Sequence[str] = field(default_factory=list)

    def as_dict(self) -> Mapping[str, Any]:
        return {
            "alertname": self.alert.name,
            "status": self.alert.status,
            "labels": dict(self.alert.labels),
            "text": self.text,
            "image_urls": list(self.image_urls),
        }


class NotificationTransport(Protocol):
    """Transport interface for notification fan-out."""

    def send(self, message: AlertMessage) -> None:  # pragma: no cover - Protocol definition
        ...


class SlackTransport:
    """Posts the alert text with one image block per chart."""

    def __init__(
        self,
        token: str,
        channel: str,
        *,
        api_url: str = SLACK_POST_MESSAGE_URL,
        timeout_seconds: float = 4.0,
        session: requests.Session | None = None,
    ) -> None:
        self.token = token
        self.channel = channel
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def send(self, message: AlertMessage) -> Tuple[str, str]:
        try:
            response = self._session.post(
                self.api_url,
                json=self.payload(message),
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Content-Type": "application/json; charset=utf-8",
                },
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            raise NotificationError(f"slack request failed: {exc}") from exc
        except ValueError as exc:
            raise NotificationError("slack returned an invalid response") from exc
        if not body.get("ok"):
            raise NotificationError(f"slack rejected message: {body.get('error', 'unknown error')}")
        channel, ts = str(body.get("channel", "")), str(body.get("ts", ""))
        _LOGGER.info("slack message sent, channel: %s thread: %s", channel, ts)
        return channel, ts

    def payload(self, message: AlertMessage) -> Mapping[str, Any]:
        blocks: List[Mapping[str, Any]] = [
            {"type": "section", "text": {"type": "mrkdwn", "text": message.text}}
        ]
        for url in message.image_urls:
            blocks.append(
                {
                    "type": "image",
                    "image_url": url,
                    "alt_text": message.alert.name or "alert graph",
                }
            )
        return {"channel": self.channel, "text": message.text, "blocks": blocks}


class StdoutTransport:
    """Fallback transport that logs notifications locally."""

    def __init__(self) -> None:
        self.logger = logging.getLogger("alertgraph.notify.stdout")

    def send(self, message: AlertMessage) -> None:
        self.logger.warning("ALERT %s", json.dumps(message.as_dict()))


class AlertNotifier:
    """Formats alert messages and routes them to one or more transports."""

    def __init__(
        self,
        transports: Sequence[NotificationTransport],
        *,
        template: str = DEFAULT_TEMPLATE,
    ) -> None:
        if not transports:
            raise ValueError("AlertNotifier requires at least one transport")
        self._transports = list(transports)
        self._template = Template(template)

    def format_text(self, alert: Alert) -> str:
        fields = {"status": alert.status, "alertname": alert.name, "summary": alert.summary}
        fields.update(alert.labels)
        fields.update(alert.annotations)
        return self._template.safe_substitute(fields)

    def notify(self, alert: Alert, image_urls: Sequence[str] = ()) -> List[str]:
        """Deliver to every transport; returns the names of transports that failed."""

        message = AlertMessage(alert=alert, text=self.format_text(alert), image_urls=list(image_urls))
        failed: List[str] = []
        for transport in self._transports:
            try:
                transport.send(message)
            except Exception:
                _LOGGER.exception("notification transport failed for alert=%s", alert.name)
                failed.append(type(transport).__name__)
        return failed

    @property
    def transports(self) -> Sequence[NotificationTransport]:
        return list(self._transports)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "AlertNotifier":
        source = get_env(env)
        transports: List[NotificationTransport] = []
        token = get_str(source, "SLACK_TOKEN")
        channel = get_str(source, "SLACK_CHANNEL")
        if token and channel:
            transports.append(
                SlackTransport(
                    token,
                    channel,
                    api_url=get_str(source, "SLACK_API_URL", SLACK_POST_MESSAGE_URL)
                    or SLACK_POST_MESSAGE_URL,
                    timeout_seconds=get_float(source, "SLACK_TIMEOUT_SECONDS", 4.0),
                )
            )
        if get_bool(source, "NOTIFY_STDOUT_ENABLED", False) or not transports:
            transports.append(StdoutTransport())
        template = source.get("MESSAGE_TEMPLATE") or DEFAULT_TEMPLATE
        return cls(transports, template=template)


__all__ = [
    "AlertMessage",
    "AlertNotifier",
    "DEFAULT_TEMPLATE",
    "NotificationTransport",
    "SlackTransport",
    "StdoutTransport",
]
