"""Slack/Lark webhook client for sending alerts."""

import re
from enum import Enum
from typing import Any

import httpx
import structlog

from log_sentinel.metrics import WEBHOOK_DELIVERIES

log = structlog.get_logger()

_LARK_URL_RE = re.compile(r"feishu|lark")


class WebhookFamily(Enum):
    """Payload shape accepted by the webhook endpoint."""

    SLACK = "slack"
    LARK = "lark"


def resolve_family(url: str) -> WebhookFamily:
    """Pick the payload family from the webhook URL."""
    return WebhookFamily.LARK if _LARK_URL_RE.search(url) else WebhookFamily.SLACK


class WebhookClient:
    """Simple incoming-webhook client (Slack-compatible or Lark/Feishu)."""

    def __init__(
        self,
        webhook_url: str,
        channel: str | None = None,
        client: httpx.Client | None = None,
    ):
        self.webhook_url = webhook_url
        self.channel = channel
        self.family = resolve_family(webhook_url)
        self.client = client or httpx.Client(timeout=10.0)

    def payload(self, text: str) -> dict[str, Any]:
        """Build the JSON body for this endpoint family."""
        if self.family is WebhookFamily.LARK:
            return {"msg_type": "text", "content": {"text": text}}
        payload: dict[str, Any] = {"text": text}
        if self.channel:
            payload["channel"] = self.channel
        return payload

    def send(self, text: str) -> bool:
        """Post a message to the webhook.

        Delivery is attempted once; failures are logged, never raised.

        Returns:
            True if successful, False otherwise
        """
        family = self.family.value
        try:
            response = self.client.post(self.webhook_url, json=self.payload(text))
            response.raise_for_status()
            WEBHOOK_DELIVERIES.labels(family=family, status="success").inc()
            log.debug("Webhook message sent", family=family)
            return True
        except httpx.HTTPStatusError as e:
            WEBHOOK_DELIVERIES.labels(family=family, status="http_error").inc()
            log.error("Webhook failed", family=family, status=e.response.status_code)
            return False
        except httpx.RequestError as e:
            WEBHOOK_DELIVERIES.labels(family=family, status="request_error").inc()
            log.error("Webhook failed", family=family, error=str(e))
            return False

    def close(self) -> None:
        self.client.close()
