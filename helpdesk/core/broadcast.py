"""
Best-effort real-time notifications.

Events are posted as JSON to the configured pub/sub relay. Delivery is
fire-and-forget: failures are logged and never propagate to the request that
triggered them.
"""
import logging
from typing import Any, Dict

import requests

from helpdesk.core.config import settings

logger = logging.getLogger(__name__)

TICKETS_CHANNEL = "tickets"
WORK_ORDERS_CHANNEL = "work-orders"
# staff inbox badge for unread chat messages
CHAT_NOTIFICATIONS_CHANNEL = "admin.notifications"


def ticket_channel(ticket_id: int) -> str:
    return f"ticket.{ticket_id}"


def conversation_channel(conversation_id: int) -> str:
    return f"chat.{conversation_id}"


def _headers() -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if settings.BROADCAST_TOKEN:
        headers["Authorization"] = f"Bearer {settings.BROADCAST_TOKEN}"
    return headers


def publish(channel: str, event: str, payload: Dict[str, Any]) -> bool:
    """Publish one event. Returns True when the relay accepted it."""
    if not settings.BROADCAST_URL:
        logger.debug("Broadcast disabled, dropping %s on %s", event, channel)
        return False

    body = {"channel": channel, "event": event, "data": payload}
    try:
        response = requests.post(
            settings.BROADCAST_URL,
            json=body,
            headers=_headers(),
            timeout=settings.BROADCAST_TIMEOUT,
        )
        response.raise_for_status()
        logger.info("Broadcast %s on %s", event, channel)
        return True
    except Exception:
        logger.exception("Failed to broadcast %s on %s", event, channel)
        return False
