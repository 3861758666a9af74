"""Expo push notification delivery."""

from __future__ import annotations

import logging

import httpx

from models import db
from models.user import User

logger = logging.getLogger(__name__)


class PushClient:
    def __init__(
        self,
        push_url: str,
        *,
        timeout: float = 8.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.push_url = push_url
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def send(self, messages: list[dict]) -> bool:
        """Post messages to Expo; failures are logged and reported as False."""

        if not messages:
            return True
        try:
            resp = self._client.post(self.push_url, json=messages)
        except httpx.HTTPError as exc:
            logger.warning("Push notification error: %s", exc)
            return False
        if resp.status_code >= 400:
            logger.warning("Push notification failed: %s", resp.text[:200])
            return False
        return True

    def close(self) -> None:
        self._client.close()


def send_push_to_user(
    client: PushClient | None,
    user_id: int,
    title: str,
    body: str,
    data: dict | None = None,
) -> bool:
    """Notify a user's registered device, if any."""

    if client is None:
        return False
    user = db.session.get(User, user_id)
    if user is None or not user.expo_push_token:
        return False
    message = {"to": user.expo_push_token, "title": title, "body": body}
    if data:
        message["data"] = data
    return client.send([message])
