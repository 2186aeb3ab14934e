"""WhatsApp messaging adapter (form-encoded ``send`` endpoint with a token)."""

from __future__ import annotations

import httpx

from bakeorder.application.ports import NotificationClient
from bakeorder.domain.exceptions import DependencyFailureError


class WhatsappNotificationClient(NotificationClient):

    def __init__(
        self,
        url: str,
        token: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._client = client or httpx.Client(
            timeout=timeout, headers={"Authorization": token}
        )

    def send(self, phone: str, message: str, country_code: str) -> None:
        try:
            response = self._client.post(
                self._url,
                data={"target": phone, "message": message, "countryCode": country_code},
            )
        except httpx.HTTPError as exc:
            raise DependencyFailureError(f"Messaging API unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise DependencyFailureError(
                f"Messaging API returned {response.status_code}: {response.text[:200]}"
            )

        # the API answers 200 with {"status": false, "reason": ...} on rejection
        try:
            data = response.json()
        except ValueError:
            data = {}
        if data.get("status") is False:
            raise DependencyFailureError(
                f"Messaging API rejected message: {data.get('reason', 'unknown reason')}"
            )

    def close(self) -> None:
        self._client.close()
