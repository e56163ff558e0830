from __future__ import annotations

import logging

import httpx

from bridge.core.errors import TransportError

logger = logging.getLogger(__name__)


class BridgeClient:
    def __init__(self, timeout_seconds: float = 10.0, client: httpx.AsyncClient | None = None) -> None:
        self.timeout_seconds = timeout_seconds
        self.client = client

    async def post_json(self, url: str, body: bytes, *, token: str) -> bytes:
        if self.client is not None:
            response = await self._send(self.client, url, body, token)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, follow_redirects=True) as client:
                response = await self._send(client, url, body, token)

        logger.debug("external adapter responded status=%s url=%s", response.status_code, response.url)
        if response.status_code >= 400:
            text = response.text
            raise TransportError(
                f"POST response: {response.status_code} {text}",
                status_code=response.status_code,
                body=text,
            )
        return response.content

    async def _send(self, client: httpx.AsyncClient, url: str, body: bytes, token: str) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        try:
            request = client.build_request("POST", url, content=body, headers=headers)
        except (httpx.InvalidURL, UnicodeEncodeError, ValueError, TypeError) as exc:
            raise TransportError(f"building outgoing bridge http post: {exc}") from exc

        # 307/308 replay the POST body on the new location.
        try:
            return await client.send(request, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"POST request: {exc}") from exc
