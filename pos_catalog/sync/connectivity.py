"""Connectivity signal consulted before background revalidation."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    def __init__(
        self,
        online: bool = True,
        probe_url: Optional[str] = None,
        *,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._online = online
        self.probe_url = probe_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        if online != self._online:
            logger.info("Connectivity changed: %s", "online" if online else "offline")
        self._online = online

    async def check(self) -> bool:
        """Probe ``probe_url`` and record the outcome. Without a probe URL the state is unchanged."""
        if not self.probe_url:
            return self._online
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.head(self.probe_url)
            online = response.status_code < 500
        except httpx.HTTPError as exc:
            logger.debug("Connectivity probe to %s failed: %s", self.probe_url, exc)
            online = False
        self.set_online(online)
        return online
