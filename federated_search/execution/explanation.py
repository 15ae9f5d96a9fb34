"""
Forwarding of score explanations to the explanation extractor service.

Explanations are large, so they are stripped from caller responses. When an
extractor endpoint is configured, a copy is posted to it on a detached
thread; the request path never waits for it and its failures only reach the
logs.
"""

import logging
import threading
from typing import Any, Dict, Optional

import httpx

from federated_search.core.models import Query

logger = logging.getLogger(__name__)


class ExplanationForwarder:
    """
    Fire-and-forget client for ``POST <extractor>/process_data``.
    """

    def __init__(
        self,
        base_url: Optional[str],
        user: str = "",
        password: str = "",
        destination_table: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            base_url: Extractor base URL; blank disables forwarding
            user: Basic-auth user
            password: Basic-auth password
            destination_table: Table the extractor writes explanations to
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = (base_url or "").strip()
        self.user = user
        self.password = password
        self.destination_table = destination_table
        self.timeout = timeout
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/process_data"

    def forward(self, payload: Dict[str, Any], query: Query) -> Optional[threading.Thread]:
        """
        Send explanations on a detached daemon thread.

        Args:
            payload: Hit ids and explanations; must not be shared with the caller
            query: Query that produced the hits

        Returns:
            The started thread, or None when forwarding is disabled
        """
        if not self.enabled:
            return None

        body = {
            "data": payload,
            "query": query.model_dump_json(by_alias=True),
            "destination_table": self.destination_table,
        }
        thread = threading.Thread(
            target=self._send, args=(body,), name="explanation-forwarder", daemon=True
        )
        thread.start()
        return thread

    def _send(self, body: Dict[str, Any]):
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    self.endpoint, json=body, auth=(self.user, self.password)
                )
        except httpx.HTTPError as e:
            logger.info("Failed to send search explanation: %s", e)
            return
        logger.debug(
            "Search explanation extraction routine exited with response: %s %s",
            response.status_code,
            response.text,
        )
