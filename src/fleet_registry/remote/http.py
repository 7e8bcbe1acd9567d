"""
HTTP dispatcher.

Reaches registries hosted behind a Fleet Registry gateway. Carries the
transport timeout only; there is no retry at this layer.
"""

import logging
from collections.abc import Sequence

import httpx

from fleet_registry.remote.client import decode_call
from fleet_registry.store.base import InvokeResponse

logger = logging.getLogger(__name__)


class HttpDispatcher:
    """Dispatcher that posts invocations to a remote gateway."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            base_url: Gateway root, e.g. http://peer0:8080
            timeout_seconds: Transport timeout per call
            client: Preconfigured httpx client (mainly for tests)
        """
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def url_for(self, target: str, namespace: str) -> str:
        return f"{self.base_url}/channels/{namespace}/registries/{target}/invoke"

    def dispatch(
        self, target: str, args: Sequence[bytes], namespace: str
    ) -> InvokeResponse:
        """POST the call and translate the gateway reply into an InvokeResponse."""
        function, rest = decode_call(args)
        try:
            response = self._client.post(
                self.url_for(target, namespace), json={"args": [function, *rest]}
            )
        except httpx.HTTPError as e:
            logger.warning(f"Gateway call to {target} failed: {e}")
            return InvokeResponse.error(f"Gateway unreachable: {e}", status=503)

        try:
            body = response.json()
        except ValueError:
            return InvokeResponse.error(
                f"Gateway returned a non-JSON reply ({response.status_code})",
                status=response.status_code if response.status_code >= 400 else 502,
            )

        return InvokeResponse(
            status=int(body.get("status", response.status_code)),
            payload=(body.get("payload") or "").encode("utf-8"),
            message=body.get("message") or "",
        )
