# src/flowfan/plugins/clients/transfer.py
"""Remote transfer client for pushing units to another flow instance.

A transfer is one transaction: send one or more packets (content plus
attributes), confirm that the remote side received exactly what was sent,
then complete. Anything that goes wrong surfaces as TransferError.

The protocols let put_remote be tested against a fake; HttpTransferClient
is the httpx-backed implementation:

    POST   {url}/ports/{port}/transactions                 -> {"transaction_id": ...}
    POST   {url}/ports/{port}/transactions/{id}/flow-files -> {"checksum": ...}
    DELETE {url}/ports/{port}/transactions/{id}?checksum=  -> finalise

The checksum is a CRC32 over every sent content payload, in send order.
"""

from __future__ import annotations

import base64
import gzip
import json
import zlib
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

import httpx
import structlog

logger = structlog.get_logger(__name__)


class TransferError(Exception):
    """A remote transfer could not be completed."""


@dataclass(frozen=True)
class TransferClientConfig:
    """Resolved per-unit settings for one client."""

    url: str
    port_name: str
    use_compression: bool = False
    timeout_seconds: float = 30.0


class Transaction(Protocol):
    """One send/confirm/complete exchange."""

    def send(self, content: bytes, attributes: Mapping[str, str]) -> None: ...

    def confirm(self) -> None: ...

    def complete(self) -> None: ...


class TransferClient(Protocol):
    """Client able to open send transactions against one remote port."""

    def create_transaction(self) -> Transaction: ...

    def close(self) -> None: ...


TransferClientFactory = Callable[[TransferClientConfig], TransferClient]


class HttpTransaction:
    """Send transaction over HTTP. Packets are buffered until confirm()."""

    def __init__(self, client: HttpTransferClient, transaction_url: str) -> None:
        self._client = client
        self._url = transaction_url
        self._packets: list[dict[str, Any]] = []
        self._crc = 0
        self._confirmed = False

    @property
    def checksum(self) -> str:
        return f"{self._crc:08x}"

    def send(self, content: bytes, attributes: Mapping[str, str]) -> None:
        if self._confirmed:
            raise TransferError("Cannot send on a confirmed transaction")
        self._packets.append(
            {
                "attributes": dict(attributes),
                "content": base64.b64encode(content).decode("ascii"),
            }
        )
        self._crc = zlib.crc32(content, self._crc)

    def confirm(self) -> None:
        """Push buffered packets and verify the remote checksum matches."""
        if not self._packets:
            raise TransferError("Cannot confirm a transaction with nothing sent")
        response = self._client._request("POST", f"{self._url}/flow-files", payload=self._packets)
        remote_checksum = _json_field(response, "checksum")
        if remote_checksum != self.checksum:
            self._client._cancel(self._url)
            raise TransferError(f"Checksum mismatch: sent {self.checksum}, remote reported {remote_checksum}")
        self._confirmed = True

    def complete(self) -> None:
        if not self._confirmed:
            raise TransferError("Cannot complete a transaction before it is confirmed")
        self._client._request("DELETE", self._url, params={"checksum": self.checksum})


class HttpTransferClient:
    """httpx-backed TransferClient.

    Args:
        config: Remote endpoint settings
        http_client: Optional pre-built httpx.Client (tests inject transports here)
    """

    def __init__(self, config: TransferClientConfig, *, http_client: httpx.Client | None = None) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._http = http_client if http_client is not None else httpx.Client(timeout=config.timeout_seconds)
        self._port_url = f"{config.url.rstrip('/')}/ports/{quote(config.port_name, safe='')}"

    def create_transaction(self) -> HttpTransaction:
        response = self._request("POST", f"{self._port_url}/transactions")
        transaction_id = _json_field(response, "transaction_id")
        return HttpTransaction(self, f"{self._port_url}/transactions/{quote(transaction_id, safe='')}")

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def _request(
        self,
        method: str,
        url: str,
        *,
        payload: Any = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        headers: dict[str, str] = {}
        body: bytes | None = None
        if payload is not None:
            body = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
            if self._config.use_compression:
                body = gzip.compress(body)
                headers["Content-Encoding"] = "gzip"
        try:
            response = self._http.request(method, url, content=body, headers=headers, params=params)
            response.raise_for_status()
        # InvalidURL is not an HTTPError subclass
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransferError(f"{method} {url} failed: {e}") from e
        return response

    def _cancel(self, transaction_url: str) -> None:
        """Best-effort cancel after a failed confirm. The confirm error is what gets raised."""
        try:
            self._http.request("DELETE", transaction_url, params={"cancel": "true"})
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("transaction cancel failed", url=transaction_url, error=str(e))


def _json_field(response: httpx.Response, key: str) -> str:
    try:
        value = response.json()[key]
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise TransferError(f"Remote response is missing '{key}': {response.text[:200]!r}") from e
    if not isinstance(value, str) or not value:
        raise TransferError(f"Remote response field '{key}' must be a non-empty string")
    return value


def http_client_factory(config: TransferClientConfig) -> TransferClient:
    """Default TransferClientFactory."""
    return HttpTransferClient(config)
