"""REST client for interacting with an Ergo node.

The client is the ledger session handed to network commands. It forwards
well-typed requests to the node and surfaces failures as ``DomainError``
subclasses; no signing or consensus logic is implemented here.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional, Protocol, TypeVar

import requests
from requests import RequestException, Response

from .config import NodeConfig, ToolConfig
from .errors import DomainError
from .model import InputBox

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NodeError(DomainError):
    """Raised when the node answers a request with an API error."""

    def __init__(self, status_code: int, reason: str, detail: str | None = None) -> None:
        message = f"Node error {status_code}: {reason}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.detail = detail


class NodeTransportError(DomainError):
    """Raised when the node is unreachable or returns malformed data."""


class LedgerSession(Protocol):
    """Operations network commands may perform against the ledger."""

    def get_height(self) -> int:
        """Return the current full block height."""

    def get_unspent_boxes(
        self, address: str, limit: int = 50, offset: int = 0
    ) -> list[InputBox]:
        """Return one page of unspent boxes guarded by ``address``."""

    def compile_contract(self, source: str) -> str:
        """Compile ErgoScript ``source`` and return the hex encoded ErgoTree."""

    def sign_transaction(self, unsigned_tx: Dict[str, Any], secrets: list[str]) -> Dict[str, Any]:
        """Sign ``unsigned_tx`` with the given hex encoded dlog secrets."""

    def send_transaction(self, signed_tx: Dict[str, Any]) -> str:
        """Submit ``signed_tx`` to the network and return its id."""


class ErgoNodeClient:
    """Thin JSON client for the Ergo node REST API.

    Use it as a context manager so the underlying HTTP session is closed on
    every exit path.
    """

    def __init__(self, config: NodeConfig, http: requests.Session | None = None) -> None:
        self.config = config
        self._session = http or requests.Session()
        self._base_url = config.api_url.rstrip("/")

    def __enter__(self) -> "ErgoNodeClient":
        return self

    def __exit__(self, *_exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        payload: Any = None,
        params: Optional[Dict[str, Any]] = None,
        raw_body: str | None = None,
    ) -> Any:
        """Perform a request and return the decoded JSON body."""

        headers = {"accept": "application/json"}
        if self.config.api_key:
            headers["api_key"] = self.config.api_key
        data = None
        if raw_body is not None:
            headers["content-type"] = "text/plain"
            data = raw_body
        elif payload is not None:
            headers["content-type"] = "application/json"
            data = json.dumps(payload)

        logger.debug("Node request %s %s", method, path)
        try:
            response = self._session.request(
                method,
                f"{self._base_url}{path}",
                data=data,
                params=params,
                headers=headers,
                timeout=self.config.timeout,
            )
        except RequestException as exc:
            logger.debug("Node connection failed: %s", exc, exc_info=True)
            raise NodeTransportError(
                f"Cannot reach the Ergo node at {self._base_url}. Ensure the node is running "
                "and node.api_url (or ERGOTOOL_NODE_URL) points to it."
            ) from exc
        self._raise_for_status(response)
        try:
            return response.json()
        except ValueError as exc:
            logger.debug("Node JSON parse error: %s", response.text, exc_info=True)
            raise NodeTransportError("Node returned malformed JSON") from exc

    def _raise_for_status(self, response: Response) -> None:
        if response.ok:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        logger.debug("Node HTTP error %s from %s", response.status_code, response.url)
        if response.status_code in {401, 403}:
            raise NodeError(
                response.status_code,
                "unauthorized",
                "check node.api_key (or ERGOTOOL_API_KEY)",
            )
        raise NodeError(
            response.status_code,
            str(body.get("reason") or response.reason or "request failed"),
            body.get("detail"),
        )

    # Convenience wrappers -------------------------------------------------

    def info(self) -> Dict[str, Any]:
        return self.request("GET", "/info")

    def get_height(self) -> int:
        info = self.info()
        height = info.get("fullHeight")
        if height is None:
            raise NodeTransportError("Node has not synced any full blocks yet")
        return int(height)

    def get_unspent_boxes(
        self, address: str, limit: int = 50, offset: int = 0
    ) -> list[InputBox]:
        boxes = self.request(
            "POST",
            "/blockchain/box/unspent/byAddress",
            params={"offset": offset, "limit": limit},
            raw_body=address,
        )
        return [InputBox.from_json(item) for item in boxes or []]

    def compile_contract(self, source: str) -> str:
        compiled = self.request("POST", "/script/p2sAddress", payload={"source": source})
        address = compiled.get("address") if isinstance(compiled, dict) else None
        if not address:
            raise NodeTransportError("Node did not return an address for the compiled contract")
        tree = self.request("GET", f"/script/addressToTree/{address}")
        return tree["tree"]

    def sign_transaction(self, unsigned_tx: Dict[str, Any], secrets: list[str]) -> Dict[str, Any]:
        return self.request(
            "POST",
            "/wallet/transaction/sign",
            payload={"tx": unsigned_tx, "secrets": {"dlog": secrets}},
        )

    def send_transaction(self, signed_tx: Dict[str, Any]) -> str:
        return str(self.request("POST", "/transactions", payload=signed_tx))


class NodeSessionFactory:
    """Runs a body with a node session that is closed afterwards."""

    def __init__(self, http_factory: Callable[[], requests.Session] | None = None) -> None:
        self._http_factory = http_factory

    def execute(self, config: ToolConfig, body: Callable[[ErgoNodeClient], T]) -> T:
        http = self._http_factory() if self._http_factory else None
        with ErgoNodeClient(config.node, http=http) as client:
            return body(client)
