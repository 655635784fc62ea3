"""HTTP transport for the Dune API.

Wraps an ``httpx.Client`` with:
- Lazy client creation on first use
- The static API key header on every request
- JSON decoding of response bodies
- Mapping of failures onto ``DuneAPIError`` / ``DuneTransportError``

The transport keeps no per-request state, so one instance can serve many
executions from several threads at once.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import httpx

from dune_query.errors import DuneAPIError, DuneError, DuneTransportError
from dune_query.observability import get_logger

if TYPE_CHECKING:
    from dune_query.config import DuneSettings

API_KEY_HEADER = "X-Dune-API-Key"

logger = get_logger(__name__)


class ApiTransport:
    """Sends requests to the Dune API and decodes their JSON bodies."""

    def __init__(
        self,
        api_key: str,
        settings: DuneSettings,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            api_key: Dune API key.
            settings: Client settings providing base URL and timeout.
            transport: httpx transport override, e.g. ``httpx.MockTransport`` in tests.
        """
        self._api_key = api_key
        self._settings = settings
        self._transport = transport
        self._client: httpx.Client | None = None
        self._lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        """Get the httpx client (lazy initialization)."""
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(
                    base_url=self._settings.base_url.rstrip("/") + "/",
                    timeout=self._settings.request_timeout,
                    transport=self._transport,
                )
            return self._client

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Send a GET request and return the decoded JSON body."""
        return self._request("GET", path, params=params)

    def post(self, path: str, json: dict[str, Any] | None = None) -> Any:
        """Send a POST request and return the decoded JSON body."""
        return self._request("POST", path, json=json)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and map the outcome onto the error model.

        Raises:
            DuneAPIError: If Dune answered with an ``{"error": ...}`` body.
            DuneTransportError: If no valid response was obtained.
        """
        headers = {API_KEY_HEADER: self._api_key}
        try:
            response = self.client.request(method, path.lstrip("/"), headers=headers, **kwargs)
        # Header values that are not ASCII fail while the request is built.
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as e:
            logger.warning("dune_request_failed", method=method, path=path, error=str(e))
            raise DuneTransportError.from_exception(e) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and isinstance(body.get("error"), str):
            logger.info(
                "dune_api_error",
                method=method,
                path=path,
                status_code=response.status_code,
                error=body["error"],
            )
            raise DuneAPIError.from_body(DuneError.model_validate(body))

        if not response.is_success:
            raise DuneTransportError(
                f"HTTP {response.status_code} from {method} {path}: {response.text[:200]}"
            )

        if body is None:
            raise DuneTransportError(f"Response from {method} {path} is not valid JSON")

        return body

    def close(self) -> None:
        """Close the httpx client and release its connection pool."""
        with self._lock:
            if self._client is not None:
                self._client.close()
            self._client = None
