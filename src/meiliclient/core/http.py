"""
meiliclient HTTP transport

Thin wrapper around one :class:`httpx.Client` shared by the client and all
of its handles.  Every request goes through :meth:`HttpRequests.request`,
which turns non-2xx answers into :class:`~meiliclient.exceptions.ApiError`
and transport failures into
:class:`~meiliclient.exceptions.CommunicationError`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from meiliclient.core.config import ClientConfig
from meiliclient.exceptions import ApiError, CommunicationError

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}


def clean_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop ``None`` values and join list values with commas."""
    if not params:
        return {}
    cleaned: Dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            value = ",".join(str(v) for v in value)
        elif isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = value
    return cleaned


class HttpRequests:
    """
    JSON-over-HTTP helper bound to a Meilisearch base URL.

    Args:
        config: Client configuration (URL, auth header, timeout).
        http_client: Optional pre-built :class:`httpx.Client`.  When given,
            the caller owns its pooling, transport and lifetime; the config
            URL is used only if the client has no base URL, and the auth
            header is still added when *config* carries a key.
    """

    def __init__(self, config: ClientConfig, http_client: httpx.Client | None = None):
        self._config = config
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.Client(
                base_url=config.base_url,
                timeout=config.timeout,
                headers={**JSON_HEADERS, **config.auth_headers()},
            )
        else:
            if not http_client.base_url.host:
                http_client.base_url = config.base_url
            http_client.headers.update(config.auth_headers())
        self._client = http_client

    @property
    def http_client(self) -> httpx.Client:
        return self._client

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def close(self) -> None:
        """Close the underlying client if this wrapper created it."""
        if self._owns_client and not self._client.is_closed:
            self._client.close()

    # ── Verbs ─────────────────────────────────────────────────────

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, body: Any = None,
             params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("POST", path, body=body, params=params)

    def put(self, path: str, body: Any = None,
            params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("PUT", path, body=body, params=params)

    def patch(self, path: str, body: Any = None,
              params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("PATCH", path, body=body, params=params)

    def delete(self, path: str, body: Any = None,
               params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("DELETE", path, body=body, params=params)

    # ── Core ──────────────────────────────────────────────────────

    def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body.

        Returns:
            The parsed JSON, or ``None`` when the response has no body
            (e.g. ``204 No Content``).

        Raises:
            ApiError: The server answered with a non-2xx status.
            IndexNotFoundError: The error code was ``index_not_found``.
            CommunicationError: The server could not be reached.
        """
        kwargs: Dict[str, Any] = {"params": clean_params(params)}
        if body is not None:
            kwargs["json"] = body
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            logger.debug(f"{method} {path} failed: {exc}")
            raise CommunicationError(
                f"Could not reach Meilisearch at {self._config.base_url}: {exc}"
            ) from exc

        logger.debug(f"{method} {path} -> {response.status_code}")

        if not response.is_success:
            raise ApiError.from_body(
                response.status_code, _decode(response), response.text
            )
        return _decode(response)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None
