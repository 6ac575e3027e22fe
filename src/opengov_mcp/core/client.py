"""HTTP client for the Socrata (SODA) data API."""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Optional

import httpx

from opengov_mcp.core.errors import (
    RemoteApiError,
    RemoteApiRequestError,
    RemoteApiUnreachable,
)
from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)

Scalar = str | int | float | bool
Params = Mapping[str, Optional[Scalar]]


def base_url_for(domain: str) -> str:
    """Build the API base URL for a portal domain (``data.city.gov``)."""
    host = re.sub(r"^https?://", "", domain.strip()).rstrip("/")
    return f"https://{host}"


def resource_path(dataset_id: str) -> str:
    """Path of the SODA row endpoint for a dataset."""
    return f"/resource/{dataset_id}.json"


def _response_body(response: httpx.Response) -> str:
    try:
        return json.dumps(response.json())
    except ValueError:
        return response.text


class SocrataClient:
    """Thin async wrapper over ``httpx.AsyncClient``.

    Normalizes every failure into one of the ``RemoteFetchFailed``
    subclasses so callers only need to handle a single category.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )

    async def fetch(
        self, path: str, params: Optional[Params] = None, base_url: str = ""
    ) -> Any:
        """GET ``base_url + path`` and return the decoded JSON body.

        Args:
            path: Endpoint path, e.g. ``/resource/abcd-1234.json``
            params: Query-string parameters; ``None`` values are dropped
            base_url: Scheme + host, e.g. ``https://data.city.gov``

        Raises:
            RemoteApiError: Non-2xx response
            RemoteApiUnreachable: No response (network error, timeout)
            RemoteApiRequestError: Request could not be built
        """
        query = {k: v for k, v in (params or {}).items() if v is not None}
        url = f"{base_url}{path}"
        response = await self._send(url, query)

        try:
            return response.json()
        except ValueError as e:
            raise RemoteApiError(
                response.status_code,
                "Invalid JSON in response",
                response.text[:500],
            ) from e

    async def fetch_text(self, url: str) -> str:
        """GET an arbitrary URL and return the body as text."""
        response = await self._send(url, {})
        return response.text

    async def _send(self, url: str, query: dict[str, Any]) -> httpx.Response:
        logger.debug(f"GET {url}", extra={"event": "socrata_request", "params": query})

        try:
            response = await self._http.get(url, params=query)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            logger.error(f"Could not build request for {url}: {e}")
            raise RemoteApiRequestError(str(e)) from e
        except httpx.RequestError as e:
            logger.error(f"No response from {url}: {e}")
            raise RemoteApiUnreachable(str(e) or type(e).__name__) from e

        if not response.is_success:
            body = _response_body(response)
            logger.error(
                f"API request failed: {response.status_code} {response.reason_phrase} ({url})"
            )
            raise RemoteApiError(response.status_code, response.reason_phrase, body)

        return response

    async def aclose(self) -> None:
        await self._http.aclose()
