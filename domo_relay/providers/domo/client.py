"""Async HTTP client for the Domo platform API."""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from domo_relay.core.exceptions import UpstreamAuthError, UpstreamError

logger = logging.getLogger(__name__)


def _error_payload(response: httpx.Response) -> Any:
    """Return the upstream error body, decoded as JSON when possible."""
    try:
        return response.json()
    except ValueError:
        return response.text or None


def classify_upstream_error(response: httpx.Response, url: str) -> UpstreamError:
    """Map a non-2xx Domo response onto the relay error taxonomy."""
    payload = _error_payload(response)
    if response.status_code == 401:
        return UpstreamAuthError(
            f"Unauthorized (401): {url}", details=payload, upstream_status=401
        )
    return UpstreamError(
        f"Domo request failed ({response.status_code}): {url}",
        details=payload,
        status_code=response.status_code,
        upstream_status=response.status_code,
    )


def _malformed_response(response: httpx.Response, url: str) -> UpstreamError:
    return UpstreamError(
        f"Unexpected response from Domo: {url}",
        details=response.text or None,
        upstream_status=response.status_code,
    )


class DomoClient:
    """
    Thin wrapper over ``httpx.AsyncClient`` for the Domo endpoints the relay uses.

    The client holds no token state; callers pass the bearer token on every
    call so that the token manager stays the only owner of the cache.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_base: str,
        timeout_seconds: float = 30.0,
    ):
        self.api_base = api_base.rstrip("/") if api_base else ""
        if not self.api_base.startswith(("http://", "https://")):
            raise ValueError(
                f"DomoClient api_base must start with http:// or https://, got: {api_base!r}. "
                "Set DOMO_API_BASE."
            )
        self._http = http_client
        self.timeout_seconds = timeout_seconds

    def _url(self, path: str) -> str:
        return f"{self.api_base}/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        url = self._url(path)
        headers = dict(kwargs.pop("headers", None) or {})
        if token:
            headers["Authorization"] = f"Bearer {token}"

        start = time.perf_counter()
        try:
            response = await self._http.request(
                method,
                url,
                headers=headers,
                timeout=timeout if timeout is not None else self.timeout_seconds,
                **kwargs,
            )
        except httpx.HTTPError as e:
            logger.error(
                "Domo request could not be completed",
                extra={"api_method": method, "api_url": url, "error": str(e)},
            )
            raise UpstreamError(f"Domo request failed: {url}", details=str(e)) from e

        duration = time.perf_counter() - start
        if response.is_success:
            logger.debug(
                "Domo request succeeded",
                extra={
                    "api_method": method,
                    "api_url": url,
                    "http_status": response.status_code,
                    "duration_seconds": round(duration, 3),
                },
            )
            return response

        error = classify_upstream_error(response, url)
        logger.warning(
            "Domo request failed",
            extra={
                "api_method": method,
                "api_url": url,
                "http_status": response.status_code,
                "response_body": error.details,
                "duration_seconds": round(duration, 3),
            },
        )
        raise error

    async def request_token(self, client_id: str, client_secret: str, scope: str) -> Dict[str, Any]:
        """Client-credentials grant; returns the raw token payload."""
        response = await self._request(
            "POST",
            "/oauth/token",
            data={"grant_type": "client_credentials", "scope": scope},
            auth=(client_id, client_secret),
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise _malformed_response(response, str(response.url)) from e
        if not isinstance(payload, dict):
            raise _malformed_response(response, str(response.url))
        return payload

    async def get_dataset_columns(self, dataset_id: str, token: str) -> List[str]:
        """Column names from the dataset metadata, in schema order.

        Raises:
            UpstreamError: If the metadata is not JSON or a column has no name
        """
        response = await self._request("GET", f"/v1/datasets/{dataset_id}", token=token)
        try:
            metadata = response.json()
            columns = (metadata.get("schema") or {}).get("columns") or []
            return [column["name"] for column in columns]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(
                "Domo dataset metadata could not be read",
                extra={"dataset_id": dataset_id, "error": repr(e)},
            )
            raise _malformed_response(response, str(response.url)) from e

    async def get_dataset_csv(self, dataset_id: str, token: str) -> str:
        response = await self._request(
            "GET",
            f"/v1/datasets/{dataset_id}/data",
            token=token,
            headers={"Accept": "text/csv"},
        )
        return response.text

    async def put_dataset_csv(
        self,
        dataset_id: str,
        token: str,
        csv_text: str,
        timeout: Optional[float] = None,
    ) -> int:
        """Replace the dataset content; returns the upstream status code."""
        response = await self._request(
            "PUT",
            f"/v1/datasets/{dataset_id}/data",
            token=token,
            timeout=timeout,
            headers={"Content-Type": "text/csv; charset=utf-8"},
            content=csv_text.encode("utf-8"),
        )
        return response.status_code
