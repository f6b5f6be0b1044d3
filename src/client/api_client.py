"""Async HTTP client for the Markfy links API."""
from typing import Any

import httpx
from pydantic.alias_generators import to_camel

from client.errors import MarkfyApiError, parse_http_error
from core.config import get_settings
from schemas.bookmark import LinkQuery, LinkResponse, PaginatedLinksResponse


def _query_params(query: LinkQuery) -> dict[str, Any]:
    """Serialize a LinkQuery into query-string parameters, skipping unset filters."""
    return query.model_dump(mode="json", exclude_none=True)


class MarkfyClient:
    """
    Thin wrapper over `httpx.AsyncClient`.

    Every method raises `MarkfyApiError` on a non-2xx response or a transport failure,
    so callers only deal with one exception type.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url or settings.api_url,
            timeout=timeout or settings.api_timeout,
        )

    async def __aenter__(self) -> "MarkfyClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise parse_http_error(e) from e
        except httpx.HTTPError as e:
            raise MarkfyApiError("internal", f"Request failed: {e.__class__.__name__}") from e
        return response.json()

    async def list_links(self, query: LinkQuery | None = None) -> PaginatedLinksResponse:
        """GET /links."""
        data = await self._request("GET", "/links", params=_query_params(query or LinkQuery()))
        return PaginatedLinksResponse.model_validate(data)

    async def get_link(self, link_id: str) -> LinkResponse:
        """GET /links/{id}."""
        return LinkResponse.model_validate(await self._request("GET", f"/links/{link_id}"))

    async def create_link(
        self,
        title: str,
        url: str,
        description: str | None = None,
        is_favorite: bool = False,
    ) -> LinkResponse:
        """POST /links."""
        payload: dict[str, Any] = {"title": title, "url": url, "isFavorite": is_favorite}
        if description is not None:
            payload["description"] = description
        return LinkResponse.model_validate(await self._request("POST", "/links", json=payload))

    async def update_link(self, link_id: str, **changes: Any) -> LinkResponse:
        """
        PATCH /links/{id}.

        Keyword arguments use attribute names (`is_favorite`) and are sent camelCased.
        """
        payload = {to_camel(field): value for field, value in changes.items()}
        data = await self._request("PATCH", f"/links/{link_id}", json=payload)
        return LinkResponse.model_validate(data)

    async def delete_link(self, link_id: str) -> None:
        """DELETE /links/{id}."""
        await self._request("DELETE", f"/links/{link_id}")

    async def toggle_favorite(self, link_id: str) -> LinkResponse:
        """PATCH /links/{id}/favorite."""
        data = await self._request("PATCH", f"/links/{link_id}/favorite")
        return LinkResponse.model_validate(data)
