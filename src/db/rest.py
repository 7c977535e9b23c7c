"""
REST implementation of the adventure repository.

Talks to the adventure backend over HTTP:

    GET    /adventures             list adventures
    GET    /adventures/{id}        load one adventure
    PUT    /adventures/{id}        save (create or replace) an adventure
    DELETE /adventures/{id}        delete an adventure
    GET    /gamestate/{id}         load saved progress for an adventure
    PUT    /gamestate/{id}         save progress

Write requests carry the admin session token in the X-Session-Id header.
"""

from __future__ import annotations

import logging

import httpx

from src.db.interfaces import RepositoryError, UnsupportedKindError
from src.models import Adventure, EntityKind, PlayerState

logger = logging.getLogger(__name__)

_PATHS = {
    EntityKind.ADVENTURE: "/adventures",
    EntityKind.GAME_STATE: "/gamestate",
}
_MODELS = {
    EntityKind.ADVENTURE: Adventure,
    EntityKind.GAME_STATE: PlayerState,
}


class RestAdventureRepository:
    """
    AdventureRepository backed by the REST API.

    Args:
        base_url: API root, e.g. "http://localhost:3000/api"
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass a MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session_token: str | None = None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _path(self, kind: EntityKind, entity_id: str | None = None) -> str:
        if kind not in _PATHS:
            raise UnsupportedKindError(
                f"{kind.value} records are stored inside their adventure"
            )
        path = _PATHS[kind]
        return f"{path}/{entity_id}" if entity_id is not None else path

    def _headers(self) -> dict[str, str]:
        if self.session_token:
            return {"X-Session-Id": self.session_token}
        return {}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(
                method, path, headers=self._headers(), **kwargs
            )
        except httpx.TimeoutException as e:
            logger.warning("Request %s %s timed out", method, path)
            raise RepositoryError("The adventure service took too long to respond") from e
        except httpx.RequestError as e:
            logger.warning("Request %s %s failed: %s", method, path, e)
            raise RepositoryError("Unable to reach the adventure service") from e
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        message = f"Request failed with status {response.status_code}"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                message = error["message"]
            elif isinstance(error, str):
                message = error
        raise RepositoryError(message)

    async def load_entity(self, kind: EntityKind, entity_id: str):
        """Load a record by id; a 404 means it does not exist."""
        response = await self._request("GET", self._path(kind, entity_id))
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return _MODELS[kind].model_validate(response.json())

    async def save_entity(self, kind: EntityKind, entity) -> None:
        """Create or replace a record."""
        payload = entity.model_dump(mode="json", by_alias=True)
        response = await self._request("PUT", self._path(kind, entity.id), json=payload)
        self._raise_for_status(response)
        logger.debug("Saved %s %s", kind.value, entity.id)

    async def delete_entity(self, kind: EntityKind, entity_id: str) -> bool:
        """Delete a record; a 404 means nothing was deleted."""
        response = await self._request("DELETE", self._path(kind, entity_id))
        if response.status_code == 404:
            return False
        self._raise_for_status(response)
        return True

    async def list_entities(self, kind: EntityKind, filters: dict[str, str] | None = None):
        """List records; filters are sent as query parameters."""
        response = await self._request("GET", self._path(kind), params=filters or None)
        self._raise_for_status(response)
        body = response.json()
        if isinstance(body, dict):
            body = body.get("items", [])
        model = _MODELS[kind]
        return [model.model_validate(item) for item in body]
