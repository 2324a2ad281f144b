"""Fetch raw map descriptors and enrichment data from the remote services.

Two services are involved:
- the tarkov-dev ``maps.json`` feed (map groups and their variants)
- the tarkov.dev GraphQL API (display names, spawns, extracts)
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from config import USER_AGENT, get_graphql_url, get_maps_json_url
from exceptions import FetchError, GraphQLError, HttpStatusError
from maps.models import Extract, Spawn
from maps.normalize import normalize_extracts, normalize_spawns

logger = logging.getLogger(__name__)

MAP_NAMES_QUERY = """
query MapNames {
  maps {
    normalizedName
    name
  }
}
"""

MAP_SPAWNS_QUERY = """
query MapSpawns {
  maps {
    normalizedName
    spawns {
      position { x y z }
      sides
      categories
    }
  }
}
"""

MAP_EXTRACTS_QUERY = """
query MapExtracts {
  maps {
    normalizedName
    extracts {
      name
      faction
      position { x y z }
    }
  }
}
"""


async def fetch_bytes(client: httpx.AsyncClient, url: str, resource: str) -> bytes:
    """
    GET a URL and return the body.

    Args:
        client: Shared async HTTP client
        url: URL to fetch
        resource: Human-readable name used in error messages (e.g. "SVG", "tile")

    Raises:
        FetchError: On transport errors (connection, timeout)
        HttpStatusError: On any non-2xx response
    """
    try:
        response = await client.get(url, headers={"User-Agent": USER_AGENT})
    except httpx.TransportError as e:
        raise FetchError(resource, f"{url}: {e}") from e

    if not response.is_success:
        raise HttpStatusError(resource, response.status_code)
    return response.content


class SourceDataClient:
    """
    Reads the upstream map feed and the enrichment API.

    Usage:
        async with httpx.AsyncClient() as http:
            source = SourceDataClient(http)
            groups = await source.fetch_map_groups()
            names = await source.fetch_map_names()
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        maps_json_url: Optional[str] = None,
        graphql_url: Optional[str] = None
    ):
        self.http = http
        self.maps_json_url = maps_json_url or get_maps_json_url()
        self.graphql_url = graphql_url or get_graphql_url()

    async def fetch_map_groups(self) -> List[Dict[str, Any]]:
        """Fetch and parse the ``maps.json`` group array."""
        body = await fetch_bytes(self.http, self.maps_json_url, "maps.json")
        logger.info(f"Fetched {len(body)} bytes of map JSON")
        try:
            groups = json.loads(body)
        except ValueError as e:
            raise FetchError("maps.json", f"invalid JSON: {e}") from e
        if not isinstance(groups, list):
            raise FetchError("maps.json", "expected a JSON array of map groups")
        for index, group in enumerate(groups):
            if not isinstance(group, dict):
                raise FetchError("maps.json", f"map group {index} is not an object: {group!r}")
        return groups

    async def _query(self, query: str) -> Dict[str, Any]:
        try:
            response = await self.http.post(
                self.graphql_url,
                json={"query": query},
                headers={"User-Agent": USER_AGENT},
            )
        except httpx.TransportError as e:
            raise FetchError("GraphQL", str(e)) from e

        if not response.is_success:
            raise HttpStatusError("GraphQL", response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise GraphQLError(f"invalid GraphQL response: {e}") from e

        if not isinstance(payload, dict):
            raise GraphQLError(f"GraphQL response is not an object: {payload!r}")

        errors = payload.get("errors")
        if errors:
            messages = [err.get("message", str(err)) for err in errors]
            raise GraphQLError("; ".join(messages))

        data = payload.get("data")
        if data is None:
            raise GraphQLError("GraphQL response missing data")
        return data

    def _maps(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        maps = data.get("maps") or []
        for entry in maps:
            if not isinstance(entry, dict) or not entry.get("normalizedName"):
                raise GraphQLError(f"map entry without normalizedName: {entry!r}")
        return maps

    async def fetch_map_names(self) -> Dict[str, str]:
        """Return ``normalizedName -> display name``."""
        data = await self._query(MAP_NAMES_QUERY)
        return {m["normalizedName"]: m.get("name") for m in self._maps(data)}

    async def fetch_map_spawns(self) -> Dict[str, List[Spawn]]:
        """Return player spawns per map (already filtered to PMC player spawns)."""
        data = await self._query(MAP_SPAWNS_QUERY)
        return {
            m["normalizedName"]: normalize_spawns(m.get("spawns") or [], m["normalizedName"])
            for m in self._maps(data)
        }

    async def fetch_map_extracts(self) -> Dict[str, List[Extract]]:
        """Return extracts per map."""
        data = await self._query(MAP_EXTRACTS_QUERY)
        return {
            m["normalizedName"]: normalize_extracts(m.get("extracts") or [], m["normalizedName"])
            for m in self._maps(data)
        }
