from typing import Any, Dict, Optional

from urllib3.util.retry import Retry

from . import constants as c
from .http_client import JsonApiClient
from .logging import APIError

_MEDIA_FIELDS = """
    id
    idMal
    title { english romaji native }
    description
    coverImage { large medium }
    bannerImage
    averageScore
    seasonYear
    status
    genres
    episodes
    chapters
    volumes
    popularity
    favourites
"""

_PAGE_QUERY = """
query ($search: String, $page: Int, $perPage: Int, $type: MediaType, $sort: [MediaSort]) {
  Page(page: $page, perPage: $perPage) {
    pageInfo { total currentPage lastPage hasNextPage }
    media(type: $type, search: $search, sort: $sort) {%s}
  }
}
""" % _MEDIA_FIELDS

_MEDIA_BY_ID_QUERY = """
query ($id: Int, $type: MediaType) {
  Media(id: $id, type: $type) {%s}
}
""" % _MEDIA_FIELDS

_MEDIA_BY_MAL_ID_QUERY = """
query ($idMal: Int, $type: MediaType) {
  Media(idMal: $idMal, type: $type) {
    id
    idMal
    title { english romaji native }
  }
}
"""


class AniListAPI(JsonApiClient):
    """Client for the AniList GraphQL API."""

    name = "AniList"
    # GraphQL reads go out as POST and are safe to repeat
    retry_methods = Retry.DEFAULT_ALLOWED_METHODS | {"POST"}

    def __init__(self, base_url: str = c.ANILIST_BASE_URL, timeout: int = c.HTTP_TIMEOUT_SECONDS, **kwargs):
        kwargs.setdefault("rate_limit", c.ANILIST_RATE_LIMIT_DELAY)
        super().__init__(base_url, timeout=timeout, **kwargs)

    def query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Runs a GraphQL query and returns the full response body.

        Raises:
            APIError: On transport errors, or when the response carries errors and no data.
        """
        body = self._post_json("", {"query": query, "variables": variables or {}})
        if body.get("errors") and not body.get("data"):
            message = body["errors"][0].get("message", "unknown error")
            status = body["errors"][0].get("status")
            raise APIError(f"AniList query failed: {message}", status_code=status)
        return body

    def _page(self, media_type: str, page: int, per_page: int, search: Optional[str] = None,
              sort: str = "POPULARITY_DESC") -> Dict[str, Any]:
        variables = {"page": page, "perPage": per_page, "type": media_type, "sort": [sort]}
        if search:
            variables["search"] = search
        return self.query(_PAGE_QUERY, variables)

    def search_anime(self, search: str, page: int = 1, per_page: int = c.CATALOG_PAGE_SIZE) -> Dict[str, Any]:
        return self._page("ANIME", page, per_page, search=search)

    def search_manga(self, search: str, page: int = 1, per_page: int = c.CATALOG_PAGE_SIZE) -> Dict[str, Any]:
        return self._page("MANGA", page, per_page, search=search)

    def get_trending_anime(self, page: int = 1, per_page: int = c.CATALOG_PAGE_SIZE) -> Dict[str, Any]:
        return self._page("ANIME", page, per_page, sort="TRENDING_DESC")

    def get_trending_manga(self, page: int = 1, per_page: int = c.CATALOG_PAGE_SIZE) -> Dict[str, Any]:
        return self._page("MANGA", page, per_page, sort="TRENDING_DESC")

    def get_media_by_id(self, media_id: int, media_type: str = "ANIME") -> Optional[Dict[str, Any]]:
        body = self.query(_MEDIA_BY_ID_QUERY, {"id": int(media_id), "type": media_type})
        return (body.get("data") or {}).get("Media")

    def get_media_by_mal_id(self, mal_id: int, media_type: str = "ANIME") -> Optional[Dict[str, Any]]:
        body = self.query(_MEDIA_BY_MAL_ID_QUERY, {"idMal": int(mal_id), "type": media_type})
        return (body.get("data") or {}).get("Media")
