from typing import Any, Dict

from . import constants as c
from .http_client import JsonApiClient


class KitsuAPI(JsonApiClient):
    """Client for the Kitsu JSON:API."""

    name = "Kitsu"

    def __init__(self, base_url: str = c.KITSU_BASE_URL, timeout: int = c.HTTP_TIMEOUT_SECONDS, **kwargs):
        kwargs.setdefault("rate_limit", c.KITSU_RATE_LIMIT_DELAY)
        super().__init__(base_url, timeout=timeout, **kwargs)

    def search_anime(self, query: str, limit: int = c.CATALOG_PAGE_SIZE, offset: int = 0) -> Dict[str, Any]:
        params = {"filter[text]": query, "page[limit]": limit, "page[offset]": offset}
        return self._get_json("anime", params=params)

    def search_manga(self, query: str, limit: int = c.CATALOG_PAGE_SIZE, offset: int = 0) -> Dict[str, Any]:
        params = {"filter[text]": query, "page[limit]": limit, "page[offset]": offset}
        return self._get_json("manga", params=params)

    def get_by_id(self, media_id: str, media: str = "anime") -> Dict[str, Any]:
        return self._get_json(f"{media}/{media_id}")

    def get_trending_anime(self, limit: int = c.CATALOG_PAGE_SIZE) -> Dict[str, Any]:
        return self._get_json("trending/anime", params={"limit": limit})

    def get_trending_manga(self, limit: int = c.CATALOG_PAGE_SIZE) -> Dict[str, Any]:
        return self._get_json("trending/manga", params={"limit": limit})
