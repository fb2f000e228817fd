from typing import Any, Dict, Optional

from . import constants as c
from .http_client import JsonApiClient


class JikanAPI(JsonApiClient):
    """Client for Jikan, the unofficial MyAnimeList API."""

    name = "Jikan"

    def __init__(self, base_url: str = c.JIKAN_BASE_URL, timeout: int = c.HTTP_TIMEOUT_SECONDS, **kwargs):
        kwargs.setdefault("rate_limit", c.JIKAN_RATE_LIMIT_DELAY)
        super().__init__(base_url, timeout=timeout, **kwargs)

    def search_anime(self, query: str, page: int = 1, limit: int = 25) -> Dict[str, Any]:
        params = {"q": query, "page": page, "limit": limit, "order_by": "score", "sort": "desc"}
        return self._get_json("anime", params=params)

    def search_manga(self, query: str, page: int = 1, limit: int = 25) -> Dict[str, Any]:
        params = {"q": query, "page": page, "limit": limit, "order_by": "score", "sort": "desc"}
        return self._get_json("manga", params=params)

    def get_anime_by_id(self, anime_id: str) -> Dict[str, Any]:
        """Returns {'anime': ..., 'characters': [...]}."""
        anime = self._get_json(f"anime/{anime_id}")
        characters = self._get_json(f"anime/{anime_id}/characters")
        return {"anime": anime.get("data"), "characters": characters.get("data") or []}

    def get_manga_by_id(self, manga_id: str) -> Dict[str, Any]:
        """Returns {'manga': ..., 'characters': [...]}."""
        manga = self._get_json(f"manga/{manga_id}")
        characters = self._get_json(f"manga/{manga_id}/characters")
        return {"manga": manga.get("data"), "characters": characters.get("data") or []}

    def get_top_anime(self, page: int = 1, filter_by: str = "bypopularity") -> Dict[str, Any]:
        params = {"page": page, "limit": c.CATALOG_PAGE_SIZE, "filter": filter_by}
        return self._get_json("top/anime", params=params)

    def get_seasonal_anime(self, year: Optional[int] = None, season: Optional[str] = None) -> Dict[str, Any]:
        """Seasonal listing; the current season when year/season are omitted."""
        if year and season:
            return self._get_json(f"seasons/{year}/{season.lower()}")
        return self._get_json("seasons/now")
