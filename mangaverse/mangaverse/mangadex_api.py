from typing import Any, Dict, List, Optional

from . import constants as c
from .http_client import JsonApiClient
from .logging import APIError, get_logger
from .models import ChapterContent

logger = get_logger(__name__)


def pick_localized(values: Optional[Dict[str, str]], language: str = "en") -> Optional[str]:
    """Returns the value for `language`, else the first available translation."""
    if not values:
        return None
    return values.get(language) or next(iter(values.values()), None)


class MangaDexAPI(JsonApiClient):
    """
    Client for the MangaDex API.

    Also acts as the chapter source of the narration pipeline through
    `fetch_chapter`.
    """

    name = "MangaDex"

    def __init__(self, base_url: str = c.MANGADEX_BASE_URL, timeout: int = c.HTTP_TIMEOUT_SECONDS, **kwargs):
        kwargs.setdefault("rate_limit", c.MANGADEX_RATE_LIMIT_DELAY)
        super().__init__(base_url, timeout=timeout, **kwargs)

    def search_manga(self, title: str, limit: int = c.CATALOG_PAGE_SIZE, offset: int = 0) -> Dict[str, Any]:
        params = {"title": title, "limit": limit, "offset": offset, "includes[]": ["cover_art"]}
        return self._get_json("manga", params=params)

    def get_popular_manga(self, limit: int = c.CATALOG_PAGE_SIZE, offset: int = 0) -> Dict[str, Any]:
        params = {"order[followedCount]": "desc", "limit": limit, "offset": offset}
        return self._get_json("manga", params=params)

    def get_manga_by_id(self, manga_id: str) -> Dict[str, Any]:
        return self._get_json(f"manga/{manga_id}", params={"includes[]": ["cover_art"]})

    def get_manga_chapters(self, manga_id: str, limit: int = 50, offset: int = 0,
                           language: str = "en") -> Dict[str, Any]:
        params = {
            "limit": limit,
            "offset": offset,
            "translatedLanguage[]": [language],
            "order[chapter]": "desc",
        }
        return self._get_json(f"manga/{manga_id}/feed", params=params)

    def find_chapter(self, manga_id: str, chapter_number: str, language: str = "en") -> Optional[Dict[str, Any]]:
        params = {
            "manga": manga_id,
            "chapter": str(chapter_number),
            "translatedLanguage[]": [language],
            "limit": 1,
        }
        chapters = self._get_json("chapter", params=params).get("data") or []
        return chapters[0] if chapters else None

    def get_chapter_pages(self, chapter_id: str) -> List[str]:
        """Resolves page image URLs through the MangaDex@Home server for a chapter."""
        server = self._get_json(f"at-home/server/{chapter_id}")
        base_url = server.get("baseUrl")
        chapter = server.get("chapter") or {}
        if not base_url or not chapter.get("hash"):
            raise APIError(f"MangaDex returned no page server for chapter {chapter_id}")
        return [f"{base_url}/data/{chapter['hash']}/{filename}" for filename in chapter.get("data", [])]

    def fetch_chapter(self, manga_id: str, chapter_number: str, language: str = "en") -> ChapterContent:
        """
        Collects what the narration pipeline needs for one chapter.

        Raises:
            APIError: If the chapter does not exist or any request fails.
        """
        chapter = self.find_chapter(manga_id, chapter_number, language)
        if chapter is None:
            raise APIError(f"MangaDex has no chapter {chapter_number} for manga {manga_id}", status_code=404)

        title = f"Chapter {chapter_number}"
        try:
            manga = self.get_manga_by_id(manga_id).get("data") or {}
            title = pick_localized(manga.get("attributes", {}).get("title"), language) or title
        except APIError as e:
            logger.warning(f"Could not fetch title for manga {manga_id}: {e}")

        pages = self.get_chapter_pages(chapter["id"])
        logger.info(f"Fetched {len(pages)} pages for {title} chapter {chapter_number}")
        return ChapterContent(
            chapter_id=chapter["id"],
            title=title,
            chapter_number=str(chapter_number),
            pages=pages,
        )
