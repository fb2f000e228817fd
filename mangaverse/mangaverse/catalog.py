"""
Catalog aggregation across Jikan, AniList, Kitsu and MangaDex.

Each provider gets a small adapter that turns its native JSON into
CatalogEntry objects. CatalogService fans a query out to the selected
providers, skips the ones that fail and merges what comes back,
deduplicating by lower-cased title.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from . import constants as c
from .anilist_api import AniListAPI
from .jikan_api import JikanAPI
from .kitsu_api import KitsuAPI
from .logging import APIError, ValidationError, get_logger
from .mangadex_api import MangaDexAPI, pick_localized
from .models import CatalogEntry

logger = get_logger(__name__)

ANIME = "anime"
MANGA = "manga"


class CatalogProvider(str, Enum):
    JIKAN = "jikan"
    ANILIST = "anilist"
    KITSU = "kitsu"
    MANGADEX = "mangadex"


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _year_from_date(value: Optional[str]) -> Optional[int]:
    if value and len(value) >= 4 and value[:4].isdigit():
        return int(value[:4])
    return None


# --- Normalizers -----------------------------------------------------------

def normalize_jikan(item: Dict[str, Any]) -> CatalogEntry:
    images = (item.get("images") or {}).get("jpg") or {}
    dates = item.get("aired") or item.get("published") or {}
    year = item.get("year") or dates.get("prop", {}).get("from", {}).get("year")
    raw_status = item.get("status")
    return CatalogEntry(
        id=str(item.get("mal_id")),
        title=item.get("title") or item.get("title_english") or "Unknown",
        title_english=item.get("title_english"),
        synopsis=item.get("synopsis"),
        cover_image=images.get("large_image_url") or images.get("image_url"),
        episodes=item.get("episodes"),
        chapters=item.get("chapters"),
        status=c.JIKAN_STATUS_MAP.get(raw_status, raw_status),
        rating=_to_float(item.get("score")),
        year=year,
        genres=[g["name"] for g in item.get("genres", []) if g.get("name")],
        source=CatalogProvider.JIKAN.value,
    )


def normalize_anilist(item: Dict[str, Any]) -> CatalogEntry:
    titles = item.get("title") or {}
    cover = item.get("coverImage") or {}
    score = item.get("averageScore")
    return CatalogEntry(
        id=str(item.get("id")),
        title=titles.get("romaji") or titles.get("english") or titles.get("native") or "Unknown",
        title_english=titles.get("english"),
        synopsis=item.get("description"),
        cover_image=cover.get("large") or cover.get("medium"),
        banner_image=item.get("bannerImage"),
        episodes=item.get("episodes"),
        chapters=item.get("chapters"),
        status=item.get("status"),
        # AniList scores are out of 100
        rating=score / 10 if score is not None else None,
        year=item.get("seasonYear"),
        genres=list(item.get("genres") or []),
        source=CatalogProvider.ANILIST.value,
    )


def normalize_kitsu(item: Dict[str, Any]) -> CatalogEntry:
    attrs = item.get("attributes") or {}
    titles = attrs.get("titles") or {}
    rating = _to_float(attrs.get("averageRating"))
    return CatalogEntry(
        id=str(item.get("id")),
        title=attrs.get("canonicalTitle") or titles.get("en_jp") or titles.get("en") or "Unknown",
        title_english=titles.get("en"),
        synopsis=attrs.get("synopsis"),
        cover_image=(attrs.get("posterImage") or {}).get("large"),
        banner_image=(attrs.get("coverImage") or {}).get("large"),
        episodes=attrs.get("episodeCount"),
        chapters=attrs.get("chapterCount"),
        status=attrs.get("status"),
        rating=rating / 10 if rating is not None else None,
        year=_year_from_date(attrs.get("startDate")),
        source=CatalogProvider.KITSU.value,
    )


def normalize_mangadex(item: Dict[str, Any]) -> CatalogEntry:
    attrs = item.get("attributes") or {}
    cover_image = None
    for rel in item.get("relationships", []):
        file_name = (rel.get("attributes") or {}).get("fileName")
        if rel.get("type") == "cover_art" and file_name:
            cover_image = f"{c.MANGADEX_COVER_URL}/{item.get('id')}/{file_name}"
            break
    genres = [
        pick_localized((tag.get("attributes") or {}).get("name"))
        for tag in attrs.get("tags", [])
        if (tag.get("attributes") or {}).get("group") == "genre"
    ]
    title = pick_localized(attrs.get("title")) or "Unknown"
    last_chapter = attrs.get("lastChapter")
    return CatalogEntry(
        id=str(item.get("id")),
        title=title,
        title_english=(attrs.get("title") or {}).get("en"),
        synopsis=pick_localized(attrs.get("description")),
        cover_image=cover_image,
        chapters=int(last_chapter) if last_chapter and str(last_chapter).isdigit() else None,
        status=attrs.get("status"),
        year=attrs.get("year"),
        genres=[g for g in genres if g],
        source=CatalogProvider.MANGADEX.value,
    )


# --- Provider adapters -----------------------------------------------------

class JikanCatalog:
    def __init__(self, client: JikanAPI):
        self.client = client

    def search(self, query: str, page: int = 1, media: str = ANIME) -> List[CatalogEntry]:
        search = self.client.search_manga if media == MANGA else self.client.search_anime
        return [normalize_jikan(item) for item in search(query, page=page).get("data", [])]

    def get_by_id(self, media_id: str, media: str = ANIME) -> Optional[CatalogEntry]:
        if media == MANGA:
            item = self.client.get_manga_by_id(media_id).get("manga")
        else:
            item = self.client.get_anime_by_id(media_id).get("anime")
        return normalize_jikan(item) if item else None


class AniListCatalog:
    def __init__(self, client: AniListAPI):
        self.client = client

    @staticmethod
    def _media(body: Dict[str, Any]) -> List[Dict[str, Any]]:
        return ((body.get("data") or {}).get("Page") or {}).get("media") or []

    def search(self, query: str, page: int = 1, media: str = ANIME) -> List[CatalogEntry]:
        search = self.client.search_manga if media == MANGA else self.client.search_anime
        return [normalize_anilist(item) for item in self._media(search(query, page=page))]

    def get_by_id(self, media_id: str, media: str = ANIME) -> Optional[CatalogEntry]:
        item = self.client.get_media_by_id(int(media_id), media.upper())
        return normalize_anilist(item) if item else None

    def trending(self, media: str = ANIME) -> List[CatalogEntry]:
        fetch = self.client.get_trending_manga if media == MANGA else self.client.get_trending_anime
        return [normalize_anilist(item) for item in self._media(fetch())]


class KitsuCatalog:
    def __init__(self, client: KitsuAPI):
        self.client = client

    def search(self, query: str, page: int = 1, media: str = ANIME) -> List[CatalogEntry]:
        search = self.client.search_manga if media == MANGA else self.client.search_anime
        offset = (max(page, 1) - 1) * c.CATALOG_PAGE_SIZE
        return [normalize_kitsu(item) for item in search(query, offset=offset).get("data", [])]

    def get_by_id(self, media_id: str, media: str = ANIME) -> Optional[CatalogEntry]:
        item = self.client.get_by_id(media_id, media).get("data")
        return normalize_kitsu(item) if item else None

    def trending(self, media: str = ANIME) -> List[CatalogEntry]:
        fetch = self.client.get_trending_manga if media == MANGA else self.client.get_trending_anime
        return [normalize_kitsu(item) for item in fetch().get("data", [])]


class MangaDexCatalog:
    """MangaDex only lists manga; anime queries yield nothing."""

    def __init__(self, client: MangaDexAPI):
        self.client = client

    def search(self, query: str, page: int = 1, media: str = MANGA) -> List[CatalogEntry]:
        if media != MANGA:
            return []
        offset = (max(page, 1) - 1) * c.CATALOG_PAGE_SIZE
        return [normalize_mangadex(item) for item in self.client.search_manga(query, offset=offset).get("data", [])]

    def get_by_id(self, media_id: str, media: str = MANGA) -> Optional[CatalogEntry]:
        if media != MANGA:
            return None
        item = self.client.get_manga_by_id(media_id).get("data")
        return normalize_mangadex(item) if item else None


def dedupe_by_title(entries: Iterable[CatalogEntry]) -> List[CatalogEntry]:
    """Keeps the first entry for each lower-cased title, preserving order."""
    seen = set()
    unique = []
    for entry in entries:
        key = entry.title.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(entry)
    return unique


class CatalogService:
    """
    Provider-independent catalog.

    Args:
        providers: Adapter per CatalogProvider; providers left out are simply not queried
    """

    def __init__(self, providers: Dict[CatalogProvider, Any], jikan: Optional[JikanAPI] = None):
        self.providers = providers
        self.jikan = jikan

    def _adapter(self, provider: CatalogProvider) -> Any:
        adapter = self.providers.get(CatalogProvider(provider))
        if adapter is None:
            raise ValidationError(f"Catalog provider '{provider}' is not configured")
        return adapter

    def search(
        self,
        query: str,
        media: str = ANIME,
        page: int = 1,
        providers: Optional[Iterable[CatalogProvider]] = None,
    ) -> List[CatalogEntry]:
        selected = list(providers) if providers else list(self.providers)
        merged: List[CatalogEntry] = []
        for provider in selected:
            adapter = self._adapter(provider)
            try:
                results = adapter.search(query, page=page, media=media)
            except (APIError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"{CatalogProvider(provider).value} search failed for '{query}': {e}")
                continue
            logger.debug(f"{CatalogProvider(provider).value} returned {len(results)} results for '{query}'")
            merged.extend(results)
        return dedupe_by_title(merged)

    def get_by_id(self, provider: CatalogProvider, media_id: str, media: str = ANIME) -> Optional[CatalogEntry]:
        return self._adapter(provider).get_by_id(media_id, media=media)

    def trending(self, media: str = ANIME) -> List[CatalogEntry]:
        merged: List[CatalogEntry] = []
        for provider in (CatalogProvider.ANILIST, CatalogProvider.KITSU):
            adapter = self.providers.get(provider)
            if adapter is None:
                continue
            try:
                merged.extend(adapter.trending(media))
            except (APIError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"{provider.value} trending failed: {e}")
        return dedupe_by_title(merged)

    def _require_jikan(self) -> JikanAPI:
        if self.jikan is None:
            raise ValidationError("Top and seasonal listings need the Jikan client")
        return self.jikan

    def top(self, page: int = 1) -> List[CatalogEntry]:
        data = self._require_jikan().get_top_anime(page=page)
        return [normalize_jikan(item) for item in data.get("data", [])]

    def seasonal(self, year: Optional[int] = None, season: Optional[str] = None) -> List[CatalogEntry]:
        data = self._require_jikan().get_seasonal_anime(year, season)
        return dedupe_by_title(normalize_jikan(item) for item in data.get("data", []))


def default_catalog(jikan: JikanAPI, anilist: AniListAPI, kitsu: KitsuAPI, mangadex: MangaDexAPI) -> CatalogService:
    return CatalogService(
        {
            CatalogProvider.JIKAN: JikanCatalog(jikan),
            CatalogProvider.ANILIST: AniListCatalog(anilist),
            CatalogProvider.KITSU: KitsuCatalog(kitsu),
            CatalogProvider.MANGADEX: MangaDexCatalog(mangadex),
        },
        jikan=jikan,
    )
