"""
Maps MyAnimeList ids onto AniList ids.

The catalog hands out MAL-style numeric ids while the streaming provider
works in AniList's id space; `normalize_id` is the one place that bridges
the two.
"""

from typing import Any, Optional

from .logging import IdNotFoundError, get_logger
from .models import IdMapping

logger = get_logger(__name__)


def normalize_id(anilist: Any, mal_id: str, media_type: str = "ANIME") -> IdMapping:
    """
    Looks up the AniList media matching a MyAnimeList id.

    Args:
        anilist: Client exposing `get_media_by_mal_id(mal_id, media_type)`
        mal_id: Foreign numeric id, as a string
        media_type: ANIME or MANGA

    Returns:
        IdMapping with the native id and the title variants

    Raises:
        IdNotFoundError: If the id is not numeric or AniList has no such media
        APIError: If the lookup itself fails
    """
    mal_id = str(mal_id).strip()
    if not mal_id.isdigit():
        raise IdNotFoundError(f"'{mal_id}' is not a MyAnimeList id")

    media: Optional[dict] = anilist.get_media_by_mal_id(int(mal_id), media_type)
    if not media or not media.get("id"):
        raise IdNotFoundError(f"AniList has no {media_type.lower()} for MAL id {mal_id}")

    titles = media.get("title") or {}
    mapping = IdMapping(
        anilist_id=str(media["id"]),
        mal_id=mal_id,
        title_english=titles.get("english"),
        title_romaji=titles.get("romaji"),
        title_native=titles.get("native"),
    )
    logger.debug(f"Normalized MAL id {mal_id} -> AniList id {mapping.anilist_id}")
    return mapping
