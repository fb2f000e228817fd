"""
Episode stream resolution.

`StreamResolver.resolve` walks cache -> id normalization -> title lookup ->
streaming provider -> fallback links, degrading at each step instead of
failing. Only a resolution that ends with nothing to show raises.
"""

import re
from typing import Any, Dict, List, Optional

from . import constants as c
from .cache import Cache, cache_get, cache_set
from .id_normalizer import normalize_id
from .logging import MangaVerseError, StreamUnavailableError, ValidationError, get_logger
from .models import FallbackLink, StreamRequest, StreamResult

logger = get_logger(__name__)

_LEADING_DIGITS = re.compile(r"^(\d+)")


def parse_episode_number(episode_id: str) -> int:
    """
    Extracts N from ids shaped like `<base>-ep-N`.

    Anything else, including a marker with no digits after it, is episode 1.
    """
    episode_id = str(episode_id)
    if c.EPISODE_MARKER not in episode_id:
        return c.DEFAULT_EPISODE_NUMBER
    suffix = episode_id.rsplit(c.EPISODE_MARKER, 1)[1]
    match = _LEADING_DIGITS.match(suffix)
    return int(match.group(1)) if match else c.DEFAULT_EPISODE_NUMBER


def episode_base(episode_id: str) -> str:
    """The opaque part of an episode id before the `-ep-` marker."""
    return str(episode_id).split(c.EPISODE_MARKER, 1)[0]


def stream_cache_key(anime_id: str, episode_id: str) -> str:
    return c.STREAM_CACHE_KEY_TEMPLATE.format(anime_id=anime_id, episode_id=episode_id)


class StreamResolver:
    """
    Resolves playable sources for one anime episode.

    Args:
        streaming_provider: Exposes `get_streaming_sources` and `get_fallback_links`
        anilist: Optional client used for id normalization and title lookup
        cache: Optional key-value cache
        ttl: Seconds a resolved result stays cached
    """

    def __init__(
        self,
        streaming_provider: Any,
        anilist: Optional[Any] = None,
        cache: Optional[Cache] = None,
        ttl: int = c.STREAM_CACHE_TTL_SECONDS,
    ):
        self.streaming_provider = streaming_provider
        self.anilist = anilist
        self.cache = cache
        self.ttl = ttl

    def _cached(self, key: str) -> Optional[StreamResult]:
        data = cache_get(self.cache, key)
        if data is None:
            return None
        try:
            return StreamResult.from_dict(data)
        except (MangaVerseError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring malformed cached stream result {key}: {e}")
            return None

    def _normalize(self, request: StreamRequest) -> None:
        if self.anilist is None:
            return
        try:
            mapping = normalize_id(self.anilist, request.anime_id)
        except Exception as e:
            logger.warning(f"Could not map anime {request.anime_id} to AniList, using it as is: {e}")
            return
        request.resolved_anilist_id = mapping.anilist_id
        request.anime_title = mapping.best_title

    def _resolve_title(self, request: StreamRequest) -> None:
        if request.anime_title or self.anilist is None:
            return
        try:
            media = self.anilist.get_media_by_id(int(request.provider_anime_id))
        except Exception as e:
            logger.warning(f"Could not fetch title for anime {request.provider_anime_id}: {e}")
            return
        titles = (media or {}).get("title") or {}
        request.anime_title = titles.get("english") or titles.get("romaji") or titles.get("native")

    def _from_provider(self, request: StreamRequest) -> Optional[StreamResult]:
        try:
            data = self.streaming_provider.get_streaming_sources(
                request.episode_id,
                request.anime_title,
                anime_id=request.provider_anime_id,
            )
        except Exception as e:
            logger.warning(f"Streaming provider failed for {request.episode_id}: {e}")
            return None
        try:
            return StreamResult.from_provider(data)
        except (ValidationError, AttributeError, TypeError) as e:
            logger.warning(f"Streaming provider returned an unusable payload: {e}")
            return None

    def _fallback(self, request: StreamRequest) -> StreamResult:
        try:
            raw_links: List[Dict[str, Any]] = self.streaming_provider.get_fallback_links(
                request.episode_id, request.anime_title
            )
        except Exception as e:
            raise StreamUnavailableError(
                f"No stream found for episode {request.episode_id}: {e}",
                details=request.diagnostics(),
            ) from e

        links = [FallbackLink.from_dict(link) for link in raw_links or [] if link and link.get("url")]
        if not links:
            raise StreamUnavailableError(
                f"No stream found for episode {request.episode_id}",
                details=request.diagnostics(),
            )
        return StreamResult.fallback(links)

    def resolve(self, anime_id: str, episode_id: str) -> StreamResult:
        """
        Resolves one episode into a stream, embed or fallback result.

        Raises:
            StreamUnavailableError: If not even fallback links could be built
        """
        anime_id, episode_id = str(anime_id), str(episode_id)
        key = stream_cache_key(anime_id, episode_id)

        cached = self._cached(key)
        if cached is not None:
            logger.info(f"Cache hit for {key}")
            return cached

        request = StreamRequest(
            anime_id=anime_id,
            episode_id=episode_id,
            episode_number=parse_episode_number(episode_id),
        )
        self._normalize(request)
        self._resolve_title(request)
        logger.info(
            f"Resolving anime {request.provider_anime_id} episode {request.episode_number} "
            f"({request.anime_title or 'unknown title'})"
        )

        result = self._from_provider(request)
        if result is None:
            logger.info(f"No direct stream for {episode_id}, building fallback links")
            result = self._fallback(request)

        cache_set(self.cache, key, result.to_dict(), self.ttl)
        return result
