"""
Streaming-metadata provider backed by Consumet and Anify.
"""

import re
from typing import Any, Dict, List, Optional

from . import constants as c
from .http_client import JsonApiClient
from .logging import APIError, get_logger
from .streaming import parse_episode_number, episode_base

logger = get_logger(__name__)


def slugify(title: str) -> str:
    """Lower-cases a title and joins its alphanumeric runs with hyphens."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def quality_rank(quality: str) -> int:
    digits = re.sub(r"[^\d]", "", quality or "")
    return int(digits) if digits else 0


def normalize_sources(raw_sources: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Keeps sources that carry both a url and a quality, flags HLS playlists and
    orders them from the highest numeric quality down.
    """
    sources = [
        {
            "url": s["url"],
            "quality": s["quality"],
            "isM3U8": ".m3u8" in s["url"],
            "size": s.get("size"),
        }
        for s in raw_sources or []
        if s.get("url") and s.get("quality")
    ]
    sources.sort(key=lambda s: quality_rank(s["quality"]), reverse=True)
    return sources


class ConsumetAPI(JsonApiClient):
    """
    Tries each Consumet provider in turn, then Anify.

    `get_streaming_sources` returns None rather than raising when nothing is
    found so the resolver can move on to fallback links.
    """

    name = "Consumet"

    def __init__(
        self,
        base_url: str = c.CONSUMET_BASE_URL,
        anify_url: str = c.ANIFY_BASE_URL,
        timeout: int = c.STREAM_TIMEOUT_SECONDS,
        providers: tuple = c.CONSUMET_PROVIDERS,
        **kwargs,
    ):
        super().__init__(base_url, timeout=timeout, **kwargs)
        self.anify_url = anify_url.rstrip("/")
        self.providers = providers

    def provider_episode_id(self, episode_id: str, anime_title: Optional[str]) -> str:
        """
        Rewrites an `<anime>-ep-<n>` id into the `<slug>-episode-<n>` form the
        scraping providers expect. Any other id is already a provider id and is
        sent unchanged.
        """
        if anime_title and c.EPISODE_MARKER in episode_id and slugify(anime_title):
            return f"{slugify(anime_title)}-episode-{parse_episode_number(episode_id)}"
        return episode_id

    def _consumet_sources(self, provider_episode_id: str) -> Optional[Dict[str, Any]]:
        for provider in self.providers:
            try:
                logger.info(f"Trying Consumet provider {provider} for episode {provider_episode_id}")
                data = self._get_json(f"anime/{provider}/watch/{provider_episode_id}")
            except APIError as e:
                logger.warning(f"Consumet provider {provider} failed: {e}")
                continue

            sources = normalize_sources(data.get("sources"))
            if sources:
                logger.info(f"Consumet {provider} returned {len(sources)} sources")
                return {
                    "type": "stream",
                    "sources": sources,
                    "headers": data.get("headers") or {},
                    "subtitles": data.get("subtitles") or [],
                    "provider": f"consumet:{provider}",
                }
        return None

    def _anify_sources(self, provider_episode_id: str) -> Optional[Dict[str, Any]]:
        try:
            data = self._get_json(
                f"{self.anify_url}/watch/{provider_episode_id}",
                params={"provider": c.ANIFY_PROVIDER},
            )
        except APIError as e:
            logger.warning(f"Anify failed: {e}")
            return None

        sources = normalize_sources(data.get("sources"))
        if not sources:
            return None
        logger.info(f"Anify returned {len(sources)} sources")
        return {
            "type": "stream",
            "sources": sources,
            "headers": data.get("headers") or {},
            "subtitles": data.get("subtitles") or [],
            "provider": "anify",
        }

    def get_streaming_sources(
        self,
        episode_id: str,
        anime_title: Optional[str] = None,
        anime_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        provider_episode_id = self.provider_episode_id(episode_id, anime_title)
        logger.info(f"Getting streaming sources for {provider_episode_id} (anime {anime_id})")

        return self._consumet_sources(provider_episode_id) or self._anify_sources(provider_episode_id)

    def get_fallback_links(self, episode_id: str, anime_title: Optional[str] = None) -> List[Dict[str, str]]:
        """Deterministic external-site links built from the title, or the episode id when no title is known."""
        slug = slugify(anime_title or episode_base(episode_id))
        if not slug:
            return []
        episode = parse_episode_number(episode_id)
        return [
            {"name": name, "url": template.format(slug=slug, episode=episode), "type": "site"}
            for name, template in c.FALLBACK_SITES
        ]
