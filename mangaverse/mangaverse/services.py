"""
Wiring of collaborators from configuration.

Optional collaborators (cache, TTS, object storage) are left as None when
their configuration is missing; every consumer treats None as "not
available".
"""

from dataclasses import dataclass
from typing import Any, Optional

from .anilist_api import AniListAPI
from .cache import Cache, create_cache
from .catalog import CatalogService, default_catalog
from .config import MangaVerseConfig, get_config
from .consumet_api import ConsumetAPI
from .jikan_api import JikanAPI
from .kitsu_api import KitsuAPI
from .logging import get_logger
from .mangadex_api import MangaDexAPI
from .narration import NarrationPipeline, NarrationQueue, NarrationStatusStore
from .notifications import NotificationHub
from .storage import CloudinaryStorage
from .streaming import StreamResolver
from .tts_api import ElevenLabsClient

logger = get_logger(__name__)


@dataclass
class Services:
    config: MangaVerseConfig
    cache: Optional[Cache]
    resolver: StreamResolver
    catalog: CatalogService
    status_store: NarrationStatusStore
    pipeline: NarrationPipeline
    queue: NarrationQueue
    notifications: NotificationHub

    def close(self) -> None:
        self.queue.shutdown(wait=False)


def build_services(config: Optional[MangaVerseConfig] = None, **overrides: Any) -> Services:
    """
    Builds every collaborator from configuration.

    Overrides: cache=..., streaming_provider=..., anilist=..., chapter_source=...,
    tts=..., storage=..., notifications=... replace the configured instances,
    which is how tests inject mocks.
    """
    config = config or get_config()
    api = config.api

    if "cache" in overrides:
        cache = overrides["cache"]
    else:
        cache = create_cache(config.cache.backend, config.cache.directory)

    jikan = JikanAPI(api.jikan_url, timeout=api.timeout, retries=api.max_retries)
    anilist = overrides.get("anilist") or AniListAPI(api.anilist_url, timeout=api.timeout, retries=api.max_retries)
    kitsu = KitsuAPI(api.kitsu_url, timeout=api.timeout, retries=api.max_retries)
    mangadex = MangaDexAPI(api.mangadex_url, timeout=api.timeout, retries=api.max_retries)
    streaming_provider = overrides.get("streaming_provider") or ConsumetAPI(
        api.consumet_url, anify_url=api.anify_url, timeout=api.stream_timeout, retries=api.max_retries,
    )

    if "tts" in overrides:
        tts = overrides["tts"]
    elif config.tts.api_key:
        tts = ElevenLabsClient(
            config.tts.api_key, base_url=config.tts.base_url, timeout=config.tts.timeout, retries=api.max_retries,
        )
    else:
        logger.info("ELEVENLABS_API_KEY not set, narration will use mock audio")
        tts = None

    if "storage" in overrides:
        storage = overrides["storage"]
    elif config.storage.is_configured:
        storage = CloudinaryStorage(
            config.storage.cloud_name, config.storage.api_key, config.storage.api_secret, retries=api.max_retries,
        )
    else:
        storage = None

    notifications = overrides.get("notifications") or NotificationHub()
    status_store = NarrationStatusStore(cache, ttl=config.cache.status_ttl)
    pipeline = NarrationPipeline(
        chapter_source=overrides.get("chapter_source") or mangadex,
        status_store=status_store,
        tts=tts,
        storage=storage,
        notifier=notifications,
        uploads_dir=config.narration.uploads_dir,
        fail_on_missing_content=config.narration.fail_on_missing_content,
        tts_model=config.tts.model_id,
    )

    return Services(
        config=config,
        cache=cache,
        resolver=StreamResolver(streaming_provider, anilist=anilist, cache=cache, ttl=config.cache.stream_ttl),
        catalog=overrides.get("catalog") or default_catalog(jikan, anilist, kitsu, mangadex),
        status_store=status_store,
        pipeline=pipeline,
        queue=NarrationQueue(pipeline, workers=config.narration.workers),
        notifications=notifications,
    )
