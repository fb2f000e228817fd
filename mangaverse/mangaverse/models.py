import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .logging import ValidationError
from .constants import FALLBACK_PROVIDER, DEFAULT_VOICE_TYPE


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# --- Streaming -------------------------------------------------------------

@dataclass(frozen=True)
class StreamSource:
    """A directly playable video source."""
    url: str
    quality: str
    is_m3u8: bool = False
    size: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"url": self.url, "quality": self.quality, "isM3U8": self.is_m3u8}
        if self.size is not None:
            data["size"] = self.size
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StreamSource':
        url = data.get("url") or ""
        is_m3u8 = data.get("isM3U8")
        if is_m3u8 is None:
            is_m3u8 = ".m3u8" in url
        return cls(
            url=url,
            quality=str(data.get("quality") or "default"),
            is_m3u8=bool(is_m3u8),
            size=data.get("size"),
        )


@dataclass(frozen=True)
class FallbackLink:
    """An external site the viewer can open when no stream was resolved."""
    name: str
    url: str
    type: str = "site"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FallbackLink':
        return cls(name=data.get("name", ""), url=data.get("url", ""), type=data.get("type", "site"))


class StreamType(str, Enum):
    STREAM = "stream"
    EMBED = "embed"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class StreamResult:
    """
    Normalized outcome of resolving one episode.

    Exactly one of `sources`, `url` or `links` is populated and it always
    matches `type`.
    """
    type: StreamType
    sources: Tuple[StreamSource, ...] = ()
    url: Optional[str] = None
    links: Tuple[FallbackLink, ...] = ()
    headers: Dict[str, str] = field(default_factory=dict)
    subtitles: Tuple[Dict[str, Any], ...] = ()
    provider: Optional[str] = None

    def __post_init__(self):
        populated = {
            StreamType.STREAM: bool(self.sources),
            StreamType.EMBED: bool(self.url),
            StreamType.FALLBACK: bool(self.links),
        }
        if not populated[self.type] or sum(populated.values()) != 1:
            raise ValidationError(
                f"StreamResult of type '{self.type.value}' must populate exactly its own field"
            )

    @classmethod
    def stream(cls, sources: List[StreamSource], headers: Optional[Dict[str, str]] = None,
               subtitles: Optional[List[Dict[str, Any]]] = None, provider: Optional[str] = None) -> 'StreamResult':
        return cls(
            type=StreamType.STREAM,
            sources=tuple(sources),
            headers=dict(headers or {}),
            subtitles=tuple(subtitles or ()),
            provider=provider,
        )

    @classmethod
    def embed(cls, url: str, provider: Optional[str] = None) -> 'StreamResult':
        return cls(type=StreamType.EMBED, url=url, provider=provider)

    @classmethod
    def fallback(cls, links: List[FallbackLink]) -> 'StreamResult':
        return cls(type=StreamType.FALLBACK, links=tuple(links), provider=FALLBACK_PROVIDER)

    @classmethod
    def from_provider(cls, data: Optional[Dict[str, Any]]) -> Optional['StreamResult']:
        """
        Coerces a provider payload into a StreamResult.
        Returns None when none of sources/url/links carries anything usable.
        """
        if not data:
            return None

        sources = [StreamSource.from_dict(s) for s in data.get("sources") or [] if s and s.get("url")]
        if sources:
            return cls.stream(
                sources,
                headers=data.get("headers"),
                subtitles=data.get("subtitles"),
                provider=data.get("provider"),
            )

        if data.get("url"):
            return cls.embed(data["url"], provider=data.get("provider"))

        links = [FallbackLink.from_dict(l) for l in data.get("links") or [] if l and l.get("url")]
        if links:
            return cls.fallback(links)

        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value}
        if self.type is StreamType.STREAM:
            data["sources"] = [s.to_dict() for s in self.sources]
            if self.headers:
                data["headers"] = dict(self.headers)
            if self.subtitles:
                data["subtitles"] = list(self.subtitles)
        elif self.type is StreamType.EMBED:
            data["url"] = self.url
        else:
            data["links"] = [l.to_dict() for l in self.links]
        if self.provider:
            data["provider"] = self.provider
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StreamResult':
        kind = StreamType(data.get("type"))
        if kind is StreamType.STREAM:
            return cls.stream(
                [StreamSource.from_dict(s) for s in data.get("sources", [])],
                headers=data.get("headers"),
                subtitles=data.get("subtitles"),
                provider=data.get("provider"),
            )
        if kind is StreamType.EMBED:
            return cls.embed(data.get("url"), provider=data.get("provider"))
        return cls.fallback([FallbackLink.from_dict(l) for l in data.get("links", [])])


@dataclass
class StreamRequest:
    """Per-request resolution state."""
    anime_id: str
    episode_id: str
    episode_number: int
    resolved_anilist_id: Optional[str] = None
    anime_title: Optional[str] = None

    @property
    def provider_anime_id(self) -> str:
        return self.resolved_anilist_id or self.anime_id

    def diagnostics(self) -> Dict[str, Any]:
        return {
            "animeId": self.anime_id,
            "episodeId": self.episode_id,
            "episodeNumber": self.episode_number,
            "anilistId": self.resolved_anilist_id,
        }


@dataclass
class IdMapping:
    """Result of mapping a MyAnimeList id onto AniList."""
    anilist_id: str
    mal_id: Optional[str] = None
    title_english: Optional[str] = None
    title_romaji: Optional[str] = None
    title_native: Optional[str] = None

    @property
    def best_title(self) -> Optional[str]:
        return self.title_english or self.title_romaji or self.title_native


# --- Narration -------------------------------------------------------------

@dataclass(frozen=True)
class AudioSettings:
    speed: float
    stability: float
    clarity: float
    style: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Character:
    id: str
    name: str
    voice_profile: str
    emotional_range: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "voiceProfile": self.voice_profile,
            "emotionalRange": list(self.emotional_range),
        }


@dataclass
class Panel:
    type: str  # narration | dialogue
    text: str
    emotion: str = "neutral"
    speaker: str = "narrator"
    pause_after: int = 0


@dataclass
class Scene:
    id: str
    context: str
    panels: List[Panel] = field(default_factory=list)


@dataclass
class ChapterContent:
    """Raw chapter data as returned by the chapter source."""
    chapter_id: str
    title: str
    chapter_number: str
    pages: List[str] = field(default_factory=list)
    transcript: List[Dict[str, Any]] = field(default_factory=list)
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls, manga_id: str, chapter_number: str) -> 'ChapterContent':
        return cls(
            chapter_id=f"{manga_id}-{chapter_number}",
            title=f"Chapter {chapter_number}",
            chapter_number=chapter_number,
            is_placeholder=True,
        )


@dataclass
class ContentModel:
    title: str
    chapter_number: str
    characters: List[Character] = field(default_factory=list)
    scenes: List[Scene] = field(default_factory=list)


@dataclass
class ScriptSegment:
    id: str
    type: str  # opening | narration | dialogue | closing
    text: str
    speaker: str
    emotion: str
    voice: str
    pause_after: int
    audio_settings: AudioSettings
    estimated_duration: int
    scene_context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "type": self.type,
            "text": self.text,
            "speaker": self.speaker,
            "emotion": self.emotion,
            "voice": self.voice,
            "pauseAfter": self.pause_after,
            "audioSettings": self.audio_settings.to_dict(),
            "estimatedDuration": self.estimated_duration,
        }
        if self.scene_context is not None:
            data["sceneContext"] = self.scene_context
        return data


@dataclass
class NarrationScript:
    title: str
    chapter_number: str
    characters: List[Character] = field(default_factory=list)
    segments: List[ScriptSegment] = field(default_factory=list)
    total_duration: int = 0

    @property
    def full_text(self) -> str:
        return " ".join(s.text for s in self.segments)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "chapterNumber": self.chapter_number,
            "characters": [ch.to_dict() for ch in self.characters],
            "segments": [s.to_dict() for s in self.segments],
            "totalDuration": self.total_duration,
        }


class NarrationStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (NarrationStatus.COMPLETED, NarrationStatus.FAILED)


def chapter_label(chapter_number: Any) -> str:
    """Chapter number as MangaDex labels it: `5.0` becomes "5", `5.5` stays "5.5"."""
    if isinstance(chapter_number, float) and chapter_number.is_integer():
        return str(int(chapter_number))
    return str(chapter_number)


@dataclass
class NarrationRequest:
    request_id: str
    user_id: str
    manga_id: str
    chapter_number: str
    voice_type: str = DEFAULT_VOICE_TYPE
    language: str = "en"
    speed: float = 1.0
    include_dialogue: bool = True
    include_narration: bool = True

    def __post_init__(self):
        if self.speed <= 0:
            raise ValidationError(f"Narration speed must be positive, got {self.speed}")
        self.chapter_number = chapter_label(self.chapter_number)

    @classmethod
    def create(cls, **kwargs) -> 'NarrationRequest':
        return cls(request_id=str(uuid.uuid4()), **kwargs)

    @property
    def settings(self) -> Dict[str, Any]:
        return {
            "voiceType": self.voice_type,
            "language": self.language,
            "speed": self.speed,
            "includeDialogue": self.include_dialogue,
            "includeNarration": self.include_narration,
        }


@dataclass
class NarrationStatusRecord:
    """What status polling returns for one narration request."""
    request_id: str
    user_id: str
    manga_id: str
    chapter_number: str
    status: NarrationStatus
    audio_url: Optional[str] = None
    duration: Optional[int] = None
    settings: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    failed_at: Optional[str] = None
    updated_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def for_request(cls, request: NarrationRequest, status: NarrationStatus, **extra) -> 'NarrationStatusRecord':
        return cls(
            request_id=request.request_id,
            user_id=request.user_id,
            manga_id=request.manga_id,
            chapter_number=request.chapter_number,
            status=status,
            **extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requestId": self.request_id,
            "userId": self.user_id,
            "mangaId": self.manga_id,
            "chapterNumber": self.chapter_number,
            "status": self.status.value,
            "audioUrl": self.audio_url,
            "duration": self.duration,
            "settings": self.settings,
            "error": self.error,
            "failedAt": self.failed_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NarrationStatusRecord':
        return cls(
            request_id=data["requestId"],
            user_id=data.get("userId", ""),
            manga_id=data.get("mangaId", ""),
            chapter_number=str(data.get("chapterNumber", "")),
            status=NarrationStatus(data["status"]),
            audio_url=data.get("audioUrl"),
            duration=data.get("duration"),
            settings=data.get("settings"),
            error=data.get("error"),
            failed_at=data.get("failedAt"),
            updated_at=data.get("updatedAt") or utc_now_iso(),
        )


# --- Catalog ---------------------------------------------------------------

@dataclass
class CatalogEntry:
    """Provider-independent anime/manga listing."""
    id: str
    title: str
    source: str
    title_english: Optional[str] = None
    synopsis: Optional[str] = None
    cover_image: Optional[str] = None
    banner_image: Optional[str] = None
    episodes: Optional[int] = None
    chapters: Optional[int] = None
    status: Optional[str] = None
    rating: Optional[float] = None
    year: Optional[int] = None
    genres: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "titleEnglish": self.title_english,
            "synopsis": self.synopsis,
            "coverImage": self.cover_image,
            "bannerImage": self.banner_image,
            "episodes": self.episodes,
            "chapters": self.chapters,
            "status": self.status,
            "rating": self.rating,
            "year": self.year,
            "genres": list(self.genres),
            "source": self.source,
        }
