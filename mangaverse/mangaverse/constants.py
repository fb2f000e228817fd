"""
Constants used throughout the MangaVerse application.
"""

# Content API Endpoints
JIKAN_BASE_URL = "https://api.jikan.moe/v4"
ANILIST_BASE_URL = "https://graphql.anilist.co"
KITSU_BASE_URL = "https://kitsu.io/api/edge"
MANGADEX_BASE_URL = "https://api.mangadex.org"
CONSUMET_BASE_URL = "https://api.consumet.org"
ANIFY_BASE_URL = "https://api.anify.tv"
ELEVENLABS_BASE_URL = "https://api.elevenlabs.io"
CLOUDINARY_BASE_URL = "https://api.cloudinary.com/v1_1"

# Minimum seconds between two calls to the same API
JIKAN_RATE_LIMIT_DELAY = 1.0
KITSU_RATE_LIMIT_DELAY = 0.5
ANILIST_RATE_LIMIT_DELAY = 0.2
MANGADEX_RATE_LIMIT_DELAY = 0.2

# HTTP Configuration
HTTP_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
HTTP_TIMEOUT_SECONDS = 10
STREAM_TIMEOUT_SECONDS = 15
HTTP_RETRY_COUNT = 3
HTTP_RETRY_BACKOFF_FACTOR = 0.5

# Cache Configuration
STREAM_CACHE_TTL_SECONDS = 3600
NARRATION_STATUS_TTL_SECONDS = 3600
STREAM_CACHE_KEY_TEMPLATE = "stream:{anime_id}:{episode_id}"
NARRATION_STATUS_KEY_TEMPLATE = "narration_status:{request_id}"
CACHE_DIRNAME = ".mangaverse_cache"

# Streaming
CONSUMET_PROVIDERS = ("gogoanime", "zoro", "animepahe")
ANIFY_PROVIDER = "gogoanime"
DEFAULT_EPISODE_NUMBER = 1
EPISODE_MARKER = "-ep-"
FALLBACK_PROVIDER = "fallback"
FALLBACK_SITES = (
    ("Gogoanime", "https://gogoanime.fi/{slug}-episode-{episode}"),
    ("Zoro", "https://zoro.to/watch/{slug}-episode-{episode}"),
    ("9anime", "https://9anime.to/watch/{slug}.episode-{episode}"),
    ("AnimePahe", "https://animepahe.ru/anime/{slug}/episode-{episode}"),
)

# Narration
WORDS_PER_SECOND = 2.5
MOCK_AUDIO_MIN_BYTES = 1024
MOCK_AUDIO_BYTES_PER_CHAR = 100
SCENE_PAGE_GROUP_SIZE = 4
OPENING_PAUSE_MS = 1500
CLOSING_PAUSE_MS = 2000
DEFAULT_PANEL_PAUSE_MS = 800
NARRATOR_SPEAKER = "narrator"
TTS_MODEL_ID = "eleven_multilingual_v2"
DEFAULT_UPLOADS_DIR = "uploads"
NARRATION_FOLDER = "narrations"
NARRATION_AUDIO_FORMAT = "mp3"
NARRATION_WORKERS = 2

# Emotion -> audio delivery (speed, stability, clarity, style)
EMOTION_AUDIO_SETTINGS = {
    "neutral": (1.0, 0.5, 0.75, 0.0),
    "peaceful": (0.9, 0.7, 0.8, 0.2),
    "determined": (1.05, 0.6, 0.85, 0.5),
    "excited": (1.15, 0.4, 0.8, 0.7),
    "sad": (0.85, 0.65, 0.7, 0.4),
    "angry": (1.1, 0.35, 0.85, 0.8),
    "tense": (1.0, 0.45, 0.8, 0.6),
    "mysterious": (0.9, 0.55, 0.7, 0.5),
}
DEFAULT_EMOTION = "neutral"

# Voice type -> ElevenLabs voice id
PROVIDER_VOICE_IDS = {
    "narrator_male": "29vD33N1CtxCmqQRPOHJ",
    "narrator_female": "21m00Tcm4TlvDq8ikWAM",
    "young_male": "TxGEqnHWrfWFTfGW9XjX",
    "young_female": "EXAVITQu4vr4xnSDxMaL",
    "default": "21m00Tcm4TlvDq8ikWAM",
}
DEFAULT_VOICE_TYPE = "narrator"
CHARACTER_VOICE = "young_male"

# Emotional range offered to each voice profile
NARRATOR_EMOTIONAL_RANGE = ["neutral", "peaceful", "determined", "mysterious", "tense"]
CHARACTER_EMOTIONAL_RANGE = ["neutral", "excited", "determined", "angry", "sad"]

# Catalog
CATALOG_PAGE_SIZE = 20
MANGADEX_COVER_URL = "https://uploads.mangadex.org/covers"
JIKAN_STATUS_MAP = {
    "Finished Airing": "Completed",
    "Currently Airing": "Ongoing",
    "Not yet aired": "Upcoming",
    "Finished": "Completed",
    "Publishing": "Ongoing",
    "On Hiatus": "Hiatus",
    "Discontinued": "Cancelled",
    "Not yet published": "Upcoming",
}
