"""
Tests for the HTTP clients, with the requests session mocked out.
"""

import hashlib
from unittest.mock import MagicMock, patch

import pytest
import requests

from mangaverse.mangaverse.anilist_api import AniListAPI
from mangaverse.mangaverse.http_client import JsonApiClient, RateLimiter, create_retry_session
from mangaverse.mangaverse.jikan_api import JikanAPI
from mangaverse.mangaverse.logging import APIError
from mangaverse.mangaverse.mangadex_api import MangaDexAPI, pick_localized
from mangaverse.mangaverse.storage import CloudinaryStorage, sign_params
from mangaverse.mangaverse.tts_api import ElevenLabsClient


def make_response(status_code=200, payload=None, content=b""):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    response.content = content
    return response


def session_returning(*responses):
    session = MagicMock()
    session.request.side_effect = list(responses)
    return session


class TestJsonApiClient:
    def test_url_building(self):
        client = JsonApiClient("https://api.test/v1/", session=MagicMock())
        assert client._url("") == "https://api.test/v1"
        assert client._url("/anime") == "https://api.test/v1/anime"
        assert client._url("https://other.test/x") == "https://other.test/x"

    def test_http_error_becomes_api_error(self):
        client = JsonApiClient("https://api.test", session=session_returning(make_response(503)))
        with pytest.raises(APIError) as excinfo:
            client._get_json("anime")
        assert excinfo.value.status_code == 503

    def test_transport_error_becomes_api_error(self):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")
        client = JsonApiClient("https://api.test", session=session)
        with pytest.raises(APIError):
            client._get_json("anime")

    def test_invalid_json_becomes_api_error(self):
        response = make_response()
        response.json.side_effect = ValueError("no json")
        client = JsonApiClient("https://api.test", session=session_returning(response))
        with pytest.raises(APIError):
            client._get_json("anime")

    def test_retry_session_sets_user_agent(self):
        session = create_retry_session()
        assert "Mozilla" in session.headers["User-Agent"]
        assert "https://" in session.adapters

    def test_retry_session_does_not_retry_posts(self):
        retry = create_retry_session(retries=2).adapters["https://"].max_retries
        assert retry.total == 2
        assert "GET" in retry.allowed_methods
        assert "POST" not in retry.allowed_methods

    def test_client_retry_count_is_configurable(self):
        retry = JikanAPI(retries=0).session.adapters["https://"].max_retries
        assert retry.total == 0

    def test_anilist_retries_graphql_posts(self):
        retry = AniListAPI().session.adapters["https://"].max_retries
        assert "POST" in retry.allowed_methods
        assert "GET" in retry.allowed_methods

    def test_tts_client_never_retries_synthesis(self):
        retry = ElevenLabsClient("xi-key").session.adapters["https://"].max_retries
        assert "POST" not in retry.allowed_methods

    def test_rate_limiter_waits_between_calls(self):
        limiter = RateLimiter(1.0)
        with patch("mangaverse.mangaverse.http_client.time") as mock_time:
            mock_time.monotonic.side_effect = [100.0, 100.0, 100.4, 101.0]
            limiter.wait()
            limiter.wait()
        mock_time.sleep.assert_called_once()
        assert mock_time.sleep.call_args[0][0] == pytest.approx(0.6)


def test_jikan_anime_by_id_bundles_characters():
    session = session_returning(
        make_response(payload={"data": {"mal_id": 21, "title": "One Piece"}}),
        make_response(payload={"data": [{"character": {"name": "Luffy"}}]}),
    )
    jikan = JikanAPI("https://jikan.test", session=session, rate_limit=0)

    result = jikan.get_anime_by_id("21")

    assert result["anime"]["title"] == "One Piece"
    assert result["characters"][0]["character"]["name"] == "Luffy"
    urls = [c[0][1] for c in session.request.call_args_list]
    assert urls == ["https://jikan.test/anime/21", "https://jikan.test/anime/21/characters"]


def test_jikan_seasonal_defaults_to_now():
    session = session_returning(make_response(payload={"data": []}), make_response(payload={"data": []}))
    jikan = JikanAPI("https://jikan.test", session=session, rate_limit=0)

    jikan.get_seasonal_anime()
    jikan.get_seasonal_anime(2024, "Spring")

    urls = [c[0][1] for c in session.request.call_args_list]
    assert urls == ["https://jikan.test/seasons/now", "https://jikan.test/seasons/2024/spring"]


class TestAniList:
    def test_query_posts_graphql(self):
        session = session_returning(make_response(payload={"data": {"Media": {"id": 5}}}))
        anilist = AniListAPI("https://graphql.test", session=session, rate_limit=0)

        media = anilist.get_media_by_mal_id(21)

        assert media == {"id": 5}
        method, url = session.request.call_args[0]
        assert (method, url) == ("POST", "https://graphql.test")
        body = session.request.call_args[1]["json"]
        assert body["variables"] == {"idMal": 21, "type": "ANIME"}
        assert "idMal" in body["query"]

    def test_errors_without_data_raise(self):
        session = session_returning(make_response(payload={
            "data": None, "errors": [{"message": "Not Found.", "status": 404}]
        }))
        anilist = AniListAPI("https://graphql.test", session=session, rate_limit=0)

        with pytest.raises(APIError) as excinfo:
            anilist.get_media_by_id(1)
        assert excinfo.value.status_code == 404

    def test_missing_media_is_none(self):
        session = session_returning(make_response(payload={"data": {"Media": None}}))
        anilist = AniListAPI("https://graphql.test", session=session, rate_limit=0)
        assert anilist.get_media_by_id(1) is None


class TestMangaDex:
    def test_pick_localized(self):
        assert pick_localized({"ja": "ワンピース", "en": "One Piece"}) == "One Piece"
        assert pick_localized({"ja": "ワンピース"}) == "ワンピース"
        assert pick_localized(None) is None

    def test_fetch_chapter(self):
        session = session_returning(
            make_response(payload={"data": [{"id": "ch-1"}]}),
            make_response(payload={"data": {"attributes": {"title": {"en": "One Piece"}}}}),
            make_response(payload={
                "baseUrl": "https://node.test",
                "chapter": {"hash": "abc", "data": ["1.png", "2.png"]},
            }),
        )
        mangadex = MangaDexAPI("https://md.test", session=session, rate_limit=0)

        content = mangadex.fetch_chapter("manga-1", "5")

        assert content.chapter_id == "ch-1"
        assert content.title == "One Piece"
        assert content.chapter_number == "5"
        assert content.pages == ["https://node.test/data/abc/1.png", "https://node.test/data/abc/2.png"]
        assert content.is_placeholder is False

    def test_missing_chapter_raises(self):
        session = session_returning(make_response(payload={"data": []}))
        mangadex = MangaDexAPI("https://md.test", session=session, rate_limit=0)
        with pytest.raises(APIError) as excinfo:
            mangadex.fetch_chapter("manga-1", "999")
        assert excinfo.value.status_code == 404

    def test_title_failure_keeps_chapter_title(self):
        session = session_returning(
            make_response(payload={"data": [{"id": "ch-1"}]}),
            make_response(500),
            make_response(payload={"baseUrl": "https://node.test", "chapter": {"hash": "h", "data": []}}),
        )
        mangadex = MangaDexAPI("https://md.test", session=session, rate_limit=0)
        assert mangadex.fetch_chapter("manga-1", "3").title == "Chapter 3"


class TestElevenLabs:
    def test_generate_posts_text_and_settings(self):
        session = session_returning(make_response(content=b"ID3audio"))
        client = ElevenLabsClient("xi-key", base_url="https://tts.test", session=session)

        audio = client.generate("voice-1", "Hello there", model="m1", voice_settings={"stability": 0.7})

        assert audio == b"ID3audio"
        method, url = session.request.call_args[0]
        kwargs = session.request.call_args[1]
        assert (method, url) == ("POST", "https://tts.test/v1/text-to-speech/voice-1")
        assert kwargs["headers"]["xi-api-key"] == "xi-key"
        assert kwargs["json"]["model_id"] == "m1"
        assert kwargs["json"]["voice_settings"]["stability"] == 0.7

    def test_generate_forwards_speed(self):
        session = session_returning(make_response(content=b"ID3audio"))
        client = ElevenLabsClient("xi-key", base_url="https://tts.test", session=session)

        client.generate("v", "hi", voice_settings={"stability": 0.5, "speed": 1.5})

        assert session.request.call_args[1]["json"]["voice_settings"] == {
            "stability": 0.5, "similarity_boost": 0.75, "style": 0.0, "speed": 1.5,
        }

    def test_generate_without_speed_leaves_it_out(self):
        session = session_returning(make_response(content=b"ID3audio"))
        client = ElevenLabsClient("xi-key", base_url="https://tts.test", session=session)
        client.generate("v", "hi")
        assert "speed" not in session.request.call_args[1]["json"]["voice_settings"]

    def test_empty_audio_raises(self):
        session = session_returning(make_response(content=b""))
        client = ElevenLabsClient("xi-key", base_url="https://tts.test", session=session)
        with pytest.raises(APIError):
            client.generate("voice-1", "Hello")


class TestCloudinary:
    def test_sign_params_sorts_and_skips_unsigned(self):
        params = {"timestamp": 1315060510, "public_id": "sample", "file": "data:...", "api_key": "k", "folder": ""}
        expected = hashlib.sha1(b"public_id=sample&timestamp=1315060510abcd").hexdigest()
        assert sign_params(params, "abcd") == expected

    def test_upload_is_signed(self):
        session = session_returning(make_response(payload={"secure_url": "https://res.test/a.mp3"}))
        storage = CloudinaryStorage("demo", "key", "secret", base_url="https://cloud.test/v1_1", session=session)

        result = storage.upload("data:audio/mpeg;base64,AAAA", resource_type="video",
                                folder="narrations", public_id="narration_1", format="mp3")

        assert result["secure_url"] == "https://res.test/a.mp3"
        method, url = session.request.call_args[0]
        data = session.request.call_args[1]["data"]
        assert (method, url) == ("POST", "https://cloud.test/v1_1/demo/video/upload")
        assert data["api_key"] == "key"
        assert data["file"] == "data:audio/mpeg;base64,AAAA"
        unsigned = {k: v for k, v in data.items() if k != "signature"}
        assert data["signature"] == sign_params(unsigned, "secret")

    def test_upload_without_secure_url_raises(self):
        session = session_returning(make_response(payload={"error": {"message": "bad"}}))
        storage = CloudinaryStorage("demo", "key", "secret", session=session)
        with pytest.raises(APIError):
            storage.upload("data:audio/mpeg;base64,AAAA")
