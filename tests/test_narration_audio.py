from unittest.mock import MagicMock

import pytest

from mangaverse.mangaverse.constants import PROVIDER_VOICE_IDS
from mangaverse.mangaverse.logging import APIError
from mangaverse.mangaverse.models import ContentModel, NarrationRequest, Panel, Scene
from mangaverse.mangaverse.narration_audio import mock_audio, provider_voice_id, synthesize_audio
from mangaverse.mangaverse.narration_script import build_script


def make_script_and_request(speed=1.0, voice_type="narrator"):
    request = NarrationRequest.create(
        user_id="u", manga_id="m", chapter_number="1", voice_type=voice_type, speed=speed,
    )
    content = ContentModel(title="Berserk", chapter_number="1", scenes=[
        Scene(id="scene_1", context="Page 1", panels=[Panel(type="narration", text="The black swordsman arrives.")]),
    ])
    return build_script(content, request), request


@pytest.mark.parametrize("length,speed,size", [
    (0, 1.0, 1024),
    (10, 1.0, 1024),
    (50, 2.0, 2500),
    (100, 0.7, 14285),
    (1000, 1.0, 100000),
])
def test_mock_audio_size(length, speed, size):
    audio = mock_audio(length, speed)
    assert len(audio) == size
    assert audio == bytes(size)


@pytest.mark.parametrize("voice_type,voice_key", [
    ("narrator", "narrator_male"),
    ("narrator_female", "narrator_female"),
    ("young_female", "young_female"),
    ("female_storyteller", "narrator_female"),
])
def test_provider_voice_id(voice_type, voice_key):
    assert provider_voice_id(voice_type) == PROVIDER_VOICE_IDS[voice_key]


def test_without_tts_returns_mock_audio():
    script, request = make_script_and_request(speed=1.25)
    audio = synthesize_audio(script, request)
    assert len(audio) == max(1024, int(len(script.full_text) * 100 // 1.25))


def test_tts_receives_whole_script():
    script, request = make_script_and_request(voice_type="narrator_female")
    tts = MagicMock()
    tts.generate.return_value = b"ID3real-audio"

    audio = synthesize_audio(script, request, tts=tts, model="eleven_multilingual_v2")

    assert audio == b"ID3real-audio"
    kwargs = tts.generate.call_args[1]
    assert kwargs["voice"] == PROVIDER_VOICE_IDS["narrator_female"]
    assert kwargs["text"] == "Berserk. Chapter 1. The black swordsman arrives. End of chapter 1."
    assert kwargs["model"] == "eleven_multilingual_v2"
    assert set(kwargs["voice_settings"]) >= {"stability", "similarity_boost", "style"}


def test_tts_failure_falls_back_to_mock_audio():
    script, request = make_script_and_request(speed=2.0)
    tts = MagicMock()
    tts.generate.side_effect = APIError("quota exceeded", status_code=401)

    audio = synthesize_audio(script, request, tts=tts)

    assert audio == mock_audio(len(script.full_text), 2.0)
