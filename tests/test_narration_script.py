"""
Tests for content extraction and narration script building.
"""

import itertools

import pytest

from mangaverse.mangaverse.models import ChapterContent, ContentModel, NarrationRequest, Panel, Scene
from mangaverse.mangaverse.narration_script import (
    audio_settings_for, voice_for_speaker, estimate_duration_ms, extract_content_model, build_script
)


def make_request(include_dialogue=True, include_narration=True, voice_type="narrator"):
    return NarrationRequest.create(
        user_id="user-1",
        manga_id="manga-1",
        chapter_number=7,
        voice_type=voice_type,
        include_dialogue=include_dialogue,
        include_narration=include_narration,
    )


@pytest.fixture
def content():
    """One narration panel and one dialogue panel."""
    return ContentModel(
        title="One Piece",
        chapter_number="7",
        scenes=[Scene(id="scene_1", context="Page 1", panels=[
            Panel(type="narration", text="The sea was calm that morning.", emotion="peaceful"),
            Panel(type="dialogue", text="I will be king of the pirates!", emotion="determined", speaker="luffy"),
        ])],
    )


class TestLookups:
    def test_unknown_emotion_gets_neutral_settings(self):
        assert audio_settings_for("bewildered") == audio_settings_for("neutral")
        assert audio_settings_for(None) == audio_settings_for("neutral")

    def test_required_emotions_are_mapped(self):
        assert audio_settings_for("peaceful") != audio_settings_for("neutral")
        assert audio_settings_for("determined") != audio_settings_for("neutral")

    @pytest.mark.parametrize("speaker,voice_type,voice", [
        ("narrator", "narrator", "narrator_male"),
        ("narrator", "narrator_female", "narrator_female"),
        ("narrator", "Female", "narrator_female"),
        ("luffy", "narrator_female", "young_male"),
        ("nami", "narrator", "young_male"),
    ])
    def test_voice_for_speaker(self, speaker, voice_type, voice):
        assert voice_for_speaker(speaker, voice_type) == voice

    @pytest.mark.parametrize("text,ms", [
        ("", 0),
        ("one", 400),
        ("one two three four five", 2000),
        ("  spaced   out words  ", 1200),
    ])
    def test_estimate_duration_ms(self, text, ms):
        assert estimate_duration_ms(text) == ms


class TestContentExtraction:
    def test_transcript_grouped_by_page(self):
        chapter = ChapterContent(
            chapter_id="ch-1", title="One Piece", chapter_number="7",
            transcript=[
                {"page": 2, "type": "dialogue", "text": "Zoro!", "speaker": "luffy", "emotion": "excited"},
                {"page": 1, "type": "narration", "text": "Morning at sea."},
                {"page": 2, "type": "narration", "text": "A storm gathers.", "pauseAfter": 1200},
                {"page": 3, "type": "dialogue", "text": "   "},
            ],
        )
        model = extract_content_model(chapter)

        assert [s.context for s in model.scenes] == ["Page 1", "Page 2"]
        assert [p.text for p in model.scenes[1].panels] == ["Zoro!", "A storm gathers."]
        assert model.scenes[1].panels[1].pause_after == 1200
        assert [ch.id for ch in model.characters] == ["narrator", "luffy"]
        assert model.characters[1].voice_profile == "young_male"

    def test_malformed_page_and_pause_fall_back_to_defaults(self):
        chapter = ChapterContent(
            chapter_id="ch-1", title="One Piece", chapter_number="7",
            transcript=[
                {"page": None, "type": "narration", "text": "No page.", "pauseAfter": None},
                {"page": "two", "type": "narration", "text": "Bad page.", "pauseAfter": "long"},
                {"page": "3", "type": "narration", "text": "Numeric string.", "pauseAfter": "500"},
            ],
        )
        model = extract_content_model(chapter)

        assert [s.context for s in model.scenes] == ["Page 1", "Page 3"]
        assert [p.pause_after for p in model.scenes[0].panels] == [800, 800]
        assert model.scenes[1].panels[0].pause_after == 500

    def test_pages_grouped_into_scenes_without_transcript(self):
        chapter = ChapterContent(
            chapter_id="ch-1", title="One Piece", chapter_number="7",
            pages=[f"https://img/{i}.png" for i in range(9)],
        )
        model = extract_content_model(chapter)

        assert len(model.scenes) == 3
        assert [s.panels[0].emotion for s in model.scenes] == ["peaceful", "neutral", "determined"]
        assert model.scenes[2].context == "Pages 9-9"
        assert all(len(s.panels) == 1 and s.panels[0].type == "narration" for s in model.scenes)
        assert [ch.id for ch in model.characters] == ["narrator"]

    def test_placeholder_has_no_scenes(self):
        model = extract_content_model(ChapterContent.placeholder("manga-1", "7"))
        assert model.scenes == []
        assert model.title == "Chapter 7"


class TestBuildScript:
    @pytest.mark.parametrize("include_dialogue,include_narration", list(itertools.product([True, False], repeat=2)))
    def test_opening_first_closing_last(self, content, include_dialogue, include_narration):
        script = build_script(content, make_request(include_dialogue, include_narration))
        assert script.segments[0].type == "opening"
        assert script.segments[-1].type == "closing"

    def test_dialogue_only(self, content):
        script = build_script(content, make_request(include_dialogue=True, include_narration=False))

        assert [s.type for s in script.segments] == ["opening", "dialogue", "closing"]
        assert script.segments[1].text == "I will be king of the pirates!"
        assert script.segments[1].voice == "young_male"
        assert script.segments[1].scene_context == "Page 1"

    def test_narration_only(self, content):
        script = build_script(content, make_request(include_dialogue=False, include_narration=True))
        assert [s.type for s in script.segments] == ["opening", "narration", "closing"]

    def test_both_flags_off_leaves_opening_and_closing(self, content):
        script = build_script(content, make_request(include_dialogue=False, include_narration=False))
        assert [s.type for s in script.segments] == ["opening", "closing"]

    def test_total_duration_is_speech_plus_pauses(self, content):
        script = build_script(content, make_request())
        assert script.total_duration == sum(s.estimated_duration + s.pause_after for s in script.segments)
        assert script.segments[0].pause_after == 1500
        assert script.segments[-1].pause_after == 2000

    def test_total_duration_grows_with_included_segments(self, content):
        durations = {
            flags: build_script(content, make_request(*flags)).total_duration
            for flags in itertools.product([True, False], repeat=2)
        }
        assert durations[(True, True)] >= durations[(True, False)] >= durations[(False, False)]
        assert durations[(True, True)] >= durations[(False, True)] >= durations[(False, False)]

    def test_segment_metadata(self, content):
        script = build_script(content, make_request(voice_type="narrator_female"))
        opening, narration, dialogue, closing = script.segments

        assert opening.text == "One Piece. Chapter 7."
        assert opening.voice == "narrator_female"
        assert narration.audio_settings == audio_settings_for("peaceful")
        assert dialogue.audio_settings == audio_settings_for("determined")
        assert closing.emotion == "peaceful"
        assert narration.id == "scene_1_panel_1"

    def test_to_dict_uses_wire_names(self, content):
        data = build_script(content, make_request()).to_dict()
        assert data["chapterNumber"] == "7"
        assert set(data["segments"][1]) >= {"pauseAfter", "audioSettings", "sceneContext", "estimatedDuration"}
        assert "sceneContext" not in data["segments"][0]
