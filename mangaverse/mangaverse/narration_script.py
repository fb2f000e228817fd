"""
Narration script generation.

Turns raw chapter content into a ContentModel (characters and scenes of
panels) and then into an ordered NarrationScript whose segments carry the
voice, emotion, audio settings and pause used for synthesis.
"""

from typing import Any, Dict, List, Optional

from . import constants as c
from .models import (
    AudioSettings,
    ChapterContent,
    Character,
    ContentModel,
    NarrationRequest,
    NarrationScript,
    Panel,
    Scene,
    ScriptSegment,
)

NARRATION = "narration"
DIALOGUE = "dialogue"
OPENING = "opening"
CLOSING = "closing"


def audio_settings_for(emotion: Optional[str]) -> AudioSettings:
    """Fixed emotion lookup; unmapped emotions get the neutral delivery."""
    values = c.EMOTION_AUDIO_SETTINGS.get(emotion or c.DEFAULT_EMOTION)
    if values is None:
        values = c.EMOTION_AUDIO_SETTINGS[c.DEFAULT_EMOTION]
    speed, stability, clarity, style = values
    return AudioSettings(speed=speed, stability=stability, clarity=clarity, style=style)


def voice_for_speaker(speaker: str, voice_type: str = c.DEFAULT_VOICE_TYPE) -> str:
    """
    Narrator lines use the male or female narrator voice depending on the
    requested voice type. Every other speaker gets the character voice.
    """
    if speaker == c.NARRATOR_SPEAKER:
        return "narrator_female" if "female" in (voice_type or "").lower() else "narrator_male"
    return c.CHARACTER_VOICE


def estimate_duration_ms(text: str) -> int:
    """Speech time at a fixed words-per-second rate, in milliseconds."""
    words = len(text.split())
    return round(words / c.WORDS_PER_SECOND * 1000)


# --- Content extraction ----------------------------------------------------

def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _panel_from_transcript(entry: Dict[str, Any]) -> Panel:
    panel_type = DIALOGUE if entry.get("type") == DIALOGUE else NARRATION
    default_speaker = c.NARRATOR_SPEAKER if panel_type == NARRATION else "character"
    return Panel(
        type=panel_type,
        text=str(entry.get("text") or "").strip(),
        emotion=entry.get("emotion") or c.DEFAULT_EMOTION,
        speaker=entry.get("speaker") or default_speaker,
        pause_after=_to_int(entry.get("pauseAfter"), c.DEFAULT_PANEL_PAUSE_MS),
    )


def _scenes_from_transcript(transcript: List[Dict[str, Any]]) -> List[Scene]:
    """One scene per page, in page order, keeping panel order within a page."""
    by_page: Dict[int, List[Panel]] = {}
    for entry in transcript:
        panel = _panel_from_transcript(entry)
        if not panel.text:
            continue
        by_page.setdefault(_to_int(entry.get("page"), 1), []).append(panel)

    return [
        Scene(id=f"scene_{index}", context=f"Page {page}", panels=panels)
        for index, (page, panels) in enumerate(sorted(by_page.items()), start=1)
    ]


def _scenes_from_pages(pages: List[str]) -> List[Scene]:
    """
    Without a transcript, every group of pages becomes a scene with a single
    narration panel announcing it.
    """
    size = c.SCENE_PAGE_GROUP_SIZE
    groups = [pages[i:i + size] for i in range(0, len(pages), size)]
    scenes = []
    for index, group in enumerate(groups, start=1):
        first = (index - 1) * size + 1
        last = first + len(group) - 1
        if index == 1:
            emotion = "peaceful"
        elif index == len(groups):
            emotion = "determined"
        else:
            emotion = c.DEFAULT_EMOTION
        scenes.append(Scene(
            id=f"scene_{index}",
            context=f"Pages {first}-{last}",
            panels=[Panel(
                type=NARRATION,
                text=f"The story continues across pages {first} to {last}.",
                emotion=emotion,
                speaker=c.NARRATOR_SPEAKER,
                pause_after=c.DEFAULT_PANEL_PAUSE_MS,
            )],
        ))
    return scenes


def extract_content_model(content: ChapterContent) -> ContentModel:
    """Builds the characters and scenes a script is generated from."""
    if content.transcript:
        scenes = _scenes_from_transcript(content.transcript)
    else:
        scenes = _scenes_from_pages(content.pages)

    characters = [Character(
        id=c.NARRATOR_SPEAKER,
        name="Narrator",
        voice_profile=c.DEFAULT_VOICE_TYPE,
        emotional_range=list(c.NARRATOR_EMOTIONAL_RANGE),
    )]
    seen = {c.NARRATOR_SPEAKER}
    for scene in scenes:
        for panel in scene.panels:
            if panel.speaker in seen:
                continue
            seen.add(panel.speaker)
            characters.append(Character(
                id=panel.speaker,
                name=panel.speaker.replace("_", " ").title(),
                voice_profile=c.CHARACTER_VOICE,
                emotional_range=list(c.CHARACTER_EMOTIONAL_RANGE),
            ))

    return ContentModel(
        title=content.title,
        chapter_number=content.chapter_number,
        characters=characters,
        scenes=scenes,
    )


# --- Script building -------------------------------------------------------

def _segment(segment_id: str, segment_type: str, text: str, speaker: str, emotion: str,
             pause_after: int, voice_type: str, scene_context: Optional[str] = None) -> ScriptSegment:
    return ScriptSegment(
        id=segment_id,
        type=segment_type,
        text=text,
        speaker=speaker,
        emotion=emotion,
        voice=voice_for_speaker(speaker, voice_type),
        pause_after=pause_after,
        audio_settings=audio_settings_for(emotion),
        estimated_duration=estimate_duration_ms(text),
        scene_context=scene_context,
    )


def _is_included(panel: Panel, request: NarrationRequest) -> bool:
    if panel.type == DIALOGUE:
        return request.include_dialogue
    return request.include_narration


def build_script(content: ContentModel, request: NarrationRequest) -> NarrationScript:
    """
    Orders segments as opening, the included panels scene by scene, closing.

    `total_duration` sums every segment's estimated speech time and pause.
    """
    voice_type = request.voice_type
    segments = [_segment(
        OPENING, OPENING,
        f"{content.title}. Chapter {content.chapter_number}.",
        c.NARRATOR_SPEAKER, c.DEFAULT_EMOTION, c.OPENING_PAUSE_MS, voice_type,
    )]

    for scene in content.scenes:
        for index, panel in enumerate(scene.panels, start=1):
            if not _is_included(panel, request):
                continue
            segments.append(_segment(
                f"{scene.id}_panel_{index}", panel.type, panel.text,
                panel.speaker, panel.emotion, panel.pause_after, voice_type,
                scene_context=scene.context,
            ))

    segments.append(_segment(
        CLOSING, CLOSING,
        f"End of chapter {content.chapter_number}.",
        c.NARRATOR_SPEAKER, "peaceful", c.CLOSING_PAUSE_MS, voice_type,
    ))

    return NarrationScript(
        title=content.title,
        chapter_number=content.chapter_number,
        characters=content.characters,
        segments=segments,
        total_duration=sum(s.estimated_duration + s.pause_after for s in segments),
    )
