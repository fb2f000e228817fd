"""
Narrate command for MangaVerse CLI.

Runs the narration pipeline in the foreground for one chapter.
"""
import click

from .base import configure_logging, console, fail, get_services, key_value_table, verbose_option
from ..constants import DEFAULT_VOICE_TYPE
from ..logging import MangaVerseError, get_logger, log_step
from ..models import NarrationRequest

logger = get_logger(__name__)


@click.command()
@click.argument("manga_id")
@click.argument("chapter")
@click.option("--voice", "voice_type", default=DEFAULT_VOICE_TYPE, show_default=True, help="Base voice type (e.g. narrator, narrator_female).")
@click.option("--speed", default=1.0, show_default=True, type=float, help="Speech speed multiplier.")
@click.option("--language", default="en", show_default=True, help="Chapter language.")
@click.option("--no-dialogue", is_flag=True, help="Skip dialogue panels.")
@click.option("--no-narration", is_flag=True, help="Skip narration panels.")
@click.option("--user", "user_id", default="cli", show_default=True, help="User id notified on completion.")
@verbose_option
def narrate(manga_id: str, chapter: str, voice_type: str, speed: float, language: str,
            no_dialogue: bool, no_narration: bool, user_id: str, verbose: int) -> None:
    """Narrate CHAPTER of MANGA_ID and persist the audio."""
    configure_logging(verbose)

    try:
        request = NarrationRequest.create(
            user_id=user_id,
            manga_id=manga_id,
            chapter_number=chapter,
            voice_type=voice_type,
            language=language,
            speed=speed,
            include_dialogue=not no_dialogue,
            include_narration=not no_narration,
        )
    except MangaVerseError as e:
        fail(str(e))
        return

    log_step(f"Narrating {manga_id} chapter {chapter}")
    try:
        record = get_services().pipeline.run(request)
    except Exception as e:
        logger.error(f"Narration {request.request_id} failed: {e}", exc_info=True)
        fail(f"Narration failed: {e}", {"requestId": request.request_id})
        return

    console.print(key_value_table("Narration complete", {
        "Request": record.request_id,
        "Audio": record.audio_url,
        "Duration (ms)": record.duration,
        "Voice": voice_type,
        "Speed": speed,
    }))
