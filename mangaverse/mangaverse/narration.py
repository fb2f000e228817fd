"""
Narration job orchestration.

NarrationPipeline runs one request through fetch -> extract -> script ->
synthesize -> persist, recording status before and after. NarrationQueue
accepts requests and runs the pipeline on a worker pool so callers get a
request handle immediately.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional

from . import constants as c
from .cache import Cache, cache_get, cache_set
from .logging import NarrationError, get_logger, log_substep
from .models import (
    ChapterContent,
    NarrationRequest,
    NarrationStatus,
    NarrationStatusRecord,
    utc_now_iso,
)
from .narration_audio import synthesize_audio
from .narration_script import build_script, extract_content_model
from .storage import persist_audio

logger = get_logger(__name__)

NARRATION_COMPLETED = "narration_completed"
NARRATION_FAILED = "narration_failed"


def status_key(request_id: str) -> str:
    return c.NARRATION_STATUS_KEY_TEMPLATE.format(request_id=request_id)


class NarrationStatusStore:
    """Best-effort status records on top of the optional cache."""

    def __init__(self, cache: Optional[Cache] = None, ttl: int = c.NARRATION_STATUS_TTL_SECONDS):
        self.cache = cache
        self.ttl = ttl

    def save(self, record: NarrationStatusRecord) -> bool:
        return cache_set(self.cache, status_key(record.request_id), record.to_dict(), self.ttl)

    def get(self, request_id: str) -> Optional[NarrationStatusRecord]:
        data = cache_get(self.cache, status_key(request_id))
        if not data:
            return None
        try:
            return NarrationStatusRecord.from_dict(data)
        except (KeyError, ValueError) as e:
            logger.warning(f"Ignoring malformed status record for {request_id}: {e}")
            return None


class NarrationPipeline:
    """
    Turns a chapter into persisted narration audio.

    Args:
        chapter_source: Exposes `fetch_chapter(manga_id, chapter_number, language)`
        status_store: Where status transitions are recorded
        tts: Optional TTS client; mock audio is produced without one
        storage: Optional object storage; audio is written locally without one
        notifier: Optional push channel exposing `send_to_user(user_id, payload)`
        uploads_dir: Local directory for audio that is not uploaded
        fail_on_missing_content: Fail instead of narrating a placeholder chapter
    """

    def __init__(
        self,
        chapter_source: Optional[Any],
        status_store: NarrationStatusStore,
        tts: Optional[Any] = None,
        storage: Optional[Any] = None,
        notifier: Optional[Any] = None,
        uploads_dir: str = c.DEFAULT_UPLOADS_DIR,
        fail_on_missing_content: bool = False,
        tts_model: str = c.TTS_MODEL_ID,
    ):
        self.chapter_source = chapter_source
        self.status_store = status_store
        self.tts = tts
        self.storage = storage
        self.notifier = notifier
        self.uploads_dir = uploads_dir
        self.fail_on_missing_content = fail_on_missing_content
        self.tts_model = tts_model

    def fetch_content(self, request: NarrationRequest) -> ChapterContent:
        if self.chapter_source is None:
            if self.fail_on_missing_content:
                raise NarrationError("No chapter source configured")
            logger.warning("No chapter source configured, narrating a placeholder chapter")
            return ChapterContent.placeholder(request.manga_id, request.chapter_number)

        try:
            return self.chapter_source.fetch_chapter(request.manga_id, request.chapter_number, request.language)
        except Exception as e:
            if self.fail_on_missing_content:
                raise NarrationError(
                    f"Could not fetch chapter {request.chapter_number} of {request.manga_id}: {e}"
                ) from e
            logger.warning(
                f"Could not fetch chapter {request.chapter_number} of {request.manga_id}, "
                f"narrating a placeholder: {e}"
            )
            return ChapterContent.placeholder(request.manga_id, request.chapter_number)

    def _notify(self, user_id: str, payload: Dict[str, Any]) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.send_to_user(user_id, payload)
        except Exception as e:
            logger.warning(f"Failed to notify user {user_id}: {e}")

    def run(self, request: NarrationRequest) -> NarrationStatusRecord:
        """
        Runs one narration job to completion.

        Raises:
            Exception: Whatever stopped the job, after it is recorded as failed
        """
        logger.info(f"Starting narration {request.request_id} for {request.manga_id} chapter {request.chapter_number}")
        self.status_store.save(NarrationStatusRecord.for_request(request, NarrationStatus.PROCESSING))

        try:
            log_substep(f"Fetching chapter {request.chapter_number} of {request.manga_id}")
            content = self.fetch_content(request)
            log_substep("Building narration script")
            script = build_script(extract_content_model(content), request)
            logger.info(
                f"Narration {request.request_id}: {len(script.segments)} segments, "
                f"~{script.total_duration} ms"
            )
            log_substep("Synthesizing audio")
            audio = synthesize_audio(script, request, tts=self.tts, model=self.tts_model)
            log_substep("Saving audio")
            audio_url = persist_audio(audio, request.request_id, storage=self.storage, uploads_dir=self.uploads_dir)
        except Exception as e:
            failed = NarrationStatusRecord.for_request(
                request, NarrationStatus.FAILED, error=str(e), failed_at=utc_now_iso(),
            )
            self.status_store.save(failed)
            logger.error(f"Narration {request.request_id} failed: {e}")
            self._notify(request.user_id, {
                "type": NARRATION_FAILED,
                "requestId": request.request_id,
                "mangaId": request.manga_id,
                "chapterNumber": request.chapter_number,
                "error": str(e),
            })
            raise

        completed = NarrationStatusRecord.for_request(
            request,
            NarrationStatus.COMPLETED,
            audio_url=audio_url,
            duration=script.total_duration,
            settings=request.settings,
        )
        self.status_store.save(completed)
        logger.info(f"Narration {request.request_id} completed: {audio_url}")

        self._notify(request.user_id, {
            "type": NARRATION_COMPLETED,
            "requestId": request.request_id,
            "mangaId": request.manga_id,
            "chapterNumber": request.chapter_number,
            "audioUrl": audio_url,
            "duration": script.total_duration,
            "settings": request.settings,
        })
        return completed


class NarrationQueue:
    """Runs narration jobs on a bounded thread pool."""

    def __init__(self, pipeline: NarrationPipeline, workers: int = c.NARRATION_WORKERS):
        self.pipeline = pipeline
        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="narration")
        self._futures: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def _run(self, request: NarrationRequest) -> Optional[NarrationStatusRecord]:
        try:
            return self.pipeline.run(request)
        except Exception as e:
            # Already recorded as failed by the pipeline
            logger.error(f"Narration job {request.request_id} ended with error: {e}")
            return None

    def submit(self, request: NarrationRequest) -> Dict[str, str]:
        self.pipeline.status_store.save(NarrationStatusRecord.for_request(request, NarrationStatus.QUEUED))
        future = self.executor.submit(self._run, request)
        with self._lock:
            self._futures[request.request_id] = future
        future.add_done_callback(lambda _: self._forget(request.request_id))
        logger.info(f"Queued narration {request.request_id}")
        return {"requestId": request.request_id, "status": NarrationStatus.QUEUED.value}

    def _forget(self, request_id: str) -> None:
        with self._lock:
            self._futures.pop(request_id, None)

    def pending(self) -> int:
        with self._lock:
            return len(self._futures)

    def wait(self, request_id: str, timeout: Optional[float] = None) -> Optional[NarrationStatusRecord]:
        """
        Blocks until a submitted job finishes; None for unknown or failed jobs.
        Finished jobs are only tracked through the status store.
        """
        with self._lock:
            future = self._futures.get(request_id)
        if future is not None:
            return future.result(timeout=timeout)

        record = self.pipeline.status_store.get(request_id)
        if record is None or record.status is not NarrationStatus.COMPLETED:
            return None
        return record

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait)
