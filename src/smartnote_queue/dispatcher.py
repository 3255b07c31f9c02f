"""Worker dispatcher: executes queued note-processing work in the background.

Each entry gets exactly one attempt:

1. Claim the entry (Queued -> In-Progress, conditional update)
2. Resolve processing parameters from the note's store
3. Translate the note text (falls back to the original text on failure)
4. Call the generation service
5. Write the result onto the note (previous result goes to history), mark Done
6. Any error or empty result marks the entry Failed; nothing is raised
7. Signal the final status to the notification fan-out

Failures are terminal for the entry; recovery is a new entry via
``QueueCoordinator.regenerate``.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor

from .clients import GenerationService, TranslationService
from .config import Config
from .errors import ExternalServiceError, NotFoundError, QueueError, StateViolation
from .note_store import NoteStoreRegistry
from .notifier import QueueNotifier
from .queue_store import QueueEntryRepository
from .schemas import DispatchJob, QueueEntryRecord
from .status import QueueStatus

logger = logging.getLogger(__name__)


class WorkerDispatcher:
    """Runs DispatchJobs on a bounded thread pool.

    Args:
        repository: Queue entry store
        registry: Note kind -> NoteStore registry
        generator: AI generation service
        translator: Translation service, or None to skip translation
        notifier: Notification fan-out
        max_workers: Concurrent generation calls (defaults to WORKER_MAX_CONCURRENCY)
        target_language: Language the note text is translated to
    """

    def __init__(
        self,
        repository: QueueEntryRepository,
        registry: NoteStoreRegistry,
        generator: GenerationService,
        translator: TranslationService | None = None,
        notifier: QueueNotifier | None = None,
        max_workers: int | None = None,
        target_language: str | None = None,
    ):
        self.repository: QueueEntryRepository = repository
        self.registry: NoteStoreRegistry = registry
        self.generator: GenerationService = generator
        self.translator: TranslationService | None = translator
        self.notifier: QueueNotifier = notifier if notifier is not None else QueueNotifier()
        self.max_workers: int = max_workers or Config.WORKER_MAX_CONCURRENCY
        self.target_language: str = target_language or Config.TRANSLATION_TARGET_LANGUAGE

        self._executor: ThreadPoolExecutor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="smartnote-worker"
        )

    def submit(self, job: DispatchJob) -> "Future[QueueStatus | None]":
        """Hand a job to the pool and return immediately."""
        return self._executor.submit(self.process, job)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def process(self, job: DispatchJob) -> QueueStatus | None:
        """Process one entry.

        Never raises. Returns the terminal status reached, or None when the
        entry could not be claimed (already picked up, or deleted) or its
        final status could not be stored.
        """
        try:
            return self._run(job)
        except Exception:
            logger.exception(f"Unhandled error while processing entry {job.entry_id}")
            return None

    def _run(self, job: DispatchJob) -> QueueStatus | None:
        try:
            entry = self.repository.update_status(job.entry_id, QueueStatus.IN_PROGRESS)
        except StateViolation as e:
            logger.warning(f"Skipping entry {job.entry_id}: {e}")
            return None
        except NotFoundError:
            logger.warning(f"Skipping entry {job.entry_id}: entry no longer exists")
            return None

        logger.info(f"Processing entry {job.entry_id} for {job.note_kind}:{job.note_id}")
        self.notifier.entry_changed(entry)

        start_time = time.time()
        translated: bool | None = None

        try:
            store = self.registry.get(job.note_kind)
            params = store.get_processing_parameters(job.note_id)

            text, translated = self._translate(job)

            result = self.generator.generate(params, text)
            if not result or not result.strip():
                raise ExternalServiceError("generation", "empty response")

            store.write_result(job.note_id, result, edited_by=job.owner_id)

        except Exception as e:
            return self._fail(entry, e, translated)

        duration_ms = int((time.time() - start_time) * 1000)
        return self._finish(entry, translated, duration_ms)

    def _translate(self, job: DispatchJob) -> tuple[str, bool | None]:
        """Return (text, translated).

        translated is None when translation is off, False when the service
        failed and the original text is used instead.
        """
        if self.translator is None:
            return job.note_text, None

        try:
            return self.translator.translate(job.note_text, self.target_language), True
        except Exception as e:
            logger.warning(
                f"Translation failed for entry {job.entry_id}, using original text: {e}"
            )
            return job.note_text, False

    def _finish(
        self, entry: QueueEntryRecord, translated: bool | None, duration_ms: int
    ) -> QueueStatus | None:
        try:
            done = self.repository.update_status(entry.entry_id, QueueStatus.DONE)
        except Exception as e:
            logger.error(f"Could not mark entry {entry.entry_id} done: {e}")
            return self._fail(entry, e, translated)

        logger.info(
            f"Entry {entry.entry_id} done for {entry.note_kind}:{entry.note_id} in {duration_ms}ms"
        )
        self.notifier.entry_changed(done, translated=translated, duration_ms=duration_ms)
        return QueueStatus.DONE

    def _fail(
        self, entry: QueueEntryRecord, error: Exception, translated: bool | None
    ) -> QueueStatus | None:
        if isinstance(error, QueueError):
            logger.error(
                f"Entry {entry.entry_id} failed for {entry.note_kind}:{entry.note_id}: {error}"
            )
        else:
            logger.exception(
                f"Entry {entry.entry_id} failed for {entry.note_kind}:{entry.note_id}: {error}"
            )

        try:
            failed = self.repository.update_status(
                entry.entry_id, QueueStatus.FAILED, error_message=str(error)
            )
        except Exception:
            logger.exception(f"Could not mark entry {entry.entry_id} failed")
            return None

        self.notifier.entry_changed(failed, error=str(error), translated=translated)
        return QueueStatus.FAILED
