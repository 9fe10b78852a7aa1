import asyncio
import logging
from typing import Optional, Set

from spiralpdf.config import settings
from spiralpdf.models import JobRecord, JobStatus
from spiralpdf.services.database import DatabaseService, get_db_service
from spiralpdf.services.pdf_renderer import PDFRenderService, RenderError

logger = logging.getLogger(__name__)


class QueueProcessor:
    """Polls the job store and renders pending jobs one at a time, oldest first.

    Every timer tick is dispatched as its own task. A tick that finds a
    render already in flight returns immediately, so at most one job is
    ever being rendered by this processor.
    """

    def __init__(self, store: DatabaseService, renderer: PDFRenderService, poll_interval: float = 5.0):
        self.store = store
        self.renderer = renderer
        self.poll_interval = poll_interval
        self._in_flight = False
        self._timer_task: Optional[asyncio.Task] = None
        self._tick_tasks: Set[asyncio.Task] = set()
        self._stop_event = asyncio.Event()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    async def start(self):
        if self.is_running:
            logger.info("Queue processor is already running")
            return

        await self.resume_processing_jobs()

        logger.info("Starting PDF queue processor")
        self._stop_event.clear()
        self._timer_task = asyncio.create_task(self._timer_loop())
        logger.info("Queue processor started with %ss polling interval", self.poll_interval)

    async def stop(self):
        if self._timer_task is None:
            return
        logger.info("Stopping queue processor")
        self._stop_event.set()
        self._timer_task.cancel()
        pending = [self._timer_task, *self._tick_tasks]
        for task in self._tick_tasks:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._timer_task = None
        self._tick_tasks.clear()
        self.renderer.shutdown()
        logger.info("Queue processor stopped")

    async def _timer_loop(self):
        while not self._stop_event.is_set():
            task = asyncio.create_task(self.process_next_job())
            self._tick_tasks.add(task)
            task.add_done_callback(self._tick_tasks.discard)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

    async def process_next_job(self) -> Optional[JobRecord]:
        """Render the oldest pending job.

        Returns the job in its final state, or ``None`` when the tick did
        nothing: a render was already in flight, the queue was empty, or
        the store failed.
        """
        if self._in_flight:
            return None

        self._in_flight = True
        try:
            job = self.store.find_oldest_pending()
            if job is None:
                return None

            logger.info("Processing job %s in render worker...", job.job_id)
            # Find and claim are separate steps; this processor is the only one draining the queue.
            self.store.update_status(job.job_id, JobStatus.PROCESSING)

            try:
                artifact_ref = await self.renderer.render(job.content, job.job_id)
            except RenderError as e:
                error_detail = str(e)
                logger.error("Job %s failed: %s", job.job_id, error_detail)
                return self.store.update_status(job.job_id, JobStatus.FAILED, error_detail=error_detail)
            except Exception as e:
                error_detail = f"PDF generation failed: {e}"
                logger.error("Job %s failed: %s", job.job_id, error_detail)
                return self.store.update_status(job.job_id, JobStatus.FAILED, error_detail=error_detail)

            finished = self.store.update_status(job.job_id, JobStatus.COMPLETED, artifact_ref=artifact_ref)
            logger.info("Job %s completed successfully. File: %s", job.job_id, artifact_ref)
            return finished

        except Exception:
            logger.exception("Error in queue processor")
            return None
        finally:
            self._in_flight = False

    async def resume_processing_jobs(self) -> int:
        """Put jobs left in processing by a previous run back in the queue."""
        try:
            orphaned = self.store.find_all_processing()
            if not orphaned:
                return 0
            logger.info("Found %d jobs in processing state, resetting to pending...", len(orphaned))
            reset = self.store.reset_all_processing_to_pending()
            logger.info("Processing jobs reset to pending status")
            return reset
        except Exception:
            logger.exception("Error resuming processing jobs")
            return 0


# Global queue processor instance for app
queue_processor: Optional[QueueProcessor] = None


async def init_queue_processor(store: Optional[DatabaseService] = None) -> QueueProcessor:
    global queue_processor
    if queue_processor is None:
        renderer = PDFRenderService(
            artifact_dir=settings.artifact_dir,
            timeout_seconds=settings.render_timeout_seconds,
            delimiter=settings.word_delimiter,
        )
        queue_processor = QueueProcessor(
            store=store or get_db_service(),
            renderer=renderer,
            poll_interval=settings.poll_interval_seconds,
        )
        await queue_processor.start()
    return queue_processor


async def shutdown_queue_processor():
    global queue_processor
    if queue_processor is not None:
        await queue_processor.stop()
        queue_processor = None
