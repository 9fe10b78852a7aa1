"""
PDF rendering for spiral layouts.

``render_job`` is the worker entry point. It runs on a separate executor
(a single-process pool by default) so the layout and PDF serialization never
run on the event loop. It takes plain arguments and returns a
``RenderOutcome`` message; it never raises.
"""

import asyncio
import logging
import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from concurrent.futures import BrokenExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import fitz  # PyMuPDF

from spiralpdf.config import settings
from spiralpdf.services.spiral import generate_spiral

logger = logging.getLogger(__name__)


PAGE_WIDTH: float = 612.0  # US Letter
PAGE_HEIGHT: float = 792.0
MARGIN: float = 50.0
FONT_NAME: str = "cour"
FONT_SIZE: float = 8.0
MIN_FONT_SIZE: float = 4.0
LINE_GAP: float = 1.0


class RenderError(RuntimeError):
    """Rendering failed; the message is suitable for showing to the submitter."""


@dataclass(frozen=True)
class RenderOutcome:
    """Result message sent back from the render worker."""
    success: bool
    artifact_ref: Optional[str] = None
    error: Optional[str] = None


def artifact_name(job_id: str) -> str:
    return f"pdf_{job_id}.pdf"


def _fit_font_size(lines: List[str], printable_width: float) -> float:
    widest = max(lines, key=len, default="")
    if not widest:
        return FONT_SIZE
    width = fitz.get_text_length(widest, fontname=FONT_NAME, fontsize=FONT_SIZE)
    if width <= printable_width:
        return FONT_SIZE
    size = FONT_SIZE * printable_width / width
    if size < MIN_FONT_SIZE:
        logger.warning("Layout is %d characters wide and will be clipped", len(widest))
        return MIN_FONT_SIZE
    return size


def write_pdf(text: str, path: Path) -> int:
    """Write ``text`` as a paginated, monospaced PDF at ``path``.

    The block is centered horizontally as a whole so column alignment is
    preserved. Returns the number of pages written.
    """
    lines = text.split("\n") if text else []
    printable_width = PAGE_WIDTH - 2 * MARGIN
    font_size = _fit_font_size(lines, printable_width)
    line_height = font_size + LINE_GAP
    lines_per_page = max(1, int((PAGE_HEIGHT - 2 * MARGIN) // line_height))

    block_width = max(
        (fitz.get_text_length(line, fontname=FONT_NAME, fontsize=font_size) for line in lines),
        default=0.0,
    )
    x = MARGIN + max(0.0, (printable_width - block_width) / 2)

    with fitz.open() as doc:
        chunks = [lines[i:i + lines_per_page] for i in range(0, len(lines), lines_per_page)] or [[]]
        for chunk in chunks:
            page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
            y = MARGIN + font_size
            for line in chunk:
                if line.strip():
                    page.insert_text(fitz.Point(x, y), line, fontname=FONT_NAME, fontsize=font_size)
                y += line_height
        doc.save(str(path))
        return len(chunks)


def render_job(content: str, job_id: str, artifact_dir: str, delimiter: str = ",") -> RenderOutcome:
    """Lay out ``content`` and store it as ``pdf_<job_id>.pdf`` in ``artifact_dir``.

    The document is written under a temporary name and renamed into place,
    so either the full artifact exists afterwards or nothing does.
    """
    filename = artifact_name(job_id)
    storage_dir = Path(artifact_dir)
    tmp_path = storage_dir / f".{filename}.tmp"
    try:
        layout = generate_spiral(content, delimiter)
        logger.info("Generated spiral layout for job %s", job_id)

        storage_dir.mkdir(parents=True, exist_ok=True)
        pages = write_pdf(layout, tmp_path)
        os.replace(tmp_path, storage_dir / filename)
        logger.info("Wrote %s (%d pages)", filename, pages)
        return RenderOutcome(success=True, artifact_ref=filename)
    except OSError as e:
        return RenderOutcome(success=False, error=f"Failed to write PDF file: {e}")
    except Exception as e:
        return RenderOutcome(success=False, error=f"PDF generation failed: {e}")
    finally:
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove temporary file %s: %s", tmp_path, e)


def create_executor(kind: str) -> Executor:
    if kind == "process":
        return ProcessPoolExecutor(max_workers=1)
    if kind == "thread":
        return ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf-render")
    raise ValueError(f"Unknown render executor: {kind}")


class PDFRenderService:
    """Dispatches renders to an isolated executor and awaits their outcome."""

    def __init__(
        self,
        artifact_dir: Optional[str] = None,
        executor: Optional[Executor] = None,
        timeout_seconds: Optional[float] = None,
        delimiter: Optional[str] = None,
    ):
        self.artifact_dir = Path(artifact_dir or settings.artifact_dir)
        self.timeout_seconds = timeout_seconds
        self.delimiter = delimiter or settings.word_delimiter
        self._owns_executor = executor is None
        self._executor = executor or create_executor(settings.render_executor)

    async def render(self, content: str, job_id: str) -> str:
        """Render one job and return its artifact reference.

        Raises ``RenderError`` if the worker reports a failure, the executor
        breaks, or the optional timeout expires.
        """
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(
            self._executor, render_job, content, job_id, str(self.artifact_dir), self.delimiter
        )
        try:
            if self.timeout_seconds:
                outcome = await asyncio.wait_for(future, timeout=self.timeout_seconds)
            else:
                outcome = await future
        except asyncio.TimeoutError:
            # The hung call still holds the only worker.
            self._replace_executor("timed out")
            raise RenderError(f"Rendering timed out after {self.timeout_seconds}s")
        except BrokenExecutor as e:
            self._replace_executor("broke")
            raise RenderError(f"Worker error: {e}") from e

        if not outcome.success:
            raise RenderError(outcome.error or "Unknown render failure")
        return outcome.artifact_ref

    def _replace_executor(self, reason: str):
        if not self._owns_executor:
            logger.warning("Render executor %s; it is not owned by this service and is left in place", reason)
            return
        logger.warning("Render executor %s, starting a new one", reason)
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._executor = create_executor(settings.render_executor)

    def artifact_path(self, artifact_ref: str) -> Path:
        return self.artifact_dir / artifact_ref

    def shutdown(self):
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
