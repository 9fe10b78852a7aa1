"""
Tests for PDF rendering and the isolated render executor.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import fitz  # PyMuPDF
import pytest

from spiralpdf.services import pdf_renderer
from spiralpdf.services.pdf_renderer import (
    FONT_SIZE,
    MIN_FONT_SIZE,
    PDFRenderService,
    RenderError,
    RenderOutcome,
    render_job,
    write_pdf,
)


def _pdf_text(path):
    with fitz.open(str(path)) as doc:
        return "".join(page.get_text() for page in doc)


class TestRenderJob:
    """Test the worker entry point."""

    def test_writes_artifact_named_after_job(self, tmp_path):
        outcome = render_job("alpha, beta, gamma", "job-1", str(tmp_path / "pdfs"))
        assert outcome == RenderOutcome(success=True, artifact_ref="pdf_job-1.pdf")

        path = tmp_path / "pdfs" / "pdf_job-1.pdf"
        assert path.read_bytes().startswith(b"%PDF")
        text = _pdf_text(path)
        assert ">>> | alpha" in text
        assert "gamma" in text

    def test_leaves_no_temporary_files(self, tmp_path):
        render_job("alpha, beta", "job-1", str(tmp_path))
        assert sorted(p.name for p in tmp_path.iterdir()) == ["pdf_job-1.pdf"]

    def test_storage_failure_is_reported_not_raised(self, tmp_path):
        blocked = tmp_path / "not-a-dir"
        blocked.write_text("occupied")

        outcome = render_job("alpha, beta", "job-1", str(blocked))
        assert outcome.success is False
        assert outcome.artifact_ref is None
        assert "Failed to write PDF file" in outcome.error

    def test_layout_failure_is_reported(self, tmp_path, monkeypatch):
        def explode(content, delimiter):
            raise ValueError("bad layout")

        monkeypatch.setattr(pdf_renderer, "generate_spiral", explode)
        outcome = render_job("alpha", "job-1", str(tmp_path))
        assert outcome.success is False
        assert outcome.error == "PDF generation failed: bad layout"
        assert list(tmp_path.iterdir()) == []


class TestWritePdf:

    def test_long_layouts_are_paginated(self, tmp_path):
        path = tmp_path / "long.pdf"
        text = "\n".join(f"line {i:03d}" for i in range(200))
        pages = write_pdf(text, path)
        assert pages == 3
        with fitz.open(str(path)) as doc:
            assert doc.page_count == 3
            assert "line 199" in doc[2].get_text()

    def test_empty_layout_still_produces_a_page(self, tmp_path):
        path = tmp_path / "empty.pdf"
        assert write_pdf("", path) == 1
        assert path.exists()

    def test_wide_layouts_shrink_the_font(self):
        size = pdf_renderer._fit_font_size(["x" * 150], 512.0)
        assert MIN_FONT_SIZE < size < FONT_SIZE
        assert pdf_renderer._fit_font_size(["x" * 10], 512.0) == FONT_SIZE
        assert pdf_renderer._fit_font_size(["x" * 1000], 512.0) == MIN_FONT_SIZE


class TestPDFRenderService:
    """Test dispatching renders to an executor."""

    @pytest.mark.asyncio
    async def test_render_returns_artifact_ref(self, thread_renderer, artifact_dir):
        ref = await thread_renderer.render("alpha, beta, gamma", "job-1")
        assert ref == "pdf_job-1.pdf"
        assert thread_renderer.artifact_path(ref) == artifact_dir / ref
        assert (artifact_dir / ref).exists()

    @pytest.mark.asyncio
    async def test_failure_message_becomes_render_error(self, tmp_path):
        blocked = tmp_path / "blocked"
        blocked.write_text("occupied")
        with ThreadPoolExecutor(max_workers=1) as executor:
            renderer = PDFRenderService(artifact_dir=str(blocked), executor=executor)
            with pytest.raises(RenderError, match="Failed to write PDF file"):
                await renderer.render("alpha", "job-1")

    @pytest.mark.asyncio
    async def test_timeout(self, tmp_path, monkeypatch):
        def slow(content, job_id, artifact_dir, delimiter):
            time.sleep(0.5)
            return RenderOutcome(success=True, artifact_ref="late.pdf")

        monkeypatch.setattr(pdf_renderer, "render_job", slow)
        with ThreadPoolExecutor(max_workers=1) as executor:
            renderer = PDFRenderService(artifact_dir=str(tmp_path), executor=executor, timeout_seconds=0.05)
            with pytest.raises(RenderError, match="timed out"):
                await renderer.render("alpha", "job-1")

    @pytest.mark.asyncio
    async def test_hung_render_does_not_fail_later_jobs(self, artifact_dir, monkeypatch):
        """A timed-out render must not keep the next job waiting behind it."""
        hang = threading.Event()

        def render(content, job_id, artifact_dir, delimiter):
            if job_id == "hung":
                hang.wait(5)
                return RenderOutcome(success=False, error="released")
            return RenderOutcome(success=True, artifact_ref=f"pdf_{job_id}.pdf")

        monkeypatch.setattr(pdf_renderer, "render_job", render)
        monkeypatch.setattr(pdf_renderer.settings, "render_executor", "thread")
        renderer = PDFRenderService(artifact_dir=str(artifact_dir), timeout_seconds=0.3)
        try:
            with pytest.raises(RenderError, match="timed out"):
                await renderer.render("alpha", "hung")
            assert await renderer.render("beta", "healthy") == "pdf_healthy.pdf"
        finally:
            hang.set()
            renderer.shutdown()

    @pytest.mark.asyncio
    async def test_process_pool(self, artifact_dir, monkeypatch):
        monkeypatch.setattr(pdf_renderer.settings, "render_executor", "process")
        renderer = PDFRenderService(artifact_dir=str(artifact_dir))
        try:
            ref = await renderer.render("alpha, beta, gamma, delta", "job-proc")
        finally:
            renderer.shutdown()
        assert ref == "pdf_job-proc.pdf"
        assert ">>> | alpha" in _pdf_text(artifact_dir / ref)

    def test_unknown_executor_kind(self):
        with pytest.raises(ValueError):
            pdf_renderer.create_executor("gpu")
