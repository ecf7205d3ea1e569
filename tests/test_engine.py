from __future__ import annotations

import asyncio
import hashlib

import pytest

from conftest import build_pdf
from pagetext.engine import EngineConfig, LayoutConfig, PageRange, PDFEngine
from pagetext.engine.page_source import PlumberPage
from pagetext.extractors.text_extractor import (
    collect_text_units,
    extract_text_units,
    iter_text_units,
)
from pagetext.utils.validation import PageExtractionError, PdfValidationError


def test_engine_reads_document_metadata(sample_pdf) -> None:
    with PDFEngine(sample_pdf) as engine:
        assert engine.is_open
        assert engine.get_page_count() == 1
        assert engine.document_id == hashlib.sha256(sample_pdf).hexdigest()[:12]
        assert engine.get_page_size(0) == (612, 792)
        assert engine.resolve_page_range(PageRange(start=1, end=9)) == [1]
        assert "text_units" in engine.get_status()["processors"]

    assert not engine.is_open


def test_engine_applies_page_rotation_to_size() -> None:
    with PDFEngine(build_pdf([["Rotated."]], rotate=90)) as engine:
        assert engine.get_page_size(0) == (792, 612)


def test_engine_honours_doc_id_length(sample_pdf) -> None:
    with PDFEngine(sample_pdf, config=EngineConfig(doc_id_length=20)) as engine:
        assert len(engine.document_id) == 20


def test_engine_rejects_non_pdf_bytes() -> None:
    with pytest.raises(PdfValidationError):
        with PDFEngine(b"plain text, not a document"):
            pass


def test_engine_rejects_missing_path(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        PDFEngine(str(tmp_path / "missing.pdf"))


def test_engine_opens_path(tmp_path, sample_pdf) -> None:
    path = tmp_path / "doc.pdf"
    path.write_bytes(sample_pdf)

    with PDFEngine(str(path)) as engine:
        assert engine.document_id == hashlib.sha256(sample_pdf).hexdigest()[:12]


def test_engine_requires_context_manager(sample_pdf) -> None:
    engine = PDFEngine(sample_pdf)
    with pytest.raises(RuntimeError):
        engine.get_page_count()


def test_engine_page_is_a_page_proxy(sample_pdf) -> None:
    with PDFEngine(sample_pdf) as engine:
        page = engine.get_page(0)
        viewport = page.get_viewport(scale=1.0)
        items = asyncio.run(page.get_text_content())

        with pytest.raises(IndexError):
            engine.get_page(1)

    assert viewport.transform == [1.0, 0.0, 0.0, -1.0, 0.0, 792.0]
    assert "".join(item.text for item in items) == "Thecatsat.Itwashappy."


def test_extract_text_units_from_pdf(sample_pdf) -> None:
    pages = extract_text_units(sample_pdf)

    assert len(pages) == 1
    units = pages[0].units
    assert [u.source for u in units] == ["The cat sat.", "It was happy."]

    doc_id = hashlib.sha256(sample_pdf).hexdigest()[:12]
    assert all(u.id.startswith(f"{doc_id}:p1:") for u in units)
    for unit in units:
        assert len(unit.rects) == 1
        rect = unit.rects[0]
        assert rect.x >= 72
        assert 0 < rect.y < 792 - 700
        assert rect.w > 0 and rect.h > 0


def test_paragraph_granularity_from_dict(sample_pdf) -> None:
    pages = extract_text_units(sample_pdf, layout_config={"granularity": "paragraph"})
    assert [u.source for u in pages[0].units] == ["The cat sat. It was happy."]


def test_pages_stream_in_ascending_order(two_page_pdf) -> None:
    async def collect():
        return [page.page async for page in iter_text_units(two_page_pdf)]

    assert asyncio.run(collect()) == [1, 2]


def test_page_range_selection(two_page_pdf) -> None:
    pages = asyncio.run(collect_text_units(two_page_pdf, start_page=2))
    assert [p.page for p in pages] == [2]
    assert [u.source for u in pages[0].units] == ["Second page sentence."]

    assert asyncio.run(collect_text_units(two_page_pdf, start_page=5)) == []


def test_invalid_layout_config_is_rejected(sample_pdf) -> None:
    with pytest.raises(ValueError):
        extract_text_units(sample_pdf, layout_config=LayoutConfig(sentence_scope="page"))


def test_page_failure_is_reported_with_page_number(monkeypatch, two_page_pdf) -> None:
    real_collect = PlumberPage.collect_items

    def failing_collect(self):
        if self.page_index == 1:
            raise RuntimeError("broken content stream")
        return real_collect(self)

    monkeypatch.setattr(PlumberPage, "collect_items", failing_collect)

    received = []

    async def consume():
        async for page in iter_text_units(two_page_pdf):
            received.append(page.page)

    with pytest.raises(PageExtractionError) as excinfo:
        asyncio.run(consume())

    assert received == [1]
    assert excinfo.value.page_number == 2
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_processor_counts_pages_and_stops_with_engine(sample_pdf) -> None:
    with PDFEngine(sample_pdf) as engine:
        processor = engine.text_unit_processor
        page_units = asyncio.run(processor.run_page(0))

        assert page_units.page == 1
        assert processor.pages_processed == 1
        assert processor.stats()["units_emitted"] == 2

    assert not processor.is_active
    with pytest.raises(RuntimeError):
        asyncio.run(processor.run_page(0))
