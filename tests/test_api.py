from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from pagetext.engine.page_source import PlumberPage
from pagetext.main import app
from pagetext.utils.validation import MemoryLimitError, ProcessingTimeoutError, ResourceGuard


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def _upload(content: bytes, name: str = "doc.pdf"):
    return {"file": (name, content, "application/pdf")}


def test_root_and_health(client) -> None:
    assert client.get("/").json()["message"] == "PDF Text Unit Extractor API"

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"


def test_extract_sentences(client, sample_pdf) -> None:
    response = client.post("/extract-text-units", files=_upload(sample_pdf))

    assert response.status_code == 200
    pages = response.json()
    assert len(pages) == 1
    units = pages[0]["units"]
    assert [u["source"] for u in units] == ["The cat sat.", "It was happy."]
    assert all(u["status"] == "idle" and u["translation"] is None for u in units)
    assert units[0]["rects"][0]["page"] == 1


def test_extract_paragraphs(client, sample_pdf) -> None:
    response = client.post(
        "/extract-text-units",
        files=_upload(sample_pdf),
        data={"granularity": "paragraph"},
    )

    assert response.status_code == 200
    assert [u["source"] for u in response.json()[0]["units"]] == ["The cat sat. It was happy."]


def test_extract_page_range(client, two_page_pdf) -> None:
    response = client.post("/extract-text-units?start_page=2&end_page=2", files=_upload(two_page_pdf))

    assert response.status_code == 200
    assert [page["page"] for page in response.json()] == [2]


def test_rejects_non_pdf_filename(client, sample_pdf) -> None:
    response = client.post("/extract-text-units", files=_upload(sample_pdf, name="doc.txt"))
    assert response.status_code == 400


def test_rejects_non_pdf_content(client) -> None:
    response = client.post("/extract-text-units", files=_upload(b"just some text"))
    assert response.status_code == 400


def test_rejects_unknown_granularity(client, sample_pdf) -> None:
    response = client.post(
        "/extract-text-units",
        files=_upload(sample_pdf),
        data={"granularity": "word"},
    )
    assert response.status_code == 422


def test_stream_emits_one_json_line_per_page(client, two_page_pdf) -> None:
    response = client.post("/extract-text-units/stream", files=_upload(two_page_pdf))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    records = [json.loads(line) for line in response.text.splitlines() if line]
    assert [record["page"] for record in records] == [1, 2]
    assert records[1]["units"][0]["source"] == "Second page sentence."


def test_rejects_inverted_page_range(client, two_page_pdf) -> None:
    response = client.post("/extract-text-units?start_page=2&end_page=1", files=_upload(two_page_pdf))
    assert response.status_code == 400


@pytest.mark.parametrize("error_type, kind", [
    (ProcessingTimeoutError, "processing_timeout"),
    (MemoryLimitError, "memory_limit_exceeded"),
])
def test_stream_ends_with_error_record_when_budget_runs_out(
    client, two_page_pdf, monkeypatch, error_type, kind
) -> None:
    budgets = []

    def check(self):
        budgets.append(self.max_seconds)
        if len(budgets) == 2:
            raise error_type("budget spent")

    monkeypatch.setattr(ResourceGuard, "check", check)

    response = client.post("/extract-text-units/stream?processing_timeout=45", files=_upload(two_page_pdf))

    assert response.status_code == 200
    records = [json.loads(line) for line in response.text.splitlines() if line]
    assert [record.get("page") for record in records] == [1, None]
    assert records[1] == {"error": kind, "detail": "budget spent"}
    assert budgets == [45, 45]


def test_stream_reports_failing_page(client, two_page_pdf, monkeypatch) -> None:
    real_collect = PlumberPage.collect_items

    def failing_collect(self):
        if self.page_index == 1:
            raise RuntimeError("broken content stream")
        return real_collect(self)

    monkeypatch.setattr(PlumberPage, "collect_items", failing_collect)

    response = client.post("/extract-text-units/stream", files=_upload(two_page_pdf))

    records = [json.loads(line) for line in response.text.splitlines() if line]
    assert records[0]["page"] == 1
    assert records[1]["error"] == "page_extraction_failed"
    assert records[1]["page"] == 2


def test_extract_times_out_with_request_budget(client, sample_pdf, monkeypatch) -> None:
    budgets = []

    def check(self):
        budgets.append(self.max_seconds)
        raise ProcessingTimeoutError("budget spent")

    monkeypatch.setattr(ResourceGuard, "check", check)

    response = client.post("/extract-text-units?processing_timeout=60", files=_upload(sample_pdf))

    assert response.status_code == 408
    assert budgets == [60]
