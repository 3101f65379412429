from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from tyingbench.domain.model import ExtractionStatus
from tyingbench.domain.pipeline import ingestion as ingestion_module
from tyingbench.domain.pipeline import submit_user_pattern
from tyingbench.ui.api import create_app
from tests.helpers.payloads import minimal_payload, woolly_bugger_payload
from tests.helpers.pipeline import pending_extraction

if TYPE_CHECKING:
    from tyingbench.app import PipelineServices


@pytest.fixture
def client(services: PipelineServices) -> TestClient:
    return TestClient(create_app(services))


def test_list_defaults_to_pending_in_review_order(
    services: PipelineServices, client: TestClient
) -> None:
    low = pending_extraction(services, minimal_payload("Zebra Midge"))
    high = pending_extraction(services, woolly_bugger_payload())

    response = client.get("/pipeline/extractions")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["order"] == "desc"
    assert [item["id"] for item in body["items"]] == [str(high.id), str(low.id)]
    assert body["items"][0]["confidenceBucket"] == "high"
    assert body["items"][1]["confidenceBucket"] == "low"
    assert body["items"][0]["payload"]["patternName"] == "Woolly Bugger"


def test_list_filters_by_confidence(services: PipelineServices, client: TestClient) -> None:
    pending_extraction(services, minimal_payload("Zebra Midge"))
    high = pending_extraction(services, woolly_bugger_payload())

    response = client.get("/pipeline/extractions", params={"confidenceMin": 0.8, "limit": 10})

    assert [item["id"] for item in response.json()["items"]] == [str(high.id)]


def test_list_rejects_inverted_confidence_range(client: TestClient) -> None:
    response = client.get(
        "/pipeline/extractions", params={"confidenceMin": 0.9, "confidenceMax": 0.1}
    )

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_approve_returns_pattern(services: PipelineServices, client: TestClient) -> None:
    extraction = pending_extraction(services, woolly_bugger_payload())

    response = client.post(
        f"/pipeline/extractions/{extraction.id}/approve",
        json={"reviewer": "alice", "notes": "ship it"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ingested"
    assert body["reviewer"] == "alice"
    assert body["patternSlug"] == "woolly-bugger"
    assert body["ingestedPatternId"] == body["patternId"]


def test_approve_without_body_uses_default_reviewer(
    services: PipelineServices, client: TestClient
) -> None:
    extraction = pending_extraction(services, woolly_bugger_payload())

    response = client.post(f"/pipeline/extractions/{extraction.id}/approve")

    assert response.status_code == 200
    assert response.json()["reviewer"] == "api"


def test_second_approval_conflicts(services: PipelineServices, client: TestClient) -> None:
    extraction = pending_extraction(services, woolly_bugger_payload())
    client.post(f"/pipeline/extractions/{extraction.id}/approve")

    response = client.post(f"/pipeline/extractions/{extraction.id}/approve")

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


def test_duplicate_identity_reports_existing_pattern(
    services: PipelineServices, client: TestClient
) -> None:
    user_pattern = submit_user_pattern(services.unit_of_work_factory, woolly_bugger_payload())
    extraction = pending_extraction(services, woolly_bugger_payload())

    response = client.post(f"/pipeline/extractions/{extraction.id}/approve")

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "duplicate_identity"
    assert body["identityKey"] == "woolly-bugger"
    assert body["patternId"] == str(user_pattern.id)
    assert body["extractionId"] == str(extraction.id)
    assert body["status"] == "approved"
    assert services.store.get(extraction.id).status is ExtractionStatus.APPROVED


def test_failed_ingestion_reports_status_and_can_be_retried(
    services: PipelineServices, client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    extraction = pending_extraction(services, woolly_bugger_payload())

    def explode(*_args: object) -> int:
        raise RuntimeError("disk full")

    monkeypatch.setattr(ingestion_module, "_add_source_resource", explode)
    failed = client.post(f"/pipeline/extractions/{extraction.id}/approve")
    monkeypatch.undo()
    retried = client.post(f"/pipeline/extractions/{extraction.id}/ingest")

    assert failed.status_code == 500
    assert failed.json()["error"] == "ingestion_transaction_error"
    assert failed.json()["extractionId"] == str(extraction.id)
    assert failed.json()["status"] == "approved"
    assert retried.status_code == 200
    assert retried.json()["status"] == "ingested"
    assert retried.json()["patternSlug"] == "woolly-bugger"


def test_reject_requires_notes(services: PipelineServices, client: TestClient) -> None:
    extraction = pending_extraction(services, minimal_payload("Adams"))

    missing = client.post(f"/pipeline/extractions/{extraction.id}/reject", json={})
    blank = client.post(f"/pipeline/extractions/{extraction.id}/reject", json={"notes": " "})
    ok = client.post(
        f"/pipeline/extractions/{extraction.id}/reject", json={"notes": "not a pattern"}
    )

    assert missing.status_code == 422
    assert blank.status_code == 422
    assert ok.status_code == 200
    assert ok.json()["status"] == "rejected"
    assert ok.json()["reviewNotes"] == "not a pattern"


def test_update_payload_rescores(services: PipelineServices, client: TestClient) -> None:
    extraction = pending_extraction(services, minimal_payload("Woolly Bugger"))

    response = client.put(
        f"/pipeline/extractions/{extraction.id}/payload",
        json=woolly_bugger_payload().to_dict(),
    )

    assert response.status_code == 200
    assert response.json()["confidence"] == 1.0


def test_update_payload_rejects_unknown_enum(
    services: PipelineServices, client: TestClient
) -> None:
    extraction = pending_extraction(services, minimal_payload("Adams"))

    response = client.put(
        f"/pipeline/extractions/{extraction.id}/payload",
        json={"patternName": "Adams", "category": "spaceship"},
    )

    assert response.status_code == 422
    assert response.json()["problems"] == ["category: 'spaceship'"]


def test_unknown_extraction_is_404(client: TestClient) -> None:
    response = client.get(f"/pipeline/extractions/{uuid4()}")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_stats_endpoint(services: PipelineServices, client: TestClient) -> None:
    pending_extraction(services, woolly_bugger_payload())

    body = client.get("/pipeline/stats").json()

    assert body["extractionsTotal"] == 1
    assert body["extractionsHighConfidence"] == 1
    assert body["sourcesExtracted"] == 1
