"""FastAPI review and stats API under ``/pipeline``."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tyingbench.app import PipelineServices
from tyingbench.domain.errors import (
    ConflictError,
    DuplicateIdentityError,
    IngestionTransactionError,
    NotFoundError,
    PipelineError,
    ValidationError,
)
from tyingbench.domain.model import (
    PENDING_REVIEW_STATUSES,
    ExtractedPayload,
    ExtractionStatus,
    SourceType,
)
from tyingbench.domain.pipeline import ConfidenceRange, confidence_bucket
from tyingbench.domain.pipeline.review import DEFAULT_PAGE_SIZE

if TYPE_CHECKING:
    from tyingbench.domain.model import Extraction
    from tyingbench.domain.pipeline import ApprovalResult

log = getLogger(__name__)

DEFAULT_REVIEWER = "api"


class ApproveRequest(BaseModel):
    reviewer: str = DEFAULT_REVIEWER
    notes: str | None = None


class RejectRequest(BaseModel):
    reviewer: str = DEFAULT_REVIEWER
    notes: str


def get_services(request: Request) -> PipelineServices:
    return request.app.state.services


ServicesDep = Annotated[PipelineServices, Depends(get_services)]


def extraction_to_dict(extraction: Extraction, services: PipelineServices) -> dict[str, Any]:
    return {
        "id": str(extraction.id),
        "sourceId": str(extraction.source_id),
        "status": extraction.status.value,
        "identityKey": extraction.identity_key,
        "confidence": extraction.confidence,
        "confidenceBucket": confidence_bucket(
            extraction.confidence, services.config.thresholds
        ).value,
        "reviewer": extraction.reviewer,
        "reviewNotes": extraction.review_notes,
        "reviewedAt": extraction.reviewed_at.isoformat() if extraction.reviewed_at else None,
        "ingestedPatternId": (
            str(extraction.ingested_pattern_id) if extraction.ingested_pattern_id else None
        ),
        "ingestedAt": extraction.ingested_at.isoformat() if extraction.ingested_at else None,
        "createdAt": extraction.created_at.isoformat(),
        "payload": extraction.payload.to_dict(),
    }


def _approval_to_dict(result: ApprovalResult, services: PipelineServices) -> dict[str, Any]:
    return {
        **extraction_to_dict(result.extraction, services),
        "patternId": str(result.pattern.id),
        "patternSlug": result.pattern.slug,
    }


router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.get("/extractions")
def list_extractions(
    services: ServicesDep,
    status: Annotated[list[ExtractionStatus] | None, Query()] = None,
    confidence_min: Annotated[float | None, Query(alias="confidenceMin")] = None,
    confidence_max: Annotated[float | None, Query(alias="confidenceMax")] = None,
    source_type: Annotated[SourceType | None, Query(alias="sourceType")] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict[str, Any]:
    """Review queue; defaults to extractions still awaiting review."""

    statuses = frozenset(status) if status else PENDING_REVIEW_STATUSES
    result = services.review.list_extractions(
        statuses,
        source_type=source_type,
        confidence_range=ConfidenceRange(confidence_min, confidence_max),
        page=page,
        limit=limit,
    )
    return {
        "items": [extraction_to_dict(item, services) for item in result.items],
        "total": result.total,
        "page": page,
        "limit": limit,
        "order": services.review.order.value,
    }


@router.get("/extractions/{extraction_id}")
def get_extraction(extraction_id: UUID, services: ServicesDep) -> dict[str, Any]:
    return extraction_to_dict(services.store.get(extraction_id), services)


@router.post("/extractions/{extraction_id}/approve", response_model=None)
def approve_extraction(
    extraction_id: UUID,
    services: ServicesDep,
    body: Annotated[ApproveRequest | None, Body()] = None,
) -> dict[str, Any] | JSONResponse:
    """Approve and ingest. A failed ingestion still reports the extraction's status."""

    request = body or ApproveRequest()
    try:
        result = services.review.approve(extraction_id, request.reviewer, request.notes)
    except (DuplicateIdentityError, IngestionTransactionError) as exc:
        return _ingestion_failure(exc, extraction_id, services)
    return _approval_to_dict(result, services)


@router.post("/extractions/{extraction_id}/reject")
def reject_extraction(
    extraction_id: UUID, body: RejectRequest, services: ServicesDep
) -> dict[str, Any]:
    extraction = services.review.reject(extraction_id, body.reviewer, body.notes)
    return extraction_to_dict(extraction, services)


@router.post("/extractions/{extraction_id}/ingest", response_model=None)
def retry_ingestion(extraction_id: UUID, services: ServicesDep) -> dict[str, Any] | JSONResponse:
    try:
        result = services.review.retry_ingest(extraction_id)
    except (DuplicateIdentityError, IngestionTransactionError) as exc:
        return _ingestion_failure(exc, extraction_id, services)
    return _approval_to_dict(result, services)


@router.put("/extractions/{extraction_id}/payload")
def update_payload(
    extraction_id: UUID,
    payload: Annotated[dict[str, Any], Body()],
    services: ServicesDep,
) -> dict[str, Any]:
    extraction = services.store.update_payload(extraction_id, ExtractedPayload.from_dict(payload))
    return extraction_to_dict(extraction, services)


@router.get("/stats")
def pipeline_stats(services: ServicesDep) -> dict[str, int]:
    return services.stats().to_dict()


def _status_for(exc: PipelineError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError | DuplicateIdentityError):
        return 409
    if isinstance(exc, ValidationError):
        return 422
    return 500


def _error_response(exc: PipelineError, **extra: Any) -> JSONResponse:
    status_code = _status_for(exc)
    content: dict[str, Any] = {"error": exc.kind, "detail": str(exc)}
    if isinstance(exc, ValidationError) and exc.problems:
        content["problems"] = list(exc.problems)
    if isinstance(exc, DuplicateIdentityError):
        content["identityKey"] = exc.identity_key
        content["patternId"] = str(exc.pattern_id)
    content.update(extra)
    if status_code >= 500:
        log.error(f"{exc.kind}: {exc}")
    return JSONResponse(status_code=status_code, content=content)


def _ingestion_failure(
    exc: PipelineError, extraction_id: UUID, services: PipelineServices
) -> JSONResponse:
    # the approval itself committed; the extraction stays approved for a retry
    extraction = services.store.get(extraction_id)
    return _error_response(
        exc, extractionId=str(extraction.id), status=extraction.status.value
    )


async def pipeline_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, PipelineError):
        raise exc
    return _error_response(exc)


def create_app(services: PipelineServices) -> FastAPI:
    app = FastAPI(title="tyingbench review API")
    app.state.services = services
    app.include_router(router)
    app.add_exception_handler(PipelineError, pipeline_error_handler)
    return app
