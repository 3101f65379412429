"""Error taxonomy for the extraction and ingestion pipeline.

Every error carries enough context for an operator or reviewer to see the
precise reason per item. Only ``TransientNetworkError`` is ever retried
automatically; everything else surfaces to the caller as-is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class PipelineError(Exception):
    """Base class for all pipeline domain errors."""

    kind: str = "pipeline_error"


class TransientNetworkError(PipelineError):
    """Retryable failure while scraping or calling the extraction oracle."""

    kind = "transient_network_error"


class PermanentSourceError(PipelineError):
    """Bad URL, unsupported content or a 4xx response; the source is marked failed."""

    kind = "permanent_source_error"


class ValidationError(PipelineError):
    """An extraction is missing mandatory fields, or a request is malformed."""

    kind = "validation_error"

    def __init__(self, message: str, *, problems: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.problems = problems


class NotFoundError(PipelineError):
    """A referenced row does not exist."""

    kind = "not_found"


class ConflictError(PipelineError):
    """A conditional status transition lost a race; the caller must refetch."""

    kind = "conflict"


class InvalidTransitionError(ConflictError):
    """A lifecycle transition was requested from a state that does not allow it."""

    kind = "invalid_transition"


class IntegrityConflictError(ConflictError):
    """A database uniqueness or integrity constraint rejected a write."""

    kind = "integrity_conflict"


class DuplicateIdentityError(PipelineError):
    """The ingestion target already exists as a user-submitted pattern."""

    kind = "duplicate_identity"

    def __init__(self, identity_key: str, pattern_id: UUID) -> None:
        super().__init__(
            f"Pattern {identity_key!r} already exists as user-submitted pattern {pattern_id}; "
            "manual reconciliation required"
        )
        self.identity_key = identity_key
        self.pattern_id = pattern_id


class IngestionTransactionError(PipelineError):
    """Any failure inside the atomic merge; the transaction was rolled back."""

    kind = "ingestion_transaction_error"
