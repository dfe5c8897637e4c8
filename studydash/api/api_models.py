"""Request/response models for the HTTP API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from studydash.models.recurrence import GenerationReport, PatternError, RecurrencePattern


class PatternCreateResponse(BaseModel):
    """Response for pattern creation."""
    pattern: RecurrencePattern
    first_item: Optional[Dict[str, Any]] = Field(None, description="Earliest generated instance, if any")


class PatternListResponse(BaseModel):
    patterns: List[RecurrencePattern]


class PatternDeleteResponse(BaseModel):
    pattern_id: str
    affected_count: int = Field(..., description="Instances deleted (or unlinked when kept)")


class ItemListResponse(BaseModel):
    """Items of one kind, after extending the owner's patterns."""
    items: List[Dict[str, Any]]
    generation: GenerationReport
    generation_errors: List[PatternError] = Field(default_factory=list)


class ItemStatusUpdateRequest(BaseModel):
    status: str = Field(..., min_length=1)


class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1, description="Item ids to delete")


class BulkDeleteResponse(BaseModel):
    affected_count: int
    not_found_ids: List[str] = Field(default_factory=list)
    deactivated_pattern_count: int = 0
