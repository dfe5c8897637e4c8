"""FastAPI web application for studydash (recurring patterns and their items)."""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, status
from sqlalchemy.orm import Session

from studydash.api.api_models import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    ItemListResponse,
    ItemStatusUpdateRequest,
    PatternCreateResponse,
    PatternDeleteResponse,
    PatternListResponse,
)
from studydash.auth.dependencies import get_current_user
from studydash.database.database import get_db
from studydash.models.items import ItemKind
from studydash.models.recurrence import PatternCreate, PatternUpdate, RecurrencePattern
from studydash.models.user import User
from studydash.recurrence.errors import (
    PatternCreationError,
    PatternNotFoundError,
    PatternUpdateError,
    TemplateError,
)
from studydash.recurrence.service import RecurrenceService

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="studydash API",
    description="Recurring tasks, deadlines, exams, work items and calendar events for students",
    version="0.1.0"
)


def get_recurrence_service(db: Session = Depends(get_db)) -> RecurrenceService:
    return RecurrenceService(db)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


# Recurring patterns

@app.post("/recurring-patterns", response_model=PatternCreateResponse, status_code=status.HTTP_201_CREATED)
def create_recurring_pattern(
    request: PatternCreate,
    current_user: User = Depends(get_current_user),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """Create a pattern and generate its initial instances."""
    try:
        pattern, first_item = service.create_pattern(current_user.id, request)
    except TemplateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PatternCreationError as e:
        raise HTTPException(status_code=500, detail=f"Failed to create recurring pattern: {str(e)}")

    return PatternCreateResponse(
        pattern=pattern,
        first_item=first_item.model_dump(mode="json") if first_item else None,
    )


@app.get("/recurring-patterns", response_model=PatternListResponse)
def list_recurring_patterns(
    kind: Optional[ItemKind] = Query(None, description="Only patterns generating this item kind"),
    current_user: User = Depends(get_current_user),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    return PatternListResponse(patterns=service.patterns.list_for_user(current_user.id, item_kind=kind))


@app.get("/recurring-patterns/{pattern_id}", response_model=RecurrencePattern)
def get_recurring_pattern(
    pattern_id: str,
    current_user: User = Depends(get_current_user),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    pattern = service.patterns.get(current_user.id, pattern_id)
    if pattern is None:
        raise HTTPException(status_code=404, detail="Recurring pattern not found")
    return pattern


@app.patch("/recurring-patterns/{pattern_id}", response_model=RecurrencePattern)
def update_recurring_pattern(
    pattern_id: str,
    request: PatternUpdate,
    current_user: User = Depends(get_current_user),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """Update template, end conditions or active flag. Existing instances are kept as they are."""
    try:
        return service.update_pattern(current_user.id, pattern_id, request)
    except PatternNotFoundError:
        raise HTTPException(status_code=404, detail="Recurring pattern not found")
    except (PatternUpdateError, TemplateError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/recurring-patterns/{pattern_id}/deactivate", response_model=RecurrencePattern)
def deactivate_recurring_pattern(
    pattern_id: str,
    current_user: User = Depends(get_current_user),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """Stop generating new instances. Existing instances are kept."""
    try:
        return service.deactivate_pattern(current_user.id, pattern_id)
    except PatternNotFoundError:
        raise HTTPException(status_code=404, detail="Recurring pattern not found")


@app.delete("/recurring-patterns/{pattern_id}", response_model=PatternDeleteResponse)
def delete_recurring_pattern(
    pattern_id: str,
    delete_instances: bool = Query(False, description="Delete instances instead of keeping them as standalone items"),
    current_user: User = Depends(get_current_user),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    try:
        affected = service.delete_pattern(current_user.id, pattern_id, delete_instances=delete_instances)
    except PatternNotFoundError:
        raise HTTPException(status_code=404, detail="Recurring pattern not found")
    return PatternDeleteResponse(pattern_id=pattern_id, affected_count=affected)


@app.delete("/recurring-patterns/{pattern_id}/instances", response_model=PatternDeleteResponse)
def delete_recurring_pattern_instances(
    pattern_id: str,
    current_user: User = Depends(get_current_user),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """Delete every instance of a pattern and deactivate it."""
    try:
        affected = service.delete_all_instances_for_pattern(current_user.id, pattern_id)
    except PatternNotFoundError:
        raise HTTPException(status_code=404, detail="Recurring pattern not found")
    return PatternDeleteResponse(pattern_id=pattern_id, affected_count=affected)


# Items

@app.get("/items/{kind}", response_model=ItemListResponse)
def list_items(
    kind: ItemKind,
    show_all: bool = Query(False, description="Return every instance instead of the next open one per pattern"),
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """List items of a kind. Recurring patterns are extended before reading."""
    items, report = service.list_items(current_user.id, kind, show_all=show_all, status=status_filter)
    if report.errors:
        logger.warning(f"Listing {kind.value} for user {current_user.id}: {len(report.errors)} patterns failed to extend")
    return ItemListResponse(
        items=[item.model_dump(mode="json") for item in items],
        generation=report,
        generation_errors=report.errors,
    )


@app.patch("/items/{kind}/{item_id}")
def update_item_status(
    kind: ItemKind,
    item_id: str,
    request: ItemStatusUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    try:
        item = service.update_item_status(current_user.id, kind, item_id, request.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if item is None:
        raise HTTPException(status_code=404, detail=f"{kind.value} {item_id} not found")
    return item.model_dump(mode="json")


@app.post("/items/{kind}/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_items(
    kind: ItemKind,
    request: BulkDeleteRequest,
    current_user: User = Depends(get_current_user),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """Delete items; their patterns are deactivated so the items are not regenerated."""
    result = service.bulk_delete_items(current_user.id, kind, request.ids)
    return BulkDeleteResponse(**result)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
