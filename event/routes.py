import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from common import image_host
from common.database import get_mongo_db
from common.helpers import db_connection_handler, validation_message
from common.pagination import paginate

from . import crud, models
from .constants import (
    EVENTS_PER_PAGE,
    MANAGEMENT_EVENTS_PER_PAGE,
    MAX_IMAGE_SIZE,
    RESERVED_SLUGS,
)

logger = logging.getLogger(__name__)

event = APIRouter()


async def fetch_event_or_404(db, slug: str) -> dict:
    """Look up an event by its sanitized slug or raise 400/404."""
    sanitized_slug = models.sanitize_slug(slug)
    if not sanitized_slug:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or missing slug parameter",
        )

    found = await run_in_threadpool(crud.get_event_by_slug, db, sanitized_slug)
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return found


def _has_file(image: Optional[UploadFile]) -> bool:
    return image is not None and bool(image.filename)


async def _read_image(image: UploadFile) -> bytes:
    if not (image.content_type or "").startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please upload a valid image file",
        )
    data = await image.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Image file is empty"
        )
    if len(data) > MAX_IMAGE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image size should be less than 5MB",
        )
    return data


def _invalid_payload(exc: ValueError) -> HTTPException:
    if isinstance(exc, ValidationError):
        detail = validation_message(exc)
    else:
        detail = str(exc)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _page_of(events: list, page: Optional[int], limit: Optional[int], per_page: int) -> dict:
    """Whole list when neither ``page`` nor ``limit`` is given; ``limit`` alone means page 1."""
    if page is None and limit is None:
        return {"events": events}
    result = paginate(events, page or 1, limit or per_page)
    return {
        "events": result.items,
        "page": result.page,
        "totalPages": result.total_pages,
        "total": result.total,
    }


@event.get("", response_model=models.EventListResponse, response_model_exclude_none=True)
@db_connection_handler
async def read_events(
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    db=Depends(get_mongo_db),
):
    """Get all events, newest first, optionally one page at a time."""
    events = await run_in_threadpool(crud.get_events, db)
    return {
        "message": "Events fetched successfully",
        **_page_of(events, page, limit, EVENTS_PER_PAGE),
    }


@event.get(
    "/bookings",
    response_model=models.EventBookingsListResponse,
    response_model_exclude_none=True,
)
@db_connection_handler
async def read_events_with_bookings(
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    db=Depends(get_mongo_db),
):
    """Get all events with the number of spots booked for each."""
    events = await run_in_threadpool(crud.get_events_with_bookings, db)
    return {
        "message": "Events with bookings fetched successfully",
        **_page_of(events, page, limit, MANAGEMENT_EVENTS_PER_PAGE),
    }


@event.post(
    "",
    response_model=models.EventMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
@db_connection_handler
async def create_event(
    title: str = Form(...),
    description: str = Form(...),
    overview: str = Form(...),
    venue: str = Form(...),
    location: str = Form(...),
    date: str = Form(...),
    time: str = Form(...),
    mode: str = Form(...),
    audience: str = Form(...),
    organizer: str = Form(...),
    tags: str = Form(...),
    agenda: str = Form(...),
    image: Optional[UploadFile] = File(None),
    db=Depends(get_mongo_db),
):
    """Create a new event from the multipart create form."""
    try:
        payload = models.EventCreate(
            title=title,
            description=description,
            overview=overview,
            venue=venue,
            location=location,
            date=date,
            time=time,
            mode=mode,
            audience=audience,
            organizer=organizer,
            tags=models.parse_json_list(tags, "tags"),
            agenda=models.parse_json_list(agenda, "agenda"),
        )
    except ValueError as e:
        raise _invalid_payload(e)

    if not _has_file(image):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Event image is required"
        )
    image_data = await _read_image(image)

    slug = payload.slug
    if slug in RESERVED_SLUGS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"The title '{payload.title}' is reserved, please choose another",
        )
    if await run_in_threadpool(crud.get_event_by_slug, db, slug):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An event with this title already exists",
        )

    image_url = await image_host.upload_image(image_data, image.filename, image.content_type)

    document = {**payload.model_dump(), "slug": slug, "image": image_url}
    created = await run_in_threadpool(crud.create_event, db, document)
    logger.info("Event created", extra={"slug": slug, "event_id": str(created["_id"])})
    return {"message": "Event created successfully", "event": created}


@event.get("/{slug}", response_model=models.EventResponse)
@db_connection_handler
async def read_event(slug: str, db=Depends(get_mongo_db)):
    """Get details of a specific event."""
    found = await fetch_event_or_404(db, slug)
    return {"success": True, "event": found}


@event.get("/{slug}/similar", response_model=models.SimilarEventsResponse)
@db_connection_handler
async def read_similar_events(slug: str, db=Depends(get_mongo_db)):
    """Get other events sharing at least one tag with this one."""
    found = await fetch_event_or_404(db, slug)
    similar = await run_in_threadpool(crud.get_similar_events, db, found)
    return {"events": similar}


@event.put("/{slug}", response_model=models.EventMutationResponse)
@db_connection_handler
async def update_event(
    slug: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    overview: Optional[str] = Form(None),
    venue: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    time: Optional[str] = Form(None),
    mode: Optional[str] = Form(None),
    audience: Optional[str] = Form(None),
    organizer: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    agenda: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db=Depends(get_mongo_db),
):
    """Update the provided fields of an event; the image only if a new file is sent."""
    existing = await fetch_event_or_404(db, slug)

    form = {
        "title": title,
        "description": description,
        "overview": overview,
        "venue": venue,
        "location": location,
        "date": date,
        "time": time,
        "mode": mode,
        "audience": audience,
        "organizer": organizer,
    }
    provided = {name: value for name, value in form.items() if value is not None}
    try:
        if tags is not None:
            provided["tags"] = models.parse_json_list(tags, "tags")
        if agenda is not None:
            provided["agenda"] = models.parse_json_list(agenda, "agenda")
        updates = models.EventUpdate(**provided).model_dump(exclude_none=True)
    except ValueError as e:
        raise _invalid_payload(e)

    if _has_file(image):
        image_data = await _read_image(image)
        updates["image"] = await image_host.upload_image(
            image_data, image.filename, image.content_type
        )

    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one field must be provided for update.",
        )

    updated = await run_in_threadpool(crud.update_event, db, existing["_id"], updates)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    logger.info(
        "Event updated",
        extra={"slug": existing["slug"], "updated_fields": sorted(updates)},
    )
    return {"message": "Event updated successfully", "event": updated}


@event.delete("/{slug}", response_model=models.EventDeleteResponse)
@db_connection_handler
async def delete_event(slug: str, db=Depends(get_mongo_db)):
    """Delete an event together with all of its bookings."""
    existing = await fetch_event_or_404(db, slug)
    deleted_count = await run_in_threadpool(crud.delete_event_cascade, db, existing["_id"])
    logger.info(
        "Event deleted",
        extra={"slug": existing["slug"], "deleted_bookings": deleted_count},
    )
    return {"message": "Event deleted successfully", "deletedBookingsCount": deleted_count}
