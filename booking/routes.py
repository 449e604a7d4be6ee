import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from common.database import get_mongo_db
from common.helpers import db_connection_handler
from event.routes import fetch_event_or_404

from . import crud
from .models import BookingCreate, BookingResponse

logger = logging.getLogger(__name__)

booking = APIRouter()


@booking.post(
    "/{slug}/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
@db_connection_handler
async def create_booking(slug: str, payload: BookingCreate, db=Depends(get_mongo_db)):
    """Book a spot on an event for the given email address."""
    event = await fetch_event_or_404(db, slug)
    email = payload.email.strip().lower()

    if await run_in_threadpool(crud.get_booking, db, event["_id"], email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You have already booked this event",
        )

    created = await run_in_threadpool(crud.create_booking, db, event["_id"], email)
    logger.info("Booking created", extra={"slug": event["slug"]})
    return {"message": "Booking created successfully", "booking": created}
