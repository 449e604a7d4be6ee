from datetime import datetime, timezone
from typing import Optional

from pymongo.database import Database

from event.constants import BOOKINGS_COLLECTION


def get_booking(db: Database, event_id, email: str) -> Optional[dict]:
    return db[BOOKINGS_COLLECTION].find_one({"eventId": event_id, "email": email})


def create_booking(db: Database, event_id, email: str) -> dict:
    document = {
        "eventId": event_id,
        "email": email,
        "createdAt": datetime.now(timezone.utc),
    }
    result = db[BOOKINGS_COLLECTION].insert_one(document)
    document["_id"] = result.inserted_id
    return document
