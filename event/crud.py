import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database

from .constants import BOOKINGS_COLLECTION, EVENTS_COLLECTION, SIMILAR_EVENTS_LIMIT

logger = logging.getLogger(__name__)

TRANSACTION_TOPOLOGIES = ("ReplicaSetWithPrimary", "Sharded")


def ensure_indexes(db: Database):
    db[EVENTS_COLLECTION].create_index([("slug", ASCENDING)], unique=True)
    db[EVENTS_COLLECTION].create_index([("createdAt", DESCENDING)])
    db[BOOKINGS_COLLECTION].create_index(
        [("eventId", ASCENDING), ("email", ASCENDING)], unique=True
    )


def get_event_by_slug(db: Database, slug: str) -> Optional[dict]:
    return db[EVENTS_COLLECTION].find_one({"slug": slug})


def get_events(db: Database) -> list[dict]:
    return list(db[EVENTS_COLLECTION].find().sort("createdAt", DESCENDING))


def create_event(db: Database, event: dict) -> dict:
    now = datetime.now(timezone.utc)
    document = {**event, "createdAt": now, "updatedAt": now}
    result = db[EVENTS_COLLECTION].insert_one(document)
    document["_id"] = result.inserted_id
    return document


def update_event(db: Database, event_id, updates: dict) -> Optional[dict]:
    updates = {**updates, "updatedAt": datetime.now(timezone.utc)}
    return db[EVENTS_COLLECTION].find_one_and_update(
        {"_id": event_id},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )


def _supports_transactions(db: Database) -> bool:
    client = getattr(db, "client", None)
    if not isinstance(client, MongoClient):
        return False
    return client.topology_description.topology_type_name in TRANSACTION_TOPOLOGIES


def _delete_event_and_bookings(db: Database, event_id, session=None) -> int:
    deleted = db[BOOKINGS_COLLECTION].delete_many({"eventId": event_id}, session=session)
    db[EVENTS_COLLECTION].delete_one({"_id": event_id}, session=session)
    return deleted.deleted_count


def delete_event_cascade(db: Database, event_id) -> int:
    """Delete an event and every booking that references it.

    Runs inside a transaction when the deployment supports one; on a
    standalone server bookings are removed first, then the event.
    """
    if _supports_transactions(db):
        with db.client.start_session() as session:
            with session.start_transaction():
                return _delete_event_and_bookings(db, event_id, session=session)

    logger.debug("Transactions unavailable, deleting sequentially", extra={"event_id": str(event_id)})
    return _delete_event_and_bookings(db, event_id)


def count_bookings_by_event(db: Database, event_ids: list) -> dict:
    """Booking totals per event id from one aggregation pass."""
    if not event_ids:
        return {}
    pipeline = [
        {"$match": {"eventId": {"$in": event_ids}}},
        {"$group": {"_id": "$eventId", "count": {"$sum": 1}}},
    ]
    return {row["_id"]: row["count"] for row in db[BOOKINGS_COLLECTION].aggregate(pipeline)}


def get_events_with_bookings(db: Database) -> list[dict]:
    events = get_events(db)
    counts = count_bookings_by_event(db, [event["_id"] for event in events])
    for event in events:
        event["bookedSpots"] = counts.get(event["_id"], 0)
    return events


def get_similar_events(db: Database, event: dict, limit: int = SIMILAR_EVENTS_LIMIT) -> list[dict]:
    if not event.get("tags"):
        return []
    cursor = (
        db[EVENTS_COLLECTION]
        .find({"_id": {"$ne": event["_id"]}, "tags": {"$in": event["tags"]}})
        .sort("createdAt", DESCENDING)
        .limit(limit)
    )
    return list(cursor)
