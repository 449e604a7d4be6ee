class EventMode:
    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"

    @classmethod
    def values(cls) -> list[str]:
        return [cls.ONLINE, cls.OFFLINE, cls.HYBRID]


EVENTS_COLLECTION = "events"
BOOKINGS_COLLECTION = "bookings"

# Path segments under /api/events that a slug must never shadow.
RESERVED_SLUGS = {"bookings"}

MAX_IMAGE_SIZE = 5 * 1024 * 1024
SIMILAR_EVENTS_LIMIT = 3
EVENTS_PER_PAGE = 6
MANAGEMENT_EVENTS_PER_PAGE = 10
