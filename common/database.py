import logging
import threading
from typing import Callable, Optional

from fastapi import HTTPException, Request, status
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError

from common import config

logger = logging.getLogger(__name__)


class MongoDBConnection:
    """Process-wide MongoDB handle shared by every request.

    The client is created lazily on first use. Only one thread establishes
    it; if the ping fails the half-built client is discarded so the next
    call retries. An established client lives until ``close()``.
    """

    def __init__(
        self,
        uri: str,
        database_name: str = config.MONGODB_DATABASE,
        timeout_ms: int = config.MONGODB_TIMEOUT_MS,
        client_factory: Callable[..., MongoClient] = MongoClient,
    ):
        self._uri = uri
        self._database_name = database_name
        self._timeout_ms = timeout_ms
        self._client_factory = client_factory
        self._client: Optional[MongoClient] = None
        self._lock = threading.Lock()

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def connect(self) -> MongoClient:
        if self._client is not None:
            return self._client

        with self._lock:
            if self._client is None:
                client = self._client_factory(
                    self._uri, serverSelectionTimeoutMS=self._timeout_ms
                )
                try:
                    client.admin.command("ping")
                except PyMongoError:
                    client.close()
                    logger.exception("MongoDB connection failed")
                    raise
                self._client = client
                logger.info(
                    "MongoDB connection established",
                    extra={"database": self._database_name},
                )
        return self._client

    def get_database(self) -> Database:
        return self.connect()[self._database_name]

    def close(self):
        """Close the MongoDB connection."""
        with self._lock:
            if self._client is None:
                return
            try:
                self._client.close()
                logger.info("MongoDB connection closed")
            except PyMongoError:
                logger.exception("Error closing MongoDB connection")
            finally:
                self._client = None


def get_mongo_db(request: Request) -> Database:
    """Provide the shared MongoDB database to FastAPI routes."""
    connection: MongoDBConnection = request.app.state.mongo
    try:
        return connection.get_database()
    except ConnectionFailure:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed",
        )
