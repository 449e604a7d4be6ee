import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from booking.routes import booking
from common import config
from common.database import MongoDBConnection
from common.helpers import register_exception_handlers
from event.crud import ensure_indexes
from event.routes import event

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    connection = MongoDBConnection(config.get_mongodb_uri())
    app.state.mongo = connection
    try:
        await run_in_threadpool(ensure_indexes, connection.get_database())
    except PyMongoError:
        # Requests retry the connection on their own.
        logger.exception("MongoDB unavailable at startup")
    yield
    connection.close()


app = FastAPI(title="DevEvent API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(event, prefix="/api/events", tags=["events"])
app.include_router(booking, prefix="/api/events", tags=["bookings"])


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("main:app", host="localhost", port=8000, reload=True)
