import logging
from functools import wraps

from bson.errors import InvalidId
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pymongo.errors import ConnectionFailure, DuplicateKeyError, WriteError

logger = logging.getLogger(__name__)

GENERIC_ERROR_DETAIL = "An unexpected error occurred while processing the request"


def db_connection_handler(func):
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise
        except ConnectionFailure as e:
            logger.error("MongoDB connection error in %s: %s", func.__name__, e)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Database connection failed",
            )
        except DuplicateKeyError as e:
            logger.info("Duplicate key rejected in %s: %s", func.__name__, e)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A record with the same key already exists",
            )
        except (InvalidId, ValidationError, WriteError) as e:
            logger.warning("Invalid query in %s: %s", func.__name__, e)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid query parameter",
            )
        except Exception:
            logger.exception("Unexpected error in %s", func.__name__)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=GENERIC_ERROR_DETAIL,
            )

    return wrapper


def validation_message(exc: ValidationError) -> str:
    """Flatten pydantic errors into ``field: message`` pairs safe for clients."""
    parts = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "payload"
        message = error.get("msg", "is invalid")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        parts.append(f"{field}: {message}")
    return "; ".join(parts)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted(
        {
            str(error["loc"][-1])
            for error in exc.errors()
            if error.get("loc")
        }
    )
    logger.warning(
        "Rejected request payload", extra={"path": request.url.path, "fields": fields}
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request payload", "fields": fields},
    )


def register_exception_handlers(app):
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
