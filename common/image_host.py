import hashlib
import logging
import time
from typing import Optional

import httpx

from common import config

logger = logging.getLogger(__name__)

UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"
UPLOAD_TIMEOUT_SECONDS = 30.0


class ImageUploadError(Exception):
    pass


def sign_params(params: dict, api_secret: str) -> str:
    """Signature expected by the image host: sha1 of the sorted params + secret."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


async def upload_image(
    data: bytes,
    filename: str,
    content_type: str,
    folder: str = config.IMAGE_UPLOAD_FOLDER,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Upload raw image bytes to the image host and return the hosted URL."""
    cloud_name = config.CLOUDINARY_CLOUD_NAME
    api_key = config.CLOUDINARY_API_KEY
    api_secret = config.CLOUDINARY_API_SECRET
    if not (cloud_name and api_key and api_secret):
        raise ImageUploadError("Image host credentials are not configured")

    params = {"folder": folder, "timestamp": int(time.time())}
    form = {
        **{key: str(value) for key, value in params.items()},
        "api_key": api_key,
        "signature": sign_params(params, api_secret),
    }

    try:
        async with httpx.AsyncClient(
            timeout=UPLOAD_TIMEOUT_SECONDS, transport=transport
        ) as client:
            response = await client.post(
                UPLOAD_URL.format(cloud_name=cloud_name),
                data=form,
                files={"file": (filename, data, content_type)},
            )
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Image upload failed: %s", e, extra={"upload_filename": filename})
        raise ImageUploadError("Image upload failed") from e

    url = response.json().get("secure_url")
    if not url:
        raise ImageUploadError("Image host response did not include a URL")

    logger.info("Image uploaded", extra={"folder": folder, "url": url})
    return url
