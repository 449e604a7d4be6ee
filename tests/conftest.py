from typing import Any

import mongomock
import pytest
from fastapi.testclient import TestClient

from common import image_host
from common.database import get_mongo_db
from event.crud import ensure_indexes
from main import app


@pytest.fixture()
def mongo_db():
    client = mongomock.MongoClient()
    db = client["devevent_test"]
    ensure_indexes(db)
    yield db
    client.close()


@pytest.fixture()
def uploaded_images(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Replace the image host with an in-memory recorder."""
    uploads: list[dict[str, Any]] = []

    async def fake_upload(data, filename, content_type, folder="DevEvent", transport=None):
        uploads.append(
            {
                "size": len(data),
                "filename": filename,
                "content_type": content_type,
                "folder": folder,
            }
        )
        return f"https://images.example/{folder}/{filename}"

    monkeypatch.setattr(image_host, "upload_image", fake_upload)
    return uploads


@pytest.fixture()
def client(mongo_db, uploaded_images) -> TestClient:
    app.dependency_overrides[get_mongo_db] = lambda: mongo_db
    yield TestClient(app)
    app.dependency_overrides.clear()
