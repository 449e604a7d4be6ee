import os

from dotenv import load_dotenv

load_dotenv()

# NOTE: For local setup
# MONGODB_URI = "mongodb://localhost:27017/devevent"

MONGODB_DATABASE = os.getenv("MONGODB_DATABASE", "devevent")
MONGODB_TIMEOUT_MS = int(os.getenv("MONGODB_TIMEOUT_MS", "5000"))

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")
IMAGE_UPLOAD_FOLDER = os.getenv("IMAGE_UPLOAD_FOLDER", "DevEvent")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def get_mongodb_uri() -> str:
    """Return the MongoDB connection string or fail loudly when it is missing."""
    uri = os.getenv("MONGODB_URI")
    if not uri:
        raise RuntimeError(
            "Please define the MONGODB_URI environment variable inside .env"
        )
    return uri
