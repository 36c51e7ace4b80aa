import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_PATH = os.getenv("DATABASE_PATH", "../data/synoptics.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "")

# Blob store for media attachments
MEDIA_ROOT = os.getenv("MEDIA_ROOT", "../data/media")
MEDIA_URL_TTL_SECONDS = int(os.getenv("MEDIA_URL_TTL_SECONDS", "3600"))
# Secret used to sign media URLs handed to the diagram frontend
MEDIA_SIGNING_SECRET = os.getenv("MEDIA_SIGNING_SECRET", "dev-media-secret")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
