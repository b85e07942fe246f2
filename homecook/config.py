# homecook/config.py
from __future__ import annotations

import os

from pydantic import BaseModel

# Load .env locally (safe in prod too)
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


class Settings(BaseModel):
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./homecook.db")

    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    jwt_alg: str = os.getenv("JWT_ALG", "HS256")
    jwt_expire_minutes: int = _env_int("JWT_EXPIRE_MIN", 1440)  # 24h

    log_level: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    # Image hosting (S3). Uploads are refused when no bucket is configured.
    s3_bucket: str = os.getenv("S3_BUCKET", "").strip()
    aws_region: str = os.getenv("AWS_REGION", "us-east-1").strip()
    image_base_url: str = os.getenv("IMAGE_BASE_URL", "").strip()
    max_upload_bytes: int = _env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024)

    # Used by tools/make_qr_codes.py to build profile links
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
