# homecook/storage.py
from __future__ import annotations

import logging
import mimetypes
from typing import Optional
from uuid import uuid4

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import Internal

logger = logging.getLogger(__name__)

FOLDER_ROOT = "home-cooking"


class ImageStore:
    """
    Puts image bytes in an S3 bucket and hands back a stable URL.
    Only the URL is kept by the service; bytes are never inspected.
    """

    def __init__(self, bucket: str, region_name: str = "us-east-1", base_url: str = "") -> None:
        self.bucket = bucket
        self.region_name = region_name
        self.base_url = (base_url or f"https://{bucket}.s3.{region_name}.amazonaws.com").rstrip("/")
        self._config = Config(region_name=region_name, retries={"max_attempts": 3, "mode": "standard"})

    @property
    def client(self):
        # fresh session each time so rotated credentials are picked up
        session = boto3.Session()
        return session.client("s3", region_name=self.region_name, config=self._config)

    def key_for(self, folder: str, filename: Optional[str], content_type: str) -> str:
        ext = ""
        if filename and "." in filename:
            ext = "." + filename.rsplit(".", 1)[1].lower()
        else:
            ext = mimetypes.guess_extension(content_type) or ""
        return f"{FOLDER_ROOT}/{folder}/{uuid4().hex}{ext}"

    def upload(self, data: bytes, folder: str, filename: Optional[str], content_type: str) -> str:
        key = self.key_for(folder, filename, content_type)
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.exception("Upload to s3://%s/%s failed", self.bucket, key)
            raise Internal("Failed to upload image to cloud storage") from e

        logger.info("Uploaded image to s3://%s/%s", self.bucket, key)
        return f"{self.base_url}/{key}"


def build_image_store(bucket: str, region_name: str, base_url: str = "") -> Optional[ImageStore]:
    if not bucket:
        return None
    return ImageStore(bucket=bucket, region_name=region_name, base_url=base_url)
