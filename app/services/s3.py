import logging
import os
import uuid
from functools import lru_cache
from typing import NamedTuple, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import Settings, get_settings
from app.core.errors import StorageError

logger = logging.getLogger(__name__)


class ImageUpload(NamedTuple):
    content: bytes
    filename: str
    content_type: str = "image/jpeg"


class MediaStore:
    """
    Image hosting on S3.

    The S3 key returned by ``upload`` is the external asset id stored next to
    the image URL, and the handle later passed to ``destroy``.
    """

    def __init__(self, s3_client, bucket_name: str, base_url: str):
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.base_url = base_url

    @classmethod
    def from_settings(cls, settings: Settings) -> "MediaStore":
        client = boto3.client(
            's3',
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
            region_name=settings.AWS_REGION
        )
        return cls(client, settings.S3_BUCKET, settings.S3_BASE_URL)

    def upload(self, file_content: bytes, file_name: str, folder: str = "misc",
               content_type: str = "image/jpeg") -> Tuple[str, str]:
        """
        Upload a file and return ``(public_url, asset_id)``.

        Raises StorageError if S3 rejects the upload.
        """
        file_extension = os.path.splitext(file_name or "")[1]
        s3_key = f"{folder}/{uuid.uuid4()}{file_extension}"

        try:
            # Public access is handled by the bucket policy, not object ACLs
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=s3_key,
                Body=file_content,
                ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Error uploading %s to S3: %s", s3_key, e)
            raise StorageError("Failed to upload image")

        logger.info("Uploaded %s to bucket %s", s3_key, self.bucket_name)
        return self.get_public_url(s3_key), s3_key

    def destroy(self, asset_id: Optional[str]) -> bool:
        """Delete an uploaded asset. Returns False if S3 reported an error."""
        if not asset_id:
            return True
        try:
            self.s3_client.delete_object(
                Bucket=self.bucket_name,
                Key=asset_id
            )
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error("Error deleting %s from S3: %s", asset_id, e)
            return False

    def get_public_url(self, s3_key: str) -> str:
        return f"{self.base_url}/{s3_key}"


@lru_cache
def get_media_store() -> MediaStore:
    return MediaStore.from_settings(get_settings())
