"""
Photo Storage - S3 object storage for job photos.
"""

import logging
import threading

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the object store rejects or cannot complete a request"""
    pass


class StorageNotConfigured(StorageError):
    """Raised when no bucket is configured"""
    pass


class PhotoStorage:
    """
    Thin wrapper around an S3 bucket.

    The boto3 client is created lazily on first use and cached.
    """

    def __init__(self, bucket: str, region: str = None, folder_prefix: str = 'bbp-jobs',
                 public_base_url: str = ''):
        self.bucket = bucket
        self.region = region
        self.folder_prefix = folder_prefix.strip('/')
        self.public_base_url = public_base_url.rstrip('/')
        self._client = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config):
        return cls(
            bucket=config.get('S3_BUCKET', ''),
            region=config.get('AWS_REGION'),
            folder_prefix=config.get('PHOTO_FOLDER_PREFIX', 'bbp-jobs'),
            public_base_url=config.get('S3_PUBLIC_BASE_URL', ''),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.bucket)

    def _get_client(self):
        if not self.is_configured:
            raise StorageNotConfigured("Photo storage is not configured (S3_BUCKET missing)")
        with self._lock:
            if self._client is None:
                self._client = boto3.client('s3', region_name=self.region)
                logger.info(f"✅ S3 client initialised for bucket {self.bucket}")
            return self._client

    def object_key(self, job_id: str, photo_id: str) -> str:
        return f"{self.folder_prefix}/{job_id}/{photo_id}.jpg"

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, job_id: str, photo_id: str, data: bytes, content_type: str = 'image/jpeg') -> dict:
        """
        Store a photo.

        Returns:
            ``{'url': ..., 'publicId': <object key>}``

        Raises:
            StorageError: If the upload fails
        """
        key = self.object_key(job_id, photo_id)
        client = self._get_client()
        try:
            client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload photo to S3 key={key}: {e}")
            raise StorageError(f"Photo upload failed: {e}") from e

        logger.info(f"Uploaded photo to s3://{self.bucket}/{key} ({len(data)} bytes)")
        return {'url': self.public_url(key), 'publicId': key}

    def delete(self, public_id: str):
        """
        Remove a stored photo.

        Raises:
            StorageError: If the delete request fails
        """
        client = self._get_client()
        try:
            client.delete_object(Bucket=self.bucket, Key=public_id)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete S3 object {public_id}: {e}")
            raise StorageError(f"Photo delete failed: {e}") from e
        logger.info(f"Deleted s3://{self.bucket}/{public_id}")
