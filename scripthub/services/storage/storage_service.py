"""Screenshot image storage in S3"""

import io
import logging
import os
import uuid
from typing import Optional

import aioboto3
from botocore.config import Config
from botocore.exceptions import ClientError

from scripthub.services.storage.storage_config import StorageSettings
from scripthub.utils import is_test

logger = logging.getLogger(__name__)

# Screenshot keys never change content, so clients may cache them forever
SCREENSHOT_CACHE_CONTROL = "max-age=31536000"


class StorageService:
    """Puts uploaded screenshots in the configured bucket.

    Settings are read on every call so .env files loaded after import still
    apply. The aioboto3 session is rebuilt when the access key changes.
    """

    def __init__(self):
        self._session = None
        self._config = None
        self._session_key = None

    @property
    def settings(self) -> StorageSettings:
        return StorageSettings()

    @property
    def bucket_name(self) -> str:
        return self.settings.BUCKET_NAME

    @property
    def enabled(self) -> bool:
        return bool(self.bucket_name) and not is_test()

    def _client(self):
        settings = self.settings
        if self._session is None or self._session_key != settings.AWS_ACCESS_KEY_ID:
            self._session = aioboto3.Session(
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region_name=settings.AWS_REGION,
            )
            self._config = Config(
                region_name=settings.AWS_REGION,
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            )
            self._session_key = settings.AWS_ACCESS_KEY_ID
            logger.info(f"S3 session created for bucket {settings.BUCKET_NAME}")
        return self._session.client("s3", config=self._config)

    @staticmethod
    def generate_screenshot_key(script_id: int, filename: str) -> str:
        """screenshots/{script_id}/{uuid}{ext}, with the extension lowercased"""
        ext = os.path.splitext(filename)[1].lower() if filename else ""
        return f"screenshots/{script_id}/{uuid.uuid4().hex}{ext}"

    async def upload_screenshot(self, content: bytes, key: str, content_type: Optional[str] = None) -> bool:
        """
        Store one screenshot.

        Returns:
            True if stored, False if storage isn't configured

        Raises:
            ClientError: the upload failed; the caller rolls back the version
        """
        if not self.enabled:
            logger.debug(f"Storage disabled, skipping upload of {key}")
            return False

        extra_args = {"CacheControl": SCREENSHOT_CACHE_CONTROL}
        if content_type:
            extra_args["ContentType"] = content_type

        try:
            async with self._client() as s3_client:
                await s3_client.upload_fileobj(io.BytesIO(content), self.bucket_name, key, ExtraArgs=extra_args)
        except ClientError as e:
            logger.error(f"Failed to upload screenshot {key}: {e}", exc_info=True)
            raise

        logger.info(f"Uploaded screenshot s3://{self.bucket_name}/{key} ({len(content)} bytes)")
        return True

    async def delete_screenshots(self, keys: list[str]) -> list[str]:
        """Remove stored screenshots, e.g. after the version that owned them failed to save.

        Returns the keys that couldn't be deleted; failures are logged, never raised.
        """
        if not keys or not self.enabled:
            return []

        failed = []
        async with self._client() as s3_client:
            for key in keys:
                try:
                    await s3_client.delete_object(Bucket=self.bucket_name, Key=key)
                    logger.info(f"Deleted screenshot s3://{self.bucket_name}/{key}")
                except ClientError as e:
                    logger.error(f"Failed to delete screenshot {key}: {e}", exc_info=True)
                    failed.append(key)
        return failed


# Global instance
storage_service = StorageService()
