"""File storage on Supabase Storage."""

import asyncio
from typing import Optional

from supabase import Client, create_client

from libs.common.config import Settings
from libs.common.errors import ExternalServiceError
from libs.common.logging import get_logger

logger = get_logger(__name__)


class StorageService:
    """Uploads and removes objects in Supabase Storage buckets."""

    def __init__(self, settings: Settings, client: Optional[Client] = None):
        self.default_bucket = settings.SUPABASE_STORAGE_BUCKET
        self._client = client
        self._url = settings.SUPABASE_URL
        self._key = settings.SUPABASE_SERVICE_ROLE_KEY

    @property
    def client(self) -> Client:
        # Created on first use so apps that never touch storage need no credentials
        if self._client is None:
            self._client = create_client(self._url, self._key)
        return self._client

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> tuple[str, str]:
        """
        Upload (or overwrite) an object.
        Returns: (public_url, stored_path)
        """
        bucket = bucket or self.default_bucket
        file_options = {"upsert": "true"}
        if content_type:
            file_options["content-type"] = content_type

        try:
            # The storage client is synchronous
            store = self.client.storage.from_(bucket)
            await asyncio.to_thread(
                store.upload, path=path, file=data, file_options=file_options
            )
            public_url = store.get_public_url(path)
        except Exception as exc:
            logger.error("Upload to %s/%s failed: %s", bucket, path, exc)
            raise ExternalServiceError("Storage operation failed") from exc

        logger.info("Uploaded %s to bucket %s", path, bucket)
        return public_url, path

    async def remove(self, path: str, bucket: Optional[str] = None) -> None:
        bucket = bucket or self.default_bucket
        try:
            await asyncio.to_thread(self.client.storage.from_(bucket).remove, [path])
        except Exception as exc:
            logger.error("Removing %s/%s failed: %s", bucket, path, exc)
            raise ExternalServiceError("Storage operation failed") from exc

        logger.info("Removed %s from bucket %s", path, bucket)
