import os
import uuid

from src.constants.env import R2_BUCKET_NAME
from src.utils.logger import get_logger
from src.utils.s3_wrapper import S3ClientWrapper

logger = get_logger(__name__)


class BlobStore:
    """Opaque get/put/delete of original uploads in the R2 bucket"""

    def __init__(self, bucket: str = R2_BUCKET_NAME):
        self.bucket = bucket

    @staticmethod
    def build_key(user_id: str, filename: str) -> str:
        extension = os.path.splitext(filename or "")[1].lower()
        return f"documents/{user_id}/{uuid.uuid4()}{extension}"

    async def put(self, key: str, body: bytes, content_type: str) -> None:
        async with S3ClientWrapper() as s3:
            await s3.put_object(
                bucket=self.bucket,
                key=key,
                body=body,
                content_type=content_type or "application/octet-stream",
            )
        logger.info("Blob stored", key=key, size=len(body))

    async def get(self, key: str) -> bytes:
        async with S3ClientWrapper() as s3:
            return await s3.get_object_bytes(bucket=self.bucket, key=key)

    async def delete(self, key: str) -> None:
        async with S3ClientWrapper() as s3:
            await s3.delete_object(bucket=self.bucket, key=key)
        logger.info("Blob deleted", key=key)


# Singleton
blob_store = BlobStore()
