import aioboto3

from src.constants.env import (
    R2_ACCESS_KEY_ID,
    R2_ENDPOINT_URL,
    R2_REGION_NAME,
    R2_SECRET_ACCESS_KEY,
)
from src.utils.exceptions import BlobStoreError
from src.utils.logger import logger


class S3ClientWrapper:
    def __init__(self):
        self.session = aioboto3.Session(
            aws_access_key_id=R2_ACCESS_KEY_ID,
            aws_secret_access_key=R2_SECRET_ACCESS_KEY,
            region_name=R2_REGION_NAME,
        )
        self.s3_client = None
        self._client_cm = None

    async def __aenter__(self):
        try:
            self._client_cm = self.session.client(
                "s3",
                region_name=R2_REGION_NAME,
                aws_access_key_id=R2_ACCESS_KEY_ID,
                aws_secret_access_key=R2_SECRET_ACCESS_KEY,
                endpoint_url=R2_ENDPOINT_URL,
            )
            # Keep the client context open for the lifetime of this wrapper
            self.s3_client = await self._client_cm.__aenter__()
            return self
        except Exception as e:
            logger.error(f"S3 connection could not be established: {e}")
            raise BlobStoreError("S3 connection could not be established") from e

    async def __aexit__(self, exc_type, exc_value, traceback):
        if self._client_cm is not None:
            await self._client_cm.__aexit__(exc_type, exc_value, traceback)

    async def put_object(
        self, bucket: str, key: str, body: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        try:
            await self.s3_client.put_object(
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except Exception as e:
            logger.error(f"Error putting object to S3: {e}", exc_info=True)
            raise BlobStoreError("Error uploading file to S3") from e

    async def get_object_bytes(self, bucket: str, key: str) -> bytes:
        try:
            obj = await self.s3_client.get_object(Bucket=bucket, Key=key)
            return await obj["Body"].read()
        except Exception as e:
            logger.error(f"Error getting object from S3: {e}", exc_info=True)
            raise BlobStoreError("Error getting object from S3") from e

    async def delete_object(self, bucket: str, key: str) -> bool:
        try:
            await self.s3_client.delete_object(Bucket=bucket, Key=key)
            return True
        except Exception as e:
            logger.error(f"Error deleting object from S3: {e}", exc_info=True)
            raise BlobStoreError("Error deleting object from S3") from e
