import asyncio, logging
from typing import Union
from botocore.exceptions import BotoCoreError, ClientError
from .errors import StorageError

logger = logging.getLogger(__name__)

class S3Uploader:
    """Public-read uploads to an S3 bucket."""

    def __init__(self, s3_client, bucket_name: str, region: str):
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.region = region

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def upload_sync(self, file_input: Union[str, bytes], key: str, content_type: str) -> str:
        if not self.s3_client:
            raise StorageError("S3 client not ready.")

        try:
            if isinstance(file_input, (bytes, bytearray)):
                body = bytes(file_input)
            else:
                with open(file_input, "rb") as f:
                    body = f.read()

            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
                ACL="public-read",
            )
        except (ClientError, BotoCoreError, OSError) as e:
            logger.error(f"S3 Upload Error: {e}")
            raise StorageError(f"S3 Upload Failed: {e}") from e

        logger.info(f"Uploaded s3://{self.bucket_name}/{key} ({len(body)} bytes)")
        return self.public_url(key)

    async def upload(self, file_input: Union[str, bytes], key: str, content_type: str) -> str:
        return await asyncio.to_thread(self.upload_sync, file_input, key, content_type)

def build_s3_uploader(region: str, access_key_id: str, secret_access_key: str, bucket: str) -> S3Uploader:
    import boto3

    logger.info(f"Checking AWS Config -> Region: {region}, Bucket: {bucket}")
    if not all([region, access_key_id, secret_access_key, bucket]):
        logger.warning("AWS S3 configuration is missing; uploads will fail")
        return S3Uploader(None, bucket, region)

    client = boto3.client(
        "s3",
        region_name=region,
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret_access_key,
    )
    logger.info(f"AWS S3 client initialized for bucket: {bucket}")
    return S3Uploader(client, bucket, region)
