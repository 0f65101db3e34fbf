"""
S3 upload session.

Each worker owns one S3Client, i.e. one boto3 client with its own
connection pool, so workers behave like independent clients.

The client is tuned for measurement rather than resilience:
- retries are disabled; a failed PUT is reported, never replayed
- checksums are only computed when an operation requires them
- payload signing is off, so the streaming body is read exactly once
"""

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from uploadperf.config import HarnessConfig
from uploadperf.exceptions import SessionError, UploadError

logger = logging.getLogger(__name__)


class S3Client:
    """Thin wrapper around a boto3 S3 client used for uploads"""

    def __init__(
        self,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        region: str = "us-east-1",
        use_ssl: bool = False,
        verify_ssl: bool = True,
        max_pool_connections: int = 1,
    ):
        self.endpoint_url = endpoint_url
        self.region = region

        client_config = Config(
            region_name=region,
            retries={"total_max_attempts": 1, "mode": "standard"},
            max_pool_connections=max_pool_connections,
            request_checksum_calculation="when_required",
            s3={"addressing_style": "path", "payload_signing_enabled": False},
        )

        try:
            session = boto3.session.Session()
            self.client = session.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key or None,
                aws_secret_access_key=secret_key or None,
                use_ssl=use_ssl,
                verify=verify_ssl,
                config=client_config,
            )
        except (BotoCoreError, ValueError) as e:
            raise SessionError(f"cannot create S3 session for {endpoint_url}: {e}") from e

    @classmethod
    def from_config(cls, config: HarnessConfig) -> "S3Client":
        return cls(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            region=config.region,
            use_ssl=config.secure,
            verify_ssl=config.verify_ssl,
        )

    def put_object(
        self, bucket: str, key: str, body: Any, content_length: Optional[int] = None
    ) -> Dict[str, Any]:
        """Upload ``body`` (bytes or a readable stream) to bucket/key"""
        params: Dict[str, Any] = {"Bucket": bucket, "Key": key, "Body": body}
        if content_length is not None:
            params["ContentLength"] = content_length
        return self.client.put_object(**params)


class S3Uploader:
    """
    Upload collaborator for one worker.

    Binds an S3Client to the target bucket and exposes the single operation
    the harness needs: upload a named stream of a declared length.
    """

    def __init__(self, client: S3Client, bucket: str):
        self.client = client
        self.bucket = bucket

    def upload(self, name: str, stream: Any, length: int) -> None:
        try:
            response = self.client.put_object(self.bucket, name, stream, content_length=length)
        except (BotoCoreError, ClientError) as e:
            raise UploadError(name, e) from e
        logger.debug("PUT %s/%s etag=%s", self.bucket, name, response.get("ETag"))


def s3_session_factory(config: HarnessConfig):
    """Return a callable that opens a new, unshared upload session per worker"""

    def open_session() -> S3Uploader:
        return S3Uploader(S3Client.from_config(config), config.bucket)

    return open_session
