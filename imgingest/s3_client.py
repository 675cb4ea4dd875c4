"""
S3Client - S3/MinIO uploads for processed product images.
"""

import io
import logging
from typing import Callable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from retrying import retry

from .s3_config import S3Config


class S3Client:
    """
    Wrapper for the S3/MinIO operations used by the upload transport.
    """

    def __init__(self, config: S3Config, logger: Optional[logging.Logger] = None):
        """
        Initialize S3 client.

        Args:
            config: S3 configuration
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        self._client = boto3.client(
            's3',
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'}
            ),
            verify=config.verify_ssl
        )

    def object_key(self, *parts: str) -> str:
        """Join ``parts`` under the configured prefix."""
        return '/'.join(p.strip('/') for p in (self.config.prefix, *parts) if p)

    @retry(
        retry_on_exception=lambda e: isinstance(e, ClientError),
        stop_max_attempt_number=3,
        wait_exponential_multiplier=100
    )
    def upload_object(
        self,
        key: str,
        data: bytes,
        content_type: str = 'application/octet-stream',
        callback: Optional[Callable[[int], None]] = None
    ) -> None:
        """
        Upload ``data`` to ``key``.

        Args:
            key: Object key
            data: Payload bytes
            content_type: Content-Type stored with the object
            callback: Called with the number of bytes sent in each chunk
        """
        self.logger.debug(f"Uploading: {key} ({len(data)} bytes)")
        self._client.upload_fileobj(
            io.BytesIO(data),
            self.config.bucket,
            key,
            ExtraArgs={'ContentType': content_type},
            Callback=callback
        )

