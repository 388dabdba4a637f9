### accesszen/utils/s3_utils.py

# Standard library imports
import os
from typing import Optional, BinaryIO, Tuple
from urllib.parse import urlparse

# Third party imports
import boto3
import requests
from botocore.exceptions import ClientError, BotoCoreError

# Local imports
from accesszen.core.config import settings
from accesszen.utils.logger import get_logger

logger = get_logger(__name__)

PERMISSION_ERROR_CODES = {"AccessDenied", "AllAccessDisabled", "Forbidden", "InvalidAccessKeyId", "SignatureDoesNotMatch", "401", "403"}
NOT_FOUND_ERROR_CODES = {"NoSuchKey", "NoSuchBucket", "NotFound", "404"}


class StorageError(Exception):
    """Raised when a blob store operation fails."""
    def __init__(self, message: str, key: Optional[str] = None):
        self.message = message
        self.key = key
        super().__init__(self.message)


class StoragePermissionError(StorageError):
    """Raised when the caller is not allowed to read or write an object."""


class StorageObjectNotFoundError(StorageError):
    """Raised when the referenced object does not exist."""


def _translate_client_error(error: ClientError, action: str, key: str) -> StorageError:
    code = str(error.response.get("Error", {}).get("Code", ""))
    message = f"Error {action} '{key}': {code or error}"
    if code in PERMISSION_ERROR_CODES:
        return StoragePermissionError(message, key)
    if code in NOT_FOUND_ERROR_CODES:
        return StorageObjectNotFoundError(message, key)
    return StorageError(message, key)


class S3Utils:
    """Utility class for interacting with s3"""
    def __init__(self, s3_client=None, bucket_name: Optional[str] = None):
        """Initialize S3 client with AWS credentials"""
        self.s3_client = s3_client or boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = bucket_name or settings.s3_bucket_name

    def upload_file(self, file_obj: BinaryIO, key: str, content_type: Optional[str] = None) -> None:
        """
        Upload a file to S3

        Args:
            file_obj: File object to upload
            key: S3 key (path) where the file will be stored
            content_type: Optional content type of the file

        Raises:
            StorageError: If the upload is rejected
        """
        extra_args = {}
        file_extension = os.path.splitext(key)[1]
        if file_extension == ".pdf":
            extra_args['ContentType'] = "application/pdf"
        if content_type:
            extra_args['ContentType'] = content_type

        try:
            self.s3_client.upload_fileobj(
                file_obj,
                self.bucket_name,
                key,
                ExtraArgs=extra_args
            )
        except ClientError as e:
            raise _translate_client_error(e, "uploading", key) from e
        except BotoCoreError as e:
            raise StorageError(f"Error uploading '{key}': {e}", key) from e

    def download_file(self, key: str, bucket_name: Optional[str] = None) -> bytes:
        """
        Download a file from S3

        Args:
            key: S3 key (path) of the file to download
            bucket_name: Bucket override, defaults to the configured bucket

        Returns:
            bytes: File content
        """
        try:
            response = self.s3_client.get_object(
                Bucket=bucket_name or self.bucket_name,
                Key=key
            )
            return response['Body'].read()
        except ClientError as e:
            raise _translate_client_error(e, "downloading", key) from e
        except BotoCoreError as e:
            raise StorageError(f"Error downloading '{key}': {e}", key) from e

    def generate_presigned_url(self, key: str, expiration: Optional[int] = None) -> str:
        """
        Generate a presigned URL for access to an S3 object

        Args:
            key: S3 key (path) of the file
            expiration: URL expiration time in seconds (default: settings.presigned_url_expiration)

        Returns:
            str: Presigned URL
        """
        try:
            return self.s3_client.generate_presigned_url(
                'get_object',
                Params={
                    'Bucket': self.bucket_name,
                    'Key': key
                },
                ExpiresIn=expiration or settings.presigned_url_expiration
            )
        except ClientError as e:
            raise _translate_client_error(e, "signing", key) from e
        except BotoCoreError as e:
            raise StorageError(f"Error signing '{key}': {e}", key) from e

    def fetch_file(self, reference: str) -> bytes:
        """
        Read the bytes behind a stored file reference.

        References are either http(s) URLs (presigned or public links saved on a
        record), ``s3://bucket/key`` URIs or bare keys in the configured bucket.
        """
        scheme, bucket, key = parse_reference(reference)
        if scheme in ("http", "https"):
            return self._fetch_url(reference)
        return self.download_file(key, bucket_name=bucket)

    def _fetch_url(self, url: str) -> bytes:
        try:
            response = requests.get(url, timeout=settings.document_fetch_timeout)
        except requests.RequestException as e:
            raise StorageError(f"Error fetching '{url}': {e}", url) from e

        if response.status_code in (401, 403):
            raise StoragePermissionError(f"Access denied fetching '{url}'", url)
        if response.status_code == 404:
            raise StorageObjectNotFoundError(f"Nothing found at '{url}'", url)
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise StorageError(f"Error fetching '{url}': {e}", url) from e
        return response.content


def parse_reference(reference: str) -> Tuple[str, Optional[str], str]:
    """
    Split a file reference into (scheme, bucket, key).

    Bare keys come back with an empty scheme and no bucket.
    """
    parsed = urlparse(reference)
    if parsed.scheme == "s3":
        return "s3", parsed.netloc, parsed.path.lstrip("/")
    if parsed.scheme in ("http", "https"):
        return parsed.scheme, None, parsed.path.lstrip("/")
    return "", None, reference.lstrip("/")


s3_utils = S3Utils()
