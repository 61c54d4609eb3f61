"""Protocol definitions for dependency injection and testability."""

from typing import Any, Dict, Protocol

from .models import DerivativeSpec, ImageMetadata


class S3ClientProtocol(Protocol):
    """Protocol for the boto3 S3 client operations used here."""

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        ...

    def put_object(
        self, Bucket: str, Key: str, Body: bytes, ContentType: str
    ) -> Dict[str, Any]:
        """Put object to S3."""
        ...


class ObjectStoreProtocol(Protocol):
    """Get/put-by-key object storage."""

    def get(self, bucket: str, key: str) -> bytes:
        """Read an object; raises FetchError."""
        ...

    def put(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        """Write an object; raises WriteError."""
        ...


class ImageCodecProtocol(Protocol):
    """Decode, resize and encode capability."""

    def read_metadata(self, image_bytes: bytes) -> ImageMetadata:
        """Describe the source image; raises CodecError."""
        ...

    def transform(self, image_bytes: bytes, spec: DerivativeSpec) -> bytes:
        """Produce one derivative; raises CodecError."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...
