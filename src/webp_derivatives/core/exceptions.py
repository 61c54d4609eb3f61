"""Custom exceptions for the derivatives pipeline."""

from typing import Optional


class DerivativesError(Exception):
    """Base exception for all derivatives pipeline errors."""


class UnsupportedTypeError(DerivativesError):
    """Raised when a key does not name a supported image type."""


class StoreError(DerivativesError):
    """Base error for object store failures."""

    def __init__(
        self, message: str, bucket: str = "", key: str = "", code: Optional[str] = None
    ):
        super().__init__(message)
        self.bucket = bucket
        self.key = key
        self.code = code


class FetchError(StoreError):
    """Error raised when reading a source object fails."""


class WriteError(StoreError):
    """Error raised when writing a derivative fails."""


class CodecError(DerivativesError):
    """Error raised when an image cannot be decoded, resized or encoded."""


class ConfigurationError(DerivativesError):
    """Error raised for invalid configuration options."""
