"""Storage key helpers: extension filtering and derivative key naming."""

from typing import Iterable
from urllib.parse import unquote_plus

from .exceptions import UnsupportedTypeError
from .models import SUPPORTED_EXTENSIONS, DerivativeSpec

DERIVATIVE_EXTENSION = ".webp"


def decode_event_key(raw_key: str) -> str:
    """
    Reverse the key encoding used by S3 event notifications.

    '+' becomes a space first, then percent-escapes are decoded.
    """
    return unquote_plus(raw_key)


def file_extension(key: str) -> str:
    """Return the lowercased final dot segment of a key (the whole key if it has no dot)."""
    return key.split(".")[-1].lower()


def is_supported(
    key: str, supported_extensions: Iterable[str] = SUPPORTED_EXTENSIONS
) -> bool:
    """Check whether a key names a supported source image type."""
    return f".{file_extension(key)}" in tuple(supported_extensions)


def strip_extension(key: str) -> str:
    """
    Drop everything from the first dot onwards.

    "photos/a.b.jpg" becomes "photos/a". Derivative keys already written by
    earlier deployments follow this naming, so it must not become a last-dot strip.
    """
    return key.split(".")[0]


def derive_original_key(source_key: str) -> str:
    return f"{strip_extension(source_key)}-original{DERIVATIVE_EXTENSION}"


def derive_resized_key(source_key: str, width: int) -> str:
    return f"{strip_extension(source_key)}-{width}{DERIVATIVE_EXTENSION}"


def derive_key(source_key: str, spec: DerivativeSpec) -> str:
    """Destination key for a derivative of source_key."""
    if spec.is_original:
        return derive_original_key(source_key)
    return derive_resized_key(source_key, int(spec.width))


def ensure_supported(
    key: str, supported_extensions: Iterable[str] = SUPPORTED_EXTENSIONS
) -> None:
    """Raise UnsupportedTypeError unless the key names a supported image type."""
    if not is_supported(key, supported_extensions):
        raise UnsupportedTypeError(f"Unsupported file type: {file_extension(key)}")
