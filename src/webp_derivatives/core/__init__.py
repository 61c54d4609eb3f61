"""Core utilities and shared components for the derivatives pipeline."""

from .exceptions import (
    CodecError,
    ConfigurationError,
    DerivativesError,
    FetchError,
    StoreError,
    UnsupportedTypeError,
    WriteError,
)
from .image_utils import apply_transformation, extract_exif_data, read_metadata
from .keys import (
    decode_event_key,
    derive_key,
    derive_original_key,
    derive_resized_key,
    ensure_supported,
    file_extension,
    is_supported,
    strip_extension,
)
from .logging_config import get_logger, setup_logger
from .models import (
    DEFAULT_WIDTHS,
    SUPPORTED_EXTENSIONS,
    BatchReport,
    ChangeRecord,
    CompletionResult,
    DerivativeConfig,
    DerivativeSpec,
    ImageMetadata,
    ProcessingOutcome,
)
from .planner import plan_derivatives, plan_widths

__all__ = [
    "DEFAULT_WIDTHS",
    "SUPPORTED_EXTENSIONS",
    "BatchReport",
    "ChangeRecord",
    "CompletionResult",
    "DerivativeConfig",
    "DerivativeSpec",
    "ImageMetadata",
    "ProcessingOutcome",
    "apply_transformation",
    "extract_exif_data",
    "read_metadata",
    "decode_event_key",
    "derive_key",
    "derive_original_key",
    "derive_resized_key",
    "ensure_supported",
    "file_extension",
    "is_supported",
    "strip_extension",
    "plan_derivatives",
    "plan_widths",
    "setup_logger",
    "get_logger",
    "DerivativesError",
    "UnsupportedTypeError",
    "StoreError",
    "FetchError",
    "WriteError",
    "CodecError",
    "ConfigurationError",
]
