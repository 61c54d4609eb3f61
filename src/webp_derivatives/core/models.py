"""Shared data models for the derivatives pipeline."""

import os
from typing import Any, Dict, List, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import ConfigurationError

DEFAULT_WIDTHS: Tuple[int, ...] = (256, 640, 1080, 1920, 2048, 3840)
SUPPORTED_EXTENSIONS: Tuple[str, ...] = (
    ".jpg",
    ".jpeg",
    ".png",
    ".webp",
    ".gif",
    ".tiff",
)
ORIGINAL = "original"
COMPLETION_BODY = "Image processing complete"


class DerivativeConfig(BaseModel):
    """Configuration for derivative generation."""

    widths: Tuple[int, ...] = DEFAULT_WIDTHS
    supported_extensions: Tuple[str, ...] = SUPPORTED_EXTENSIONS
    output_format: str = "WEBP"
    content_type: str = "image/webp"
    quality: int = Field(default=100, ge=0, le=100)
    lossless: bool = False
    method: int = Field(default=6, ge=0, le=6)
    concurrency: int = Field(default=1, ge=1)
    debug: bool = False

    @field_validator("widths")
    @classmethod
    def _ascending_positive(cls, value: Tuple[int, ...]) -> Tuple[int, ...]:
        if any(width <= 0 for width in value):
            raise ValueError("widths must be positive")
        if list(value) != sorted(set(value)):
            raise ValueError("widths must be strictly ascending")
        return value

    @classmethod
    def from_env(cls, **overrides: Any) -> "DerivativeConfig":
        """Build a config from DERIVATIVE_* environment variables."""
        values: Dict[str, Any] = {}
        raw_concurrency = os.getenv("DERIVATIVE_CONCURRENCY")
        if raw_concurrency:
            try:
                values["concurrency"] = int(raw_concurrency)
            except ValueError as exc:
                raise ConfigurationError(
                    f"DERIVATIVE_CONCURRENCY must be an integer, got {raw_concurrency!r}"
                ) from exc
        values.update(overrides)
        try:
            return cls(**values)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc


class ChangeRecord(BaseModel):
    """One uploaded object from a storage notification."""

    model_config = ConfigDict(frozen=True)

    source_bucket: str
    source_key: str

    @classmethod
    def from_event_record(cls, record: Dict[str, Any]) -> "ChangeRecord":
        """Build a record from an S3 notification entry, decoding the key."""
        from .keys import decode_event_key

        s3_info = record.get("s3") or {}
        bucket = (s3_info.get("bucket") or {}).get("name")
        raw_key = (s3_info.get("object") or {}).get("key")
        if not bucket or not raw_key:
            raise ValueError("Malformed S3 event record: missing bucket name or object key")
        return cls(source_bucket=bucket, source_key=decode_event_key(raw_key))


class ImageMetadata(BaseModel):
    """Metadata decoded from the source image."""

    width: int
    height: int
    format: str = "unknown"
    mode: str = ""
    exif: Dict[str, Any] = Field(default_factory=dict)


class DerivativeSpec(BaseModel):
    """A single derivative to produce: the original re-encode or a width."""

    model_config = ConfigDict(frozen=True)

    width: Union[int, Literal["original"]]

    @property
    def is_original(self) -> bool:
        return self.width == ORIGINAL

    @property
    def suffix(self) -> str:
        return str(self.width)


class ProcessingOutcome(BaseModel):
    """Result of processing a single change record."""

    source_bucket: str = ""
    source_key: str
    status: Literal["success", "skipped", "failed"] = "failed"
    derivative_keys: List[str] = Field(default_factory=list)
    error: str = ""
    error_type: str = ""
    processing_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == "success"


class BatchReport(BaseModel):
    """Aggregated outcomes of one invocation batch."""

    outcomes: List[ProcessingOutcome] = Field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def succeeded(self) -> int:
        return self._count("success")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def failed(self) -> int:
        return self._count("failed")

    @property
    def derivative_keys(self) -> List[str]:
        return [key for outcome in self.outcomes for key in outcome.derivative_keys]

    def summary(self) -> Dict[str, int]:
        return {
            "total_records": len(self.outcomes),
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "derivatives_written": len(self.derivative_keys),
        }


class CompletionResult(BaseModel):
    """Fixed invocation result returned to the host."""

    statusCode: int = 200
    body: str = COMPLETION_BODY
