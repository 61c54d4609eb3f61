"""Service implementations for the derivatives pipeline."""

import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence, Union

from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image

from .error_handling import BatchOperationContextManager
from .exceptions import FetchError, UnsupportedTypeError, WriteError
from .image_utils import prepare_image, read_metadata, render_derivative
from .keys import derive_key, ensure_supported
from .models import (
    BatchReport,
    ChangeRecord,
    DerivativeConfig,
    DerivativeSpec,
    ImageMetadata,
    ProcessingOutcome,
)
from .observability import LogContext
from .planner import plan_derivatives
from .protocols import (
    ImageCodecProtocol,
    LoggerProtocol,
    ObjectStoreProtocol,
    S3ClientProtocol,
)


def _client_error_code(exc: Exception) -> Optional[str]:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


class PillowImageCodec:
    """
    Pillow-backed codec with no I/O dependencies.

    Every derivative of a record is rendered from the same source bytes, so
    the last decoded source is kept per thread and reused while transform()
    keeps receiving that same bytes object.
    """

    def __init__(self, config: Optional[DerivativeConfig] = None):
        self._config = config or DerivativeConfig()
        self._decoded = threading.local()

    def read_metadata(self, image_bytes: bytes) -> ImageMetadata:
        return read_metadata(image_bytes)

    def transform(self, image_bytes: bytes, spec: DerivativeSpec) -> bytes:
        return render_derivative(self._source(image_bytes), spec, self._config)

    def _source(self, image_bytes: bytes) -> Image.Image:
        # Holding the bytes object keeps the identity check valid.
        if getattr(self._decoded, "image_bytes", None) is not image_bytes:
            # Release the previous source before decoding the next one.
            self._decoded.image_bytes = None
            self._decoded.image = None
            self._decoded.image = prepare_image(image_bytes)
            self._decoded.image_bytes = image_bytes
        return self._decoded.image


class S3ObjectStore:
    """Object store adapter over a boto3 S3 client."""

    def __init__(self, s3_client: S3ClientProtocol):
        self._s3_client = s3_client

    def get(self, bucket: str, key: str) -> bytes:
        try:
            response = self._s3_client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            raise FetchError(
                f"Failed to fetch s3://{bucket}/{key}: {e}",
                bucket=bucket,
                key=key,
                code=_client_error_code(e),
            ) from e

    def put(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        try:
            self._s3_client.put_object(
                Bucket=bucket, Key=key, Body=body, ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            raise WriteError(
                f"Failed to write s3://{bucket}/{key}: {e}",
                bucket=bucket,
                key=key,
                code=_client_error_code(e),
            ) from e


class DerivativeService:
    """Generates and stores every derivative for one change record."""

    def __init__(
        self,
        store: ObjectStoreProtocol,
        codec: ImageCodecProtocol,
        logger: LoggerProtocol,
        config: Optional[DerivativeConfig] = None,
    ):
        self._store = store
        self._codec = codec
        self._logger = logger
        self._config = config or DerivativeConfig()

    def process_record(self, record: ChangeRecord) -> ProcessingOutcome:
        """
        Fetch, decode and write the original plus each planned width, in order.

        Any failure ends the record; derivatives already written stay in place
        and are listed in the outcome.
        """
        start_time = time.time()
        log_context = LogContext(
            correlation_id=f"rec_{record.source_key}_{int(start_time * 1000)}",
            operation="process_record",
            component="derivative_service",
        ).with_metadata(bucket=record.source_bucket, key=record.source_key)

        outcome = ProcessingOutcome(
            source_bucket=record.source_bucket, source_key=record.source_key
        )

        try:
            self._logger.info("Processing record", log_context)

            image_bytes = self._store.get(record.source_bucket, record.source_key)
            self._logger.debug(
                "Fetched source",
                log_context.with_operation("fetch"),
                size_bytes=len(image_bytes),
            )

            metadata = self._codec.read_metadata(image_bytes)
            self._logger.info(
                "Image metadata",
                log_context.with_operation("read_metadata"),
                width=metadata.width,
                height=metadata.height,
                format=metadata.format,
            )

            for spec in plan_derivatives(metadata.width, self._config.widths):
                dest_key = derive_key(record.source_key, spec)
                body = self._codec.transform(image_bytes, spec)
                self._store.put(
                    record.source_bucket, dest_key, body, self._config.content_type
                )
                outcome.derivative_keys.append(dest_key)
                self._logger.info(
                    f"Uploaded {spec.suffix} derivative",
                    log_context.with_operation("upload"),
                    dest_key=dest_key,
                    size_bytes=len(body),
                )

            outcome.status = "success"

        except Exception as e:
            outcome.status = "failed"
            outcome.error = str(e)
            outcome.error_type = type(e).__name__
            self._logger.error(
                f"Error processing {record.source_key}",
                log_context.with_metadata(
                    error_type=outcome.error_type,
                    error=outcome.error,
                    written=len(outcome.derivative_keys),
                ),
                exc_info=True,
            )

        outcome.processing_time = time.time() - start_time
        return outcome


class BatchRecordProcessor:
    """Runs a batch of change records, isolating failures per record."""

    def __init__(
        self,
        derivative_service: DerivativeService,
        logger: LoggerProtocol,
        config: Optional[DerivativeConfig] = None,
    ):
        self._derivative_service = derivative_service
        self._logger = logger
        self._config = config or DerivativeConfig()

    def process(self, records: Sequence[ChangeRecord]) -> BatchReport:
        """Process records in delivery order and return the aggregated report."""
        return self._run(list(records))

    def process_event(self, event: Dict[str, Any]) -> BatchReport:
        """Decode an S3 notification event and process its records."""
        items: List[Union[ChangeRecord, ProcessingOutcome]] = []
        for raw_record in event.get("Records") or []:
            try:
                items.append(ChangeRecord.from_event_record(raw_record))
            except (ValueError, TypeError, AttributeError) as e:
                self._logger.error(
                    "Malformed event record",
                    record=json.dumps(raw_record, default=str),
                    error=str(e),
                )
                items.append(
                    ProcessingOutcome(
                        source_key="",
                        status="failed",
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                )
        return self._run(items)

    def _run(self, items: List[Union[ChangeRecord, ProcessingOutcome]]) -> BatchReport:
        report = BatchReport()
        with BatchOperationContextManager(
            operation_name=f"Derivative batch of {len(items)} record(s)"
        ) as batch_manager:
            if self._config.concurrency > 1 and len(items) > 1:
                max_workers = min(self._config.concurrency, len(items))
                with ThreadPoolExecutor(max_workers=max_workers) as executor:
                    # map() keeps results in input order
                    report.outcomes.extend(executor.map(self._process_one, items))
            else:
                report.outcomes.extend(self._process_one(item) for item in items)

            for outcome in report.outcomes:
                if outcome.status == "failed":
                    batch_manager.add_error(
                        f"{outcome.error_type}: {outcome.error}",
                        item_identifier=f"s3://{outcome.source_bucket}/{outcome.source_key}",
                    )

        self._logger.info("Batch report", **report.summary())
        return report

    def _process_one(self, item: Union[ChangeRecord, ProcessingOutcome]) -> ProcessingOutcome:
        if isinstance(item, ProcessingOutcome):
            return item

        try:
            ensure_supported(item.source_key, self._config.supported_extensions)
        except UnsupportedTypeError as e:
            self._logger.info(
                f"{e}. Skipping {item.source_key}",
                bucket=item.source_bucket,
            )
            return ProcessingOutcome(
                source_bucket=item.source_bucket,
                source_key=item.source_key,
                status="skipped",
            )

        return self._derivative_service.process_record(item)
