"""
Lambda entrypoint for S3 upload notifications.

Each invocation receives a batch of S3 event records; every supported image
gets an -original.webp re-encode plus one WebP per catalog width it can be
downscaled to, written next to the source object.
"""

import json
from typing import Any, Dict, Optional

from .core import CompletionResult, ConfigurationError, get_logger
from .core.factories import ProcessingPipelineFactory
from .core.services import BatchRecordProcessor

logger = get_logger("handler")

# Built on first invocation and reused while the container stays warm.
_processor: Optional[BatchRecordProcessor] = None


def get_processor() -> BatchRecordProcessor:
    global _processor
    if _processor is None:
        _processor = ProcessingPipelineFactory.create_processor()
    return _processor


def set_processor(processor: Optional[BatchRecordProcessor]) -> None:
    """Replace the cached processor (None resets it)."""
    global _processor
    _processor = processor


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Process an S3 notification batch.

    Per-record failures are logged and reported in the batch summary; the
    return value is always the fixed completion result. Invalid environment
    configuration is logged at error level and the batch is not processed.
    """
    logger.debug(f"Received event: {json.dumps(event, default=str)}")

    try:
        processor = get_processor()
    except ConfigurationError:
        logger.error("Invalid derivative configuration, batch not processed", exc_info=True)
        return CompletionResult().model_dump()

    report = processor.process_event(event)
    logger.info(f"Batch summary: {report.summary()}")

    return CompletionResult().model_dump()


lambda_handler = handler
