"""Factory classes for creating configured service instances."""

from typing import Any, Optional

import boto3

from .logging_config import DEFAULT_LOGGER_NAME
from .models import DerivativeConfig
from .observability import StructuredLogger
from .protocols import ImageCodecProtocol, LoggerProtocol, S3ClientProtocol
from .services import (
    BatchRecordProcessor,
    DerivativeService,
    PillowImageCodec,
    S3ObjectStore,
)


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(
        name: str = DEFAULT_LOGGER_NAME, debug: bool = False
    ) -> LoggerProtocol:
        """Create a configured structured logger."""
        return StructuredLogger(name, level="DEBUG" if debug else None)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(**kwargs: Any) -> S3ClientProtocol:
        """Create S3 client with optional configuration."""
        session = boto3.Session()
        return session.client("s3", **kwargs)  # type: ignore


class ProcessingPipelineFactory:
    """Factory for creating the complete processing pipeline."""

    @staticmethod
    def create_processor(
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        codec: Optional[ImageCodecProtocol] = None,
        config: Optional[DerivativeConfig] = None,
    ) -> BatchRecordProcessor:
        """Create a fully configured batch record processor."""
        if config is None:
            config = DerivativeConfig.from_env()

        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client()

        if logger is None:
            logger = LoggerFactory.create_logger(debug=config.debug)

        if codec is None:
            codec = PillowImageCodec(config)

        derivative_service = DerivativeService(
            store=S3ObjectStore(s3_client),
            codec=codec,
            logger=logger,
            config=config,
        )
        return BatchRecordProcessor(derivative_service, logger, config)
