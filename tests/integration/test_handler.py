"""Integration tests for the Lambda handler over the complete pipeline."""

import pytest
from unittest.mock import patch

from webp_derivatives import handler as handler_module
from webp_derivatives.core.exceptions import ConfigurationError
from webp_derivatives.core.factories import ProcessingPipelineFactory
from webp_derivatives.core.models import DerivativeConfig
from webp_derivatives.testing.fakes import (
    FakeLogger,
    create_s3_event,
    setup_test_s3_environment,
)

COMPLETE = {"statusCode": 200, "body": "Image processing complete"}


@pytest.fixture
def fake_s3():
    return setup_test_s3_environment()


@pytest.fixture
def pipeline(fake_s3):
    processor = ProcessingPipelineFactory.create_processor(
        s3_client=fake_s3, logger=FakeLogger(), config=DerivativeConfig()
    )
    handler_module.set_processor(processor)
    yield processor
    handler_module.set_processor(None)


class TestHandlerIntegration:
    """End-to-end tests through handler()."""

    def test_mixed_batch(self, fake_s3, pipeline):
        event = create_s3_event(
            ("test-bucket", "uploads/medium.jpg"),
            ("test-bucket", "uploads/notes.txt"),
            ("test-bucket", "uploads/my+photo.jpg"),
        )

        result = handler_module.handler(event, None)

        assert result == COMPLETE
        bucket = fake_s3.get_bucket("test-bucket")
        assert bucket.list_keys("uploads/medium-") == [
            "uploads/medium-256.webp",
            "uploads/medium-640.webp",
            "uploads/medium-original.webp",
        ]
        assert bucket.list_keys("uploads/my photo-") == [
            "uploads/my photo-256.webp",
            "uploads/my photo-original.webp",
        ]
        assert bucket.list_keys("uploads/notes") == ["uploads/notes.txt"]

    def test_failures_do_not_change_result(self, fake_s3, pipeline):
        fake_s3.fail_get("uploads/medium.jpg")
        event = create_s3_event(
            ("test-bucket", "uploads/small.jpg"),
            ("test-bucket", "uploads/medium.jpg"),
            ("test-bucket", "uploads/wide.png"),
            ("test-bucket", "uploads/broken.jpg"),
            ("missing-bucket", "photo.jpg"),
        )

        result = handler_module.handler(event, None)

        assert result == COMPLETE
        bucket = fake_s3.get_bucket("test-bucket")
        assert bucket.get_object("uploads/small-original.webp") is not None
        assert bucket.get_object("uploads/wide-1080.webp") is not None
        assert bucket.list_keys("uploads/medium-") == []

    def test_total_store_outage(self, fake_s3, pipeline):
        fake_s3.set_failure_mode(True, "S3 Service Unavailable")

        result = handler_module.handler(
            create_s3_event(("test-bucket", "uploads/small.jpg")), None
        )

        assert result == COMPLETE

    def test_empty_event(self, pipeline):
        assert handler_module.handler({"Records": []}, None) == COMPLETE

    def test_lambda_handler_alias(self):
        assert handler_module.lambda_handler is handler_module.handler


class TestProcessorCaching:
    def test_processor_built_once(self):
        handler_module.set_processor(None)
        try:
            with patch.object(
                ProcessingPipelineFactory, "create_processor"
            ) as mock_create:
                first = handler_module.get_processor()
                second = handler_module.get_processor()

            mock_create.assert_called_once_with()
            assert first is second
        finally:
            handler_module.set_processor(None)

    def test_invalid_configuration_still_completes(self):
        handler_module.set_processor(None)
        try:
            with patch.object(
                ProcessingPipelineFactory,
                "create_processor",
                side_effect=ConfigurationError("DERIVATIVE_CONCURRENCY must be an integer"),
            ), patch.object(handler_module, "logger") as mock_logger:
                result = handler_module.handler(
                    create_s3_event(("test-bucket", "uploads/small.jpg")), None
                )

            assert result == COMPLETE
            mock_logger.error.assert_called_once()
            assert mock_logger.error.call_args.kwargs["exc_info"] is True
        finally:
            handler_module.set_processor(None)
