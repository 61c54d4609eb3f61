# src/webp_derivatives/core/error_handling.py

import functools
import logging
from typing import Any, Callable, Dict, List, Type, TypeVar

from PIL import Image, UnidentifiedImageError

from .exceptions import CodecError, DerivativesError

F = TypeVar("F", bound=Callable[..., Any])

# Errors Pillow raises for corrupt, truncated or oversized input.
CODEC_FAILURES = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
)


def with_error_handling(error_cls: Type[DerivativesError] = CodecError) -> Callable[[F], F]:
    """
    Decorator translating Pillow failures into a pipeline error.

    DerivativesError subclasses pass through untouched; anything Pillow raises
    for bad image data is logged and re-raised as error_cls.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = logging.getLogger(func.__module__ + "." + func.__name__)
            try:
                return func(*args, **kwargs)
            except DerivativesError:
                raise
            except CODEC_FAILURES as e:
                logger.debug(f"Error in '{func.__name__}': {e}", exc_info=True)
                raise error_cls(f"{func.__name__} failed: {e}") from e

        return wrapper  # type: ignore[return-value]

    return decorator


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """

    def __init__(self, operation_name: str = "Batch Operation"):
        self.operation_name = operation_name
        self.errors: List[Dict[str, str]] = []
        self.logger = logging.getLogger(
            self.__class__.__module__ + "." + self.__class__.__name__
        )

    def __enter__(self) -> "BatchOperationContextManager":
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i + 1}/{len(self.errors)} for item "
                    f"'{error_detail['item']}': {error_detail['error']}"
                )
        elif exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        # Never suppress exceptions raised inside the block.
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item") -> None:
        """
        Report an error for a specific item.

        Args:
            error_message: The error message or exception string.
            item_identifier: A string identifying the item that failed (e.g. the S3 key).
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(
            f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}"
        )
